# trans_relay/cli/utils.py
"""提供 CLI 命令使用的共享工具函数。"""

import typer
from rich.console import Console

from trans_relay.config import TransRelayConfig
from trans_relay.engine import TransRelay
from trans_relay.exceptions import APIError
from trans_relay.types import ApiResponse

console = Console()


def create_engine(config: TransRelayConfig) -> TransRelay:
    """
    根据配置创建一个引擎实例。

    CLI 直接从环境变量读取凭据，因此引擎在构造后即处于已配置状态。
    命令不会调用 setup，也就不会订阅语言信号，缺失词条在命令结束前显式提交。
    """
    return TransRelay(config)


def require_credentials(config: TransRelayConfig) -> None:
    """缺少凭据时打印错误并以退出码 1 结束。"""
    if not config.is_configured:
        console.print(
            "[bold red]❌ 缺少项目 ID 或 API 密钥，"
            "请设置 TR_PROJECT_ID 与 TR_API_KEY。[/bold red]"
        )
        raise typer.Exit(code=1)


def ensure_ok(response: ApiResponse, action: str) -> ApiResponse:
    """把失败的响应转换为 APIError。"""
    if not response.ok:
        detail = "; ".join(response.errors or []) or response.error_kind.value
        raise APIError(f"{action}失败 ({response.error_kind.value}): {detail}")
    return response
