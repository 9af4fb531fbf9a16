# trans_relay/cli/main.py
"""Trans-Relay CLI 的主入口点。"""

import asyncio
from typing import Annotated, Optional

import typer
from rich.console import Console

import trans_relay
from trans_relay.cli.cache import cache_app
from trans_relay.cli.locales import locales_app
from trans_relay.cli.state import State
from trans_relay.cli.translate import resolve_command
from trans_relay.cli.utils import create_engine, ensure_ok, require_credentials
from trans_relay.config import TransRelayConfig
from trans_relay.engine import TransRelay
from trans_relay.exceptions import APIError
from trans_relay.logging_config import setup_logging

app = typer.Typer(
    name="trans-relay",
    help="🛰️ Trans-Relay: 运行时翻译解析与缺失词条同步引擎。",
    add_completion=False,
    no_args_is_help=True,
)

app.add_typer(cache_app, name="cache")
app.add_typer(locales_app, name="locales")
app.command("resolve")(resolve_command)

console = Console()


def version_callback(value: bool) -> None:
    if value:
        console.print(f"Trans-Relay [bold cyan]v{trans_relay.__version__}[/bold cyan]")
        raise typer.Exit()


@app.callback()
def main(
    ctx: typer.Context,
    version: Annotated[
        Optional[bool],
        typer.Option(
            "--version",
            "-v",
            help="显示版本信息并退出。",
            callback=version_callback,
            is_eager=True,
        ),
    ] = None,
) -> None:
    """主回调函数，在任何子命令执行前加载配置并初始化日志。"""
    try:
        config = TransRelayConfig()
        setup_logging(log_level=config.logging.level, log_format=config.logging.format)
        ctx.obj = State(config=config)
    except Exception as e:
        console.print("[bold red]❌ 启动失败：无法加载配置或初始化日志。[/bold red]")
        console.print(f"[dim]{e}[/dim]")
        raise typer.Exit(code=1) from e


async def _validate(engine: TransRelay) -> None:
    try:
        await engine.initialize()
        ensure_ok(await engine.api.validate(engine.config), "凭据校验")
    finally:
        await engine.close()


@app.command("validate")
def validate(ctx: typer.Context) -> None:
    """校验项目 ID 与 API 密钥是否已获授权。"""
    state: State = ctx.obj
    require_credentials(state.config)
    try:
        asyncio.run(_validate(create_engine(state.config)))
    except APIError as e:
        console.print(f"[bold red]❌ {e}[/bold red]")
        raise typer.Exit(code=1) from e
    console.print(
        f"[bold green]✅ 项目 [cyan]{state.config.project_id}[/cyan] 凭据有效。[/bold green]"
    )
