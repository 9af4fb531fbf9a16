# trans_relay/cli/translate.py
"""在命令行中解析词条，用于检查某个语言下的翻译覆盖情况。"""

import asyncio
from typing import Annotated

import typer
from rich.console import Console
from rich.table import Table

from trans_relay.cli.state import State
from trans_relay.cli.utils import create_engine, require_credentials
from trans_relay.engine import TransRelay

console = Console()


async def _resolve(
    engine: TransRelay, locale: str, tokens: list[str], offline: bool
) -> list[tuple[str, str]]:
    try:
        await engine.initialize()
        engine.locale_signal.set(locale)
        if not offline:
            await engine.refresh()
        results = [(token, engine.resolve(token)) for token in tokens]
        # 把本次发现的缺失词条提交给服务端
        await engine.flush()
        return results
    finally:
        await engine.close()


def resolve_command(
    ctx: typer.Context,
    locale: Annotated[str, typer.Argument(help="目标语言代码。")],
    tokens: Annotated[list[str], typer.Argument(help="一个或多个词条，可带 {[分类]} 前缀。")],
    offline: Annotated[
        bool, typer.Option("--offline", help="只使用本地缓存，不拉取翻译。")
    ] = False,
) -> None:
    """解析词条并显示译文，缺失的词条会被上报给服务端。"""
    state: State = ctx.obj
    require_credentials(state.config)
    results = asyncio.run(_resolve(create_engine(state.config), locale, tokens, offline))

    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("词条")
    table.add_column(locale, style="green")
    for token, translated in results:
        table.add_row(token, translated)
    console.print(table)
