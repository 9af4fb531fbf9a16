# trans_relay/cli/locales.py
"""查询语言目录的 CLI 命令。"""

import asyncio
from typing import Annotated, Any, Optional

import typer
from rich.console import Console
from rich.table import Table

from trans_relay.cli.state import State
from trans_relay.cli.utils import create_engine, require_credentials
from trans_relay.engine import LocaleFormat, TransRelay
from trans_relay.types import LocaleData, LocaleFlat

console = Console()
locales_app = typer.Typer(help="语言目录查询")


async def _list(engine: TransRelay, format: LocaleFormat, in_locale: Optional[str]) -> Any:
    try:
        await engine.initialize()
        return await engine.get_locales(format, in_locale)
    finally:
        await engine.close()


@locales_app.command("list")
def list_locales(
    ctx: typer.Context,
    format: Annotated[
        str, typer.Option("--format", "-f", help="'flat' 或 'data'，默认按语言分组。")
    ] = "",
    in_locale: Annotated[
        Optional[str], typer.Option("--in", help="名称使用的语言。")
    ] = None,
) -> None:
    """列出所有可用的语言代码与名称。"""
    state: State = ctx.obj
    require_credentials(state.config)
    if format not in ("", "flat", "data"):
        console.print(f"[bold red]❌ 不支持的格式: {format}[/bold red]")
        raise typer.Exit(code=1)

    listing = asyncio.run(_list(create_engine(state.config), format, in_locale))  # type: ignore[arg-type]
    if not listing:
        console.print("[yellow]⚠️ 未获取到任何语言。[/yellow]")
        raise typer.Exit(code=1)

    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("代码", style="cyan")
    if isinstance(listing, dict):
        table.add_column("语言")
        table.add_column("名称")
        for language, items in listing.items():
            for item in items:
                table.add_row(item.code, language, item.name)
    else:
        table.add_column("名称")
        for item in listing:
            if isinstance(item, LocaleData):
                table.add_row(item.code, item.locale_name)
            elif isinstance(item, LocaleFlat):
                table.add_row(item.code, item.name)
    console.print(table)


async def _name(
    engine: TransRelay, code: str, short_name: bool, in_locale: Optional[str]
) -> str:
    try:
        await engine.initialize()
        return await engine.get_language_name(code, short_name, in_locale)
    finally:
        await engine.close()


@locales_app.command("name")
def language_name(
    ctx: typer.Context,
    code: Annotated[str, typer.Argument(help="要查询的语言代码。")],
    short: Annotated[bool, typer.Option("--short", help="只显示语言名。")] = False,
    in_locale: Annotated[
        Optional[str], typer.Option("--in", help="名称使用的语言。")
    ] = None,
) -> None:
    """显示某个语言代码的名称。"""
    state: State = ctx.obj
    require_credentials(state.config)
    name = asyncio.run(_name(create_engine(state.config), code, short, in_locale))
    if not name:
        console.print(f"[yellow]⚠️ 未找到 {code} 的名称。[/yellow]")
        raise typer.Exit(code=1)
    console.print(name)
