# trans_relay/cli/cache.py
"""管理本地持久化翻译缓存的 CLI 命令。"""

import asyncio
from typing import Annotated, Optional

import questionary
import typer
from rich.console import Console
from rich.table import Table

from trans_relay.cli.state import State
from trans_relay.cli.utils import create_engine, require_credentials
from trans_relay.engine import TransRelay
from trans_relay.types import CATEGORY_MARKER

console = Console()
cache_app = typer.Typer(help="本地翻译缓存管理")


def _summary_table(engine: TransRelay, title: str) -> Table:
    table = Table(title=title, show_header=True, header_style="bold cyan")
    table.add_column("分类", style="cyan")
    table.add_column("已翻译", style="green", justify="right")
    table.add_column("待翻译", style="yellow", justify="right")
    for category, entries in engine.translations.items():
        values = [v for k, v in entries.items() if k != CATEGORY_MARKER]
        resolved = sum(1 for v in values if v)
        table.add_row(category, str(resolved), str(len(values) - resolved))
    return table


async def _pull(engine: TransRelay, locale: str) -> bool:
    try:
        await engine.initialize()
        engine.locale_signal.set(locale)
        ok = await engine.refresh()
        if ok:
            console.print(_summary_table(engine, f"{locale} 翻译概览"))
        return ok
    finally:
        await engine.close()


@cache_app.command("pull")
def pull(
    ctx: typer.Context,
    locale: Annotated[str, typer.Argument(help="要拉取的语言代码。")],
) -> None:
    """拉取某个语言的全部翻译并写入本地缓存。"""
    state: State = ctx.obj
    require_credentials(state.config)
    if not asyncio.run(_pull(create_engine(state.config), locale)):
        console.print(f"[bold red]❌ 拉取 {locale} 的翻译失败，请检查日志。[/bold red]")
        raise typer.Exit(code=1)
    console.print(f"[bold green]✅ 已缓存 {locale} 的翻译。[/bold green]")


async def _show(engine: TransRelay, category: Optional[str]) -> None:
    try:
        await engine.initialize()
        table = Table(show_header=True, header_style="bold cyan")
        table.add_column("分类", style="cyan")
        table.add_column("词条")
        table.add_column("译文", style="green")
        for name, entries in engine.translations.items():
            if category is not None and name != category:
                continue
            for token, translation in entries.items():
                if token == CATEGORY_MARKER:
                    continue
                table.add_row(name, token, translation or "[dim]<待翻译>[/dim]")
        console.print(table)
    finally:
        await engine.close()


@cache_app.command("show")
def show(
    ctx: typer.Context,
    category: Annotated[
        Optional[str], typer.Option("--category", "-c", help="只显示该分类。")
    ] = None,
) -> None:
    """显示本地缓存中的翻译。"""
    state: State = ctx.obj
    asyncio.run(_show(create_engine(state.config), category))


async def _clear(engine: TransRelay) -> None:
    try:
        await engine.initialize()
        await engine.cache.clear()
    finally:
        await engine.close()


@cache_app.command("clear")
def clear(
    ctx: typer.Context,
    yes: Annotated[
        bool, typer.Option("--yes", "-y", help="跳过确认提示。")
    ] = False,
) -> None:
    """删除本地持久化的翻译缓存。"""
    state: State = ctx.obj
    if not yes:
        proceed = questionary.confirm("确定要删除本地翻译缓存吗？", default=False).ask()
        if not proceed:
            console.print("[yellow]操作已取消。[/yellow]")
            raise typer.Exit()
    asyncio.run(_clear(create_engine(state.config)))
    console.print("[bold green]✅ 本地翻译缓存已清空。[/bold green]")
