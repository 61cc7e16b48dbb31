# src/locale_migrate/presentation/cli/commands/locales.py
"""`locales` 命令：显示配置的语言列表与默认语言。"""

from __future__ import annotations

import typer
from rich.console import Console
from rich.table import Table

from locale_migrate.domain.locales import LocaleResolver, is_recognised_locale
from locale_migrate.exceptions import ConfigurationError

from .._state import CLISharedState

console = Console()
err_console = Console(stderr=True)


def show_locales(ctx: typer.Context) -> None:
    """显示语言配置；默认语言缺失时以退出码 1 结束。"""
    state: CLISharedState = ctx.obj
    resolver = LocaleResolver(state.config.locales, state.config.default_locale)
    try:
        locales, default = resolver.validate()
    except ConfigurationError as e:
        err_console.print(f"[bold red]❌ {e}[/bold red]")
        raise typer.Exit(code=1)

    table = Table(title="语言配置")
    table.add_column("语言", style="cyan")
    table.add_column("默认", justify="center")
    table.add_column("BCP-47", justify="center")
    for loc in locales:
        table.add_row(
            loc,
            "✅" if loc == default else "",
            "✅" if is_recognised_locale(loc) else "[yellow]?[/yellow]",
        )
    console.print(table)
    if default not in locales:
        console.print(f"[yellow]⚠️ 默认语言 {default} 不在语言列表中。[/yellow]")
