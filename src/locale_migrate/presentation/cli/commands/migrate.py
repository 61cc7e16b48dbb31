# src/locale_migrate/presentation/cli/commands/migrate.py
"""
`migrate` 命令：执行迁移（默认演练，`--write` 才真正写入）。
"""

from __future__ import annotations

import json

import typer
from rich.console import Console

from locale_migrate.application.write_gate import WriteGate
from locale_migrate.bootstrap import create_task
from locale_migrate.exceptions import LocaleMigrateError

from .._render import render_report
from .._shared_options import JSON_OPTION, ROOT_OPTION
from .._state import CLISharedState

console = Console()
err_console = Console(stderr=True)

EXIT_INTERRUPTED = 130


def migrate(
    ctx: typer.Context,
    write: bool = typer.Option(
        False, "--write/--dry-run", help="真正写入派生表；默认只演练并统计。"
    ),
    root: ROOT_OPTION = None,
    create_tables: bool = typer.Option(
        False, "--create-tables", help="写入前创建缺失的派生表。"
    ),
    as_json: JSON_OPTION = False,
) -> None:
    """把遗留的多语言列迁移到派生表，并输出迁移报告。"""
    state: CLISharedState = ctx.obj
    config = state.config
    if create_tables:
        config = config.model_copy(update={"create_missing_tables": True})

    try:
        with create_task(config) as task:
            report = task.run(WriteGate(write), root=root)
    except LocaleMigrateError as e:
        err_console.print(f"[bold red]❌ 迁移无法开始: {e}[/bold red]")
        raise typer.Exit(code=1)

    if as_json:
        typer.echo(json.dumps(report.to_dict(), ensure_ascii=False, indent=2))
    else:
        render_report(console, report)

    if report.interrupted:
        raise typer.Exit(code=EXIT_INTERRUPTED)
