# src/locale_migrate/presentation/cli/commands/plan.py
"""
`plan` 命令：只构建查询计划并展示，不读取数据行，也不写入。
"""

from __future__ import annotations

import json
from typing import Optional

import typer
from rich.console import Console
from rich.syntax import Syntax
from rich.table import Table

from locale_migrate.bootstrap import create_task
from locale_migrate.exceptions import LocaleMigrateError

from .._shared_options import JSON_OPTION, ROOT_OPTION
from .._state import CLISharedState

console = Console()
err_console = Console(stderr=True)


def plan(
    ctx: typer.Context,
    root: ROOT_OPTION = None,
    locale: Optional[str] = typer.Option(
        None, "--locale", "-l", help="只展示该语言的计划。"
    ),
    show_sql: bool = typer.Option(False, "--sql", help="同时打印每条查询的 SQL。"),
    as_json: JSON_OPTION = False,
) -> None:
    """列出每种语言会写入的派生表（以及对应的 SQL）。"""
    state: CLISharedState = ctx.obj
    try:
        with create_task(state.config) as task:
            query_plan = task.build_queries(root)
            dialect = task.engine.dialect
            if locale is not None and locale not in query_plan:
                err_console.print(f"[bold red]❌ 语言 {locale} 不在配置的语言列表中[/bold red]")
                raise typer.Exit(code=1)
            selected = {
                loc: per for loc, per in query_plan.items() if locale in (None, loc)
            }
            rendered = {
                loc: {
                    name: {
                        "source_table": q.source_table,
                        "variant": q.variant.value,
                        "fields": list(q.fields),
                        "key": list(q.key_columns),
                        **({"sql": q.describe(dialect)} if show_sql else {}),
                    }
                    for name, q in per.items()
                }
                for loc, per in selected.items()
            }
    except LocaleMigrateError as e:
        err_console.print(f"[bold red]❌ 查询计划无法构建: {e}[/bold red]")
        raise typer.Exit(code=1)

    if as_json:
        typer.echo(json.dumps(rendered, ensure_ascii=False, indent=2))
        return

    for loc, per in rendered.items():
        table = Table(title=f"语言 {loc}")
        table.add_column("派生表", style="magenta")
        table.add_column("来源表")
        table.add_column("变体")
        table.add_column("字段")
        for name, item in per.items():
            table.add_row(
                name, item["source_table"], item["variant"], ", ".join(item["fields"])
            )
        console.print(table)
        if show_sql:
            for name, item in per.items():
                console.print(f"[bold]{name}[/bold]")
                console.print(Syntax(item["sql"], "sql", word_wrap=True))
