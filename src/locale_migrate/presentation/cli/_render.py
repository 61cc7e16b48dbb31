# src/locale_migrate/presentation/cli/_render.py
"""迁移报告的 rich 渲染。"""

from __future__ import annotations

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from locale_migrate.domain.report import MigrationReport

# 控制台里最多列出的失败行数，完整明细请用 --json
MAX_FAILURES_SHOWN = 20


def render_report(console: Console, report: MigrationReport) -> None:
    mode = "[yellow]演练（未写入）[/yellow]" if report.dry_run else "[green]写入[/green]"
    count_header = "将写入" if report.dry_run else "已写入"

    table = Table(title="本地化迁移报告", show_lines=False)
    table.add_column("语言", style="cyan", no_wrap=True)
    table.add_column("派生表", style="magenta")
    table.add_column("来源表")
    table.add_column("读取", justify="right")
    table.add_column(count_header, justify="right")
    table.add_column("失败", justify="right")

    for t in report.tables:
        written = t.would_write if report.dry_run else t.written
        failed = f"[red]{len(t.failures)}[/red]" if t.failures else "0"
        table.add_row(
            t.locale, t.table, t.source_table, str(t.rows_read), str(written), failed
        )
    console.print(table)

    if report.created_tables:
        console.print(f"[green]已创建派生表:[/green] {', '.join(report.created_tables)}")

    failures = report.failures
    if failures:
        ft = Table(title="失败的行", title_style="bold red")
        ft.add_column("类型")
        ft.add_column("派生表")
        ft.add_column("语言")
        ft.add_column("记录 ID", justify="right")
        ft.add_column("版本", justify="right")
        ft.add_column("原因", overflow="fold")
        for f in failures[:MAX_FAILURES_SHOWN]:
            ft.add_row(
                f.kind,
                f.table,
                f.locale,
                "" if f.record_id is None else str(f.record_id),
                "" if f.version is None else str(f.version),
                f.reason,
            )
        console.print(ft)
        if len(failures) > MAX_FAILURES_SHOWN:
            console.print(
                f"[dim]另有 {len(failures) - MAX_FAILURES_SHOWN} 行失败未列出。[/dim]"
            )

    total = report.rows_would_write if report.dry_run else report.rows_written
    if report.interrupted:
        status = "[bold yellow]⚠️ 已中断[/bold yellow]"
    elif report.ok:
        status = "[bold green]✅ 完成[/bold green]"
    else:
        status = "[bold yellow]⚠️ 完成（有失败行）[/bold yellow]"
    console.print(
        Panel(
            f"模式: {mode}\n"
            f"读取: {report.rows_read}  {count_header}: {total}  失败: {len(failures)}\n"
            f"耗时: {report.runtime_seconds:.2f}s",
            title=status,
            border_style="yellow" if (report.interrupted or failures) else "green",
        )
    )
