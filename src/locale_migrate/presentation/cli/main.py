# src/locale_migrate/presentation/cli/main.py
import os
from typing import Literal, Optional

import typer
from pydantic import ValidationError
from rich.console import Console

from locale_migrate.bootstrap import create_app_config
from locale_migrate.exceptions import LocaleMigrateError

from ._state import CLISharedState
from .commands import locales, migrate, plan

app = typer.Typer(
    name="locale-migrate",
    help="🌐 把遗留的 <Field>_<Locale> 多列数据迁移到 *_Localised 派生表。",
    add_completion=False,
    no_args_is_help=True,
)

app.command("migrate")(migrate.migrate)
app.command("plan")(plan.plan)
app.command("locales")(locales.show_locales)

err_console = Console(stderr=True)


@app.callback()
def main(
    ctx: typer.Context,
    database_url: Optional[str] = typer.Option(
        None, "--database-url", help="数据库 DSN（覆盖 LOCALE_MIGRATE_DATABASE__URL）。"
    ),
    catalog: Optional[str] = typer.Option(
        None, "--catalog", "-c", help="实体目录 JSON 文件路径。"
    ),
    locale_list: Optional[str] = typer.Option(
        None, "--locales", help="逗号分隔的语言列表，例如 en_US,de_AT。"
    ),
    default_locale: Optional[str] = typer.Option(
        None, "--default-locale", help="默认语言。"
    ),
    log_level: Optional[str] = typer.Option(
        None, "--log-level", help="日志级别（DEBUG / INFO / WARNING / ERROR）。"
    ),
    log_format: Optional[str] = typer.Option(
        None, "--log-format", help="日志格式（console / json）。"
    ),
):
    """
    主回调函数：加载配置、初始化日志，并把共享状态挂到上下文上。
    """
    env_mode_str = os.getenv("LOCALE_MIGRATE_ENV", "prod").lower()
    env_mode: Literal["prod", "test"] = "test" if env_mode_str == "test" else "prod"

    overrides: dict = {
        "catalog_path": catalog,
        "locales": locale_list,
        "default_locale": default_locale,
    }
    if database_url is not None:
        overrides["database"] = {"url": database_url}
    logging_overrides = {}
    if log_level is not None:
        logging_overrides["level"] = log_level.upper()
    if log_format is not None:
        logging_overrides["format"] = log_format
    if logging_overrides:
        overrides["logging"] = logging_overrides

    try:
        config = create_app_config(env_mode=env_mode, **overrides)
    except (ValidationError, LocaleMigrateError) as e:
        err_console.print(f"[bold red]❌ 启动失败：无法加载配置: {e}[/bold red]")
        raise typer.Exit(code=1) from e

    ctx.obj = CLISharedState(config)
