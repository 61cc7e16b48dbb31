# src/locale_migrate/observability/logging_config.py
"""
集中配置项目日志系统：structlog ⇄ 标准 logging。

提供两种输出：
- console：开发环境的人类友好输出（本地时间，配色）。
- json   ：生产环境的结构化日志（ISO-8601 且 UTC），便于日志平台聚合。

日志统一写到 stderr，CLI 的报告（含 --json）独占 stdout。
"""

from __future__ import annotations

import logging
import sys
from typing import TYPE_CHECKING, Literal

import structlog
from structlog.typing import Processor

if TYPE_CHECKING:
    from locale_migrate.config import MigrationConfig

_NOISY_LOGGERS = ("sqlalchemy.engine", "sqlalchemy.pool", "urllib3")


def setup_logging(
    *,
    log_level: str = "INFO",
    log_format: Literal["json", "console"] = "console",
    root_level: str | None = None,
    service: str | None = None,
    silence_noisy_libs: bool = True,
) -> None:
    """
    配置全局 structlog 日志系统。

    Args:
        log_level: 应用 logger（locale_migrate.*）的最低级别。
        log_format: 'console'（开发美观输出）或 'json'（生产结构化输出）。
        root_level: 根 logger 级别；默认 WARNING 以降低第三方噪声。
        service: 统一绑定到日志的服务名（通过 contextvars 注入）。
        silence_noisy_libs: 是否下调 SQLAlchemy 等噪声 logger 的级别。
    """
    timestamper = (
        structlog.processors.TimeStamper(fmt="iso", utc=True)
        if log_format == "json"
        else structlog.processors.TimeStamper(fmt="%Y-%m-%d %H:%M:%S", utc=False)
    )

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        timestamper,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
    ]

    structlog.configure(
        processors=processors,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    if log_format == "json":
        final_renderer: Processor = structlog.processors.JSONRenderer()
        extra: list[Processor] = [structlog.processors.format_exc_info]
    else:
        final_renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())
        extra = []

    formatter = structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            *extra,
            final_renderer,
        ],
        foreign_pre_chain=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            timestamper,
        ],
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    if root_logger.hasHandlers():
        root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel((root_level or "WARNING").upper())

    app_logger = logging.getLogger("locale_migrate")
    app_logger.setLevel(log_level.upper())
    app_logger.propagate = True

    structlog.contextvars.clear_contextvars()
    if service:
        structlog.contextvars.bind_contextvars(service=service)

    if silence_noisy_libs:
        for noisy in _NOISY_LOGGERS:
            logging.getLogger(noisy).setLevel(logging.WARNING)

    structlog.get_logger("locale_migrate.logging_config").debug(
        "日志系统已配置完成。",
        log_format=log_format,
        app_log_level=log_level.upper(),
        service=service,
    )


def setup_logging_from_config(
    cfg: "MigrationConfig", *, service: str = "locale-migrate"
) -> None:
    """根据 MigrationConfig 一键初始化日志系统。"""
    setup_logging(
        log_level=cfg.logging.level,
        log_format=cfg.logging.format,
        service=service,
    )
