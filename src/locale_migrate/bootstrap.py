# src/locale_migrate/bootstrap.py
"""
应用引导程序。

负责加载配置、初始化日志，并组装迁移任务。CLI 与以编程方式触发迁移的
调用方都从这里开始。
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal, Optional

import structlog
from sqlalchemy import Engine

from locale_migrate.application.task import LocaliseMigrationTask
from locale_migrate.config import MigrationConfig
from locale_migrate.config_loader import load_config_from_env
from locale_migrate.domain.catalog import EntityCatalog
from locale_migrate.observability import setup_logging_from_config

logger = structlog.get_logger("locale_migrate.bootstrap")


def create_app_config(
    env_mode: Literal["prod", "test"] = "prod",
    base_dir: Optional[Path] = None,
    **overrides: Any,
) -> MigrationConfig:
    """加载 .env 与环境变量，叠加显式覆盖项，并按配置初始化日志。"""
    config = load_config_from_env(mode=env_mode, base_dir=base_dir, **overrides)
    setup_logging_from_config(config)
    logger.debug(
        "配置已加载",
        env_mode=env_mode,
        locales=config.locales,
        default_locale=config.default_locale,
        catalog_path=config.catalog_path,
    )
    return config


def create_task(
    config: MigrationConfig,
    *,
    engine: Optional[Engine] = None,
    catalog: Optional[EntityCatalog] = None,
) -> LocaliseMigrationTask:
    return LocaliseMigrationTask(config, engine=engine, catalog=catalog)
