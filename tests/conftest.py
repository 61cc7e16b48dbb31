# tests/conftest.py
"""
Pytest 共享夹具

核心 Fixtures:
- config: 指向临时 SQLite 文件库与实体目录文件的 MigrationConfig。
- engine: 由 create_db_engine 创建的引擎（已建好遗留表、派生表并写入夹具数据）。
- catalog: 测试用实体目录。
- task: 注入了 engine / catalog 的 LocaliseMigrationTask。
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Generator

import pytest
from sqlalchemy import Engine

from locale_migrate.application.task import LocaliseMigrationTask
from locale_migrate.config import MigrationConfig
from locale_migrate.domain.catalog import EntityCatalog
from locale_migrate.infrastructure.db.engine import create_db_engine

from tests.helpers.legacy_db import (
    CATALOG,
    DEFAULT_LOCALE,
    LOCALES,
    build_catalog,
    create_legacy_database,
)


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """屏蔽开发机上的 LOCALE_MIGRATE_* 环境变量。"""
    for key in list(os.environ):
        if key.startswith("LOCALE_MIGRATE_"):
            monkeypatch.delenv(key, raising=False)


@pytest.fixture
def db_url(tmp_path: Path) -> str:
    return f"sqlite:///{tmp_path / 'legacy.db'}"


@pytest.fixture
def catalog_file(tmp_path: Path) -> Path:
    path = tmp_path / "catalog.json"
    path.write_text(json.dumps(CATALOG), encoding="utf-8")
    return path


@pytest.fixture
def config(db_url: str, catalog_file: Path) -> MigrationConfig:
    return MigrationConfig(
        database={"url": db_url},
        locales=list(LOCALES),
        default_locale=DEFAULT_LOCALE,
        catalog_path=str(catalog_file),
        yield_per=2,
    )


@pytest.fixture
def catalog() -> EntityCatalog:
    return build_catalog()


@pytest.fixture
def engine(config: MigrationConfig, catalog: EntityCatalog) -> Generator[Engine, None, None]:
    eng = create_db_engine(config)
    create_legacy_database(eng, catalog)
    yield eng
    eng.dispose()


@pytest.fixture
def bare_engine(config: MigrationConfig, catalog: EntityCatalog) -> Generator[Engine, None, None]:
    """只有遗留表、没有派生表的数据库。"""
    eng = create_db_engine(config)
    create_legacy_database(eng, catalog, with_localised_tables=False)
    yield eng
    eng.dispose()


@pytest.fixture
def task(
    config: MigrationConfig, engine: Engine, catalog: EntityCatalog
) -> LocaliseMigrationTask:
    return LocaliseMigrationTask(config, engine=engine, catalog=catalog)
