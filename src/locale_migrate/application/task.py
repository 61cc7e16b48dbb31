# src/locale_migrate/application/task.py
"""
迁移任务：串联配置、实体目录、结构快照、查询构建器与迁移驱动器。

调用顺序::

    语言 / 默认语言（ConfigurationError）
      → 实体目录与层级（ConfigurationError / PlanConstructionError）
      → 结构快照 → 查询计划 → 派生表校验 → 驱动器

只有配置错误与计划错误会向外传播；行级错误全部记录在报告中。
"""

from __future__ import annotations

from typing import Optional

import structlog
from sqlalchemy import Engine, MetaData
from sqlalchemy.types import TypeEngine

from locale_migrate.config import MigrationConfig
from locale_migrate.domain.catalog import EntityCatalog
from locale_migrate.domain.entity import (
    legacy_column_name,
    legacy_table_name,
    localised_table_name,
)
from locale_migrate.domain.locales import LocaleResolver
from locale_migrate.domain.report import MigrationReport
from locale_migrate.exceptions import ConfigurationError, PlanConstructionError
from locale_migrate.infrastructure.db.engine import create_db_engine, mask_db_url
from locale_migrate.infrastructure.db.localised_schema import (
    build_localised_table,
    create_localised_tables,
)
from locale_migrate.infrastructure.db.snapshot import SchemaSnapshot
from locale_migrate.infrastructure.db.statements import get_row_writer

from .migration import MigrationDriver
from .query_builder import LocalisedQuery, QueryBuilder, QueryPlan
from .write_gate import WriteGate

logger = structlog.get_logger(__name__)


class LocaliseMigrationTask:
    """
    把遗留 `<Field>_<Locale>` 列迁移到 `*_Localised*` 派生表的任务。

    `engine` / `catalog` 可由调用方注入（测试中常用）；否则按配置惰性创建，
    由本任务负责释放引擎。
    """

    def __init__(
        self,
        config: MigrationConfig,
        *,
        engine: Optional[Engine] = None,
        catalog: Optional[EntityCatalog] = None,
    ) -> None:
        self.config = config
        self._engine = engine
        self._owns_engine = engine is None
        self._catalog = catalog
        self._root: Optional[str] = None
        self._locales = LocaleResolver(config.locales, config.default_locale)

    # ---------- 资源 ----------

    @property
    def engine(self) -> Engine:
        if self._engine is None:
            self._engine = create_db_engine(self.config)
        return self._engine

    @property
    def catalog(self) -> EntityCatalog:
        if self._catalog is None:
            if not self.config.catalog_path:
                raise ConfigurationError("未配置实体目录文件（catalog_path）")
            self._catalog = EntityCatalog.from_file(self.config.catalog_path)
        return self._catalog

    def close(self) -> None:
        if self._owns_engine and self._engine is not None:
            self._engine.dispose()
            self._engine = None

    def __enter__(self) -> "LocaliseMigrationTask":
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    # ---------- 配置访问 ----------

    def get_locales(self) -> list[str]:
        return self._locales.get_locales()

    def get_default_locale(self) -> str:
        return self._locales.get_default_locale()

    def set_root(self, root: Optional[str]) -> "LocaliseMigrationTask":
        """限定只迁移某个实体类型及其继承层级。"""
        self._root = root
        return self

    def resolve_root(self, root: Optional[str] = None) -> str:
        chosen = root or self._root or self.config.root_type or self.catalog.default_root
        if chosen is None:
            raise ConfigurationError("实体目录为空，无法确定根实体类型")
        return chosen

    # ---------- 计划 ----------

    def _capture_snapshot(self) -> SchemaSnapshot:
        names: set[str] = set()
        for entity in self.catalog.entities:
            for variant in entity.variants():
                names.add(legacy_table_name(entity.table, variant))
                names.add(localised_table_name(entity.table, variant))
        return SchemaSnapshot.capture(self.engine, names)

    def _plan(
        self, root: Optional[str]
    ) -> tuple[QueryPlan, list[str], SchemaSnapshot]:
        locales, default_locale = self._locales.validate()
        root_name = self.resolve_root(root)
        hierarchy = self.catalog.resolve_hierarchy(root_name)
        snapshot = self._capture_snapshot()
        plan = QueryBuilder(snapshot).build_queries(hierarchy, locales, default_locale)
        logger.info(
            "查询计划就绪",
            root=root_name,
            entities=[e.name for e in hierarchy],
            tables=len({t for per in plan.values() for t in per}),
        )
        return plan, locales, snapshot

    def build_queries(self, root: Optional[str] = None) -> QueryPlan:
        """只构建查询计划，不执行。"""
        plan, _, _ = self._plan(root)
        return plan

    # ---------- 执行 ----------

    def run(self, write_gate: WriteGate, root: Optional[str] = None) -> MigrationReport:
        """
        构建计划并执行迁移。

        Raises:
            ConfigurationError: 语言、默认语言或根实体类型配置有误。
            PlanConstructionError: 遗留表 / 派生表结构与元数据不符。
        """
        plan, locales, snapshot = self._plan(root)
        write = write_gate.is_write_enabled()
        logger.info(
            "准备执行迁移",
            database=mask_db_url(self.engine.url),
            dry_run=not write,
        )

        driver = MigrationDriver(
            self.engine,
            snapshot,
            get_row_writer(self.engine.dialect.name, self.config.upsert_strategy),
            yield_per=self.config.yield_per,
        )
        missing = driver.missing_tables(plan)
        created: list[str] = []
        if missing:
            if not self.config.create_missing_tables:
                raise PlanConstructionError(f"派生表不存在: {', '.join(missing)}")
            if write:
                created = self._create_tables(plan, missing, snapshot)
            else:
                logger.warning("演练模式：以下派生表将在写入时创建", tables=missing)
        driver.validate_targets(plan, allow_missing=not write)

        report = driver.run(plan, locales, write_gate)
        report.created_tables = created
        return report

    def _create_tables(
        self, plan: QueryPlan, missing: list[str], snapshot: SchemaSnapshot
    ) -> list[str]:
        samples: dict[str, LocalisedQuery] = {}
        for per_table in plan.values():
            for name, query in per_table.items():
                if name in missing:
                    samples.setdefault(name, query)

        metadata = MetaData()
        tables = [
            build_localised_table(
                metadata,
                name,
                query.variant,
                {
                    f: self._legacy_field_type(snapshot, query.source_table, f)
                    for f in query.fields
                },
            )
            for name, query in samples.items()
        ]
        created = create_localised_tables(self.engine, tables)
        snapshot.refresh(self.engine, created)
        return created

    def _legacy_field_type(
        self,
        snapshot: SchemaSnapshot,
        source_table: str,
        field_name: str,
    ) -> Optional[TypeEngine]:
        candidates = [field_name]
        default = self.config.default_locale
        if default:
            candidates.append(legacy_column_name(field_name, default))
        candidates.extend(
            legacy_column_name(field_name, loc) for loc in self.config.locales
        )
        for col in candidates:
            type_ = snapshot.column_type(source_table, col)
            if type_ is not None:
                return type_
        return None
