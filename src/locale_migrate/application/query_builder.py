# src/locale_migrate/application/query_builder.py
"""
查询构建器：为每个 (语言, 派生表) 生成一条 SELECT。

值解析规则（逐字段，只在该实体自己的表内查找）::

    <F>_<locale> 存在   → COALESCE(<F>_<locale>, <F>)
    <F>_<default> 存在  → COALESCE(<F>_<default>, <F>)
    <F> 存在            → <F>
    否则                → NULL

祖先表按记录 ID（历史版本表为 RecordID + Version）内连接，使一行结果
对应一条逻辑记录。非默认语言只为“存储中至少有一个 <F>_<locale> 列非空”
的记录产生行；存储包括本表、祖先表，以及以左外连接并入的后代表。
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Sequence

import structlog
from sqlalchemy import Select, and_, false, func, null, or_, select
from sqlalchemy.engine import Dialect
from sqlalchemy.sql.elements import ColumnElement
from sqlalchemy.sql.expression import TableClause

from locale_migrate.domain.entity import (
    RECORD_ID_COLUMN,
    VERSION_COLUMN,
    EntityType,
    StorageVariant,
    legacy_column_name,
    legacy_table_name,
    localised_table_name,
)
from locale_migrate.exceptions import ConfigurationError, PlanConstructionError
from locale_migrate.infrastructure.db.snapshot import SchemaSnapshot

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class LocalisedQuery:
    """计划中的一项：从哪张遗留表读、写到哪张派生表、用哪条 SELECT。"""

    locale: str
    entity: EntityType
    variant: StorageVariant
    source_table: str
    table: str
    fields: tuple[str, ...]
    statement: Select

    @property
    def key_columns(self) -> tuple[str, ...]:
        return self.variant.natural_key()

    def describe(self, dialect: Dialect | None = None) -> str:
        """渲染 SQL 文本（内联字面量），供 `plan --sql` 展示。"""
        compiled = self.statement.compile(
            dialect=dialect, compile_kwargs={"literal_binds": True}
        )
        return str(compiled)


# locale -> 派生表名 -> 查询
QueryPlan = dict[str, dict[str, LocalisedQuery]]


class QueryBuilder:
    def __init__(self, snapshot: SchemaSnapshot) -> None:
        self._snapshot = snapshot

    def build_queries(
        self,
        hierarchy: Sequence[EntityType],
        locales: Iterable[str],
        default_locale: str,
    ) -> QueryPlan:
        """
        为层级中的每个实体、每个存储变体、每种语言构建查询。

        Raises:
            ConfigurationError: 语言列表为空或未给出默认语言。
            PlanConstructionError: 期望的遗留表或连接列不存在。
        """
        locales = list(locales)
        if not locales:
            raise ConfigurationError("locales required")
        if not default_locale:
            raise ConfigurationError("default locale required")

        plan: QueryPlan = {}
        for locale in locales:
            per_table: dict[str, LocalisedQuery] = {}
            for entity in hierarchy:
                for variant in entity.variants():
                    query = self.build_query(entity, variant, locale, default_locale)
                    per_table[query.table] = query
            plan[locale] = per_table

        logger.debug(
            "查询计划已构建",
            locales=locales,
            tables=sorted({t for per in plan.values() for t in per}),
        )
        return plan

    def build_query(
        self,
        entity: EntityType,
        variant: StorageVariant,
        locale: str,
        default_locale: str,
    ) -> LocalisedQuery:
        source_name = legacy_table_name(entity.table, variant)
        source = self._require_table(source_name, variant)
        id_col = variant.source_id_column

        # 连接：祖先内连接，后代左外连接（仅用于存在性判断）
        storage: list[tuple[EntityType, str, TableClause]] = [
            (entity, source_name, source)
        ]
        from_clause = source
        for ancestor in entity.ancestors():
            name = legacy_table_name(ancestor.table, variant)
            other = self._require_table(name, variant)
            from_clause = from_clause.join(other, self._join_on(source, other, variant))
            storage.append((ancestor, name, other))
        for descendant in entity.descendants():
            name = legacy_table_name(descendant.table, variant)
            if not self._snapshot.has_table(name) or not self._has_identity(
                name, variant
            ):
                logger.debug("后代表不存在，跳过其存在性判断", table=name)
                continue
            other = self._snapshot.table_clause(name)
            from_clause = from_clause.outerjoin(
                other, self._join_on(source, other, variant)
            )
            storage.append((descendant, name, other))

        columns: list[ColumnElement] = [source.c[id_col].label(RECORD_ID_COLUMN)]
        if variant.is_versions:
            columns.append(source.c[VERSION_COLUMN].label(VERSION_COLUMN))
        for field_name in entity.fields:
            columns.append(
                self._resolve_field(
                    source_name, source, field_name, locale, default_locale
                ).label(field_name)
            )

        stmt = select(*columns).select_from(from_clause)
        if locale != default_locale:
            stmt = stmt.where(self._presence_filter(storage, locale))
        order = [source.c[id_col]]
        if variant.is_versions:
            order.append(source.c[VERSION_COLUMN])
        stmt = stmt.order_by(*order)

        return LocalisedQuery(
            locale=locale,
            entity=entity,
            variant=variant,
            source_table=source_name,
            table=localised_table_name(entity.table, variant),
            fields=tuple(entity.fields),
            statement=stmt,
        )

    # ---------- 内部工具 ----------

    def _has_identity(self, table_name: str, variant: StorageVariant) -> bool:
        needed = [variant.source_id_column]
        if variant.is_versions:
            needed.append(VERSION_COLUMN)
        return all(self._snapshot.has_column(table_name, c) for c in needed)

    def _require_table(self, table_name: str, variant: StorageVariant) -> TableClause:
        if not self._snapshot.has_table(table_name):
            raise PlanConstructionError(f"遗留表不存在: {table_name}")
        if not self._has_identity(table_name, variant):
            raise PlanConstructionError(
                f"遗留表 {table_name} 缺少连接所需的标识列"
            )
        return self._snapshot.table_clause(table_name)

    @staticmethod
    def _join_on(
        source: TableClause, other: TableClause, variant: StorageVariant
    ) -> ColumnElement:
        id_col = variant.source_id_column
        cond = source.c[id_col] == other.c[id_col]
        if variant.is_versions:
            cond = and_(cond, source.c[VERSION_COLUMN] == other.c[VERSION_COLUMN])
        return cond

    def _resolve_field(
        self,
        table_name: str,
        source: TableClause,
        field_name: str,
        locale: str,
        default_locale: str,
    ) -> ColumnElement:
        canonical = (
            source.c[field_name]
            if self._snapshot.has_column(table_name, field_name)
            else None
        )
        for candidate in dict.fromkeys((locale, default_locale)):
            col_name = legacy_column_name(field_name, candidate)
            if self._snapshot.has_column(table_name, col_name):
                localised = source.c[col_name]
                if canonical is None:
                    return localised
                return func.coalesce(localised, canonical)
        if canonical is not None:
            return canonical
        logger.debug(
            "字段在遗留表中没有任何可用列，取 NULL",
            table=table_name,
            field=field_name,
            locale=locale,
        )
        return null()

    def _presence_filter(
        self,
        storage: list[tuple[EntityType, str, TableClause]],
        locale: str,
    ) -> ColumnElement:
        checks = [
            clause.c[legacy_column_name(f, locale)].is_not(None)
            for entity, name, clause in storage
            for f in entity.fields
            if self._snapshot.has_column(name, legacy_column_name(f, locale))
        ]
        if not checks:
            return false()
        return or_(*checks)
