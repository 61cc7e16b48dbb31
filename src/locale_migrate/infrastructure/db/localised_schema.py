# src/locale_migrate/infrastructure/db/localised_schema.py
"""
派生（本地化）表的结构定义与按需创建。

派生表结构::

    ID        整数主键（自增）
    RecordID  遗留记录 ID
    Locale    语言标识
    Version   仅历史版本表
    <Field>…  每个本地化字段一列，类型沿用遗留列
    UNIQUE (RecordID, Locale[, Version])
"""

from __future__ import annotations

from typing import Iterable, Mapping

import structlog
from sqlalchemy import (
    Column,
    Engine,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    UniqueConstraint,
)
from sqlalchemy.types import TypeEngine

from locale_migrate.domain.entity import (
    ID_COLUMN,
    LOCALE_COLUMN,
    RECORD_ID_COLUMN,
    VERSION_COLUMN,
    StorageVariant,
)

logger = structlog.get_logger(__name__)

LOCALE_COLUMN_LENGTH = 10


def build_localised_table(
    metadata: MetaData,
    table_name: str,
    variant: StorageVariant,
    field_types: Mapping[str, TypeEngine | None],
) -> Table:
    """在 `metadata` 中登记一张派生表。字段类型未知时使用 Text。"""
    columns: list[Column] = [
        Column(ID_COLUMN, Integer, primary_key=True, autoincrement=True),
        Column(RECORD_ID_COLUMN, Integer, nullable=False),
        Column(LOCALE_COLUMN, String(LOCALE_COLUMN_LENGTH), nullable=False),
    ]
    if variant.is_versions:
        columns.append(Column(VERSION_COLUMN, Integer, nullable=False))
    for name, type_ in field_types.items():
        columns.append(Column(name, type_ if type_ is not None else Text(), nullable=True))

    return Table(
        table_name,
        metadata,
        *columns,
        UniqueConstraint(*variant.natural_key(), name=f"uq_{table_name}_natural_key"),
    )


def create_localised_tables(engine: Engine, tables: Iterable[Table]) -> list[str]:
    """创建给定的派生表（已存在的跳过），返回表名列表。"""
    tables = list(tables)
    if not tables:
        return []
    metadata = tables[0].metadata
    metadata.create_all(engine, tables=tables, checkfirst=True)
    names = [t.name for t in tables]
    logger.info("已创建缺失的派生表", tables=names)
    return names
