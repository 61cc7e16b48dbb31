# src/locale_migrate/infrastructure/db/__init__.py
"""
数据库基础设施：引擎、结构快照、方言语句与派生表结构。
"""

from .engine import create_db_engine, mask_db_url
from .localised_schema import build_localised_table, create_localised_tables
from .snapshot import SchemaSnapshot
from .statements import (
    NativeUpsertWriter,
    RowWriter,
    StatementFactory,
    UpdateThenInsertWriter,
    get_row_writer,
    get_statement_factory,
)

__all__ = [
    "create_db_engine",
    "mask_db_url",
    "build_localised_table",
    "create_localised_tables",
    "SchemaSnapshot",
    "StatementFactory",
    "RowWriter",
    "NativeUpsertWriter",
    "UpdateThenInsertWriter",
    "get_row_writer",
    "get_statement_factory",
]
