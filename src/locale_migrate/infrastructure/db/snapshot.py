# src/locale_migrate/infrastructure/db/snapshot.py
"""
数据库结构快照。

每次运行只做一次结构探测（表名 → 列名 → 类型），之后计划构建阶段的
“某列是否存在”全部在内存中回答，不再反复访问数据库，也不会与并发的
结构变更赛跑。
"""

from __future__ import annotations

from typing import Iterable, Mapping

import structlog
from sqlalchemy import Engine, column, inspect, table
from sqlalchemy.sql.expression import TableClause
from sqlalchemy.types import TypeEngine

logger = structlog.get_logger(__name__)


class SchemaSnapshot:
    def __init__(self, tables: Mapping[str, Mapping[str, TypeEngine]] | None = None):
        self._tables: dict[str, dict[str, TypeEngine]] = {
            name: dict(cols) for name, cols in (tables or {}).items()
        }

    @classmethod
    def capture(
        cls, engine: Engine, tables: Iterable[str] | None = None
    ) -> "SchemaSnapshot":
        """
        探测数据库结构。

        Args:
            engine: 目标数据库。
            tables: 只记录这些表；None 表示记录所有表。不存在的表被忽略，
                由调用方通过 `has_table` 判断。
        """
        snapshot = cls()
        snapshot.refresh(engine, tables)
        return snapshot

    def refresh(self, engine: Engine, tables: Iterable[str] | None = None) -> None:
        inspector = inspect(engine)
        existing = set(inspector.get_table_names())
        wanted = existing if tables is None else existing & set(tables)
        for name in sorted(wanted):
            self._tables[name] = {
                col["name"]: col["type"] for col in inspector.get_columns(name)
            }
        logger.debug("数据库结构快照已刷新", tables=len(wanted))

    # ---------- 内存查询 ----------

    def has_table(self, name: str) -> bool:
        return name in self._tables

    def has_column(self, table_name: str, column_name: str) -> bool:
        return column_name in self._tables.get(table_name, {})

    def column_type(self, table_name: str, column_name: str) -> TypeEngine | None:
        return self._tables.get(table_name, {}).get(column_name)

    def table_clause(self, name: str) -> TableClause:
        """按快照中的列构造一个轻量级 TableClause，用于拼装 SQL。"""
        return table(name, *(column(c) for c in self._tables[name]))
