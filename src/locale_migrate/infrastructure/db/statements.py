# src/locale_migrate/infrastructure/db/statements.py
"""
数据库方言特定的 SQL 语句工厂与逐行写入器。

本模块通过协议和具体实现，将 PostgreSQL / SQLite 的 INSERT ... ON CONFLICT、
MySQL 的 INSERT ... ON DUPLICATE KEY UPDATE 等方言差异与迁移驱动完全解耦。
派生表缺少唯一索引或方言未知时，退化为可移植的“先 UPDATE 再 INSERT”。
"""

from __future__ import annotations

from typing import Any, Literal, Protocol, Sequence

import structlog
from sqlalchemy import Connection, and_, insert, literal, select, update
from sqlalchemy.dialects.mysql import insert as mysql_insert
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.sql.expression import TableClause

logger = structlog.get_logger(__name__)

UpsertStrategy = Literal["native", "update_then_insert"]


class StatementFactory(Protocol):
    """
    定义了数据库方言特定语句生成器的接口协议。
    """

    def create_upsert_stmt(
        self,
        table: TableClause,
        values: dict[str, Any],
        index_elements: Sequence[str],
        update_cols: Sequence[str],
    ) -> Any:
        """
        创建一个原子化的 UPSERT 语句：自然键冲突时更新 `update_cols`。
        """
        ...

    def create_insert_on_conflict_nothing(
        self,
        table: TableClause,
        values: dict[str, Any],
        index_elements: Sequence[str],
    ) -> Any:
        """
        创建一个原子化的 INSERT，自然键冲突时什么也不做。
        """
        ...


class PostgresStatementFactory:
    """PostgreSQL 语句工厂实现。"""

    def create_upsert_stmt(
        self,
        table: TableClause,
        values: dict[str, Any],
        index_elements: Sequence[str],
        update_cols: Sequence[str],
    ) -> Any:
        stmt = pg_insert(table).values(**values)
        return stmt.on_conflict_do_update(
            index_elements=list(index_elements),
            set_={col: stmt.excluded[col] for col in update_cols},
        )

    def create_insert_on_conflict_nothing(
        self,
        table: TableClause,
        values: dict[str, Any],
        index_elements: Sequence[str],
    ) -> Any:
        return pg_insert(table).values(**values).on_conflict_do_nothing(
            index_elements=list(index_elements)
        )


class SQLiteStatementFactory:
    """SQLite 语句工厂实现。"""

    def create_upsert_stmt(
        self,
        table: TableClause,
        values: dict[str, Any],
        index_elements: Sequence[str],
        update_cols: Sequence[str],
    ) -> Any:
        stmt = sqlite_insert(table).values(**values)
        return stmt.on_conflict_do_update(
            index_elements=list(index_elements),
            set_={col: stmt.excluded[col] for col in update_cols},
        )

    def create_insert_on_conflict_nothing(
        self,
        table: TableClause,
        values: dict[str, Any],
        index_elements: Sequence[str],
    ) -> Any:
        return sqlite_insert(table).values(**values).on_conflict_do_nothing(
            index_elements=list(index_elements)
        )


class MySQLStatementFactory:
    """
    MySQL / MariaDB 语句工厂实现。

    ON DUPLICATE KEY UPDATE 不接受冲突目标，依赖派生表上的唯一约束；
    `index_elements` 只用于“无可更新列”时构造一个空操作赋值。
    """

    def create_upsert_stmt(
        self,
        table: TableClause,
        values: dict[str, Any],
        index_elements: Sequence[str],
        update_cols: Sequence[str],
    ) -> Any:
        stmt = mysql_insert(table).values(**values)
        return stmt.on_duplicate_key_update(
            {col: stmt.inserted[col] for col in update_cols}
        )

    def create_insert_on_conflict_nothing(
        self,
        table: TableClause,
        values: dict[str, Any],
        index_elements: Sequence[str],
    ) -> Any:
        stmt = mysql_insert(table).values(**values)
        key = index_elements[0]
        return stmt.on_duplicate_key_update({key: stmt.inserted[key]})


_FACTORIES: dict[str, type] = {
    "postgresql": PostgresStatementFactory,
    "sqlite": SQLiteStatementFactory,
    "mysql": MySQLStatementFactory,
    "mariadb": MySQLStatementFactory,
}


def get_statement_factory(dialect_name: str) -> StatementFactory | None:
    """按方言名返回语句工厂；不支持原生 UPSERT 的方言返回 None。"""
    factory_cls = _FACTORIES.get(dialect_name)
    return factory_cls() if factory_cls is not None else None


# ---------- 逐行写入器 ----------


class RowWriter(Protocol):
    def upsert(
        self,
        conn: Connection,
        table: TableClause,
        values: dict[str, Any],
        key_columns: Sequence[str],
        update_columns: Sequence[str],
    ) -> None: ...


class NativeUpsertWriter:
    """使用方言原生 UPSERT 的写入器。"""

    def __init__(self, factory: StatementFactory) -> None:
        self._factory = factory

    def upsert(
        self,
        conn: Connection,
        table: TableClause,
        values: dict[str, Any],
        key_columns: Sequence[str],
        update_columns: Sequence[str],
    ) -> None:
        if update_columns:
            stmt = self._factory.create_upsert_stmt(
                table, values, key_columns, update_columns
            )
        else:
            stmt = self._factory.create_insert_on_conflict_nothing(
                table, values, key_columns
            )
        conn.execute(stmt)


class UpdateThenInsertWriter:
    """
    可移植写入器：先按自然键 UPDATE，未命中再 INSERT。

    不依赖唯一索引，但要求同一张派生表没有并发写入者。
    """

    def upsert(
        self,
        conn: Connection,
        table: TableClause,
        values: dict[str, Any],
        key_columns: Sequence[str],
        update_columns: Sequence[str],
    ) -> None:
        where = and_(*(table.c[k] == values[k] for k in key_columns))
        if update_columns:
            result = conn.execute(
                update(table)
                .where(where)
                .values({col: values[col] for col in update_columns})
            )
            if result.rowcount:
                return
        else:
            found = conn.execute(
                select(literal(1)).select_from(table).where(where).limit(1)
            ).first()
            if found is not None:
                return
        conn.execute(insert(table).values(**values))


def get_row_writer(
    dialect_name: str, strategy: UpsertStrategy = "native"
) -> RowWriter:
    """根据方言与配置选择写入器。"""
    if strategy == "native":
        factory = get_statement_factory(dialect_name)
        if factory is not None:
            return NativeUpsertWriter(factory)
        logger.warning(
            "方言不支持原生 UPSERT，改用 UPDATE-then-INSERT", dialect=dialect_name
        )
    return UpdateThenInsertWriter()
