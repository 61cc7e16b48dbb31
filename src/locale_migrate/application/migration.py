# src/locale_migrate/application/migration.py
"""
迁移驱动器：执行查询计划，把结果逐行 upsert 进派生表。

- 读取与写入使用两条独立连接；读取端以 `yield_per` 流式拉取，从不整表载入。
- 每行在自己的短事务中提交，单行失败只记录进报告，不影响其他行。
- 已提交的行在中断后保持不变，重新运行是幂等的。
"""

from __future__ import annotations

import time
from contextlib import ExitStack
from typing import Any, Iterable, Mapping

import structlog
from sqlalchemy import Connection, Engine
from sqlalchemy.exc import SQLAlchemyError

from locale_migrate.domain.entity import LOCALE_COLUMN, RECORD_ID_COLUMN, VERSION_COLUMN
from locale_migrate.domain.report import MigrationReport, RowFailure, TableReport
from locale_migrate.exceptions import (
    PlanConstructionError,
    RowError,
    RowReadError,
    RowWriteError,
)
from locale_migrate.infrastructure.db.snapshot import SchemaSnapshot
from locale_migrate.infrastructure.db.statements import RowWriter

from .query_builder import LocalisedQuery, QueryPlan
from .write_gate import WriteGate

logger = structlog.get_logger(__name__)


class MigrationDriver:
    def __init__(
        self,
        engine: Engine,
        snapshot: SchemaSnapshot,
        writer: RowWriter,
        *,
        yield_per: int = 500,
    ) -> None:
        self._engine = engine
        self._snapshot = snapshot
        self._writer = writer
        self._yield_per = yield_per

    # ---------- 写前校验 ----------

    def missing_tables(self, plan: QueryPlan) -> list[str]:
        """计划中尚不存在的派生表（保持计划顺序）。"""
        out: list[str] = []
        for per_table in plan.values():
            for name in per_table:
                if not self._snapshot.has_table(name) and name not in out:
                    out.append(name)
        return out

    def validate_targets(self, plan: QueryPlan, *, allow_missing: bool = False) -> None:
        """
        在任何写入之前检查派生表结构。

        Raises:
            PlanConstructionError: 派生表不存在（且不允许缺失），或缺少必需列。
        """
        for per_table in plan.values():
            for name, query in per_table.items():
                if not self._snapshot.has_table(name):
                    if allow_missing:
                        continue
                    raise PlanConstructionError(f"派生表不存在: {name}")
                required = [*query.key_columns, *query.fields]
                absent = [
                    c for c in required if not self._snapshot.has_column(name, c)
                ]
                if absent:
                    raise PlanConstructionError(
                        f"派生表 {name} 缺少列: {', '.join(absent)}"
                    )

    # ---------- 执行 ----------

    def run(
        self,
        plan: QueryPlan,
        locales: Iterable[str],
        write_gate: WriteGate,
    ) -> MigrationReport:
        """
        按语言、按派生表顺序执行计划。

        中断（KeyboardInterrupt）只会发生在两行之间：报告被标记为 interrupted
        并照常返回。
        """
        dry_run = not write_gate.is_write_enabled()
        report = MigrationReport(dry_run=dry_run)
        started = time.perf_counter()
        log = logger.bind(dry_run=dry_run)
        log.info("迁移开始", locales=list(plan))

        try:
            for locale in locales:
                for query in plan.get(locale, {}).values():
                    table_report = report.add_table(
                        TableReport(
                            table=query.table,
                            locale=locale,
                            variant=query.variant,
                            source_table=query.source_table,
                        )
                    )
                    self._migrate_table(query, table_report, dry_run)
        except KeyboardInterrupt:
            report.interrupted = True
            log.warning("迁移被中断，已提交的行保持不变", rows_written=report.rows_written)
        finally:
            report.runtime_seconds = time.perf_counter() - started

        log.info(
            "迁移结束",
            rows_read=report.rows_read,
            rows_written=report.rows_written,
            rows_would_write=report.rows_would_write,
            failures=len(report.failures),
            runtime_seconds=round(report.runtime_seconds, 3),
        )
        return report

    def _migrate_table(
        self, query: LocalisedQuery, table_report: TableReport, dry_run: bool
    ) -> None:
        log = logger.bind(locale=query.locale, table=query.table)
        log.debug("开始迁移派生表", source=query.source_table)
        target = None if dry_run else self._snapshot.table_clause(query.table)

        last_record_id: Any = None
        with ExitStack() as stack:
            reader = stack.enter_context(self._engine.connect())
            writer = None if dry_run else stack.enter_context(self._engine.connect())
            try:
                result = reader.execution_options(yield_per=self._yield_per).execute(
                    query.statement
                )
                for row in result:
                    table_report.rows_read += 1
                    last_record_id = row._mapping.get(RECORD_ID_COLUMN)
                    try:
                        values = self._row_values(query, row._mapping)
                        if dry_run:
                            table_report.would_write += 1
                            continue
                        self._write_row(writer, target, query, values)
                    except RowError as e:
                        self._record(table_report, e)
                        continue
                    table_report.written += 1
            except SQLAlchemyError as e:
                # 读取端失败后该表剩余的行无法继续拉取，转到下一张派生表
                self._record(
                    table_report,
                    RowReadError(
                        "读取源数据失败，该派生表的剩余行已跳过",
                        table=query.table,
                        locale=query.locale,
                        record_id=last_record_id,
                        cause=e,
                    ),
                )

        log.info(
            "派生表迁移完成",
            rows_read=table_report.rows_read,
            written=table_report.written,
            would_write=table_report.would_write,
            failures=len(table_report.failures),
        )

    @staticmethod
    def _row_values(query: LocalisedQuery, row: Mapping[str, Any]) -> dict[str, Any]:
        record_id = row.get(RECORD_ID_COLUMN)
        version = row.get(VERSION_COLUMN) if query.variant.is_versions else None
        if record_id is None:
            raise RowReadError(
                "源数据行缺少记录 ID",
                table=query.table,
                locale=query.locale,
                version=version,
            )
        values: dict[str, Any] = {
            RECORD_ID_COLUMN: record_id,
            LOCALE_COLUMN: query.locale,
        }
        if query.variant.is_versions:
            if version is None:
                raise RowReadError(
                    "源数据行缺少版本号",
                    table=query.table,
                    locale=query.locale,
                    record_id=record_id,
                )
            values[VERSION_COLUMN] = version
        for field_name in query.fields:
            values[field_name] = row.get(field_name)
        return values

    def _write_row(
        self,
        conn: Connection,
        target: Any,
        query: LocalisedQuery,
        values: dict[str, Any],
    ) -> None:
        try:
            self._writer.upsert(conn, target, values, query.key_columns, query.fields)
            conn.commit()
        except SQLAlchemyError as e:
            conn.rollback()
            raise RowWriteError(
                "写入派生表失败",
                table=query.table,
                locale=query.locale,
                record_id=values.get(RECORD_ID_COLUMN),
                version=values.get(VERSION_COLUMN),
                cause=e,
            ) from e

    @staticmethod
    def _record(table_report: TableReport, error: RowError) -> None:
        table_report.failures.append(RowFailure.from_error(error))
        logger.warning(
            "行已跳过",
            kind=error.kind,
            table=error.table,
            locale=error.locale,
            record_id=error.record_id,
            version=error.version,
            reason=error.reason,
        )
