# src/locale_migrate/domain/report.py
"""
迁移报告：逐表统计 + 汇总，以及逐行失败明细。
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel

from locale_migrate.exceptions import RowError

from .entity import StorageVariant


class RowFailure(BaseModel):
    """一条被跳过的行。"""

    kind: str
    table: str
    locale: str
    record_id: Any = None
    version: Any = None
    reason: str

    @classmethod
    def from_error(cls, error: RowError) -> "RowFailure":
        return cls(
            kind=error.kind,
            table=error.table,
            locale=error.locale,
            record_id=error.record_id,
            version=error.version,
            reason=error.reason,
        )


@dataclass
class TableReport:
    """单个 (语言, 派生表) 的统计。"""

    table: str
    locale: str
    variant: StorageVariant
    source_table: str
    rows_read: int = 0
    written: int = 0
    would_write: int = 0
    failures: list[RowFailure] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "table": self.table,
            "locale": self.locale,
            "variant": self.variant.value,
            "source_table": self.source_table,
            "rows_read": self.rows_read,
            "written": self.written,
            "would_write": self.would_write,
            "failures": [f.model_dump() for f in self.failures],
        }


@dataclass
class MigrationReport:
    """整次运行的报告。"""

    dry_run: bool
    tables: list[TableReport] = field(default_factory=list)
    runtime_seconds: float = 0.0
    interrupted: bool = False
    created_tables: list[str] = field(default_factory=list)

    def add_table(self, report: TableReport) -> TableReport:
        self.tables.append(report)
        return report

    @property
    def rows_read(self) -> int:
        return sum(t.rows_read for t in self.tables)

    @property
    def rows_written(self) -> int:
        return sum(t.written for t in self.tables)

    @property
    def rows_would_write(self) -> int:
        return sum(t.would_write for t in self.tables)

    @property
    def failures(self) -> list[RowFailure]:
        return [f for t in self.tables for f in t.failures]

    @property
    def ok(self) -> bool:
        return not self.interrupted and not self.failures

    def to_dict(self) -> dict[str, Any]:
        return {
            "dry_run": self.dry_run,
            "interrupted": self.interrupted,
            "runtime_seconds": round(self.runtime_seconds, 3),
            "rows_read": self.rows_read,
            "rows_written": self.rows_written,
            "rows_would_write": self.rows_would_write,
            "failure_count": len(self.failures),
            "created_tables": list(self.created_tables),
            "tables": [t.to_dict() for t in self.tables],
        }
