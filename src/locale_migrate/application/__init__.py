# src/locale_migrate/application/__init__.py
"""
应用层：查询构建、迁移驱动、写入闸门与迁移任务。
"""

from .migration import MigrationDriver
from .query_builder import LocalisedQuery, QueryBuilder, QueryPlan
from .task import LocaliseMigrationTask
from .write_gate import DRY_RUN, WRITE, WriteGate

__all__ = [
    "MigrationDriver",
    "LocalisedQuery",
    "QueryBuilder",
    "QueryPlan",
    "LocaliseMigrationTask",
    "WriteGate",
    "DRY_RUN",
    "WRITE",
]
