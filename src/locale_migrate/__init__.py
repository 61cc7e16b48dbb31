# src/locale_migrate/__init__.py
"""
locale-migrate：把遗留的 `<Field>_<Locale>` 多列存储迁移到
`<Table>_Localised[_Live|_Versions]` 派生表。
"""

from locale_migrate.application import LocaliseMigrationTask, WriteGate
from locale_migrate.config import MigrationConfig
from locale_migrate.domain import EntityCatalog, MigrationReport
from locale_migrate.exceptions import (
    ConfigurationError,
    LocaleMigrateError,
    PlanConstructionError,
    RowReadError,
    RowWriteError,
)

__version__ = "0.1.0"

__all__ = [
    "__version__",
    "LocaliseMigrationTask",
    "WriteGate",
    "MigrationConfig",
    "EntityCatalog",
    "MigrationReport",
    "LocaleMigrateError",
    "ConfigurationError",
    "PlanConstructionError",
    "RowReadError",
    "RowWriteError",
]
