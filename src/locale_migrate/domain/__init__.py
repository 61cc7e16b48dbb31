# src/locale_migrate/domain/__init__.py
"""
领域层：实体类型图、语言解析与迁移报告。不依赖数据库。
"""

from .catalog import CatalogSpec, EntityCatalog, EntitySpec
from .entity import (
    ID_COLUMN,
    LOCALE_COLUMN,
    RECORD_ID_COLUMN,
    VERSION_COLUMN,
    EntityType,
    StorageVariant,
    legacy_column_name,
    legacy_table_name,
    localised_table_name,
)
from .locales import LocaleResolver
from .report import MigrationReport, RowFailure, TableReport

__all__ = [
    "CatalogSpec", "EntityCatalog", "EntitySpec",
    "EntityType", "StorageVariant",
    "ID_COLUMN", "LOCALE_COLUMN", "RECORD_ID_COLUMN", "VERSION_COLUMN",
    "legacy_column_name", "legacy_table_name", "localised_table_name",
    "LocaleResolver",
    "MigrationReport", "RowFailure", "TableReport",
]
