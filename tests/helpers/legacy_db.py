# tests/helpers/legacy_db.py
"""
测试用遗留数据库：表结构、实体目录与夹具数据。

层级::

    FluentTestDataObject                (Title, Name)
      ├─ FluentTestDataObjectSubclass   (Category)
      └─ FluentTestDataObjectPartialSubclass (Colour，只有 en_US 列)
    SiteTree  [versioned, staged]       (Title)
      └─ FluentTestPage                 (TranslatedValue)
"""

from __future__ import annotations

from typing import Any, Iterable, Optional

from sqlalchemy import (
    Column,
    Engine,
    Integer,
    MetaData,
    String,
    Table,
    column,
    func,
    insert,
    literal_column,
    select,
    table,
)

from locale_migrate.domain.catalog import CatalogSpec, EntityCatalog
from locale_migrate.domain.entity import StorageVariant
from locale_migrate.infrastructure.db.localised_schema import build_localised_table

LOCALES = ["en_US", "de_AT"]
DEFAULT_LOCALE = "en_US"

CATALOG: dict[str, Any] = {
    "default_root": "TranslatedDataObject",
    "entities": [
        {
            "name": "TranslatedDataObject",
            "table": "FluentTestDataObject",
            "fields": ["Title", "Name"],
        },
        {
            "name": "TranslatedDataObjectSubclass",
            "table": "FluentTestDataObjectSubclass",
            "parent": "TranslatedDataObject",
            "fields": ["Category"],
        },
        {
            "name": "TranslatedDataObjectPartialSubclass",
            "table": "FluentTestDataObjectPartialSubclass",
            "parent": "TranslatedDataObject",
            "fields": ["Colour"],
        },
        {
            "name": "SiteTree",
            "table": "SiteTree",
            "fields": ["Title"],
            "versioned": True,
            "staged": True,
        },
        {
            "name": "TranslatedPage",
            "table": "FluentTestPage",
            "parent": "SiteTree",
            "fields": ["TranslatedValue"],
        },
    ],
}

# 记录 ID
HOUSE, TREE, FRAGMENTED, PARTIAL, UNTRANSLATED, DOG = 1, 2, 3, 4, 5, 6
TABLE, CHAIR = 1, 2


def build_catalog() -> EntityCatalog:
    return EntityCatalog.from_spec(CatalogSpec.model_validate(CATALOG))


def _localised_columns(field: str, locales: Iterable[str]) -> list[Column]:
    cols = [Column(field, String(255))]
    cols.extend(Column(f"{field}_{loc}", String(255)) for loc in locales)
    return cols


def build_legacy_metadata(extra_locale_columns: Iterable[str] = ()) -> MetaData:
    locales = [*LOCALES, *extra_locale_columns]
    md = MetaData()

    Table(
        "FluentTestDataObject",
        md,
        Column("ID", Integer, primary_key=True),
        Column("ClassName", String(255)),
        *_localised_columns("Title", locales),
        *_localised_columns("Name", locales),
    )
    Table(
        "FluentTestDataObjectSubclass",
        md,
        Column("ID", Integer, primary_key=True),
        *_localised_columns("Category", locales),
    )
    Table(
        "FluentTestDataObjectPartialSubclass",
        md,
        Column("ID", Integer, primary_key=True),
        *_localised_columns("Colour", ["en_US"]),
    )

    for suffix in ("", "_Live"):
        Table(
            f"SiteTree{suffix}",
            md,
            Column("ID", Integer, primary_key=True),
            Column("ClassName", String(255)),
            Column("Version", Integer),
            *_localised_columns("Title", locales),
        )
        Table(
            f"FluentTestPage{suffix}",
            md,
            Column("ID", Integer, primary_key=True),
            *_localised_columns("TranslatedValue", locales),
        )
    Table(
        "SiteTree_Versions",
        md,
        Column("ID", Integer, primary_key=True),
        Column("RecordID", Integer),
        Column("Version", Integer),
        Column("ClassName", String(255)),
        *_localised_columns("Title", locales),
    )
    Table(
        "FluentTestPage_Versions",
        md,
        Column("ID", Integer, primary_key=True),
        Column("RecordID", Integer),
        Column("Version", Integer),
        *_localised_columns("TranslatedValue", locales),
    )
    return md


def build_localised_metadata(catalog: EntityCatalog) -> MetaData:
    md = MetaData()
    for entity in catalog.entities:
        for variant in entity.variants():
            build_localised_table(
                md,
                f"{entity.table}_Localised{variant.suffix}",
                variant,
                {f: String(255) for f in entity.fields},
            )
    return md


def _data_object(
    record_id: int,
    class_name: str,
    title: tuple[Optional[str], Optional[str], Optional[str]],
    name: tuple[Optional[str], Optional[str], Optional[str]],
) -> dict[str, Any]:
    return {
        "ID": record_id,
        "ClassName": class_name,
        "Title": title[0],
        "Title_en_US": title[1],
        "Title_de_AT": title[2],
        "Name": name[0],
        "Name_en_US": name[1],
        "Name_de_AT": name[2],
    }


def seed_legacy_data(engine: Engine, md: MetaData) -> None:
    t = md.tables
    with engine.begin() as conn:
        conn.execute(
            insert(t["FluentTestDataObject"]),
            [
                _data_object(HOUSE, "TranslatedDataObject",
                             ("A House", "A House", "Ein Haus"),
                             ("Something", "Something", "Irgendwas")),
                _data_object(TREE, "TranslatedDataObjectSubclass",
                             ("A Tree", "A Tree", "Ein Baum"),
                             ("Marple", "Marple", "Ahorn")),
                _data_object(FRAGMENTED, "TranslatedDataObject",
                             ("TV", "TV", "Fernseher"),
                             ("big flatscreen", "idiot box", None)),
                _data_object(PARTIAL, "TranslatedDataObject",
                             ("A Lamp", "A Lamp", "Eine Lampe"),
                             ("bright", "bright", None)),
                _data_object(UNTRANSLATED, "TranslatedDataObject",
                             ("Untranslated", "Untranslated", None),
                             ("nothing", None, None)),
                _data_object(DOG, "TranslatedDataObjectPartialSubclass",
                             ("A Dog", "A Dog", "Ein Hund"),
                             ("Rex", "Rex", None)),
            ],
        )
        conn.execute(
            insert(t["FluentTestDataObjectSubclass"]),
            [{
                "ID": TREE,
                "Category": "deciduous trees",
                "Category_en_US": "deciduous trees",
                "Category_de_AT": "Laubbäume",
            }],
        )
        conn.execute(
            insert(t["FluentTestDataObjectPartialSubclass"]),
            [{"ID": DOG, "Colour": "Brown", "Colour_en_US": "Brown"}],
        )

        # 页面：table 已发布（版本 2），chair 未发布（版本 1）
        table_row = {
            "ID": TABLE, "ClassName": "TranslatedPage", "Version": 2,
            "Title": "A Table", "Title_en_US": "A Table", "Title_de_AT": "Ein Tisch",
        }
        chair_row = {
            "ID": CHAIR, "ClassName": "TranslatedPage", "Version": 1,
            "Title": "A Chair", "Title_en_US": "A Chair", "Title_de_AT": "Ein Stuhl",
        }
        table_page = {
            "ID": TABLE, "TranslatedValue": "made from wood",
            "TranslatedValue_en_US": "made from wood",
            "TranslatedValue_de_AT": "aus Holz",
        }
        chair_page = {
            "ID": CHAIR, "TranslatedValue": "plastic",
            "TranslatedValue_en_US": "plastic",
            "TranslatedValue_de_AT": "aus Kunststoff",
        }
        conn.execute(insert(t["SiteTree"]), [table_row, chair_row])
        conn.execute(insert(t["FluentTestPage"]), [table_page, chair_page])
        conn.execute(insert(t["SiteTree_Live"]), [table_row])
        conn.execute(insert(t["FluentTestPage_Live"]), [table_page])

        # 历史版本：table v1 只有英文草稿
        conn.execute(
            insert(t["SiteTree_Versions"]),
            [
                {"ID": 1, "RecordID": TABLE, "Version": 1, "ClassName": "TranslatedPage",
                 "Title": "Table draft", "Title_en_US": "Table draft", "Title_de_AT": None},
                {"ID": 2, "RecordID": TABLE, "Version": 2, "ClassName": "TranslatedPage",
                 "Title": "A Table", "Title_en_US": "A Table", "Title_de_AT": "Ein Tisch"},
                {"ID": 3, "RecordID": CHAIR, "Version": 1, "ClassName": "TranslatedPage",
                 "Title": "A Chair", "Title_en_US": "A Chair", "Title_de_AT": "Ein Stuhl"},
            ],
        )
        conn.execute(
            insert(t["FluentTestPage_Versions"]),
            [
                {"ID": 1, "RecordID": TABLE, "Version": 1, "TranslatedValue": "wood",
                 "TranslatedValue_en_US": "wood", "TranslatedValue_de_AT": None},
                {"ID": 2, "RecordID": TABLE, "Version": 2, **{
                    k: v for k, v in table_page.items() if k != "ID"}},
                {"ID": 3, "RecordID": CHAIR, "Version": 1, **{
                    k: v for k, v in chair_page.items() if k != "ID"}},
            ],
        )


def create_legacy_database(
    engine: Engine,
    catalog: EntityCatalog,
    *,
    with_localised_tables: bool = True,
    extra_locale_columns: Iterable[str] = (),
) -> None:
    legacy = build_legacy_metadata(extra_locale_columns)
    legacy.create_all(engine)
    seed_legacy_data(engine, legacy)
    if with_localised_tables:
        build_localised_metadata(catalog).create_all(engine)


# ---------- 查询工具 ----------


def localised_table(base: str, variant: StorageVariant = StorageVariant.CURRENT) -> str:
    return f"{base}_Localised{variant.suffix}"


def localised_record(
    engine: Engine,
    base_table: str,
    record_id: int,
    locale: str,
    variant: StorageVariant = StorageVariant.CURRENT,
    version: Optional[int] = None,
) -> Optional[dict[str, Any]]:
    """取派生表中某条记录在某语言下的行；不存在时返回 None。"""
    name = localised_table(base_table, variant)
    t = table(name, column("RecordID"), column("Locale"), column("Version"))
    stmt = (
        select(literal_column("*"))
        .select_from(t)
        .where(t.c.RecordID == record_id, t.c.Locale == locale)
    )
    if version is not None:
        stmt = stmt.where(t.c.Version == version)
    with engine.connect() as conn:
        row = conn.execute(stmt).mappings().first()
    return dict(row) if row is not None else None


def count_rows(engine: Engine, table_name: str) -> int:
    with engine.connect() as conn:
        return conn.execute(
            select(func.count()).select_from(table(table_name))
        ).scalar_one()
