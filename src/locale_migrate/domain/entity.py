# src/locale_migrate/domain/entity.py
"""
实体类型与存储变体。

遗留库中，一个实体类型对应一张物理表；子类只在自己的表里保存自己声明的字段，
继承来的字段留在祖先表中，按记录 ID 连接。受版本控制的实体还有 `_Live`
（已发布副本）与 `_Versions`（历史版本）两张镜像表。

本模块同时是表名 / 列名约定的唯一来源，这些名字是对外契约，必须逐字复现。
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

ID_COLUMN = "ID"
RECORD_ID_COLUMN = "RecordID"
VERSION_COLUMN = "Version"
LOCALE_COLUMN = "Locale"
LOCALISED_MARKER = "Localised"


class StorageVariant(str, Enum):
    """一条记录所在的存储变体：当前（草稿）、已发布、历史版本。"""

    CURRENT = "current"
    LIVE = "live"
    VERSIONS = "versions"

    @property
    def suffix(self) -> str:
        return _SUFFIXES[self]

    @property
    def is_versions(self) -> bool:
        return self is StorageVariant.VERSIONS

    @property
    def source_id_column(self) -> str:
        """遗留表中标识记录的列。历史版本表用 RecordID，其余用 ID。"""
        return RECORD_ID_COLUMN if self.is_versions else ID_COLUMN

    def natural_key(self) -> tuple[str, ...]:
        """派生表的自然键（唯一约束列）。"""
        if self.is_versions:
            return (RECORD_ID_COLUMN, VERSION_COLUMN, LOCALE_COLUMN)
        return (RECORD_ID_COLUMN, LOCALE_COLUMN)


_SUFFIXES = {
    StorageVariant.CURRENT: "",
    StorageVariant.LIVE: "_Live",
    StorageVariant.VERSIONS: "_Versions",
}


def legacy_table_name(table: str, variant: StorageVariant) -> str:
    """`T`、`T_Live`、`T_Versions`。"""
    return f"{table}{variant.suffix}"


def localised_table_name(table: str, variant: StorageVariant) -> str:
    """`T_Localised`、`T_Localised_Live`、`T_Localised_Versions`。"""
    return f"{table}_{LOCALISED_MARKER}{variant.suffix}"


def legacy_column_name(field_name: str, locale: str) -> str:
    """`<Field>_<Locale>`。"""
    return f"{field_name}_{locale}"


@dataclass(frozen=True, eq=False)
class EntityType:
    """
    单继承层级中的一个节点。

    `fields` 只包含本表直接声明的字段；`versioned` / `staged` 是本节点自身的
    声明，有效值请使用 `is_versioned` / `is_staged`（祖先受版本控制时，整条
    继承链都受版本控制）。
    """

    name: str
    table: str
    fields: tuple[str, ...] = ()
    parent: EntityType | None = None
    versioned: bool = False
    staged: bool = False
    _children: list[EntityType] = field(default_factory=list, repr=False)

    def __hash__(self) -> int:
        return hash(self.name)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, EntityType):
            return NotImplemented
        return self.name == other.name

    def ancestors(self) -> list[EntityType]:
        """祖先链，从根开始，不含自身。"""
        chain: list[EntityType] = []
        node = self.parent
        while node is not None:
            chain.append(node)
            node = node.parent
        chain.reverse()
        return chain

    def chain(self) -> list[EntityType]:
        return [*self.ancestors(), self]

    def descendants(self) -> list[EntityType]:
        """所有后代，先序遍历（父在子前，兄弟按注册顺序）。"""
        out: list[EntityType] = []
        for child in self._children:
            out.append(child)
            out.extend(child.descendants())
        return out

    @property
    def is_versioned(self) -> bool:
        return any(node.versioned for node in self.chain())

    @property
    def is_staged(self) -> bool:
        return any(node.staged for node in self.chain())

    def variants(self) -> list[StorageVariant]:
        out = [StorageVariant.CURRENT]
        if self.is_staged:
            out.append(StorageVariant.LIVE)
        if self.is_versioned:
            out.append(StorageVariant.VERSIONS)
        return out
