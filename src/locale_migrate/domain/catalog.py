# src/locale_migrate/domain/catalog.py
"""
实体目录（元数据解析器）。

目录由一份声明式描述（JSON）在启动时一次性构建成 EntityType 有向无环图，
之后的所有查询都在内存中完成。

描述格式示例::

    {
      "default_root": "SiteTree",
      "entities": [
        {"name": "SiteTree", "table": "SiteTree", "fields": ["Title"],
         "versioned": true, "staged": true},
        {"name": "Page", "table": "Page", "parent": "SiteTree",
         "fields": ["Content"]}
      ]
    }
"""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, Optional

import structlog
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from locale_migrate.exceptions import ConfigurationError, PlanConstructionError

from .entity import EntityType

logger = structlog.get_logger(__name__)


class EntitySpec(BaseModel):
    """目录文件中单个实体的声明。"""

    model_config = ConfigDict(extra="forbid")

    name: str = Field(min_length=1)
    table: str = Field(min_length=1)
    fields: list[str] = Field(default_factory=list)
    parent: Optional[str] = None
    versioned: bool = False
    staged: bool = False


class CatalogSpec(BaseModel):
    """整个目录文件。"""

    model_config = ConfigDict(extra="forbid")

    entities: list[EntitySpec] = Field(default_factory=list)
    default_root: Optional[str] = None


class EntityCatalog:
    """已注册实体类型的只读视图。"""

    def __init__(
        self, entities: Iterable[EntityType], default_root: str | None = None
    ) -> None:
        self._entities: dict[str, EntityType] = {e.name: e for e in entities}
        self._default_root = default_root

    # ---------- 构建 ----------

    @classmethod
    def from_spec(cls, spec: CatalogSpec) -> "EntityCatalog":
        """
        从声明构建实体图。

        父实体必须先被声明（或在同一文件中出现）；名称与表名都必须唯一；
        继承链不得成环。任何不一致都意味着计划无从构建。
        """
        by_name: dict[str, EntitySpec] = {}
        tables: dict[str, str] = {}
        for item in spec.entities:
            if item.name in by_name:
                raise PlanConstructionError(f"重复的实体名称: {item.name}")
            if item.table in tables:
                raise PlanConstructionError(
                    f"表 {item.table} 同时被 {tables[item.table]} 与 {item.name} 占用"
                )
            if len(set(item.fields)) != len(item.fields):
                raise PlanConstructionError(f"实体 {item.name} 声明了重复字段")
            by_name[item.name] = item
            tables[item.table] = item.name

        for item in spec.entities:
            if item.parent is not None and item.parent not in by_name:
                raise PlanConstructionError(
                    f"实体 {item.name} 的父类型 {item.parent} 未注册"
                )
            seen = {item.name}
            cursor = item.parent
            while cursor is not None:
                if cursor in seen:
                    raise PlanConstructionError(f"实体 {item.name} 的继承链成环")
                seen.add(cursor)
                cursor = by_name[cursor].parent

        if spec.default_root is not None and spec.default_root not in by_name:
            raise ConfigurationError(f"default_root 未注册: {spec.default_root}")

        built: dict[str, EntityType] = {}

        def _build(name: str) -> EntityType:
            if name in built:
                return built[name]
            item = by_name[name]
            parent = _build(item.parent) if item.parent else None
            entity = EntityType(
                name=item.name,
                table=item.table,
                fields=tuple(item.fields),
                parent=parent,
                versioned=item.versioned,
                staged=item.staged,
            )
            if parent is not None:
                parent._children.append(entity)
            built[name] = entity
            return entity

        # 按声明顺序构建，子节点列表因此保持注册顺序
        for item in spec.entities:
            _build(item.name)

        return cls((built[item.name] for item in spec.entities), spec.default_root)

    @classmethod
    def from_file(cls, path: str | Path) -> "EntityCatalog":
        """读取并校验 JSON 目录文件。"""
        p = Path(path)
        try:
            raw = p.read_text(encoding="utf-8")
        except OSError as e:
            raise ConfigurationError(f"无法读取实体目录文件 {p}: {e}") from e
        try:
            spec = CatalogSpec.model_validate_json(raw)
        except ValidationError as e:
            raise ConfigurationError(f"实体目录文件 {p} 格式错误: {e}") from e
        catalog = cls.from_spec(spec)
        logger.debug("实体目录已加载", path=str(p), entities=len(catalog))
        return catalog

    # ---------- 查询 ----------

    def __len__(self) -> int:
        return len(self._entities)

    def __contains__(self, name: object) -> bool:
        return name in self._entities

    @property
    def entities(self) -> list[EntityType]:
        return list(self._entities.values())

    def get(self, name: str) -> EntityType:
        if name not in self:
            raise ConfigurationError(f"未知的根实体类型: {name}")
        return self._entities[name]

    def fields(self, entity: EntityType | str) -> set[str]:
        """实体自身表上直接声明的字段（不含继承字段）。"""
        node = self.get(entity) if isinstance(entity, str) else entity
        return set(node.fields)

    def resolve_hierarchy(self, root: str) -> list[EntityType]:
        """
        返回需要迁移的实体类型，祖先在前、后代在后。

        结果包含根类型的祖先（读取根类型的完整记录需要它们的表）、根类型
        自身，以及所有已注册的后代。
        """
        node = self.get(root)
        return [*node.ancestors(), node, *node.descendants()]

    @property
    def default_root(self) -> str | None:
        """
        未显式指定根类型时使用的层级：优先 default_root，
        否则取子树最大的顶层实体（并列时取先注册者）。
        """
        if self._default_root is not None:
            return self._default_root
        tops = [e for e in self._entities.values() if e.parent is None]
        if not tops:
            return None
        return max(tops, key=lambda e: len(e.descendants())).name
