# src/locale_migrate/config.py
"""
locale-migrate 配置（Pydantic v2）

特性:
- 所有字段均可通过 `LOCALE_MIGRATE_` 前缀的环境变量覆盖，嵌套以 `__` 表示。
- 语言列表既接受 JSON 数组，也接受逗号分隔的字符串。
- 迁移任务是同步批处理，数据库 URL 只允许同步驱动。
"""

from __future__ import annotations

import json
from typing import Annotated, Any, Literal, Optional

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict
from sqlalchemy.engine.url import make_url

_ASYNC_DRIVERS = {"aiosqlite", "asyncpg", "aiomysql", "asyncmy", "psycopg_async"}

# ===================== 子模型 =====================


class DatabaseSettings(BaseModel):
    """遗留库与派生表所在的数据库（同步驱动）。"""

    url: str = Field(
        default="sqlite:///legacy.db",
        description="同步 DSN（sqlite / postgresql+psycopg / mysql+pymysql）",
    )
    echo: bool = Field(default=False, description="SQLAlchemy echo（调试）")
    pool_size: Optional[int] = Field(default=None, ge=1)
    max_overflow: Optional[int] = Field(default=None, ge=0)
    pool_timeout: int = Field(default=30, ge=1)
    pool_recycle: Optional[int] = Field(default=None)
    pool_pre_ping: bool = True

    @field_validator("url")
    @classmethod
    def _validate_sync_driver(cls, v: str) -> str:
        try:
            url = make_url(v)
        except Exception as e:
            raise ValueError(f"非法数据库 URL：{v!r}（{e}）") from e
        driver = url.get_driver_name().lower()
        if driver in _ASYNC_DRIVERS:
            raise ValueError(
                f"迁移任务使用阻塞式游标，不支持异步驱动：{url.drivername!r}"
            )
        return v


class LoggingSettings(BaseModel):
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(default="INFO")
    format: Literal["console", "json"] = Field(default="console")


# ===================== 顶层配置 =====================
class MigrationConfig(BaseSettings):
    """
    locale-migrate 核心配置模型。
    """

    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    # --- 语言 ---
    # NoDecode：交给下方校验器解析，以便同时支持 JSON 与逗号分隔
    locales: Annotated[list[str], NoDecode] = Field(default_factory=list)
    default_locale: Optional[str] = None

    # --- 实体目录 ---
    catalog_path: Optional[str] = None
    root_type: Optional[str] = None

    # --- 执行 ---
    yield_per: int = Field(default=500, gt=0, description="流式读取的批量大小")
    create_missing_tables: bool = False
    upsert_strategy: Literal["native", "update_then_insert"] = "native"

    @field_validator("locales", mode="before")
    @classmethod
    def _split_locales(cls, v: Any) -> Any:
        if v is None:
            return []
        if isinstance(v, str):
            if v.strip().startswith("["):
                return json.loads(v)
            return [part.strip() for part in v.split(",") if part.strip()]
        return v

    @field_validator("default_locale", "root_type", "catalog_path", mode="before")
    @classmethod
    def _blank_to_none(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip():
            return None
        return v

    # --- Pydantic v2 设置 ---
    model_config = SettingsConfigDict(
        env_nested_delimiter="__",
        env_prefix="LOCALE_MIGRATE_",
        case_sensitive=False,
        extra="ignore",
        env_file_encoding="utf-8",
    )
