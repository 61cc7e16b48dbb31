# src/locale_migrate/infrastructure/db/engine.py
"""
同步引擎工厂

- SQLite：文件库使用 NullPool，并开启 WAL 与 busy_timeout，
  使流式读取游标不会阻塞逐行提交的写连接；内存库使用 StaticPool，
  保证读写连接看到同一个数据库。
- 其他数据库：映射连接池参数（QueuePool）。
"""

from __future__ import annotations

from typing import Any, Union

import structlog
from sqlalchemy import Engine, create_engine, event
from sqlalchemy.engine.url import URL, make_url
from sqlalchemy.pool import NullPool, StaticPool

from locale_migrate.config import MigrationConfig

logger = structlog.get_logger(__name__)

SQLITE_BUSY_TIMEOUT_MS = 30_000


def mask_db_url(url: Union[str, URL, None]) -> str:
    """把 DSN 中的密码替换为 '***'，用于日志与控制台输出。"""
    if url is None:
        return "[未配置]"
    try:
        return make_url(url).render_as_string(hide_password=True)
    except Exception:
        return "[无法解析的数据库 URL]"


def _is_memory_sqlite(url: URL) -> bool:
    return url.database in (None, "", ":memory:") or (
        url.query.get("mode") == "memory"
    )


def _install_sqlite_pragmas(engine: Engine, *, wal: bool) -> None:
    @event.listens_for(engine, "connect")
    def _set_pragmas(dbapi_connection: Any, _record: Any) -> None:
        cursor = dbapi_connection.cursor()
        try:
            if wal:
                cursor.execute("PRAGMA journal_mode=WAL")
            cursor.execute(f"PRAGMA busy_timeout={SQLITE_BUSY_TIMEOUT_MS}")
        finally:
            cursor.close()


def create_db_engine(cfg: MigrationConfig) -> Engine:
    """根据配置创建同步 Engine。"""
    url = make_url(cfg.database.url)
    kwargs: dict[str, Any] = {
        "echo": cfg.database.echo,
        "pool_pre_ping": cfg.database.pool_pre_ping,
    }

    if url.get_backend_name() == "sqlite":
        memory = _is_memory_sqlite(url)
        kwargs["poolclass"] = StaticPool if memory else NullPool
        if memory:
            kwargs["connect_args"] = {"check_same_thread": False}
        engine = create_engine(url, **kwargs)
        _install_sqlite_pragmas(engine, wal=not memory)
    else:
        if cfg.database.pool_size is not None:
            kwargs["pool_size"] = cfg.database.pool_size
        if cfg.database.max_overflow is not None:
            kwargs["max_overflow"] = cfg.database.max_overflow
        if cfg.database.pool_recycle is not None:
            kwargs["pool_recycle"] = cfg.database.pool_recycle
        kwargs["pool_timeout"] = cfg.database.pool_timeout
        engine = create_engine(url, **kwargs)

    logger.debug(
        "数据库引擎已创建",
        url=mask_db_url(url),
        dialect=engine.dialect.name,
    )
    return engine
