# src/locale_migrate/config_loader.py
"""
配置装载器

职责：
- 加载 .env / .env.test；
- 构造 MigrationConfig；
- 允许调用方以关键字参数覆盖个别字段（CLI 选项优先于环境变量）。
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

from dotenv import load_dotenv

from locale_migrate.config import MigrationConfig

__all__ = ["load_config_from_env"]


def _load_env_files(mode: Literal["test", "prod"], base_dir: Path | None) -> None:
    """
    - test 模式：先加载 .env（override=False），再加载 .env.test（override=True）
    - prod 模式：仅加载 .env（override=False）
    """
    cwd = base_dir or Path.cwd()
    env_path = cwd / ".env"

    if env_path.exists():
        load_dotenv(env_path, override=False)

    if mode == "test":
        env_test_path = cwd / ".env.test"
        if env_test_path.exists():
            load_dotenv(env_test_path, override=True)


def load_config_from_env(
    mode: Literal["test", "prod"] = "prod",
    base_dir: Path | None = None,
    **overrides: Any,
) -> MigrationConfig:
    """
    加载并构造配置对象。

    参数：
      - mode: "test" | "prod"；决定是否加载 .env.test 覆盖项
      - base_dir: 查找 .env 文件的目录，默认当前工作目录
      - overrides: 值为 None 的项会被忽略，其余直接作为初始化参数

    返回：
      - MigrationConfig 实例（以 LOCALE_MIGRATE_ 前缀 + '__' 嵌套从环境加载）
    """
    _load_env_files(mode, base_dir)
    explicit = {k: v for k, v in overrides.items() if v is not None}
    return MigrationConfig(**explicit)
