# src/locale_migrate/presentation/cli/_shared_options.py
"""
CLI 共享参数定义

所有命令中相同参数的帮助文本与短名称保持一致。
"""

from __future__ import annotations

from typing import Annotated, Optional

import typer

ROOT_OPTION = Annotated[
    Optional[str],
    typer.Option("--root", "-r", help="只迁移该实体类型及其继承层级（默认取目录中最大的层级）。"),
]

JSON_OPTION = Annotated[
    bool, typer.Option("--json", help="以 JSON 输出到 stdout，便于脚本处理。")
]
