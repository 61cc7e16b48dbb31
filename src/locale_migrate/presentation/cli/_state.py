# src/locale_migrate/presentation/cli/_state.py
"""
定义了 CLI 应用中用于上下文传递的共享状态容器。
"""

from locale_migrate.config import MigrationConfig


class CLISharedState:
    """用于在 Typer 上下文中传递共享对象的容器。"""

    def __init__(self, config: MigrationConfig):
        self.config = config
