# src/locale_migrate/exceptions.py
"""
本模块定义了 locale-migrate 中所有自定义的、语义化的异常类型。

分为两类：
- 致命错误（ConfigurationError / PlanConstructionError）：在任何写入之前抛出，
  直接中止整次运行，调用方拿不到报告。
- 行级错误（RowReadError / RowWriteError）：由迁移驱动器在本地捕获并记录进
  MigrationReport，运行继续处理下一行。
"""

from __future__ import annotations

from typing import Any


class LocaleMigrateError(Exception):
    """
    所有 locale-migrate 自定义异常的通用基类。
    捕获此异常可以处理所有源自本项目的预期错误。
    """

    pass


class ConfigurationError(LocaleMigrateError):
    """
    配置缺失或非法：语言列表为空、未设置默认语言、根实体类型未知、
    实体目录文件无法读取等。
    """

    pass


class PlanConstructionError(LocaleMigrateError):
    """
    查询计划无法构建：期望的表或连接不存在，或元数据自相矛盾
    （例如父实体未注册、继承链成环、派生表缺列）。
    """

    pass


class RowError(LocaleMigrateError):
    """单行级别的错误，携带定位该行所需的全部上下文。"""

    kind = "row"

    def __init__(
        self,
        message: str,
        *,
        table: str,
        locale: str,
        record_id: Any = None,
        version: Any = None,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(message)
        self.table = table
        self.locale = locale
        self.record_id = record_id
        self.version = version
        self.cause = cause

    @property
    def reason(self) -> str:
        if self.cause is not None:
            return f"{self.args[0]}: {type(self.cause).__name__}: {self.cause}"
        return str(self.args[0])


class RowReadError(RowError):
    """源数据行格式错误（例如连接结果缺少记录 ID 或版本号），该行被跳过。"""

    kind = "read"


class RowWriteError(RowError):
    """向派生表 upsert 单行失败（约束冲突、类型不匹配等）。"""

    kind = "write"
