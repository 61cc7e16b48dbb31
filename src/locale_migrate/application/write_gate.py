# src/locale_migrate/application/write_gate.py
"""写入闸门：决定本次运行是真正写入还是只做演练（dry run）。"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

_FALSY = {"", "0", "false", "no", "off"}


@dataclass(frozen=True)
class WriteGate:
    enabled: bool = False

    def is_write_enabled(self) -> bool:
        return self.enabled

    @classmethod
    def from_param(cls, value: Any) -> "WriteGate":
        """
        从请求参数构造（例如 `?write=1`）。

        缺省、空白、`0`、`false`、`no`、`off`（不区分大小写）视为关闭，
        其余任何值都视为开启。
        """
        if value is None:
            return cls(False)
        if isinstance(value, bool):
            return cls(value)
        return cls(str(value).strip().lower() not in _FALSY)


DRY_RUN = WriteGate(False)
WRITE = WriteGate(True)
