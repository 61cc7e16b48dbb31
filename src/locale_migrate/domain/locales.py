# src/locale_migrate/domain/locales.py
"""
语言解析器：提供有序的语言列表与唯一的默认语言。

语言标识对迁移来说是不透明的字符串（如 `en_US`）。无法识别的 BCP-47 标签
只记录警告，不会被拒绝，因为遗留库里的列后缀才是事实来源。
"""

from __future__ import annotations

from typing import Iterable

import langcodes
import structlog

from locale_migrate.exceptions import ConfigurationError

logger = structlog.get_logger(__name__)


def is_recognised_locale(locale: str) -> bool:
    """`en_US` 形式按 `en-US` 校验。"""
    return langcodes.tag_is_valid(locale.replace("_", "-"))


class LocaleResolver:
    def __init__(
        self, locales: Iterable[str] | None, default_locale: str | None
    ) -> None:
        self._locales = list(dict.fromkeys(
            loc.strip() for loc in (locales or []) if loc and loc.strip()
        ))
        self._default = default_locale.strip() if default_locale else None

    def get_locales(self) -> list[str]:
        if not self._locales:
            raise ConfigurationError("locales required")
        return list(self._locales)

    def get_default_locale(self) -> str:
        if not self._default:
            raise ConfigurationError("default locale required")
        return self._default

    def validate(self) -> tuple[list[str], str]:
        """
        一次性取出两项配置，并对可疑值给出警告。

        返回的语言列表总是包含默认语言：不在列表中时补到最前面。
        """
        locales = self.get_locales()
        default = self.get_default_locale()

        for loc in locales:
            if not is_recognised_locale(loc):
                logger.warning("无法识别的语言标签，按原样使用", locale=loc)
        if default not in locales:
            logger.warning(
                "默认语言不在语言列表中，已补到列表最前面",
                default_locale=default,
                locales=locales,
            )
            locales.insert(0, default)
        return locales, default
