# tests/unit/domain/test_locales.py
"""
语言解析器的单元测试
"""

import pytest

from locale_migrate.domain.locales import LocaleResolver, is_recognised_locale
from locale_migrate.exceptions import ConfigurationError


class TestLocaleResolver:
    def test_get_locales_preserves_order(self):
        resolver = LocaleResolver(["de_ch", "en_foo"], "de_ch")
        assert resolver.get_locales() == ["de_ch", "en_foo"]

    def test_duplicates_and_blanks_removed(self):
        resolver = LocaleResolver(["en_US", " ", "de_AT", "en_US"], "en_US")
        assert resolver.get_locales() == ["en_US", "de_AT"]

    def test_empty_locales(self):
        with pytest.raises(ConfigurationError, match="locales required"):
            LocaleResolver([], "en_US").get_locales()

    def test_default_locale(self):
        assert LocaleResolver(["en_US"], "en_US").get_default_locale() == "en_US"

    @pytest.mark.parametrize("value", [None, "", "   "])
    def test_missing_default_locale(self, value):
        with pytest.raises(ConfigurationError, match="default locale required"):
            LocaleResolver(["en_US"], value).get_default_locale()

    def test_validate_prepends_missing_default(self):
        """默认语言不在列表中时补到最前面"""
        locales, default = LocaleResolver(["de_AT"], "en_US").validate()
        assert locales == ["en_US", "de_AT"]
        assert default == "en_US"

    def test_validate_keeps_order_when_default_listed(self):
        locales, _ = LocaleResolver(["de_AT", "en_US"], "en_US").validate()
        assert locales == ["de_AT", "en_US"]


class TestRecognisedLocale:
    def test_underscore_tags(self):
        assert is_recognised_locale("en_US") is True
        assert is_recognised_locale("de_AT") is True

    def test_garbage(self):
        assert is_recognised_locale("not a locale!") is False
