"""
Unit tests for station labels.
"""

import pytest

from modules.i18n import gdt_label, get_supported_languages, i18n_manager, translate


class TestTranslate:

    def test_swedish_default(self):
        assert translate("status.OK") == "Godkänd"

    def test_english(self):
        assert translate("status.FAIL", lang="en") == "Out of tolerance"

    def test_unknown_language_falls_back(self):
        assert translate("status.OK", lang="xx") == "Godkänd"

    def test_missing_key_returns_key(self):
        assert translate("nope.missing") == "nope.missing"

    def test_substitution(self):
        assert translate("submit.failed", reason="timeout") == "Kunde inte skicka: timeout"

    def test_languages_have_same_keys(self):
        for key in ("app.title", "status.NEUTRAL", "gdt.dimension", "submit.retry", "connection.failed"):
            assert i18n_manager.has_key(key, "sv")
            assert i18n_manager.has_key(key, "en")

    def test_supported_languages(self):
        assert set(get_supported_languages()) == {"sv", "en"}


class TestGdtLabel:

    @pytest.mark.parametrize("tag,expected", [
        ("diameter", "Diameter"),
        ("Flatness", "Planhet"),
        ("none", "Mått"),
        ("", "Mått"),
        ("surface-finish-x", "Mått"),
    ])
    def test_labels(self, tag, expected):
        assert gdt_label(tag) == expected
