"""
Unit tests for the signer roster.
"""

import json
from unittest.mock import Mock

import pytest

from services.roster import (
    MAX_NAME_LENGTH,
    InMemoryRosterStore,
    JsonFileRosterStore,
    SignerRoster,
    sanitize_signer_name,
)


DEFAULTS = ["NJA", "DN", "AS", "Kalle"]


class TestSanitize:

    def test_strips_markup_and_whitespace(self):
        assert sanitize_signer_name("  <b>Anna</b> ") == "Anna"

    def test_plain_text_not_escaped(self):
        assert sanitize_signer_name("Åke & Co") == "Åke & Co"
        assert sanitize_signer_name("A < B") == "A < B"

    def test_length_limited(self):
        assert len(sanitize_signer_name("x" * 100)) == MAX_NAME_LENGTH

    def test_empty(self):
        assert sanitize_signer_name("") == ""
        assert sanitize_signer_name(None) == ""


class TestSignerRoster:

    @pytest.fixture
    def roster(self):
        return SignerRoster(InMemoryRosterStore(), DEFAULTS)

    def test_defaults_until_stored(self, roster):
        assert roster.names() == DEFAULTS

    def test_add(self, roster):
        assert roster.add(" AB ") == "AB"
        assert roster.names() == DEFAULTS + ["AB"]

    def test_add_duplicate(self, roster):
        roster.add("NJA")
        assert roster.names() == DEFAULTS

    def test_add_empty(self, roster):
        with pytest.raises(ValueError):
            roster.add("<i></i>")

    def test_remove(self, roster):
        assert roster.remove("DN") is True
        assert "DN" not in roster.names()
        assert roster.remove("DN") is False

    def test_remember_ignores_bad_names(self, roster):
        roster.remember("   ")
        assert roster.names() == DEFAULTS

    def test_remember_survives_storage_errors(self):
        store = Mock()
        store.get_names.return_value = []
        store.set_names.side_effect = OSError("read-only")

        SignerRoster(store).remember("AB")

        store.set_names.assert_called_once_with(["AB"])


class TestJsonFileRosterStore:

    def test_missing_file(self, tmp_path):
        assert JsonFileRosterStore(tmp_path / "signers.json").get_names() is None

    def test_round_trip_through_roster(self, tmp_path):
        path = tmp_path / "data" / "signers.json"
        SignerRoster(JsonFileRosterStore(path), DEFAULTS).add("Åsa")

        assert json.loads(path.read_text(encoding="utf-8")) == DEFAULTS + ["Åsa"]
        assert SignerRoster(JsonFileRosterStore(path)).names() == DEFAULTS + ["Åsa"]

    @pytest.mark.parametrize("content", ["{not json", '{"names": []}'])
    def test_unusable_file_counts_as_empty(self, tmp_path, content):
        path = tmp_path / "signers.json"
        path.write_text(content, encoding="utf-8")
        assert JsonFileRosterStore(path).get_names() is None
