"""
Unit tests for locale-tolerant numeric parsing.
"""

import math

import pytest

from modules.numeric import NOT_A_NUMBER, is_number, parse_decimal


class TestParseDecimal:
    """Test parse_decimal() on operator and payload input."""

    @pytest.mark.parametrize("raw,expected", [
        ("12.5", 12.5),
        ("12,5", 12.5),
        (" 12,5 ", 12.5),
        ("1 234,5", 1234.5),
        ("-0,05", -0.05),
        ("50", 50.0),
        (7, 7.0),
        (0.25, 0.25),
        (".5", 0.5),
        ("5.", 5.0),
        ("1e3", 1000.0),
        ("+2,5E-1", 0.25),
    ])
    def test_valid_input(self, raw, expected):
        assert parse_decimal(raw) == pytest.approx(expected)

    @pytest.mark.parametrize("raw", ["", "   ", "abc", "1,2,3", "12.5mm", None, True])
    def test_invalid_input_is_not_a_number(self, raw):
        assert not is_number(parse_decimal(raw))

    @pytest.mark.parametrize("raw", ["nan", "inf", "-Infinity", float("inf")])
    def test_non_finite_values_rejected(self, raw):
        """nan and inf are not measurements."""
        assert math.isnan(parse_decimal(raw))

    @pytest.mark.parametrize("raw", ["1_0", "1_000,5", "\u0661\u0662", "\uff11\uff12", "1e999", "0x10"])
    def test_only_plain_ascii_decimals(self, raw):
        """Digit-group underscores, non-ASCII digits and overflow are not values."""
        assert math.isnan(parse_decimal(raw))

    def test_never_raises_on_objects(self):
        assert math.isnan(parse_decimal(object()))


class TestIsNumber:

    def test_sentinel(self):
        assert is_number(NOT_A_NUMBER) is False

    def test_zero_is_a_number(self):
        assert is_number(0.0) is True
