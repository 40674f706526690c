"""
Locale-tolerant numeric parsing.

Operators type values with either decimal separator ("12,5" or "12.5") and
payloads carry numbers as strings or numbers. parse_decimal() never raises:
anything that is not a finite number comes back as NOT_A_NUMBER, which
callers treat as "no verdict yet".
"""

import math
import re
from typing import Any

NOT_A_NUMBER = float("nan")

# Plain ASCII decimal with optional exponent; no digit-group underscores
DECIMAL_PATTERN = re.compile(r"[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?", re.ASCII)


def parse_decimal(value: Any) -> float:
    """
    Convert user or payload input to a float.

    Whitespace is removed (also inside, so "1 234,5" works), a comma is read
    as the decimal separator.

    Args:
        value: String, number or None

    Returns:
        Parsed float, or NOT_A_NUMBER for empty, non-numeric or non-finite input

    Example:
        >>> parse_decimal(" 12,5 ")
        12.5
        >>> is_number(parse_decimal("abc"))
        False
    """
    if value is None or isinstance(value, bool):
        return NOT_A_NUMBER

    if isinstance(value, (int, float)):
        number = float(value)
        return number if math.isfinite(number) else NOT_A_NUMBER

    text = "".join(str(value).split()).replace(",", ".")
    if not DECIMAL_PATTERN.fullmatch(text):
        return NOT_A_NUMBER

    number = float(text)
    # Overflow ("1e999")
    if not math.isfinite(number):
        return NOT_A_NUMBER
    return number


def is_number(value: float) -> bool:
    """True unless value is NOT_A_NUMBER."""
    return not math.isnan(value)
