"""
Tolerance evaluation for measured values.

A value is OK when it lies in [nominal - lower_tol, nominal + upper_tol],
boundaries included. EPSILON absorbs float rounding so an exact boundary
value such as 50.1 on 50.0 +0.1 is never reported as FAIL.
"""

from models.measurement import MeasurementStatus
from models.order import Definition
from .numeric import NOT_A_NUMBER, is_number, parse_decimal

EPSILON = 1e-6


def evaluate(definition: Definition, raw_measured) -> MeasurementStatus:
    """
    Compute the verdict for one measured value.

    Pure function, never raises.

    Args:
        definition: Definition with nominal and tolerance magnitudes
        raw_measured: Operator input as typed

    Returns:
        NEUTRAL if the input is not a number yet, otherwise OK or FAIL
    """
    diff = deviation(definition, raw_measured)
    if not is_number(diff):
        return MeasurementStatus.NEUTRAL

    upper_limit = abs(_number(definition.upper_tol))
    lower_limit = -abs(_number(definition.lower_tol))

    if lower_limit - EPSILON <= diff <= upper_limit + EPSILON:
        return MeasurementStatus.OK
    return MeasurementStatus.FAIL


def deviation(definition: Definition, raw_measured) -> float:
    """Measured minus nominal, or NOT_A_NUMBER when the input is not a number."""
    measured = parse_decimal(raw_measured)
    if not is_number(measured):
        return NOT_A_NUMBER
    return measured - _number(definition.nominal)


def _number(value) -> float:
    """Definition numbers are floats already; a corrupt one counts as 0."""
    number = parse_decimal(value)
    return number if is_number(number) else 0.0
