"""
Unit tests for tolerance evaluation.
"""

import pytest

from models.measurement import MeasurementStatus
from models.order import Definition
from modules.tolerance import EPSILON, deviation, evaluate


@pytest.fixture
def shaft():
    """50.0 +0.1/-0.1"""
    return Definition(id="M1", nominal=50.0, upper_tol=0.1, lower_tol=0.1, gdt_type="diameter")


@pytest.fixture
def asymmetric():
    """10.0 +0.2/-0.05"""
    return Definition(id="M2", nominal=10.0, upper_tol=0.2, lower_tol=0.05)


class TestEvaluate:

    @pytest.mark.parametrize("raw", ["50", "50.05", "49,95", "50.1", "49.9"])
    def test_inside_or_on_boundary_is_ok(self, shaft, raw):
        assert evaluate(shaft, raw) == MeasurementStatus.OK

    @pytest.mark.parametrize("raw", ["50.11", "50.2", "49.89", "0"])
    def test_outside_is_fail(self, shaft, raw):
        assert evaluate(shaft, raw) == MeasurementStatus.FAIL

    @pytest.mark.parametrize("raw", ["", "  ", "abc", None])
    def test_not_a_number_is_neutral(self, shaft, raw):
        assert evaluate(shaft, raw) == MeasurementStatus.NEUTRAL

    def test_asymmetric_limits(self, asymmetric):
        assert evaluate(asymmetric, "10.2") == MeasurementStatus.OK
        assert evaluate(asymmetric, "9.95") == MeasurementStatus.OK
        assert evaluate(asymmetric, "9.9") == MeasurementStatus.FAIL
        assert evaluate(asymmetric, "10.21") == MeasurementStatus.FAIL

    def test_signed_lower_tolerance_treated_as_magnitude(self):
        definition = Definition(id="M1", nominal=5.0, upper_tol=0.1, lower_tol=-0.1)
        assert evaluate(definition, "4.9") == MeasurementStatus.OK
        assert evaluate(definition, "4.85") == MeasurementStatus.FAIL

    def test_epsilon_absorbs_float_rounding(self):
        definition = Definition(id="M1", nominal=0.3, upper_tol=0.1, lower_tol=0.1)
        # 0.3 + 0.1 is 0.4000000000000001 in binary floating point
        assert evaluate(definition, "0.4") == MeasurementStatus.OK
        assert evaluate(definition, str(0.4 + 2 * EPSILON)) == MeasurementStatus.FAIL

    def test_zero_tolerance_exact_match(self):
        definition = Definition(id="M1", nominal=1.0, upper_tol=0.0, lower_tol=0.0)
        assert evaluate(definition, "1,0") == MeasurementStatus.OK
        assert evaluate(definition, "1.001") == MeasurementStatus.FAIL


class TestDeviation:

    def test_difference_to_nominal(self, shaft):
        assert deviation(shaft, "50,2") == pytest.approx(0.2)

    def test_not_a_number(self, shaft):
        assert deviation(shaft, "x") != deviation(shaft, "x")
