"""Test result formatting."""
import math

import pytest

from calculator_client_server.common.formatter import format_result, to_exponential


@pytest.mark.parametrize("value,expected", [
    (math.nan, "Error"),
    (math.inf, "∞"),
    (-math.inf, "-∞"),
])
def test_format_special_values(value, expected):
    """NaN and infinities map to display sentinels."""
    assert format_result(value) == expected


@pytest.mark.parametrize("value,expected", [
    (1e20, "1.000000e+20"),
    (-1e20, "-1.000000e+20"),
    (1e15, "1.000000e+15"),
    (0.0000001, "1.000000e-7"),
    (1.23456789e-9, "1.234568e-9"),
])
def test_format_exponential_range(value, expected):
    """Very large and very small magnitudes use exponential notation."""
    assert format_result(value) == expected


@pytest.mark.parametrize("value,expected", [
    (3.14159265358979, "3.141592654"),
    (5.0, "5"),
    (-2.0, "-2"),
    (0.0, "0"),
    (-0.0, "0"),
    (0.1 + 0.2, "0.3"),
    (1 / 3, "0.3333333333"),
    (1024.0, "1024"),
    (123456.789, "123456.789"),
    (0.000001, "0.000001"),
    (120.0, "120"),
    (999999999999999.0, "1.000000e+15"),
])
def test_format_positional(value, expected):
    """Common magnitudes are rounded to 10 significant digits."""
    assert format_result(value) == expected


def test_format_length_fallback():
    """Results longer than 15 characters fall back to exponential notation."""
    assert format_result(-0.00000123456789) == "-1.234568e-6"


def test_format_never_fails_on_extremes():
    """format_result is total over floats."""
    for value in (5e-324, 1.7976931348623157e308, -5e-324):
        assert isinstance(format_result(value), str)


def test_to_exponential_unpadded_exponent():
    """Exponents are signed and never zero padded."""
    assert to_exponential(1.5e-7) == "1.500000e-7"
    assert to_exponential(12345.0) == "1.234500e+4"


@pytest.mark.parametrize("value,expected", [
    (1234567890.5, "1234567891"),
    (-1234567890.5, "-1234567891"),
    (2.5, "2.5"),
    (1000000500000000.0, "1.000001e+15"),
    (-1000000500000000.0, "-1.000001e+15"),
    (9999999500000000.0, "1.000000e+16"),
])
def test_format_rounds_ties_away_from_zero(value, expected):
    """Exact decimal ties round away from zero, in both notations."""
    assert format_result(value) == expected
