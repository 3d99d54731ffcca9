"""Test class CalculationEngine."""
import math

import pytest

from calculator_client_server.common.engine import CalculationEngine
from calculator_client_server.common.models import (
    AdvancedCalculation,
    BasicCalculation,
    ConstantCalculation,
)


def basic(operation: str, a: float, b: float) -> BasicCalculation:
    return BasicCalculation(operation=operation, a=a, b=b)


def advanced(operation: str, a: float, b=None) -> AdvancedCalculation:
    return AdvancedCalculation(operation=operation, a=a, b=b)


@pytest.mark.parametrize("operation,a,b,expected", [
    ("sum", 2, 3, 5.0),
    ("subtract", 10, 4, 6.0),
    ("multiply", 2.5, 4, 10.0),
    ("divide", 8, 2, 4.0),
    ("sum", 0.1, 0.2, 0.1 + 0.2),
    ("divide", 1, 3, 1 / 3),
])
def test_basic_operations(operation, a, b, expected):
    """Basic operations follow IEEE-754 arithmetic exactly."""
    result, error = CalculationEngine.evaluate(basic(operation, a, b))
    assert result == expected
    assert error is None


@pytest.mark.parametrize("a", [0, 5, -5, 1e300])
def test_divide_by_zero(a):
    """divide(a, 0) is a domain error for any a."""
    response = CalculationEngine.calculate(basic("divide", a, 0))
    assert math.isnan(response.result)
    assert response.error == "division by zero"
    assert response.formatted == "Error"


@pytest.mark.parametrize("operation,a,b,expected", [
    ("power", 2, 10, 1024.0),
    ("power", 2, -1, 0.5),
    ("sqrt", 4, None, 2.0),
    ("cbrt", 27, None, 3.0),
    ("cbrt", -8, None, -2.0),
    ("ln", 1, None, 0.0),
    ("log10", 1000, None, 3.0),
    ("sin", 0, None, 0.0),
    ("cos", 0, None, 1.0),
    ("atan", 0, None, 0.0),
    ("sinh", 0, None, 0.0),
    ("cosh", 0, None, 1.0),
    ("tanh", 0, None, 0.0),
    ("factorial", 0, None, 1.0),
    ("factorial", 5, None, 120.0),
    ("abs", -3.5, None, 3.5),
    ("ceil", 1.2, None, 2.0),
    ("floor", -1.2, None, -2.0),
    ("round", 2.5, None, 3.0),
    ("round", -2.5, None, -2.0),
    ("round", 2.4, None, 2.0),
    ("mod", 7, 3, 1.0),
    ("mod", -7, 3, -1.0),
    ("percent", 50, None, 0.5),
])
def test_advanced_operations(operation, a, b, expected):
    """Advanced operations compute the expected values."""
    result, error = CalculationEngine.evaluate(advanced(operation, a, b))
    assert result == pytest.approx(expected)
    assert error is None


def test_log_with_base():
    """log(8, 2) is 3."""
    result, error = CalculationEngine.evaluate(advanced("log", 8, 2))
    assert result == pytest.approx(3.0)
    assert error is None


def test_asin_in_domain():
    """asin(0.5) succeeds."""
    result, error = CalculationEngine.evaluate(advanced("asin", 0.5))
    assert result == pytest.approx(math.pi / 6)
    assert error is None


def test_factorial_170_is_finite():
    """170! is the largest factorial representable as a float."""
    result, error = CalculationEngine.evaluate(advanced("factorial", 170))
    assert math.isfinite(result)
    assert error is None


@pytest.mark.parametrize("operation,a,b,message", [
    ("sqrt", -1, None, "negative input"),
    ("log", 8, 1, "invalid log arguments"),
    ("log", -8, 2, "invalid log arguments"),
    ("log", 8, 0, "invalid log arguments"),
    ("ln", 0, None, "non-positive input"),
    ("log10", -10, None, "non-positive input"),
    ("asin", 1.5, None, "out of domain [-1,1]"),
    ("acos", -2, None, "out of domain [-1,1]"),
    ("factorial", -1, None, "negative/non-integer"),
    ("factorial", 2.5, None, "negative/non-integer"),
    ("factorial", 171, None, "too large"),
    ("mod", 5, 0, "division by zero"),
])
def test_advanced_domain_errors(operation, a, b, message):
    """Domain errors are returned as data with a NaN result."""
    response = CalculationEngine.calculate(advanced(operation, a, b))
    assert math.isnan(response.result)
    assert response.error == message
    assert response.formatted == "Error"


@pytest.mark.parametrize("operation,message", [
    ("power", "exponent required"),
    ("log", "invalid log arguments"),
    ("mod", "divisor required"),
])
def test_missing_second_operand_without_validation(operation, message):
    """Requests built without validation still get a domain error for a missing operand."""
    request = AdvancedCalculation.model_construct(type="advanced", operation=operation, a=2.0, b=None)
    result, error = CalculationEngine.evaluate(request)
    assert math.isnan(result)
    assert error == message


@pytest.mark.parametrize("operation,a,b,expected", [
    ("power", 10, 400, math.inf),
    ("power", -10, 401, -math.inf),
    ("power", 0, -1, math.inf),
    ("cosh", 1000, None, math.inf),
    ("sinh", -1000, None, -math.inf),
    ("ceil", math.inf, None, math.inf),
])
def test_overflow_gives_infinity(operation, a, b, expected):
    """Overflow produces a signed infinity instead of an exception."""
    result, error = CalculationEngine.evaluate(advanced(operation, a, b))
    assert error is None
    assert result == expected


@pytest.mark.parametrize("operation,a,b", [
    ("sin", math.inf, None),
    ("power", -8, 1 / 3),
    ("mod", math.inf, 2),
    ("sqrt", math.nan, None),
])
def test_undefined_without_precondition_gives_nan(operation, a, b):
    """Undefined results without a dedicated precondition are NaN without a message."""
    response = CalculationEngine.calculate(advanced(operation, a, b))
    assert math.isnan(response.result)
    assert response.error is None
    assert response.formatted == "Error"


def test_factorial_rejects_nan():
    """NaN is not a non-negative integer."""
    _, error = CalculationEngine.evaluate(advanced("factorial", math.nan))
    assert error == "negative/non-integer"


@pytest.mark.parametrize("operation,expected", [
    ("pi", math.pi),
    ("e", math.e),
    ("phi", (1 + math.sqrt(5)) / 2),
    ("tau", 2 * math.pi),
])
def test_constants(operation, expected):
    """Constants always succeed with their fixed value."""
    result, error = CalculationEngine.evaluate(ConstantCalculation(operation=operation))
    assert result == expected
    assert error is None


def test_pi_formatted():
    """pi is formatted to 10 significant digits."""
    response = CalculationEngine.calculate(ConstantCalculation(operation="pi"))
    assert response.formatted == "3.141592654"


def test_calculate_is_idempotent():
    """The same request gives byte-identical responses."""
    request = advanced("factorial", 10)
    first = CalculationEngine.calculate(request).model_dump_json()
    second = CalculationEngine.calculate(request).model_dump_json()
    assert first == second


def test_evaluate_does_not_mutate_request():
    """The request is left untouched by evaluation."""
    request = basic("divide", 1, 0)
    before = request.model_dump()
    CalculationEngine.evaluate(request)
    assert request.model_dump() == before
