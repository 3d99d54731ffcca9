"""Evaluate typed calculation requests."""
import math
import operator
from typing import Callable, Dict, Optional, Tuple

from calculator_client_server.common.formatter import format_result
from calculator_client_server.common.models import (
    AdvancedCalculation,
    BasicCalculation,
    CalculationRequest,
    CalculationResponse,
    ConstantCalculation,
)


# Type aliases for operation functions
BasicFn = Callable[[float, float], float]
AdvancedFn = Callable[[float, Optional[float]], float]

# Largest n for which n! is a finite float64
FACTORIAL_LIMIT: int = 170


class DomainError(ValueError):
    """Mathematically undefined operation on a well-formed request."""


def _divide(a: float, b: float) -> float:
    if b == 0:
        raise DomainError("division by zero")
    return a / b


def _is_odd_integer(value: float) -> bool:
    return value.is_integer() and value % 2 == 1


def _power(a: float, b: Optional[float]) -> float:
    """
    Raise ``a`` to ``b`` with IEEE-754 results instead of exceptions.

    Overflow gives a signed infinity, a zero base with a negative exponent
    gives an infinity and undefined real powers (e.g. ``(-8) ** (1/3)``) give NaN.
    """
    if b is None:
        raise DomainError("exponent required")
    if math.isnan(b) or (abs(a) == 1 and math.isinf(b)):
        return math.nan
    if a == 0 and b < 0:
        return math.copysign(math.inf, a) if _is_odd_integer(b) else math.inf
    try:
        return math.pow(a, b)
    except OverflowError:
        return -math.inf if a < 0 and _is_odd_integer(b) else math.inf
    except ValueError:
        return math.nan


def _sqrt(a: float, b: Optional[float] = None) -> float:
    if a < 0:
        raise DomainError("negative input")
    return math.sqrt(a)


def _log(a: float, b: Optional[float]) -> float:
    if b is None or a <= 0 or b <= 0 or b == 1:
        raise DomainError("invalid log arguments")
    return math.log(a) / math.log(b)


def _positive_log(fn: Callable[[float], float]) -> AdvancedFn:
    def wrapped(a: float, b: Optional[float] = None) -> float:
        if a <= 0:
            raise DomainError("non-positive input")
        return fn(a)

    return wrapped


def _unit_interval(fn: Callable[[float], float]) -> AdvancedFn:
    def wrapped(a: float, b: Optional[float] = None) -> float:
        if a < -1 or a > 1:
            raise DomainError("out of domain [-1,1]")
        return fn(a)

    return wrapped


def _unary(fn: Callable[[float], float]) -> AdvancedFn:
    """Adapt a one-argument function, mapping math domain errors (e.g. sin(inf)) to NaN."""

    def wrapped(a: float, b: Optional[float] = None) -> float:
        try:
            return fn(a)
        except ValueError:
            return math.nan

    return wrapped


def _sinh(a: float) -> float:
    try:
        return math.sinh(a)
    except OverflowError:
        return math.copysign(math.inf, a)


def _cosh(a: float) -> float:
    try:
        return math.cosh(a)
    except OverflowError:
        return math.inf


def _factorial(a: float, b: Optional[float] = None) -> float:
    if a < 0 or not a.is_integer():
        raise DomainError("negative/non-integer")
    if a > FACTORIAL_LIMIT:
        raise DomainError("too large")
    result = 1.0
    for i in range(2, int(a) + 1):
        result *= i
    return result


def _integral(fn: Callable[[float], int]) -> Callable[[float], float]:
    """Keep infinities and NaN as they are, math.ceil/floor would raise on them."""

    def wrapped(a: float) -> float:
        return float(fn(a)) if math.isfinite(a) else a

    return wrapped


def _round_half_up(a: float) -> float:
    # Halves round towards +inf: round(2.5) == 3, round(-2.5) == -2
    floor = math.floor(a)
    return float(floor + 1) if a - floor >= 0.5 else float(floor)


def _mod(a: float, b: Optional[float]) -> float:
    if b is None:
        raise DomainError("divisor required")
    if b == 0:
        raise DomainError("division by zero")
    try:
        # Result takes the sign of the dividend
        return math.fmod(a, b)
    except ValueError:
        return math.nan


BASIC_OPERATIONS: Dict[str, BasicFn] = {
    "sum": operator.add,
    "subtract": operator.sub,
    "multiply": operator.mul,
    "divide": _divide,
}

ADVANCED_OPERATIONS: Dict[str, AdvancedFn] = {
    "power": _power,
    "sqrt": _sqrt,
    "cbrt": _unary(math.cbrt),
    "log": _log,
    "ln": _positive_log(math.log),
    "log10": _positive_log(math.log10),
    "sin": _unary(math.sin),
    "cos": _unary(math.cos),
    "tan": _unary(math.tan),
    "asin": _unit_interval(math.asin),
    "acos": _unit_interval(math.acos),
    "atan": _unary(math.atan),
    "sinh": _unary(_sinh),
    "cosh": _unary(_cosh),
    "tanh": _unary(math.tanh),
    "factorial": _factorial,
    "abs": _unary(abs),
    "ceil": _unary(_integral(math.ceil)),
    "floor": _unary(_integral(math.floor)),
    "round": _unary(_integral(_round_half_up)),
    "mod": _mod,
    "percent": _unary(lambda a: a / 100),
}

CONSTANTS: Dict[str, float] = {
    "pi": math.pi,
    "e": math.e,
    "phi": (1 + math.sqrt(5)) / 2,
    "tau": math.tau,
}


class CalculationEngine:
    """
    Evaluate basic, advanced and constant calculation requests.

    Design constraints:
        - Pure and stateless, requests are never mutated
        - Domain errors are returned as data, never raised
        - Trigonometric functions take radians only, converting degrees is up to the caller

    Domain errors (division by zero, negative square root, ...) produce a NaN
    result with an error message. Operations that are undefined without a
    dedicated precondition (e.g. ``sin(inf)``) produce NaN without a message,
    and overflow produces a signed infinity.
    """

    @staticmethod
    def _compute(request: CalculationRequest) -> float:
        """
        Dispatch a request on its type tag then on its operation name.

        :param CalculationRequest request: Validated request

        :return: Computed value
        :rtype: float
        :raises DomainError: If the operation is undefined for the operands
        """
        if isinstance(request, BasicCalculation):
            fn = BASIC_OPERATIONS.get(request.operation)
            if fn is None:
                raise DomainError(f"invalid basic operation: {request.operation}")
            return fn(float(request.a), float(request.b))

        if isinstance(request, AdvancedCalculation):
            fn = ADVANCED_OPERATIONS.get(request.operation)
            if fn is None:
                raise DomainError(f"invalid advanced operation: {request.operation}")
            b = None if request.b is None else float(request.b)
            return fn(float(request.a), b)

        if isinstance(request, ConstantCalculation):
            if request.operation not in CONSTANTS:
                raise DomainError(f"invalid constant: {request.operation}")
            return CONSTANTS[request.operation]

        raise DomainError(f"unknown calculation type: {type(request).__name__}")

    @staticmethod
    def evaluate(request: CalculationRequest) -> Tuple[float, Optional[str]]:
        """
        Evaluate a request.

        :param CalculationRequest request: Validated request

        :return: Tuple of (result, domain error message or None)
        :rtype: Tuple[float, Optional[str]]
        """
        try:
            return CalculationEngine._compute(request), None
        except DomainError as exc:
            return math.nan, str(exc)

    @staticmethod
    def calculate(request: CalculationRequest) -> CalculationResponse:
        """
        Evaluate a request and format its result for display.

        :param CalculationRequest request: Validated request

        :return: Result, formatted result and optional domain error
        :rtype: CalculationResponse
        """
        result, error = CalculationEngine.evaluate(request)
        return CalculationResponse(result=result, formatted=format_result(result), error=error)
