"""Render numeric results as bounded-length display strings."""
from decimal import ROUND_HALF_UP, Decimal
import math


ERROR_SENTINEL: str = "Error"

# Beyond these magnitudes results are always shown in exponential notation
EXPONENTIAL_UPPER: float = 1e15
EXPONENTIAL_LOWER: float = 1e-6

SIGNIFICANT_DIGITS: int = 10
EXPONENT_DIGITS: int = 6
MAX_LENGTH: int = 15


def _round_significant(value: float, digits: int) -> Decimal:
    """Round the exact binary value to ``digits`` significant digits, ties away from zero."""
    exact = Decimal(value)
    step = Decimal(1).scaleb(exact.adjusted() - digits + 1)
    return exact.quantize(step, rounding=ROUND_HALF_UP)


def to_exponential(value: float) -> str:
    """
    Exponential notation with 6 fractional digits and an unpadded, signed exponent.

    Examples:
        - 1e20 -> "1.000000e+20"
        - 1.5e-7 -> "1.500000e-7"
        - 1000000500000000 -> "1.000001e+15"

    :param float value: Finite number

    :return: Exponential representation
    :rtype: str
    """
    rounded = _round_significant(value, EXPONENT_DIGITS + 1)
    sign, digits, _ = rounded.as_tuple()
    # A carry (9.9999996 -> 10.000000) adds one trailing zero digit, adjusted() already accounts for it
    coefficient = "".join(map(str, digits))[: EXPONENT_DIGITS + 1].ljust(EXPONENT_DIGITS + 1, "0")
    return f"{'-' if sign else ''}{coefficient[0]}.{coefficient[1:]}e{rounded.adjusted():+d}"


def _to_positional(value: float) -> str:
    """Value rounded to 10 significant digits, without exponent nor trailing zeros."""
    if value == 0:
        # Also covers -0.0
        return "0"
    return format(_round_significant(value, SIGNIFICANT_DIGITS).normalize(), "f")


def format_result(value: float) -> str:
    """
    Format a result for display.

    Policy:
        1. NaN is shown as "Error", infinities as "∞" and "-∞".
        2. Very large (>= 1e15) or very small (< 1e-6) magnitudes use exponential notation.
        3. Otherwise the value is rounded to 10 significant digits; when that
           still needs more than 15 characters, exponential notation is used.

    :param float value: Raw result

    :return: Display string
    :rtype: str
    """
    if math.isnan(value):
        return ERROR_SENTINEL
    if math.isinf(value):
        return "∞" if value > 0 else "-∞"

    magnitude = abs(value)
    if magnitude >= EXPONENTIAL_UPPER or 0 < magnitude < EXPONENTIAL_LOWER:
        return to_exponential(value)

    formatted = _to_positional(value)
    if len(formatted) > MAX_LENGTH:
        return to_exponential(value)
    return formatted
