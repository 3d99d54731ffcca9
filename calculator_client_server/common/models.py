"""Pydantic models for calculation requests, results and server replies."""
from typing import Annotated, Any, Dict, FrozenSet, List, Literal, Optional, Union

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, model_validator


BasicOperation = Literal["sum", "subtract", "multiply", "divide"]

AdvancedOperation = Literal[
    "power", "sqrt", "cbrt", "log", "ln", "log10",
    "sin", "cos", "tan", "asin", "acos", "atan",
    "sinh", "cosh", "tanh",
    "factorial", "abs", "ceil", "floor", "round", "mod", "percent",
]

ConstantOperation = Literal["pi", "e", "phi", "tau"]

# Advanced operations that cannot be computed without the second operand
BINARY_ADVANCED_OPERATIONS: FrozenSet[str] = frozenset({"power", "log", "mod"})


def _require_number(value: Any) -> Any:
    """Reject operands that are not JSON numbers (strings, booleans, ...)."""
    if value is None:
        return value
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError("operand must be a number")
    return value


# JSON number operand; integers are widened to float, strings and booleans rejected
Operand = Annotated[float, BeforeValidator(_require_number)]


class BasicCalculation(BaseModel):
    """Two-operand arithmetic request."""

    # Requests are never mutated once validated
    model_config = ConfigDict(frozen=True)

    type: Literal["basic"] = "basic"
    operation: BasicOperation = Field(..., description="Arithmetic operation name")
    a: Operand = Field(..., description="Left operand")
    b: Operand = Field(..., description="Right operand")


class AdvancedCalculation(BaseModel):
    """Unary or binary math function request."""

    model_config = ConfigDict(frozen=True)

    type: Literal["advanced"] = "advanced"
    operation: AdvancedOperation = Field(..., description="Math function name")
    a: Operand = Field(..., description="Main operand (radians for trigonometric functions)")
    b: Optional[Operand] = Field(default=None, description="Exponent, log base or divisor")

    @model_validator(mode="after")
    def second_operand_when_required(self) -> "AdvancedCalculation":
        """Ensure that power, log and mod carry their second operand."""
        if self.operation in BINARY_ADVANCED_OPERATIONS and self.b is None:
            raise ValueError(f"operand 'b' is required for {self.operation}")
        return self


class ConstantCalculation(BaseModel):
    """Named constant request, takes no operands."""

    model_config = ConfigDict(frozen=True)

    type: Literal["constant"] = "constant"
    operation: ConstantOperation = Field(..., description="Constant name")


CalculationRequest = Annotated[
    Union[BasicCalculation, AdvancedCalculation, ConstantCalculation],
    Field(discriminator="type"),
]


class CalculationResponse(BaseModel):
    """
    Result of an evaluated calculation.

    ``result`` may hold NaN or an infinity; those serialize to JSON ``null``.
    ``error`` is only set when the operation was mathematically undefined.
    """

    model_config = ConfigDict(frozen=True)

    result: float = Field(..., description="Raw numeric result")
    formatted: str = Field(..., description="Display-safe rendering of the result")
    error: Optional[str] = Field(default=None, description="Domain error message")


class InvalidRequestResponse(BaseModel):
    """Body returned for requests that failed validation."""

    message: str = Field(default="Invalid request data")
    errors: List[Dict[str, Any]] = Field(default_factory=list)


class ServerErrorResponse(BaseModel):
    """Body returned when evaluation failed unexpectedly."""

    message: str = Field(default="Internal server error")


class ReplyEnvelope(BaseModel):
    """One server reply, matching one request line."""

    line: int = Field(..., ge=1, description="Line number of the request")
    status: Literal[200, 400, 500] = Field(..., description="HTTP-like status code")
    response: Union[CalculationResponse, InvalidRequestResponse, ServerErrorResponse]
