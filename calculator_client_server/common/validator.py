"""Validate untyped payloads into typed calculation requests."""
from typing import Any, Dict, List, NoReturn, Optional

from pydantic import TypeAdapter, ValidationError

from calculator_client_server.common.models import CalculationRequest


_REQUEST_ADAPTER: TypeAdapter = TypeAdapter(CalculationRequest)


class RequestValidationError(ValueError):
    """
    Raised when a payload does not match any calculation shape.

    Structural errors are never evaluated: the caller reports them as a
    failed request, distinct from a computed domain error.
    """

    kind: str = "SchemaMismatch"

    def __init__(self, message: str, errors: Optional[List[Dict[str, Any]]] = None) -> None:
        super().__init__(message)
        self.errors: List[Dict[str, Any]] = errors or []


def _raise_schema_mismatch(exc: ValidationError) -> NoReturn:
    raise RequestValidationError(
        "Invalid request data",
        exc.errors(include_url=False, include_context=False),
    ) from exc


def validate_request(payload: Any) -> CalculationRequest:
    """
    Validate an already decoded payload (usually a dict).

    :param Any payload: Untyped request payload

    :return: Typed basic, advanced or constant request
    :rtype: CalculationRequest
    :raises RequestValidationError: If the payload matches no request variant
    """
    try:
        return _REQUEST_ADAPTER.validate_python(payload)
    except ValidationError as exc:
        _raise_schema_mismatch(exc)


def parse_request_line(line: str) -> CalculationRequest:
    """
    Decode and validate one JSON request line.

    :param str line: JSON object text

    :return: Typed request
    :rtype: CalculationRequest
    :raises RequestValidationError: If the line is not valid JSON or matches no variant
    """
    try:
        return _REQUEST_ADAPTER.validate_json(line)
    except ValidationError as exc:
        _raise_schema_mismatch(exc)
