"""Worker process for evaluating calculation requests."""
from multiprocessing.connection import Connection

from pydantic import BaseModel, ConfigDict, Field, field_validator

from calculator_client_server.common.engine import CalculationEngine
from calculator_client_server.common.logger import logger
from calculator_client_server.common.models import (
    InvalidRequestResponse,
    ReplyEnvelope,
    ServerErrorResponse,
)
from calculator_client_server.common.validator import RequestValidationError, parse_request_line


class WorkerProcess(BaseModel):
    """
    Worker process responsible for evaluating a single calculation request.

    Lifecycle:
        - Spawned by the parent server process
        - Receives one JSON request line only
        - Sends the reply envelope (as a JSON string) through a Pipe
        - Terminates immediately after computation

    Replies:
        - 200 with the calculation response, domain errors included
        - 400 when the request line fails validation
        - 500 when evaluation failed unexpectedly
    """

    # Make the Pydantic instance immutable (read-only) for safety
    # Allow arbitrary types like multiprocessing.Connection
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    conn: Connection = Field(..., description="Connection object for sending replies back to server")
    request_line: str = Field(..., description="Single JSON calculation request")
    line_number: int = Field(..., ge=1, description="Line number in the input")

    @field_validator("request_line")
    def request_line_must_not_be_empty(cls, v: str) -> str:
        """Ensure that the request line is not empty."""
        if not v.strip():
            raise ValueError("Request line cannot be empty")
        return v

    def evaluate(self) -> ReplyEnvelope:
        """
        Validate and evaluate the request line.

        :return: Reply envelope for this line
        :rtype: ReplyEnvelope
        """
        try:
            request = parse_request_line(self.request_line)
        except RequestValidationError as exc:
            logger.warning(
                f"👷⚠️ Worker rejected line {self.line_number} ({exc.kind}): {self.request_line!r}"
            )
            return ReplyEnvelope(
                line=self.line_number,
                status=400,
                response=InvalidRequestResponse(message=str(exc), errors=exc.errors),
            )

        return ReplyEnvelope(
            line=self.line_number,
            status=200,
            response=CalculationEngine.calculate(request),
        )

    def run(self) -> None:
        """
        Evaluate the request and send the reply through the pipe.

        :return: None
        """
        logger.info(f"👷🏁 Worker started on line {self.line_number}: {self.request_line}")

        try:
            envelope = self.evaluate()
        except Exception as exc:
            logger.exception(f"👷❌ Worker failed on line {self.line_number}: {exc}")
            envelope = ReplyEnvelope(
                line=self.line_number,
                status=500,
                response=ServerErrorResponse(),
            )

        try:
            self.conn.send(envelope.model_dump_json(exclude_none=True))
        finally:
            # Always close the connection
            self.conn.close()

        logger.info(f"👷✅ Worker finished on line {self.line_number}: status {envelope.status}")
