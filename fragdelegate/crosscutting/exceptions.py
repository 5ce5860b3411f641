"""
Name: Typed Delegation Errors

Responsibilities:
  - Give every internal failure a stable error_code
  - Generate an error_id for correlation with logs
  - Keep the original exception for debugging

Collaborators:
  - infrastructure/services/llm: raise BackendError / BackendTimeoutError
  - infrastructure/services/llm/response_parser.py: raises ParseError
  - application/merge.py: raises NoSuccessfulFragmentsError
  - application/usecases, application/fallback.py: wrap errors and put
    to_response() into TaskResult.error_detail
"""

from __future__ import annotations

from dataclasses import dataclass
from uuid import uuid4


@dataclass(frozen=True)
class ErrorResponse:
    """Minimal serializable view of an error."""

    error_code: str
    message: str
    error_id: str

    def to_dict(self) -> dict:
        return {
            "error_code": self.error_code,
            "message": self.message,
            "error_id": self.error_id,
        }


class DelegateError(Exception):
    """
    R: Base class for fragmentation/delegation errors.

    Provides error_code + error_id + message.
    """

    error_code: str = "DELEGATE_ERROR"

    def __init__(
        self,
        message: str,
        error_id: str | None = None,
        original_error: BaseException | None = None,
    ):
        self.message = message
        self.error_id = error_id or str(uuid4())
        self.original_error = original_error
        super().__init__(message)

    def to_response(self) -> ErrorResponse:
        return ErrorResponse(
            error_code=self.error_code, message=self.message, error_id=self.error_id
        )

    @classmethod
    def wrap(cls, error: BaseException) -> "DelegateError":
        """R: The error itself if typed, else a DelegateError carrying it."""
        if isinstance(error, DelegateError):
            return error
        return cls(str(error) or type(error).__name__, original_error=error)


class BackendError(DelegateError):
    """The inference backend reported a failure (HTTP error, bad payload, ...)."""

    error_code: str = "BACKEND_ERROR"

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        error_id: str | None = None,
        original_error: BaseException | None = None,
    ):
        super().__init__(message, error_id=error_id, original_error=original_error)
        self.status_code = status_code


class BackendTimeoutError(DelegateError, TimeoutError):
    """A backend call exceeded its timeout."""

    error_code: str = "BACKEND_TIMEOUT"


class NoSuccessfulFragmentsError(DelegateError):
    """Every fragment failed after exhausting its retries."""

    error_code: str = "NO_SUCCESSFUL_FRAGMENTS"


class ParseError(DelegateError):
    """Backend output could not be interpreted as structured data."""

    error_code: str = "PARSE_ERROR"
