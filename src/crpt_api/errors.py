"""Error taxonomy for rate-limited document submission."""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    INVALID_CONFIGURATION = "invalid_configuration"
    GATE_CLOSED = "gate_closed"
    INTERRUPTED = "interrupted"
    SUBMISSION_FAILED = "submission_failed"


class CrptApiError(RuntimeError):
    """Base error; inspect ``kind`` to tell failures apart."""

    kind: ErrorKind


class InvalidConfiguration(CrptApiError, ValueError):
    """Raised when the gate or client is configured with unusable values."""

    kind = ErrorKind.INVALID_CONFIGURATION


class GateClosed(CrptApiError):
    """Raised when a permit is requested after shutdown."""

    kind = ErrorKind.GATE_CLOSED

    def __init__(self, message: str = "admission gate is shut down") -> None:
        super().__init__(message)


class Interrupted(CrptApiError):
    """Raised when a blocked caller cancels its wait."""

    kind = ErrorKind.INTERRUPTED

    def __init__(self, message: str = "wait for rate limit permit was cancelled") -> None:
        super().__init__(message)


class SubmissionFailed(CrptApiError):
    """Raised when the document endpoint rejects a submission or is unreachable."""

    kind = ErrorKind.SUBMISSION_FAILED

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        cause: BaseException | None = None,
    ) -> None:
        self.status_code = status_code
        self.cause = cause
        super().__init__(message)
