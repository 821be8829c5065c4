"""Error taxonomy surfaced by the acquisition layer."""

from __future__ import annotations

from enum import StrEnum


class ErrorCode(StrEnum):
    INVALID_INPUT = "INVALID_INPUT"
    UPSTREAM_TIMEOUT = "UPSTREAM_TIMEOUT"
    UPSTREAM_UNAVAILABLE = "UPSTREAM_UNAVAILABLE"
    NORMALIZATION_EMPTY = "NORMALIZATION_EMPTY"
    PERSISTENCE_FAILURE = "PERSISTENCE_FAILURE"


class AcquisitionError(RuntimeError):
    code: ErrorCode = ErrorCode.UPSTREAM_UNAVAILABLE


class InvalidInputError(AcquisitionError):
    code = ErrorCode.INVALID_INPUT


class SnapshotNotFoundError(InvalidInputError):
    """Raised when a delta targets a snapshot that was never stored."""


class UpstreamTimeoutError(AcquisitionError):
    code = ErrorCode.UPSTREAM_TIMEOUT


class UpstreamUnavailableError(AcquisitionError):
    code = ErrorCode.UPSTREAM_UNAVAILABLE

    def __init__(
        self, message: str, *, last_error: BaseException | None = None, attempts: int = 1
    ) -> None:
        super().__init__(message)
        self.last_error = last_error
        self.attempts = attempts


class PersistenceFailureError(AcquisitionError):
    code = ErrorCode.PERSISTENCE_FAILURE


class SourceAPIError(RuntimeError):
    """Raised by provider clients when an upstream answers with an application error."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
