"""Error types raised by the task synchronization layer and their classification."""

from enum import Enum

from pydantic import BaseModel

from housekeeping_sync.core.config import constants


class SyncErrorKind(Enum):
    """Discriminator callers use to tell "nothing happened" from "failed and restored"."""

    BUSY_CONFLICT = "busy_conflict"
    REMOTE_FAILURE = "remote_failure"
    TIMEOUT = "timeout"


class ErrorSeverity(Enum):
    """Severity levels for errors."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class ErrorCode:
    """Error codes for specific error conditions."""

    ERR_TASK_BUSY = "ERR_TASK_BUSY"
    ERR_REMOTE_VALIDATION = "ERR_REMOTE_VALIDATION"
    ERR_REMOTE_NOT_FOUND = "ERR_REMOTE_NOT_FOUND"
    ERR_REMOTE_SERVER = "ERR_REMOTE_SERVER"
    ERR_NETWORK_ERROR = "ERR_NETWORK_ERROR"
    ERR_TIMEOUT = "ERR_TIMEOUT"
    ERR_UNKNOWN = "ERR_UNKNOWN"


class SyncError(Exception):
    """Base class for errors surfaced by board actions."""

    kind: SyncErrorKind = SyncErrorKind.REMOTE_FAILURE

    def __init__(self, message: str, *, task_id: int | None = None) -> None:
        super().__init__(message)
        self.task_id = task_id

    @property
    def rolled_back(self) -> bool:
        """Whether an optimistic patch was applied and then restored."""
        return self.kind is not SyncErrorKind.BUSY_CONFLICT


class BusyConflictError(SyncError):
    """A mutation was requested on a record that already has one in flight."""

    kind = SyncErrorKind.BUSY_CONFLICT

    def __init__(self, task_id: int) -> None:
        super().__init__(f"Task {task_id} already has a mutation in flight", task_id=task_id)


class RemoteFailureError(SyncError):
    """The remote API rejected a request or could not be reached.

    ``status_code`` is ``None`` for transport failures (connection refused,
    DNS, reset). ``body`` is the raw response body, parsed as JSON when possible.
    """

    kind = SyncErrorKind.REMOTE_FAILURE

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        body: object = None,
        task_id: int | None = None,
    ) -> None:
        super().__init__(message, task_id=task_id)
        self.status_code = status_code
        self.body = body

    @property
    def is_validation_error(self) -> bool:
        return (
            self.status_code is not None
            and constants.HTTP_CLIENT_ERROR_START <= self.status_code < constants.HTTP_CLIENT_ERROR_END
        )


class MutationTimeoutError(SyncError):
    """The remote call of a mutation did not settle within the configured timeout."""

    kind = SyncErrorKind.TIMEOUT

    def __init__(self, task_id: int, timeout_seconds: float) -> None:
        super().__init__(f"Mutation on task {task_id} timed out after {timeout_seconds:g}s", task_id=task_id)
        self.timeout_seconds = timeout_seconds


class ErrorResponse(BaseModel):
    """Structured error response with user-friendly messaging."""

    kind: str
    code: str
    message: str
    suggestion: str
    severity: ErrorSeverity


def classify_sync_error(exception: Exception) -> ErrorResponse:  # noqa: PLR0911
    """Classify a board action error and return a structured response with recovery suggestions.

    Args:
        exception: The exception raised by a board action

    Returns:
        ErrorResponse with kind, code, message, suggestion, and severity
    """
    if isinstance(exception, BusyConflictError):
        return ErrorResponse(
            kind=exception.kind.value,
            code=ErrorCode.ERR_TASK_BUSY,
            message="This task is still being updated.",
            suggestion="Nothing was changed. Wait for the current update to finish and try again.",
            severity=ErrorSeverity.LOW,
        )

    if isinstance(exception, MutationTimeoutError):
        return ErrorResponse(
            kind=exception.kind.value,
            code=ErrorCode.ERR_TIMEOUT,
            message="The server took too long to answer.",
            suggestion="Your previous data was restored. Check your connection and try again.",
            severity=ErrorSeverity.MEDIUM,
        )

    if isinstance(exception, RemoteFailureError):
        if exception.status_code is None:
            return ErrorResponse(
                kind=exception.kind.value,
                code=ErrorCode.ERR_NETWORK_ERROR,
                message="Network error occurred.",
                suggestion="Your previous data was restored. Check your connection and try again.",
                severity=ErrorSeverity.MEDIUM,
            )
        if exception.status_code == constants.HTTP_NOT_FOUND:
            return ErrorResponse(
                kind=exception.kind.value,
                code=ErrorCode.ERR_REMOTE_NOT_FOUND,
                message="The task no longer exists on the server.",
                suggestion="Refresh the list to see current tasks.",
                severity=ErrorSeverity.LOW,
            )
        if exception.is_validation_error:
            return ErrorResponse(
                kind=exception.kind.value,
                code=ErrorCode.ERR_REMOTE_VALIDATION,
                message=str(exception),
                suggestion="Your previous data was restored. Review the values and try again.",
                severity=ErrorSeverity.LOW,
            )
        return ErrorResponse(
            kind=exception.kind.value,
            code=ErrorCode.ERR_REMOTE_SERVER,
            message="The server failed to process the request.",
            suggestion="Your previous data was restored. Please try again later.",
            severity=ErrorSeverity.HIGH,
        )

    return ErrorResponse(
        kind=SyncErrorKind.REMOTE_FAILURE.value,
        code=ErrorCode.ERR_UNKNOWN,
        message="An unexpected error occurred.",
        suggestion="Please try again later. If the problem persists, contact support.",
        severity=ErrorSeverity.MEDIUM,
    )
