"""Application exception types."""

from typing import Any

from app.schemas.error import ErrorResponse


class ApiError(Exception):
    """Structured API error that maps directly to contract error payloads."""

    def __init__(self, status_code: int, code: str, message: str, details: dict | None = None) -> None:
        self.status_code = status_code
        self.payload = ErrorResponse(code=code, message=message, details=details)
        super().__init__(message)


class QuotaExceeded(ApiError):
    """The account has no job allowance left on its current tier."""

    def __init__(self, details: dict[str, Any] | None = None) -> None:
        super().__init__(
            status_code=403,
            code="QUOTA_EXCEEDED",
            message="Transcription limit reached for the current subscription tier.",
            details=details,
        )


class InvalidInput(ApiError):
    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(status_code=400, code="INVALID_INPUT", message=message, details=details)


class NotFound(ApiError):
    """Same body for missing and foreign resources so ownership never leaks."""

    def __init__(self) -> None:
        super().__init__(status_code=404, code="RESOURCE_NOT_FOUND", message="Resource not found")


class InvalidState(ApiError):
    def __init__(self, *, current_state: str, attempted_state: str, allowed_next_states: list[str]) -> None:
        super().__init__(
            status_code=409,
            code="INVALID_STATE",
            message="Job is not in a state that allows this operation",
            details={
                "current_state": current_state,
                "attempted_state": attempted_state,
                "allowed_next_states": allowed_next_states,
            },
        )


class PublishError(ApiError):
    """Queue transport failure; the job has been (or will be) marked failed."""

    def __init__(self, job_id: str, reason: str = "Failed to queue job for processing") -> None:
        self.job_id = job_id
        self.reason = reason
        super().__init__(
            status_code=502,
            code="QUEUE_PUBLISH_FAILED",
            message=reason,
            details={"job_id": job_id},
        )


__all__ = ["ApiError", "InvalidInput", "InvalidState", "NotFound", "PublishError", "QuotaExceeded"]
