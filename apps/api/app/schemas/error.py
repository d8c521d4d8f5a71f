"""API error response schemas."""

from typing import Any
from typing import Literal

from pydantic import BaseModel


class ErrorResponse(BaseModel):
    code: str
    message: str
    details: dict[str, Any] | None = None


class QuotaExceededError(BaseModel):
    code: Literal["QUOTA_EXCEEDED"]
    message: str
    details: dict[str, Any] | None = None


class NoLeakNotFoundError(BaseModel):
    code: Literal["RESOURCE_NOT_FOUND"]
    message: str


class PublishErrorDetails(BaseModel):
    job_id: str


class QueuePublishError(BaseModel):
    code: Literal["QUEUE_PUBLISH_FAILED"]
    message: str
    details: PublishErrorDetails
