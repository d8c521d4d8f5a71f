"""Job API schemas."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field


class JobState(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class TranscriptResult(BaseModel):
    """Outcome fields reported by the external worker for a completed job."""

    transcript_text: str = ""
    duration_seconds: float = 0
    word_count: int = 0
    accuracy_percent: float = 0
    processing_time_seconds: float = 0


class CreateJobRequest(BaseModel):
    source_url: str = Field(min_length=1, max_length=2048)


class Job(BaseModel):
    id: str
    owner_id: str | None = None
    source_url: str
    title: str | None = None
    state: JobState
    transcript_text: str | None = None
    duration_seconds: float | None = None
    word_count: int | None = None
    accuracy_percent: float | None = None
    processing_time_seconds: float | None = None
    failure_reason: str | None = None
    created_at: datetime
    updated_at: datetime


class JobList(BaseModel):
    items: list[Job]
    total: int
    limit: int
    offset: int
