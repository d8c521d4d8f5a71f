"""Webhook and internal maintenance schemas."""

from pydantic import BaseModel, ConfigDict, Field

from app.schemas.job import JobState, TranscriptResult


class WebhookPayload(BaseModel):
    """Outcome report posted by the external transcription worker."""

    model_config = ConfigDict(populate_by_name=True)

    success: bool
    transcript: str | None = None
    duration: float | None = Field(default=None, ge=0)
    word_count: int | None = Field(default=None, alias="wordCount", ge=0)
    accuracy: float | None = Field(default=None, ge=0, le=100)
    processing_time: float | None = Field(default=None, alias="processingTime", ge=0)
    error: str | None = None

    def to_result(self) -> TranscriptResult:
        return TranscriptResult(
            transcript_text=self.transcript or "",
            duration_seconds=self.duration or 0,
            word_count=self.word_count or 0,
            accuracy_percent=self.accuracy or 0,
            processing_time_seconds=self.processing_time or 0,
        )


class WebhookReplayResponse(BaseModel):
    job_id: str
    replayed: bool
    current_state: JobState


class ExpireStaleJobsRequest(BaseModel):
    max_age_hours: float | None = Field(default=None, gt=0)


class ExpireStaleJobsResponse(BaseModel):
    expired_job_ids: list[str]
