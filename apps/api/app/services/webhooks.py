"""Worker webhook processing."""

from dataclasses import dataclass
import logging

from app.core.logging_safety import safe_log_identifier
from app.schemas.job import JobState
from app.schemas.webhook import WebhookPayload
from app.services.jobs import JobService

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class WebhookProcessResult:
    replayed: bool
    current_state: JobState


class WebhookService:
    """Turns a verified worker report into a complete or fail transition."""

    def __init__(self, jobs: JobService) -> None:
        self._jobs = jobs

    def process(self, *, job_id: str, payload: WebhookPayload, correlation_id: str) -> WebhookProcessResult:
        safe_correlation_id = safe_log_identifier(correlation_id, prefix="cid")
        safe_job_id = safe_log_identifier(job_id, prefix="jid")

        if payload.success:
            outcome = self._jobs.apply_completion(job_id, payload.to_result())
        else:
            outcome = self._jobs.apply_failure(job_id, reason=payload.error)

        if outcome.applied:
            logger.info(
                "webhook.applied correlation_id=%s job_id=%s success=%s new_state=%s",
                safe_correlation_id,
                safe_job_id,
                payload.success,
                outcome.job.state.value,
            )
        else:
            logger.info(
                "webhook.replayed correlation_id=%s job_id=%s success=%s current_state=%s",
                safe_correlation_id,
                safe_job_id,
                payload.success,
                outcome.job.state.value,
            )
        return WebhookProcessResult(replayed=not outcome.applied, current_state=outcome.job.state)
