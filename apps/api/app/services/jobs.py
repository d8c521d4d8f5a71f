"""Transcription job lifecycle service."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
import logging

from app.adapters.queue import QueuePublisher
from app.adapters.titles import PLACEHOLDER_TITLE, TitleResolver
from app.core.locks import KeyedLock
from app.core.logging_safety import safe_log_identifier, safe_log_url
from app.domain.job_fsm import ACTIVE_STATES, allowed_next_states, is_terminal
from app.domain.source_url import validate_source_url
from app.errors import InvalidState, NotFound, PublishError, QuotaExceeded
from app.repositories.records import JobRecord
from app.repositories.store import JobStore
from app.schemas.job import Job, JobList, JobState, TranscriptResult
from app.schemas.notification import NotificationKind
from app.services.notifications import NotificationEmitter
from app.services.quota import QuotaPolicy

logger = logging.getLogger(__name__)

_STALE_FAILURE_REASON = "Processing timed out"


@dataclass(slots=True)
class TransitionResult:
    job: Job
    applied: bool


class JobService:
    """Owns every job state change.

    ``create_job`` mints the job, ``submit_job`` queues it, and ``complete_job`` /
    ``fail_job`` record the outcome. Terminal transitions are idempotent: once a job is
    completed or failed, further outcome reports return the stored job unchanged. Calls for
    one job id are serialized by ``locks`` in-process and by the store's compare-and-set
    across processes.
    """

    def __init__(
        self,
        *,
        store: JobStore,
        quota: QuotaPolicy,
        title_resolver: TitleResolver,
        queue_publisher: QueuePublisher,
        notifier: NotificationEmitter,
        locks: KeyedLock,
        callback_base_url: str,
    ) -> None:
        self._store = store
        self._quota = quota
        self._title_resolver = title_resolver
        self._queue_publisher = queue_publisher
        self._notifier = notifier
        self._locks = locks
        self._callback_base_url = callback_base_url.rstrip("/")

    def create_job(self, *, owner_id: str | None, source_url: str) -> Job:
        source_url = validate_source_url(source_url)
        safe_owner_id = safe_log_identifier(owner_id, prefix="pid") if owner_id is not None else "anonymous"

        if owner_id is not None and not self._quota.can_create(owner_id):
            usage = self._quota.usage(owner_id)
            logger.warning("job.quota_exceeded owner_id=%s", safe_owner_id)
            raise QuotaExceeded(
                details=None
                if usage is None
                else {"tier": usage.tier.value, "jobs_used": usage.jobs_used, "limit": usage.limit}
            )

        title = self._resolve_title(source_url)
        record = self._store.insert_pending(owner_id=owner_id, source_url=source_url, title=title)
        logger.info(
            "job.created job_id=%s owner_id=%s host=%s",
            safe_log_identifier(record.id, prefix="jid"),
            safe_owner_id,
            safe_log_url(source_url),
        )
        return self._to_job(record)

    def submit_job(self, job_id: str) -> Job:
        safe_job_id = safe_log_identifier(job_id, prefix="jid")
        with self._locks.hold(job_id):
            record = self._store.get(job_id)
            if record is None:
                raise NotFound()
            # Submitting twice is a caller bug, not a replay.
            if record.state is not JobState.PENDING:
                raise self._invalid_state(record.state, JobState.PROCESSING)

            outcome = self._store.transition(
                job_id=job_id,
                from_states={JobState.PENDING},
                to_state=JobState.PROCESSING,
            )
            if outcome is None:
                raise NotFound()
            if not outcome.applied:
                raise self._invalid_state(outcome.record.state, JobState.PROCESSING)
            record = outcome.record

        try:
            self._queue_publisher.enqueue(job_id, record.source_url, self.callback_url_for(job_id))
        except PublishError as exc:
            logger.warning("job.publish_failed job_id=%s reason=%s", safe_job_id, exc.reason)
            # A job that never reached the queue can never complete.
            self.apply_failure(job_id, reason=exc.reason)
            raise
        except Exception as exc:
            logger.error("job.publish_failed job_id=%s reason=%s", safe_job_id, type(exc).__name__)
            self.apply_failure(job_id, reason="Failed to queue job for processing")
            raise PublishError(job_id) from exc

        # A fast worker may already have reported the outcome.
        record = self._store.get(job_id) or record
        logger.info("job.submitted job_id=%s state=%s", safe_job_id, record.state.value)
        return self._to_job(record)

    def complete_job(self, job_id: str, result: TranscriptResult) -> Job:
        return self.apply_completion(job_id, result).job

    def fail_job(self, job_id: str, reason: str | None = None) -> Job:
        return self.apply_failure(job_id, reason=reason).job

    def apply_completion(self, job_id: str, result: TranscriptResult) -> TransitionResult:
        """Complete a job, reporting whether this call made the transition."""
        return self._finish(
            job_id,
            target=JobState.COMPLETED,
            values={
                "transcript_text": result.transcript_text,
                "duration_seconds": result.duration_seconds,
                "word_count": result.word_count,
                "accuracy_percent": result.accuracy_percent,
                "processing_time_seconds": result.processing_time_seconds,
            },
            count_usage=True,
            detail=None,
        )

    def apply_failure(self, job_id: str, *, reason: str | None) -> TransitionResult:
        """Fail a job, reporting whether this call made the transition."""
        return self._finish(
            job_id,
            target=JobState.FAILED,
            values={"failure_reason": reason},
            count_usage=False,
            detail=reason,
        )

    def expire_stale_jobs(self, *, older_than: timedelta) -> list[str]:
        """Fail jobs that have sat in PROCESSING longer than ``older_than``."""
        cutoff = datetime.now(UTC) - older_than
        expired: list[str] = []
        for job_id in self._store.list_stale_processing(cutoff=cutoff):
            if self.apply_failure(job_id, reason=_STALE_FAILURE_REASON).applied:
                expired.append(job_id)

        logger.info(
            "job.stale_sweep cutoff=%s expired=%s",
            cutoff.isoformat(),
            len(expired),
        )
        return expired

    def get_job(self, *, owner_id: str, job_id: str) -> Job:
        record = self._store.get(job_id)
        if record is None or record.owner_id != owner_id:
            raise NotFound()
        return self._to_job(record)

    def get_anonymous_job(self, *, job_id: str) -> Job:
        record = self._store.get(job_id)
        if record is None or record.owner_id is not None:
            raise NotFound()
        return self._to_job(record)

    def list_jobs(self, *, owner_id: str, limit: int, offset: int) -> JobList:
        records, total = self._store.list_for_owner(owner_id, limit=limit, offset=offset)
        return JobList(
            items=[self._to_job(record) for record in records],
            total=total,
            limit=limit,
            offset=offset,
        )

    def callback_url_for(self, job_id: str) -> str:
        return f"{self._callback_base_url}/api/v1/internal/jobs/{job_id}/webhook"

    def _finish(
        self,
        job_id: str,
        *,
        target: JobState,
        values: dict,
        count_usage: bool,
        detail: str | None,
    ) -> TransitionResult:
        safe_job_id = safe_log_identifier(job_id, prefix="jid")
        with self._locks.hold(job_id):
            record = self._store.get(job_id)
            if record is None:
                raise NotFound()
            if is_terminal(record.state):
                self._log_duplicate(safe_job_id, record.state, target)
                return TransitionResult(job=self._to_job(record), applied=False)

            outcome = self._store.transition(
                job_id=job_id,
                from_states=ACTIVE_STATES,
                to_state=target,
                values=values,
                count_usage=count_usage,
            )
            if outcome is None:
                raise NotFound()
            if not outcome.applied:
                # Another process won the compare-and-set.
                self._log_duplicate(safe_job_id, outcome.record.state, target)
                return TransitionResult(job=self._to_job(outcome.record), applied=False)

            record = outcome.record
            logger.info(
                "job.finished job_id=%s prev_state=%s new_state=%s",
                safe_job_id,
                outcome.previous_state.value,
                record.state.value,
            )
            if record.owner_id is not None:
                kind = NotificationKind.COMPLETED if target is JobState.COMPLETED else NotificationKind.FAILED
                self._notifier.emit(record.owner_id, kind, record.id, record.title, detail)

        return TransitionResult(job=self._to_job(record), applied=True)

    def _resolve_title(self, source_url: str) -> str:
        try:
            return self._title_resolver.resolve(source_url) or PLACEHOLDER_TITLE
        except Exception as exc:
            logger.info("job.title_fallback host=%s reason=%s", safe_log_url(source_url), type(exc).__name__)
            return PLACEHOLDER_TITLE

    @staticmethod
    def _log_duplicate(safe_job_id: str, current: JobState, attempted: JobState) -> None:
        logger.info(
            "job.duplicate_delivery job_id=%s current_state=%s attempted_state=%s",
            safe_job_id,
            current.value,
            attempted.value,
        )

    @staticmethod
    def _invalid_state(current: JobState, attempted: JobState) -> InvalidState:
        return InvalidState(
            current_state=current.value,
            attempted_state=attempted.value,
            allowed_next_states=[state.value for state in allowed_next_states(current)],
        )

    @staticmethod
    def _to_job(record: JobRecord) -> Job:
        return Job(
            id=record.id,
            owner_id=record.owner_id,
            source_url=record.source_url,
            title=record.title,
            state=record.state,
            transcript_text=record.transcript_text,
            duration_seconds=record.duration_seconds,
            word_count=record.word_count,
            accuracy_percent=record.accuracy_percent,
            processing_time_seconds=record.processing_time_seconds,
            failure_reason=record.failure_reason,
            created_at=record.created_at,
            updated_at=record.updated_at,
        )
