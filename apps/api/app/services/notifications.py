"""User-visible notification records."""

from __future__ import annotations

import logging

from app.core.logging_safety import safe_log_identifier
from app.errors import NotFound
from app.repositories.records import NotificationRecord
from app.repositories.store import NotificationStore
from app.schemas.notification import Notification, NotificationFeed, NotificationKind

logger = logging.getLogger(__name__)


def _compose(kind: NotificationKind, title: str | None, detail: str | None) -> tuple[str, str]:
    video_title = title or "your video"
    if kind is NotificationKind.COMPLETED:
        return (
            "Transcription Completed",
            f'Your transcription for "{video_title}" has been completed successfully.',
        )
    if kind is NotificationKind.FAILED:
        message = f'Your transcription for "{video_title}" failed to process.'
        if detail:
            message = f"{message} Error: {detail}"
        return "Transcription Failed", message
    return title or "Notice", detail or ""


class NotificationEmitter:
    """Writes notification records without ever failing the caller."""

    def __init__(self, store: NotificationStore) -> None:
        self._store = store

    def emit(
        self,
        account_id: str,
        kind: NotificationKind,
        job_id: str | None,
        title: str | None,
        detail: str | None = None,
    ) -> None:
        safe_account_id = safe_log_identifier(account_id, prefix="pid")
        heading, message = _compose(kind, title, detail)
        try:
            record = self._store.add(
                account_id=account_id,
                kind=kind,
                title=heading,
                message=message,
                job_id=job_id,
            )
        except Exception as exc:
            logger.error(
                "notification.emit_failed account_id=%s kind=%s reason=%s",
                safe_account_id,
                kind.value,
                type(exc).__name__,
            )
            return

        logger.info(
            "notification.emitted account_id=%s kind=%s notification_id=%s",
            safe_account_id,
            kind.value,
            record.id,
        )


class NotificationService:
    def __init__(self, store: NotificationStore, *, feed_limit: int) -> None:
        self._store = store
        self._feed_limit = feed_limit

    def get_feed(self, *, account_id: str) -> NotificationFeed:
        records = self._store.list_recent(account_id, limit=self._feed_limit)
        return NotificationFeed(
            notifications=[self._to_notification(record) for record in records],
            unread_count=self._store.count_unread(account_id),
        )

    def mark_read(self, *, account_id: str, notification_id: int) -> None:
        if not self._store.mark_read(account_id=account_id, notification_id=notification_id):
            raise NotFound()

    def mark_all_read(self, *, account_id: str) -> int:
        return self._store.mark_all_read(account_id)

    @staticmethod
    def _to_notification(record: NotificationRecord) -> Notification:
        return Notification(
            id=record.id,
            kind=record.kind,
            title=record.title,
            message=record.message,
            job_id=record.job_id,
            is_read=record.is_read,
            created_at=record.created_at,
        )
