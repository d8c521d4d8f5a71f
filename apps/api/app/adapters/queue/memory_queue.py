"""In-process queue publisher for local runs and tests."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
import threading

from app.adapters.queue.base import QueuePublisher
from app.errors import PublishError


@dataclass(slots=True, frozen=True)
class PublishedMessage:
    job_id: str
    source_url: str
    callback_reference: str
    published_at: datetime


class InMemoryQueuePublisher(QueuePublisher):
    """Records messages instead of sending them.

    ``fail_next`` makes the next ``enqueue`` call raise ``PublishError`` once.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self.messages: list[PublishedMessage] = []
        self.failure_message: str | None = None

    def fail_next(self, message: str = "Injected queue transport failure") -> None:
        with self._lock:
            self.failure_message = message

    def enqueue(self, job_id: str, source_url: str, callback_reference: str) -> None:
        with self._lock:
            if self.failure_message is not None:
                message = self.failure_message
                self.failure_message = None
                raise PublishError(job_id, reason=message)

            self.messages.append(
                PublishedMessage(
                    job_id=job_id,
                    source_url=source_url,
                    callback_reference=callback_reference,
                    published_at=datetime.now(UTC),
                )
            )


__all__ = ["InMemoryQueuePublisher", "PublishedMessage"]
