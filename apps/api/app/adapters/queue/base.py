"""Queue publisher interface."""

from abc import ABC, abstractmethod


class QueuePublisher(ABC):
    """Hands a job to the external transcription workers.

    Implementations raise ``PublishError`` on any transport failure and do not retry.
    """

    @abstractmethod
    def enqueue(self, job_id: str, source_url: str, callback_reference: str) -> None:
        """Publish one work message for ``job_id``."""


__all__ = ["QueuePublisher"]
