"""Queue publisher adapters."""

from .base import QueuePublisher
from .memory_queue import InMemoryQueuePublisher, PublishedMessage
from .sqs_queue import SqsQueuePublisher

__all__ = [
    "InMemoryQueuePublisher",
    "PublishedMessage",
    "QueuePublisher",
    "SqsQueuePublisher",
]
