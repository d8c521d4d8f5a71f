"""Amazon SQS queue publisher adapter."""

from __future__ import annotations

from datetime import UTC, datetime
import json
import logging
from typing import Any

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from app.adapters.queue.base import QueuePublisher
from app.core.logging_safety import safe_log_identifier
from app.errors import PublishError

logger = logging.getLogger(__name__)


def build_message_body(job_id: str, source_url: str, callback_reference: str) -> str:
    return json.dumps(
        {
            "jobId": job_id,
            "sourceUrl": source_url,
            "callbackUrl": callback_reference,
            "timestamp": datetime.now(UTC).isoformat(),
        }
    )


class SqsQueuePublisher(QueuePublisher):
    def __init__(self, queue_url: str, region: str | None = None, client: Any | None = None) -> None:
        if not queue_url:
            raise ValueError("SQS queue URL is required")
        self._queue_url = queue_url
        self._client = client or boto3.client("sqs", region_name=region)

    def enqueue(self, job_id: str, source_url: str, callback_reference: str) -> None:
        safe_job_id = safe_log_identifier(job_id, prefix="jid")
        try:
            response = self._client.send_message(
                QueueUrl=self._queue_url,
                MessageBody=build_message_body(job_id, source_url, callback_reference),
                MessageAttributes={
                    "JobId": {"DataType": "String", "StringValue": job_id},
                    "SourceUrl": {"DataType": "String", "StringValue": source_url},
                },
            )
        except (BotoCoreError, ClientError) as exc:
            logger.warning(
                "queue.publish_failed job_id=%s reason=%s",
                safe_job_id,
                type(exc).__name__,
            )
            raise PublishError(job_id) from exc

        logger.info(
            "queue.published job_id=%s message_id=%s",
            safe_job_id,
            response.get("MessageId"),
        )


__all__ = ["SqsQueuePublisher", "build_message_body"]
