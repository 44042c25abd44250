"""
SQS-compatible message queue client (LocalStack in development).

Delivery is at-least-once: a received message stays hidden for the
visibility timeout and reappears unless it is deleted.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import List, Optional

import boto3
from botocore.exceptions import ClientError

from ..settings import MediaQSettings

logger = logging.getLogger(__name__)


@dataclass
class QueueMessage:
    """A received message; body and receipt_handle may be missing on malformed deliveries"""

    message_id: Optional[str]
    body: Optional[str]
    receipt_handle: Optional[str]


class SQSQueue:
    """Thin async wrapper over one named SQS queue."""

    def __init__(self, settings: MediaQSettings, queue_name: Optional[str] = None, client=None):
        self.queue_name = queue_name or settings.queue_name
        self._client = client or boto3.client(
            "sqs",
            region_name=settings.queue_region,
            endpoint_url=settings.queue_endpoint,
            aws_access_key_id=settings.queue_access_key,
            aws_secret_access_key=settings.queue_secret_key,
        )
        self._queue_url: Optional[str] = None

    async def get_queue_url(self) -> str:
        """Resolve and cache the queue URL."""
        if self._queue_url is None:
            try:
                response = await asyncio.to_thread(
                    self._client.get_queue_url, QueueName=self.queue_name
                )
            except ClientError as e:
                logger.error(f"Failed to get queue URL for {self.queue_name}: {e}")
                raise
            self._queue_url = response["QueueUrl"]
        return self._queue_url

    async def ensure_queue(self) -> str:
        """Create the queue if needed and return its URL."""
        response = await asyncio.to_thread(
            self._client.create_queue, QueueName=self.queue_name
        )
        self._queue_url = response["QueueUrl"]
        return self._queue_url

    async def send(self, body: str) -> str:
        """Publish one message; returns the broker message id."""
        queue_url = await self.get_queue_url()
        try:
            response = await asyncio.to_thread(
                self._client.send_message, QueueUrl=queue_url, MessageBody=body
            )
        except ClientError as e:
            logger.error(f"Failed to send message to {self.queue_name}: {e}")
            raise
        message_id = response.get("MessageId")
        logger.debug(f"Message sent to {self.queue_name}: {message_id}")
        return message_id

    async def receive(
        self,
        max_messages: int,
        wait_time_seconds: int,
        visibility_timeout: int,
    ) -> List[QueueMessage]:
        """Long-poll for up to max_messages messages."""
        queue_url = await self.get_queue_url()
        response = await asyncio.to_thread(
            self._client.receive_message,
            QueueUrl=queue_url,
            MaxNumberOfMessages=max_messages,
            WaitTimeSeconds=wait_time_seconds,
            VisibilityTimeout=visibility_timeout,
        )
        return [
            QueueMessage(
                message_id=raw.get("MessageId"),
                body=raw.get("Body"),
                receipt_handle=raw.get("ReceiptHandle"),
            )
            for raw in response.get("Messages", [])
        ]

    async def delete(self, receipt_handle: str) -> None:
        """Acknowledge a received message."""
        queue_url = await self.get_queue_url()
        try:
            await asyncio.to_thread(
                self._client.delete_message,
                QueueUrl=queue_url,
                ReceiptHandle=receipt_handle,
            )
        except ClientError as e:
            logger.error(f"Failed to delete message from {self.queue_name}: {e}")
            raise
        logger.debug(f"Message deleted from {self.queue_name}")
