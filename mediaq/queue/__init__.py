"""Message queue."""

from .sqs import QueueMessage, SQSQueue

__all__ = ["QueueMessage", "SQSQueue"]
