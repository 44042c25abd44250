"""
Dead Letter Forwarding.
Copies jobs that ended FAILED to a secondary queue for operator review.

Forwarding never changes the media record: FAILED stays terminal and
reprocessing is an operator decision.
"""

import json
import logging
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from ..core.models import JobMessage
from ..settings import MediaQSettings
from .flags import require_feature

logger = logging.getLogger(__name__)


class DeadLetterReason(str, Enum):
    """Why a job was forwarded"""

    DOWNLOAD_FAILED = "download_failed"
    THUMBNAIL_FAILED = "thumbnail_failed"
    PERMANENT_FAILURE = "permanent_failure"


class DeadLetterForwarder:
    """Publishes failed jobs to the configured dead-letter queue"""

    def __init__(self, settings: MediaQSettings, queue):
        require_feature("dead_letter_queue_enabled", "Dead letter queue", settings)
        self.queue = queue

    @staticmethod
    def build_body(
        job: JobMessage, reason: DeadLetterReason, error: Optional[BaseException]
    ) -> str:
        payload = json.loads(job.to_body())
        payload.update(
            {
                "reason": reason.value,
                "error": repr(error) if error else None,
                "failedAt": datetime.now(timezone.utc).isoformat(),
            }
        )
        return json.dumps(payload)

    async def forward(
        self,
        job: JobMessage,
        reason: DeadLetterReason,
        error: Optional[BaseException] = None,
    ) -> bool:
        """Returns False (and logs) when publishing fails."""
        try:
            await self.queue.send(self.build_body(job, reason, error))
        except Exception as e:
            logger.error(
                f"Failed to forward job {job.correlation_id} (mediaId {job.media_id}) "
                f"to dead letter queue: {e}"
            )
            return False
        logger.warning(
            f"Job {job.correlation_id} for mediaId {job.media_id} moved to dead letter queue ({reason.value})"
        )
        return True
