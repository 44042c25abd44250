"""
Media processing state machine.

A job moves its media record PENDING -> PROCESSING -> READY | FAILED.
Messages are acknowledged only once the record is terminal or the job is
recognized as already handled, so a crash mid-job leads to redelivery
rather than a lost job.
"""

import functools
import logging
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional

from ..context import WorkerContext
from ..features.dead_letter import DeadLetterReason
from .keys import thumbnail_key
from .models import JobMessage, MediaStatus, ThumbnailDescriptor
from .retry import fetch_with_retry

logger = logging.getLogger(__name__)


class ProcessingOutcome(str, Enum):
    """What process_message did with a job"""

    SKIPPED = "skipped"
    READY = "ready"
    FAILED = "failed"


class _StageError(Exception):
    """Wraps an unrecoverable error with the stage it happened in."""

    def __init__(self, reason: DeadLetterReason, cause: BaseException):
        super().__init__(str(cause))
        self.reason = reason
        self.cause = cause


class MediaProcessor:
    """
    Turns one JobMessage into a complete thumbnail set.

    Duplicate deliveries are absorbed by the status guard: only a record
    still at PENDING is picked up, and the pickup itself is a conditional
    update so two consumers cannot both claim the same record.
    """

    def __init__(self, context: WorkerContext):
        self.context = context
        self.settings = context.settings
        self.store = context.store
        self.object_store = context.object_store
        self.queue = context.queue
        self.transform = context.transform
        self.dead_letter = context.dead_letter

    async def _retry(self, operation, *args, **kwargs):
        return await fetch_with_retry(
            functools.partial(operation, *args, **kwargs),
            retries=self.settings.retry_attempts,
            delay=self.settings.retry_base_delay,
        )

    async def process_message(
        self, job: JobMessage, receipt_handle: Optional[str] = None
    ) -> ProcessingOutcome:
        """
        Process one job and acknowledge its message.

        Errors from the metadata store while reading the record, claiming it
        or marking it FAILED propagate to the caller without acknowledging,
        so the broker redelivers the message after its visibility timeout.
        """
        media_id = job.media_id

        record = await self._retry(self.store.find_by_id, media_id)
        if record is None:
            logger.warning(
                f"Media with ID {media_id} not found. Skipping processing for job {job.correlation_id}"
            )
            await self._acknowledge(receipt_handle)
            return ProcessingOutcome.SKIPPED

        if record.status != MediaStatus.PENDING:
            logger.warning(
                f"Media {media_id} is already in status {record.status.value}. "
                f"Skipping processing for job {job.correlation_id}"
            )
            await self._acknowledge(receipt_handle)
            return ProcessingOutcome.SKIPPED

        if not await self.store.claim_for_processing(media_id):
            logger.warning(
                f"Media {media_id} was claimed by another consumer. "
                f"Skipping processing for job {job.correlation_id}"
            )
            await self._acknowledge(receipt_handle)
            return ProcessingOutcome.SKIPPED

        try:
            thumbnails = await self._generate_thumbnails(job)
            updated = await self._retry(self.store.mark_ready, media_id, thumbnails)
        except _StageError as e:
            return await self._fail(job, receipt_handle, e.reason, e.cause)
        except Exception as e:
            return await self._fail(job, receipt_handle, DeadLetterReason.PERMANENT_FAILURE, e)

        if not updated:
            logger.error(f"Media {media_id} left PROCESSING before it could be marked READY")
            await self._acknowledge(receipt_handle)
            return ProcessingOutcome.SKIPPED

        logger.info(f"Media {media_id} processed and updated to READY ({len(thumbnails)} thumbnails)")
        await self._acknowledge(receipt_handle)
        return ProcessingOutcome.READY

    async def _generate_thumbnails(self, job: JobMessage) -> List[ThumbnailDescriptor]:
        """All requested sizes, in request order; the first unrecoverable error aborts."""
        try:
            await self._retry(self.object_store.get, job.object_key)
        except Exception as e:
            raise _StageError(DeadLetterReason.DOWNLOAD_FAILED, e) from e
        logger.info(f"Original file downloaded: {job.object_key}")

        source_url = self.object_store.source_url(job.object_key)
        now = datetime.now(timezone.utc)
        thumbnails: List[ThumbnailDescriptor] = []

        for size in job.requested_thumbnail_sizes:
            key = thumbnail_key(job.media_id, size.width, size.height, job.object_key, now)
            try:
                rendered = await self._retry(
                    self.transform.render, size.width, size.height, source_url
                )
                await self._retry(
                    self.object_store.put, key, rendered.data, rendered.content_type
                )
            except Exception as e:
                raise _StageError(DeadLetterReason.THUMBNAIL_FAILED, e) from e

            logger.info(f"Thumbnail uploaded: {key}")
            thumbnails.append(
                ThumbnailDescriptor(
                    url=key,
                    width=size.width,
                    height=size.height,
                    mime_type=rendered.content_type,
                )
            )

        return thumbnails

    async def _fail(
        self,
        job: JobMessage,
        receipt_handle: Optional[str],
        reason: DeadLetterReason,
        error: BaseException,
    ) -> ProcessingOutcome:
        logger.error(
            f"Failed to process message for mediaId {job.media_id} "
            f"(job {job.correlation_id}): {error!r}"
        )
        if not await self._retry(self.store.mark_failed, job.media_id):
            logger.error(f"Media {job.media_id} was not PROCESSING when marking it FAILED")
        elif self.dead_letter is not None:
            await self.dead_letter.forward(job, reason, error)

        await self._acknowledge(receipt_handle)
        return ProcessingOutcome.FAILED

    async def _acknowledge(self, receipt_handle: Optional[str]) -> None:
        if receipt_handle is None:
            return
        await self._retry(self.queue.delete, receipt_handle)
        logger.debug("Queue message acknowledged")
