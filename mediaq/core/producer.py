"""
Upload path: validate, store the original, record it, enqueue one job.
"""

import logging
import uuid

from ..context import WorkerContext
from ..errors import MediaValidationError
from ..settings import MediaQSettings
from .keys import original_key
from .models import JobMessage, MediaMetadata, MediaRecord

logger = logging.getLogger(__name__)


class FileValidator:
    """Checks declared upload metadata against the configured ceilings."""

    def __init__(self, settings: MediaQSettings):
        self.settings = settings

    def validate(self, metadata: MediaMetadata) -> None:
        mime_type = metadata.mime_type.lower()

        if mime_type not in self.settings.allowed_mime_types:
            raise MediaValidationError(f"Unsupported file type: {metadata.mime_type}")

        if mime_type.startswith("image/"):
            self._validate_image(metadata)
        elif mime_type.startswith("video/"):
            self._validate_video(metadata)
        else:
            raise MediaValidationError(f"Unsupported file type: {metadata.mime_type}")

    def _validate_image(self, metadata: MediaMetadata) -> None:
        if metadata.size > self.settings.max_image_size:
            raise MediaValidationError(
                f"Image file size exceeds the limit of {self.settings.max_image_size_mb}MB"
            )
        too_wide = metadata.width is not None and metadata.width > self.settings.max_image_width
        too_tall = metadata.height is not None and metadata.height > self.settings.max_image_height
        if too_wide or too_tall:
            raise MediaValidationError(
                f"Image dimensions exceed the limit of "
                f"{self.settings.max_image_width}x{self.settings.max_image_height}"
            )

    def _validate_video(self, metadata: MediaMetadata) -> None:
        if metadata.size > self.settings.max_video_size:
            raise MediaValidationError(
                f"Video file size exceeds the limit of {self.settings.max_video_size_mb}MB"
            )


class MediaProducer:
    """
    Accepts an upload and publishes exactly one processing job for it.

    Validation happens before any side effect, so a rejected upload leaves
    no object, no record and no message behind.
    """

    def __init__(self, context: WorkerContext):
        self.settings = context.settings
        self.store = context.store
        self.object_store = context.object_store
        self.queue = context.queue
        self.validator = FileValidator(context.settings)

    async def upload(self, content: bytes, filename: str, metadata: MediaMetadata) -> MediaRecord:
        """
        Store an upload and enqueue its thumbnail job.

        Args:
            content: Raw file bytes
            filename: Client file name; only its extension is kept
            metadata: Declared metadata

        Returns:
            The new MediaRecord (status PENDING)

        Raises:
            MediaValidationError: declared metadata rejected
        """
        self.validator.validate(metadata)

        key = original_key(filename)
        await self.object_store.put(key, content, metadata.mime_type)

        record = await self.store.create(metadata, key)

        job = JobMessage(
            correlation_id=str(uuid.uuid4()),
            media_id=record.id,
            object_key=key,
            mime_type=metadata.mime_type,
            requested_thumbnail_sizes=list(self.settings.thumbnail_sizes),
            retry_count=0,
        )
        try:
            await self.queue.send(job.to_body())
        except Exception as e:
            logger.error(f"Failed to enqueue message for mediaId {record.id}: {e}")
            raise

        logger.info(f"Message enqueued for mediaId: {record.id} (job {job.correlation_id})")
        return record
