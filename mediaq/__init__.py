"""
MediaQ: async media upload and thumbnail pipeline.

Uploads land in an S3-compatible object store, a PENDING record goes to
PostgreSQL and one job message goes to an SQS-compatible queue. Workers
poll the queue, render thumbnails through an imagor-style transform
service and move the record to READY or FAILED.

    from mediaq import MediaQ

    app = MediaQ()
    await app.setup()
    record = await app.upload_media(
        data, "photo.jpg",
        uploader_id=1, name="photo", mime_type="image/jpeg", size=len(data),
    )
    await app.run_worker()
"""

from .client import MediaQ
from .context import WorkerContext
from .core.models import (
    JobMessage,
    MediaMetadata,
    MediaRecord,
    MediaStatus,
    ThumbnailDescriptor,
    ThumbnailSize,
)
from .core.poller import QueuePoller
from .core.processor import MediaProcessor, ProcessingOutcome
from .core.producer import FileValidator, MediaProducer
from .core.retry import fetch_with_retry
from .errors import MediaNotFoundError, MediaQError, MediaValidationError
from .settings import configure, get_settings

__version__ = "0.1.0"

__all__ = [
    "MediaQ",
    "WorkerContext",
    "JobMessage",
    "MediaMetadata",
    "MediaRecord",
    "MediaStatus",
    "ThumbnailDescriptor",
    "ThumbnailSize",
    "QueuePoller",
    "MediaProcessor",
    "ProcessingOutcome",
    "FileValidator",
    "MediaProducer",
    "fetch_with_retry",
    "MediaQError",
    "MediaValidationError",
    "MediaNotFoundError",
    "configure",
    "get_settings",
]
