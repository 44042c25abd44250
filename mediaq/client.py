"""
MediaQ Application Instance

Owns the settings, the database pool and the worker context, and exposes
the upload path, record lookup and the worker loop.
"""

import asyncio
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

import asyncpg

from .context import WorkerContext
from .core.models import MediaFilter, MediaMetadata, MediaRecord
from .core.poller import QueuePoller
from .core.processor import MediaProcessor
from .core.producer import MediaProducer
from .db.store import MediaStore
from .errors import MediaNotFoundError, MediaQError
from .features.dead_letter import DeadLetterForwarder
from .queue.sqs import SQSQueue
from .settings import MediaQSettings
from .storage.s3 import ObjectStore
from .transform import TransformClient

logger = logging.getLogger(__name__)


class MediaQ:
    """
    MediaQ Application

    Examples:
        app = MediaQ(database_url="postgresql://localhost/media")
        record = await app.upload_media(data, "cat.jpg", uploader_id=1, name="cat",
                                        mime_type="image/jpeg", size=len(data))
        await app.run_worker(concurrency=2)

        # Isolated instance over fake collaborators (tests)
        app = MediaQ(context=WorkerContext(settings, store, objects, queue, transform))
    """

    def __init__(
        self,
        database_url: Optional[str] = None,
        config_file: Optional[Path] = None,
        context: Optional[WorkerContext] = None,
        **settings_overrides,
    ):
        """
        Args:
            database_url: PostgreSQL connection URL
            config_file: Optional env-style configuration file
            context: Pre-built worker context; skips pool and client creation
            **settings_overrides: Override any MediaQSettings field
        """
        self._initialized = False
        self._closed = False

        if context is not None:
            self._settings = context.settings
        else:
            if database_url:
                settings_overrides["database_url"] = database_url
            if config_file:
                self._settings = MediaQSettings(_env_file=str(config_file), **settings_overrides)
            else:
                self._settings = MediaQSettings(**settings_overrides)

        self._context: Optional[WorkerContext] = context
        self._pool: Optional[asyncpg.Pool] = None
        self._pollers: List[QueuePoller] = []

    @property
    def settings(self) -> MediaQSettings:
        return self._settings

    @property
    def is_initialized(self) -> bool:
        return self._initialized or self._context is not None

    @property
    def is_closed(self) -> bool:
        return self._closed

    async def _ensure_initialized(self) -> WorkerContext:
        """Create the pool and the external clients on first use."""
        if self._closed:
            raise MediaQError("Cannot use closed MediaQ instance", "MEDIAQ_APP_CLOSED")

        if self._context is not None:
            return self._context

        try:
            logger.debug("Initializing MediaQ application...")
            self._pool = await asyncpg.create_pool(
                self._settings.database_url,
                min_size=self._settings.db_pool_min_size,
                max_size=self._settings.db_pool_max_size,
            )

            dead_letter = None
            if self._settings.dead_letter_queue_enabled:
                dead_letter = DeadLetterForwarder(
                    self._settings,
                    SQSQueue(self._settings, queue_name=self._settings.dead_letter_queue_name),
                )

            self._context = WorkerContext(
                settings=self._settings,
                store=MediaStore(self._pool),
                object_store=ObjectStore(self._settings),
                queue=SQSQueue(self._settings),
                transform=TransformClient(
                    self._settings.transform_url, self._settings.transform_timeout
                ),
                dead_letter=dead_letter,
            )
            self._initialized = True
            logger.debug("MediaQ application initialized successfully")
        except Exception as e:
            logger.error(f"Failed to initialize MediaQ application: {e}")
            await self._cleanup_on_error()
            raise MediaQError(f"MediaQ initialization failed: {e}", "MEDIAQ_INIT_ERROR") from e

        return self._context

    async def get_context(self) -> WorkerContext:
        return await self._ensure_initialized()

    async def setup(self) -> None:
        """Create the media table, the bucket and the queues if they are missing."""
        context = await self._ensure_initialized()
        await context.store.setup()
        await context.object_store.ensure_bucket()
        await context.queue.ensure_queue()
        if context.dead_letter is not None:
            await context.dead_letter.queue.ensure_queue()
        logger.info("MediaQ setup complete")

    async def upload_media(
        self, content: bytes, filename: str, metadata: Optional[MediaMetadata] = None, **fields
    ) -> MediaRecord:
        """
        Validate and store an upload, then enqueue its thumbnail job.

        Metadata can be passed as a MediaMetadata or as keyword fields.
        """
        context = await self._ensure_initialized()
        if metadata is None:
            metadata = MediaMetadata(**fields)
        return await MediaProducer(context).upload(content, filename, metadata)

    async def get_media(self, media_id: int) -> Dict[str, Any]:
        """
        Record as a JSON-ready dict with presigned URLs for the original and
        every thumbnail.

        Raises:
            MediaNotFoundError: no record with that id
        """
        context = await self._ensure_initialized()
        record = await context.store.find_by_id(media_id)
        if record is None:
            raise MediaNotFoundError(media_id)
        return await self._present(context, record)

    async def list_media(
        self, filters: Optional[MediaFilter] = None, **fields
    ) -> List[Dict[str, Any]]:
        """
        One page of records, newest first unless sorted otherwise, each in the
        same shape as ``get_media``.

        Filters can be passed as a MediaFilter or as keyword fields.
        """
        context = await self._ensure_initialized()
        if filters is None:
            filters = MediaFilter(**fields)
        records = await context.store.list(filters)
        return [await self._present(context, record) for record in records]

    async def _present(self, context: WorkerContext, record: MediaRecord) -> Dict[str, Any]:
        data = record.model_dump(mode="json")
        data["original_url"] = await context.object_store.presign(record.original_key)
        data["thumbnails"] = [
            {**thumb.model_dump(), "url": await context.object_store.presign(thumb.url)}
            for thumb in record.thumbnails
        ]
        return data

    async def run_worker(self, concurrency: Optional[int] = None) -> None:
        """
        Run ``concurrency`` independent poller loops until a shutdown signal
        or ``stop_worker``.
        """
        from .utils.signals import GracefulSignalHandler

        context = await self._ensure_initialized()
        concurrency = concurrency or self._settings.worker_concurrency

        processor = MediaProcessor(context)
        self._pollers = [
            QueuePoller(context, processor, name=f"poller-{i}") for i in range(concurrency)
        ]
        logger.info(
            f"Starting MediaQ worker - concurrency: {concurrency}, queue: {self._settings.queue_name}"
        )

        signal_handler = GracefulSignalHandler()
        signal_handler.setup_signal_handlers(self.stop_worker)
        try:
            await asyncio.gather(*(poller.start_polling() for poller in self._pollers))
        finally:
            signal_handler.restore_signal_handlers()
            self._pollers = []
            logger.info("MediaQ worker stopped")

    def stop_worker(self) -> None:
        for poller in self._pollers:
            poller.stop_polling()

    async def close(self) -> None:
        """Close the database pool and mark the instance unusable."""
        if self._closed:
            logger.warning("MediaQ already closed")
            return

        self.stop_worker()
        try:
            if self._pool:
                await self._pool.close()
                self._pool = None
                logger.debug("Closed database pool")
        finally:
            self._closed = True
            self._initialized = False

    async def _cleanup_on_error(self) -> None:
        try:
            if self._pool:
                await self._pool.close()
                self._pool = None
        except Exception as e:
            logger.debug(f"Error during cleanup: {e}")
