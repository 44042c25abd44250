"""
Queue poller: the receive / dispatch / acknowledge loop of a worker.
"""

import asyncio
import logging
from typing import Optional

from pydantic import ValidationError

from ..context import WorkerContext
from ..features.logging import job_logging_context
from ..queue.sqs import QueueMessage
from .models import JobMessage
from .processor import MediaProcessor, ProcessingOutcome

logger = logging.getLogger(__name__)


class QueuePoller:
    """
    Long-polls the job queue and hands each message to the processor.

    ``start_polling`` runs until ``stop_polling`` is called; the flag is
    checked between iterations only, so a job in flight always finishes.
    Acknowledgement is the processor's job: the poller itself never deletes
    a message, which means malformed messages come back after the
    visibility timeout.
    """

    def __init__(
        self,
        context: WorkerContext,
        processor: Optional[MediaProcessor] = None,
        name: str = "poller",
    ):
        self.context = context
        self.settings = context.settings
        self.queue = context.queue
        self.processor = processor or MediaProcessor(context)
        self.name = name
        self.is_polling = False
        self._running = False
        logger.debug(f"QueuePoller {name} initialized")

    async def start_polling(self) -> None:
        """
        Run the polling loop.

        Raises:
            RuntimeError: if this instance is already polling
            SystemExit: with code 1 when the loop guard itself fails, so a
                supervisor can restart the worker
        """
        if self._running:
            raise RuntimeError(f"QueuePoller {self.name} is already polling")

        self._running = True
        self.is_polling = True
        logger.info(f"Worker polling started ({self.name})")

        try:
            while self.is_polling:
                handled = 0
                try:
                    handled = await self.poll_once()
                except Exception as e:
                    logger.error(f"Error during polling: {e}")

                if self.is_polling and handled == 0:
                    await asyncio.sleep(self.settings.poll_interval)
        except Exception as e:
            logger.critical(f"Unhandled error in polling loop {self.name}: {e}. Exiting worker.")
            raise SystemExit(1) from e
        finally:
            self._running = False
            logger.info(f"Worker polling stopped ({self.name})")

    def stop_polling(self) -> None:
        """Ask the loop to exit after the current iteration."""
        if self.is_polling:
            logger.info(f"Stopping polling ({self.name})...")
        self.is_polling = False

    async def poll_once(self) -> int:
        """
        One receive call plus sequential dispatch of what it returned.

        Returns:
            Number of messages handed to the processor
        """
        messages = await self.queue.receive(
            max_messages=self.settings.poll_max_messages,
            wait_time_seconds=self.settings.poll_wait_seconds,
            visibility_timeout=self.settings.poll_visibility_timeout,
        )

        handled = 0
        for message in messages:
            if await self.handle_message(message) is not None:
                handled += 1
        return handled

    async def handle_message(self, message: QueueMessage) -> Optional[ProcessingOutcome]:
        """Decode and process one message; None when it was skipped unprocessed."""
        if not message.body or not message.receipt_handle:
            logger.warning("Received message with empty body or receipt handle. Skipping.")
            return None

        try:
            job = JobMessage.from_body(message.body)
        except ValidationError as e:
            logger.warning(
                f"Received undecodable message {message.message_id}. Skipping: "
                f"{e.error_count()} validation error(s)"
            )
            return None

        with job_logging_context(job.correlation_id, job.media_id, message.message_id):
            logger.info(
                f"Processing message for mediaId: {job.media_id}, job: {job.correlation_id}"
            )
            try:
                return await self.processor.process_message(job, message.receipt_handle)
            except Exception as e:
                logger.exception(
                    f"Processing of mediaId {job.media_id} aborted; message left for redelivery: {e}"
                )
                return None
