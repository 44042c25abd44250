"""
Signal handling for graceful worker shutdown.
"""

import asyncio
import logging
import signal
from typing import Callable, Dict

logger = logging.getLogger(__name__)

SHUTDOWN_SIGNALS = (signal.SIGINT, signal.SIGTERM)


class GracefulSignalHandler:
    """
    Routes SIGINT/SIGTERM to a stop callback on the running event loop.

    The first signal asks the workers to stop after their current
    iteration; in-flight jobs are not interrupted.
    """

    def __init__(self):
        self._installed: Dict[int, bool] = {}
        self._loop = None
        self.shutdown_requested = False

    def setup_signal_handlers(self, on_shutdown: Callable[[], None]) -> None:
        self._loop = asyncio.get_running_loop()

        def _handle(sig: signal.Signals) -> None:
            if self.shutdown_requested:
                logger.info(f"Received {sig.name} again; shutdown already in progress")
                return
            self.shutdown_requested = True
            logger.info(f"Received {sig.name}. Starting graceful shutdown...")
            on_shutdown()

        for sig in SHUTDOWN_SIGNALS:
            try:
                self._loop.add_signal_handler(sig, _handle, sig)
                self._installed[sig] = True
            except (NotImplementedError, RuntimeError):
                # add_signal_handler is unavailable on Windows event loops
                logger.debug(f"Could not install handler for {sig.name}")

    def restore_signal_handlers(self) -> None:
        if self._loop is None:
            return
        for sig in list(self._installed):
            self._loop.remove_signal_handler(sig)
        self._installed.clear()
