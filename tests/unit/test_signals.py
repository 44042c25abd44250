import asyncio
import os
import signal
import sys

import pytest

from mediaq.utils.signals import GracefulSignalHandler


@pytest.mark.skipif(sys.platform == "win32", reason="loop signal handlers need a Unix event loop")
@pytest.mark.asyncio
async def test_first_signal_requests_shutdown_once():
    calls = []
    handler = GracefulSignalHandler()
    handler.setup_signal_handlers(lambda: calls.append("stop"))
    try:
        os.kill(os.getpid(), signal.SIGTERM)
        await asyncio.sleep(0.05)
        os.kill(os.getpid(), signal.SIGTERM)
        await asyncio.sleep(0.05)
    finally:
        handler.restore_signal_handlers()

    assert calls == ["stop"]
    assert handler.shutdown_requested is True


def test_restore_without_setup_is_noop():
    GracefulSignalHandler().restore_signal_handlers()
