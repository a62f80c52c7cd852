"""One-shot shutdown request with a completion handshake.

The main flow must not exit while the renderer is still showing its goodbye
message: it waits for the renderer to acknowledge before returning.
"""

import asyncio
import logging
import signal

logger = logging.getLogger(__name__)


class ShutdownCoordinator:
    def __init__(self):
        self._requested = asyncio.Event()
        self._completed = asyncio.Event()

    @property
    def requested(self) -> bool:
        return self._requested.is_set()

    @property
    def completed(self) -> bool:
        return self._completed.is_set()

    def request(self, reason: str = "") -> bool:
        """Fire the shutdown signal. Returns False if it had already fired."""
        if self._requested.is_set():
            return False
        logger.info(f"Shutdown requested{f' ({reason})' if reason else ''}")
        self._requested.set()
        return True

    async def wait_requested(self) -> None:
        await self._requested.wait()

    def acknowledge(self) -> None:
        """Called by the renderer once the display has been cleared."""
        self._completed.set()

    async def wait_completed(self) -> None:
        await self._completed.wait()

    def install_signal_handlers(self, loop: asyncio.AbstractEventLoop) -> None:
        """Turn SIGTERM and SIGINT into a shutdown request."""
        for sig in (signal.SIGTERM, signal.SIGINT):
            loop.add_signal_handler(sig, self.request, sig.name)
