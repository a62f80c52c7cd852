"""Follows MPD playback and turns it into de-duplicated state events.

The fetcher owns its MPD connection and the snapshot of the last emitted
state. Blocking socket calls run in the default executor so the renderer keeps
ticking on the event loop meanwhile.
"""

import asyncio
import enum
import logging
from collections.abc import Awaitable, Callable

from radiogaga import events
from radiogaga.errors import MPDError
from radiogaga.mpd_client import MPDClient

logger = logging.getLogger(__name__)

RECONNECT_DELAY = 2.0


class FetcherState(enum.Enum):
    DISCONNECTED = "disconnected"
    CONNECTED = "connected"
    WAITING = "waiting"


class StateFetcher:
    """Reconnect loop: connect, query, emit if changed, idle, repeat.

    Args:
        connect: Blocking callable returning a connected MPDClient or raising
            MPDError (see mpd_client.connect).
        queue: Output channel. With maxsize=1 a slow consumer blocks the
            fetcher instead of letting events pile up.
        reconnect_delay: Pause after a failed connection attempt.
        sleep: Coroutine used for that pause, replaceable in tests.
        stop_event: Ends the loop when set. Nothing sets it during normal
            operation, the loop lives as long as the process.
    """

    def __init__(self, connect: Callable[[], MPDClient], queue: asyncio.Queue,
                 reconnect_delay: float = RECONNECT_DELAY,
                 sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
                 stop_event: asyncio.Event | None = None):
        self._connect = connect
        self._queue = queue
        self.reconnect_delay = reconnect_delay
        self._sleep = sleep
        self._stop_event = stop_event or asyncio.Event()
        self._client: MPDClient | None = None
        self._previous: events.PlayerSnapshot | None = None
        self.state = FetcherState.DISCONNECTED

    @property
    def stopped(self) -> bool:
        return self._stop_event.is_set()

    def stop(self) -> None:
        """Ask the loop to end and unblock a pending idle by closing the socket."""
        self._stop_event.set()
        client = self._client
        if client is not None:
            client.close()

    async def run(self) -> None:
        loop = asyncio.get_running_loop()
        while not self.stopped:
            self.state = FetcherState.DISCONNECTED
            try:
                client = await loop.run_in_executor(None, self._connect)
            except MPDError as e:
                logger.warning(f"MPD server not responding: {e}")
                logger.info(f"Waiting {self.reconnect_delay:g}s before retry")
                await self._sleep(self.reconnect_delay)
                continue

            self._client = client
            if self.stopped:
                client.close()
                break
            logger.info(f"Connected to MPD {client.host}:{client.port} (protocol {client.version})")
            try:
                await self._follow(loop, client)
            except MPDError as e:
                logger.debug(f"Resetting MPD connection after: {e!r}")
            finally:
                self._client = None
                client.close()
                if not self.stopped:
                    logger.warning("MPD server connection closed")
        self.state = FetcherState.DISCONNECTED

    async def _follow(self, loop: asyncio.AbstractEventLoop, client: MPDClient) -> None:
        while not self.stopped:
            self.state = FetcherState.CONNECTED
            status = await self._call(loop, "status", client.status)
            song = await self._call(loop, "current song", client.current_song)

            await self.publish(status, song)

            self.state = FetcherState.WAITING
            await self._call(loop, "idle", client.idle, "player")

    async def _call(self, loop, what: str, func, *args):
        try:
            return await loop.run_in_executor(None, func, *args)
        except MPDError as e:
            if not self.stopped:
                logger.warning(f"MPD {what} failed: {e}")
            raise

    async def publish(self, status, song) -> bool:
        """Emit an event if the player changed since the last emitted one."""
        snapshot = events.PlayerSnapshot.capture(status, song)
        if not events.has_changed(self._previous, snapshot):
            return False
        logger.info(events.describe(status, song))
        await self._queue.put(events.event_from(status, song))
        self._previous = snapshot
        return True
