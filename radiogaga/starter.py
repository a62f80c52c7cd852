"""Start playback of a stored playlist at boot.

Unlike the fetcher this gives up: if MPD does not answer within
MAX_RETRIES attempts the radio simply boots silent.
"""

import logging
import threading
from collections.abc import Callable, Sequence

from radiogaga.errors import MPDError
from radiogaga.mpd_client import MPDClient

logger = logging.getLogger(__name__)

MAX_RETRIES = 10
RETRY_DELAY = 2.0


def start_playlists(connect: Callable[[], MPDClient], playlists: Sequence[str],
                    max_retries: int = MAX_RETRIES, retry_delay: float = RETRY_DELAY,
                    stop: threading.Event | None = None) -> bool:
    """Load and play the first playlist that works if the player is stopped.

    Setting ``stop`` abandons the retries, the daemon sets it on exit.
    Returns True when a playlist was started.
    """
    if stop is None:
        stop = threading.Event()
    client = None
    for attempt in range(1, max_retries + 1):
        if stop.is_set():
            logger.info("Playlist start cancelled")
            return False
        try:
            client = connect()
            break
        except MPDError as e:
            logger.warning(f"MPD server not responding: {e}")
            if attempt == max_retries:
                logger.error(f"Unable to contact MPD server after {max_retries} retries, we give up")
                return False
            logger.info(f"Waiting {retry_delay:g}s before retry")
            stop.wait(retry_delay)

    try:
        if stop.is_set():
            logger.info("Playlist start cancelled")
            return False
        try:
            status = client.status()
        except MPDError as e:
            logger.warning(f"Unable to retrieve MPD state, playlists load aborted ({e})")
            return False

        if status.state != "stop":
            logger.info(f"MPD already in state '{status.state}', playlists left untouched")
            return False

        logger.info("MPD playback is stopped, try to start it")
        for playlist in playlists:
            try:
                client.load(playlist)
            except MPDError as e:
                logger.warning(f"Failed to load playlist {playlist} ({e})")
                continue
            try:
                client.play(-1)
            except MPDError as e:
                logger.warning(f"Failed to start playing playlist {playlist}: {e}")
                continue
            logger.info(f"Successfully started playing playlist '{playlist}'")
            return True
        logger.warning("Unable to load ANY playlists")
        return False
    finally:
        client.close()
