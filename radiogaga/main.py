"""radiogaga daemon entry point.

Wires the pipeline together: the fetcher follows MPD and feeds a one-slot
queue, the renderer drains it onto the display, SIGTERM/SIGINT trigger the
goodbye sequence and the process exits once the display has been cleared.
"""

import asyncio
import functools
import logging
import platform
import sys
import threading
import time

from radiogaga import __version__
from radiogaga import mpd_client
from radiogaga.config import Config, load_config
from radiogaga.display import LogDisplay
from radiogaga.fetcher import StateFetcher
from radiogaga.renderer import Renderer
from radiogaga.shutdown import ShutdownCoordinator
from radiogaga.starter import start_playlists

logger = logging.getLogger("radiogaga")


def create_display(config: Config):
    """Return the configured display driver, falling back to the log."""
    if config.display_backend == "framebuffer":
        from radiogaga.framebuffer import FramebufferDisplay

        fb = FramebufferDisplay(config.fb_device, columns=config.display_width)
        try:
            fb.open()
            return fb
        except (OSError, ValueError) as e:
            logger.warning(f"Cannot open framebuffer {config.fb_device}: {e}, using log display")
    return LogDisplay(width=config.display_width)


def resolve_mpd_address(config: Config) -> tuple[str, int]:
    """Return the configured MPD address, discovering it via mDNS if unset."""
    if config.mpd_host:
        return config.mpd_host, config.mpd_port

    from radiogaga.discovery import discover_mpd

    logger.info("MPD_HOST not set, discovering via mDNS...")
    while True:
        discovered = discover_mpd()
        if discovered:
            return discovered
        logger.warning("MPD not found via mDNS, retrying in 10s...")
        time.sleep(10)


async def main(config: Config, host: str, port: int) -> None:
    loop = asyncio.get_running_loop()
    shutdown = ShutdownCoordinator()
    shutdown.install_signal_handlers(loop)

    connect = functools.partial(mpd_client.connect, host, port, config.mpd_timeout)
    queue: asyncio.Queue = asyncio.Queue(maxsize=1)

    fetcher = StateFetcher(connect, queue, reconnect_delay=config.reconnect_delay)
    renderer = Renderer(
        create_display(config), queue, shutdown,
        width=config.display_width,
        tick_interval=config.scroll_interval,
        goodbye_delay=config.goodbye_delay,
    )

    starter_stop = threading.Event()
    tasks = [
        asyncio.create_task(renderer.run(), name="renderer"),
        asyncio.create_task(fetcher.run(), name="fetcher"),
    ]
    if config.startup_playlists:
        tasks.append(asyncio.create_task(asyncio.to_thread(
            start_playlists, connect, config.startup_playlists, stop=starter_stop), name="starter"))

    await shutdown.wait_completed()

    # the fetcher has no shutdown of its own: close its socket and drop it
    fetcher.stop()
    starter_stop.set()
    for task in tasks:
        task.cancel()
    await asyncio.gather(*tasks, return_exceptions=True)


def run() -> None:
    config = load_config()
    logging.basicConfig(level=getattr(logging, config.log_level, logging.INFO),
                        format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    logger.info(f"Starting radiogaga {__version__} using Python {platform.python_version()} "
                f"({sys.platform}/{platform.machine()})")

    host, port = resolve_mpd_address(config)
    logger.info(f"Using MPD server address {host}:{port}")

    asyncio.run(main(config, host, port))
    logger.info("Bye")


if __name__ == "__main__":
    run()
