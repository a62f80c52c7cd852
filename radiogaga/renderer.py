"""Turns state events into display text and scrolls long lines.

The renderer is the only writer to the display. It waits on whichever comes
first of a new event, the next scroll tick or the shutdown request; once
shutdown is requested nothing but the goodbye sequence reaches the display.
"""

import asyncio
import logging

from radiogaga import display as lcd
from radiogaga.events import Paused, Playing, StateEvent, Stopped
from radiogaga.shutdown import ShutdownCoordinator

logger = logging.getLogger(__name__)

TICK_INTERVAL = 0.4
MIN_TICK_INTERVAL = 0.15
GREETING_DELAY = 2.0
GOODBYE_DELAY = 2.0

GREETING = ("Hello", "(^_^)")
GOODBYE = ("Bye Bye", "(^_^)")


class Renderer:
    def __init__(self, display: lcd.Display, queue: asyncio.Queue, shutdown: ShutdownCoordinator,
                 width: int = lcd.LINE_WIDTH, tick_interval: float = TICK_INTERVAL,
                 greeting_delay: float = GREETING_DELAY, goodbye_delay: float = GOODBYE_DELAY):
        self.display = display
        self._queue = queue
        self._shutdown = shutdown
        self.tick_interval = min(max(tick_interval, MIN_TICK_INTERVAL), TICK_INTERVAL)
        self.greeting_delay = greeting_delay
        self.goodbye_delay = goodbye_delay
        self.lines = [lcd.DisplayLine(width=width) for _ in range(lcd.LINE_COUNT)]

    def _show(self, line1: str, line2: str) -> None:
        """Replace both lines, writing them at their initial position."""
        self.display.clear()
        for number, (line, text) in enumerate(zip(self.lines, (line1, line2))):
            line.set_text(text)
            if line.text:
                self.display.write_line(number, line.visible())

    @property
    def scrolling(self) -> bool:
        return any(line.scrolling for line in self.lines)

    def handle_event(self, event: StateEvent) -> None:
        if isinstance(event, Playing):
            self._show(event.line1, event.line2)
        elif isinstance(event, Paused):
            self._show(f"{chr(lcd.PAUSE_SLOT)} Pause", "")
        elif isinstance(event, Stopped):
            self._show(f"{chr(lcd.STOP_SLOT)} Stop", "")
        else:
            raise TypeError(f"unknown state event: {event!r}")

    def tick(self) -> None:
        """Advance scrolling lines one step; static lines are left alone."""
        for number, line in enumerate(self.lines):
            if line.scrolling:
                self.display.write_line(number, line.advance())

    async def greet(self) -> None:
        self.display.create_custom_glyph(lcd.PAUSE_SLOT, lcd.PAUSE_GLYPH)
        self.display.create_custom_glyph(lcd.STOP_SLOT, lcd.STOP_GLYPH)
        self._show(*GREETING)
        await asyncio.sleep(self.greeting_delay)

    async def goodbye(self) -> None:
        """Final sequence: message, pause for reading, blank display."""
        self._show(*GOODBYE)
        await asyncio.sleep(self.goodbye_delay)
        self.display.clear()
        self.display.turn_off()

    def _draw(self, func, *args) -> None:
        """Run one display update; a failing display must not stop the loop."""
        try:
            func(*args)
        except Exception:
            logger.exception(f"Display update failed ({func.__name__})")

    async def run(self) -> None:
        """Render until shutdown, then run the goodbye and acknowledge it.

        The acknowledgement is always sent, even when the display fails, so
        the process can exit.
        """
        loop = asyncio.get_running_loop()
        stop_task = asyncio.ensure_future(self._shutdown.wait_requested())
        get_task: asyncio.Future | None = None
        try:
            try:
                await self.greet()
            except Exception:
                logger.exception("Display greeting failed")
            next_tick = loop.time() + self.tick_interval
            while not stop_task.done():
                if get_task is None:
                    get_task = asyncio.ensure_future(self._queue.get())
                timeout = max(0.0, next_tick - loop.time())
                done, _ = await asyncio.wait({get_task, stop_task}, timeout=timeout,
                                             return_when=asyncio.FIRST_COMPLETED)
                if stop_task in done:
                    break
                if get_task in done:
                    event, get_task = get_task.result(), None
                    self._draw(self.handle_event, event)
                if loop.time() >= next_tick:
                    self._draw(self.tick)
                    next_tick = loop.time() + self.tick_interval
        finally:
            stop_task.cancel()
            if get_task is not None:
                get_task.cancel()
            try:
                await self.goodbye()
                logger.info("Display cleared")
            except Exception:
                logger.exception("Display goodbye failed")
            finally:
                self._shutdown.acknowledge()
