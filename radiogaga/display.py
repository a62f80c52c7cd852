"""Character display model: the driver contract, scrolling lines and glyphs."""

import logging
from typing import Protocol

logger = logging.getLogger(__name__)

LINE_WIDTH = 16
LINE_COUNT = 2

# Shown between the end and the start of a scrolling text
SCROLL_SEPARATOR = "  *  "

# Custom glyph slots (the controller offers 8, addressed as chr(0)..chr(7))
PAUSE_SLOT = 0
STOP_SLOT = 1

# 5x8 patterns, one byte per row, low 5 bits used
PAUSE_GLYPH = (
    0b11011,
    0b11011,
    0b11011,
    0b11011,
    0b11011,
    0b11011,
    0b11011,
    0b00000,
)
STOP_GLYPH = (
    0b11111,
    0b11111,
    0b11111,
    0b11111,
    0b11111,
    0b11111,
    0b11111,
    0b00000,
)


class Display(Protocol):
    """What the renderer needs from a character display driver.

    Calls are synchronous. write_line never receives more than the line
    width: the renderer centers or windows the text beforehand.
    """

    def clear(self) -> None: ...

    def write_line(self, line_number: int, text: str) -> None: ...

    def create_custom_glyph(self, slot: int, pattern: tuple[int, ...]) -> None: ...

    def turn_off(self) -> None: ...


class DisplayLine:
    """Text of one display line, static or scrolling.

    Text that fits is centered and never moves. Longer text is followed by
    SCROLL_SEPARATOR and shown through a window of ``width`` characters that
    advance() moves one step; after ``period`` steps the window is back at
    its start.
    """

    def __init__(self, text: str = "", width: int = LINE_WIDTH):
        self.width = width
        self.set_text(text)

    def set_text(self, text: str) -> None:
        self.text = text
        self.offset = 0
        if len(text) <= self.width:
            self._cycle = text.center(self.width)
            self._padded = self._cycle
        else:
            self._cycle = text + SCROLL_SEPARATOR
            self._padded = self._cycle + self._cycle[:self.width]

    @property
    def scrolling(self) -> bool:
        return len(self.text) > self.width

    @property
    def period(self) -> int:
        """Number of advance() calls for a full cycle (the padded length)."""
        return len(self._cycle) if self.scrolling else 1

    def visible(self) -> str:
        return self._padded[self.offset:self.offset + self.width]

    def advance(self) -> str:
        """Move a scrolling window one character left and return it."""
        if self.scrolling:
            self.offset = (self.offset + 1) % len(self._cycle)
        return self.visible()


def printable(text: str) -> str:
    """Replace custom glyph characters with a readable marker."""
    return "".join(f"<{ord(c)}>" if ord(c) < 8 else c for c in text)


class LogDisplay:
    """Display driver writing to the log, keeps the current lines in memory.

    Used when no physical display is available and as the display double in
    tests.
    """

    def __init__(self, lines: int = LINE_COUNT, width: int = LINE_WIDTH, quiet: bool = False):
        self.width = width
        self.lines = [""] * lines
        self.glyphs: dict[int, tuple[int, ...]] = {}
        self.is_on = True
        self.history: list[tuple] = []
        self._quiet = quiet

    def clear(self) -> None:
        self.lines = [""] * len(self.lines)
        self.history.append(("clear",))

    def write_line(self, line_number: int, text: str) -> None:
        if len(text) > self.width:
            raise ValueError(f"text wider than display ({len(text)} > {self.width})")
        self.lines[line_number] = text
        self.history.append(("write", line_number, text))
        if not self._quiet:
            logger.info(f"LCD{line_number + 1} [{printable(text):<{self.width}}]")

    def create_custom_glyph(self, slot: int, pattern: tuple[int, ...]) -> None:
        if not 0 <= slot <= 7:
            raise ValueError(f"glyph slot out of range: {slot}")
        if len(pattern) != 8:
            raise ValueError(f"glyph pattern needs 8 rows, got {len(pattern)}")
        self.glyphs[slot] = tuple(pattern)
        self.history.append(("glyph", slot))

    def turn_off(self) -> None:
        self.is_on = False
        self.history.append(("off",))
        if not self._quiet:
            logger.info("LCD off")
