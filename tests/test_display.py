"""Tests for display lines and the log display driver."""

import pytest

from radiogaga.display import (
    PAUSE_GLYPH,
    SCROLL_SEPARATOR,
    DisplayLine,
    LogDisplay,
    printable,
)

LONG = "Radio Nova - Le Grand Mix du Soir"


class TestDisplayLine:
    """Test centering and the scroll cycle."""

    def test_short_text_centered(self):
        line = DisplayLine("Hello")
        assert line.visible() == "     Hello      "
        assert not line.scrolling
        assert line.period == 1

    def test_exact_width_not_scrolling(self):
        line = DisplayLine("x" * 16)
        assert not line.scrolling
        assert line.visible() == "x" * 16

    def test_static_advance_is_noop(self):
        line = DisplayLine("Hello")
        assert line.advance() == line.visible() == "     Hello      "

    def test_empty_text_is_blank(self):
        assert DisplayLine("").visible() == " " * 16

    def test_long_text_windows(self):
        line = DisplayLine(LONG)
        assert line.scrolling
        assert line.visible() == LONG[:16]
        assert line.advance() == LONG[1:17]

    def test_every_window_has_full_width(self):
        line = DisplayLine(LONG)
        for _ in range(line.period * 2):
            assert len(line.advance()) == 16

    def test_separator_follows_text(self):
        line = DisplayLine(LONG)
        for _ in range(len(LONG)):
            line.advance()
        assert line.visible().startswith(SCROLL_SEPARATOR)

    def test_cycle_returns_to_start(self):
        line = DisplayLine(LONG)
        first = line.visible()
        seen = [line.advance() for _ in range(line.period)]
        assert line.period == len(LONG) + len(SCROLL_SEPARATOR)
        assert seen[-1] == first
        assert first not in seen[:-1]

    def test_set_text_resets_offset(self):
        line = DisplayLine(LONG)
        line.advance()
        line.set_text("Another long text for the line")
        assert line.offset == 0
        assert line.visible() == "Another long tex"

    def test_custom_width(self):
        line = DisplayLine("abcdefghij", width=8)
        assert line.scrolling
        assert line.visible() == "abcdefgh"


class TestLogDisplay:
    """Test the in-memory display driver."""

    def test_write_and_clear(self):
        display = LogDisplay(quiet=True)
        display.write_line(0, "Hello")
        assert display.lines == ["Hello", ""]
        display.clear()
        assert display.lines == ["", ""]
        assert display.history == [("write", 0, "Hello"), ("clear",)]

    def test_too_wide_rejected(self):
        with pytest.raises(ValueError):
            LogDisplay(quiet=True).write_line(0, "x" * 17)

    def test_glyph_validation(self):
        display = LogDisplay(quiet=True)
        display.create_custom_glyph(0, PAUSE_GLYPH)
        assert display.glyphs[0] == PAUSE_GLYPH
        with pytest.raises(ValueError):
            display.create_custom_glyph(8, PAUSE_GLYPH)
        with pytest.raises(ValueError):
            display.create_custom_glyph(1, (0, 0, 0))

    def test_turn_off(self):
        display = LogDisplay(quiet=True)
        display.turn_off()
        assert not display.is_on
        assert display.history == [("off",)]

    def test_logs_lines(self, caplog):
        display = LogDisplay()
        with caplog.at_level("INFO"):
            display.write_line(1, "\x00")
        assert "LCD2 [<0>" in caplog.text


def test_printable():
    assert printable("Stop \x01") == "Stop <1>"
