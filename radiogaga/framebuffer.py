"""Character display emulated on a Linux framebuffer.

Draws a 16x2 character panel (amber dots on black, like the OLED module it
stands in for) centered on /dev/fb0. Each character is a 5x8 dot cell.
Regular characters are rasterized with Pillow and thresholded onto the dot
grid; custom glyph slots use their 8-row bit patterns directly.

The whole panel is kept as an RGB numpy array; only the rows of the line
that changed are converted to the native pixel format and written.
"""

import logging
import mmap
import os

import numpy as np
from PIL import Image, ImageDraw, ImageFont

from radiogaga import display as lcd

logger = logging.getLogger(__name__)

DOT_COLOR = (255, 176, 0)
DOT_OFF_COLOR = (24, 18, 0)
BG_COLOR = (0, 0, 0)

CELL_DOTS_W = 5
CELL_DOTS_H = 8
CELL_GAP = 1  # dots between cells

_FONT_PATHS = [
    "/usr/share/fonts/truetype/dejavu/DejaVuSansMono.ttf",
    "/usr/share/fonts/TTF/DejaVuSansMono.ttf",
]


def get_fb_info(fb_name: str = "fb0") -> tuple[int, int, int, int] | None:
    """Read framebuffer geometry (width, height, bpp, stride) from sysfs."""
    fb_path = f"/sys/class/graphics/{fb_name}"
    try:
        with open(f"{fb_path}/virtual_size") as f:
            vw, vh = f.read().strip().split(",")
        with open(f"{fb_path}/bits_per_pixel") as f:
            bpp = int(f.read().strip())
        with open(f"{fb_path}/stride") as f:
            stride = int(f.read().strip())
        return int(vw), int(vh), bpp, stride
    except (FileNotFoundError, ValueError):
        return None


def rgb_to_fb_native(rgb_array: np.ndarray, bpp: int) -> np.ndarray:
    """Convert an RGB array to native FB pixels.

    Returns uint16 (h,w) for 16bpp RGB565 or uint8 (h,w,4) BGRA for 32bpp.
    """
    if bpp == 16:
        r = rgb_array[:, :, 0].astype(np.uint16)
        g = rgb_array[:, :, 1].astype(np.uint16)
        b = rgb_array[:, :, 2].astype(np.uint16)
        return (((r >> 3) << 11) | ((g >> 2) << 5) | (b >> 3)).astype(np.uint16)
    h, w = rgb_array.shape[:2]
    bgra = np.empty((h, w, 4), dtype=np.uint8)
    bgra[:, :, 0] = rgb_array[:, :, 2]
    bgra[:, :, 1] = rgb_array[:, :, 1]
    bgra[:, :, 2] = rgb_array[:, :, 0]
    bgra[:, :, 3] = 255
    return bgra


def glyph_to_dots(pattern: tuple[int, ...]) -> np.ndarray:
    """Expand an 8-row glyph pattern to a (8, 5) boolean dot matrix."""
    rows = np.array(pattern, dtype=np.uint8).reshape(CELL_DOTS_H, 1)
    shifts = np.arange(CELL_DOTS_W - 1, -1, -1, dtype=np.uint8)
    return ((rows >> shifts) & 1).astype(bool)


def compute_layout(screen_w: int, screen_h: int, columns: int = lcd.LINE_WIDTH,
                   rows: int = lcd.LINE_COUNT) -> dict:
    """Fit the dot panel in 90% of the screen width, centered."""
    dots_w = columns * (CELL_DOTS_W + CELL_GAP) + CELL_GAP
    dots_h = rows * (CELL_DOTS_H + CELL_GAP) + CELL_GAP
    dot = max(1, min(int(screen_w * 0.9) // dots_w, int(screen_h * 0.9) // dots_h))
    panel_w = dots_w * dot
    panel_h = dots_h * dot
    return {
        "dot": dot,
        "panel_x": (screen_w - panel_w) // 2,
        "panel_y": (screen_h - panel_h) // 2,
        "panel_w": panel_w,
        "panel_h": panel_h,
        "line_h": (CELL_DOTS_H + CELL_GAP) * dot,
    }


class CharacterRasterizer:
    """Renders characters to 5x8 dot matrices, cached per character."""

    def __init__(self):
        self._font = self._load_font()
        self._cache: dict[str, np.ndarray] = {}

    @staticmethod
    def _load_font() -> ImageFont.ImageFont:
        for path in _FONT_PATHS:
            if os.path.exists(path):
                return ImageFont.truetype(path, CELL_DOTS_H * 4)
        return ImageFont.load_default()

    def dots(self, char: str) -> np.ndarray:
        cached = self._cache.get(char)
        if cached is not None:
            return cached
        scale = 4
        img = Image.new("L", (CELL_DOTS_W * scale, CELL_DOTS_H * scale), 0)
        if char.strip():
            draw = ImageDraw.Draw(img)
            bbox = draw.textbbox((0, 0), char, font=self._font)
            tw, th = bbox[2] - bbox[0], bbox[3] - bbox[1]
            x = (img.width - tw) // 2 - bbox[0]
            y = (img.height - th) // 2 - bbox[1]
            draw.text((x, y), char, fill=255, font=self._font)
        small = img.resize((CELL_DOTS_W, CELL_DOTS_H), Image.BILINEAR)
        matrix = np.array(small) >= 96
        self._cache[char] = matrix
        return matrix


class FramebufferDisplay:
    """Display driver drawing a character panel on a framebuffer device."""

    def __init__(self, device: str = "/dev/fb0", columns: int = lcd.LINE_WIDTH,
                 rows: int = lcd.LINE_COUNT, geometry: tuple[int, int, int, int] | None = None):
        self.device = device
        self.columns = columns
        self.rows = rows
        if geometry is None:
            geometry = get_fb_info(os.path.basename(device)) or (800, 480, 32, 800 * 4)
        self.screen_w, self.screen_h, self.bpp, self.stride = geometry
        self.layout = compute_layout(self.screen_w, self.screen_h, columns, rows)
        self.frame = np.zeros((self.layout["panel_h"], self.layout["panel_w"], 3), dtype=np.uint8)
        self.glyphs: dict[int, np.ndarray] = {}
        self._rasterizer = CharacterRasterizer()
        self._fd: int | None = None
        self._mmap: mmap.mmap | None = None

    def open(self) -> None:
        """Memory-map the framebuffer device."""
        fd = os.open(self.device, os.O_RDWR)
        size = self.stride * self.screen_h
        try:
            self._mmap = mmap.mmap(fd, size, mmap.MAP_SHARED, mmap.PROT_WRITE | mmap.PROT_READ)
        except (OSError, ValueError):
            os.close(fd)
            raise
        self._fd = fd
        logger.info(f"Framebuffer {self.device}: {self.screen_w}x{self.screen_h}, "
                    f"{self.bpp}bpp, stride={self.stride}, dot={self.layout['dot']}px")

    def close(self) -> None:
        if self._mmap is not None:
            self._mmap.close()
            self._mmap = None
        if self._fd is not None:
            os.close(self._fd)
            self._fd = None

    def _cell_dots(self, char: str) -> np.ndarray:
        code = ord(char)
        if code < 8:
            return self.glyphs.get(code, np.zeros((CELL_DOTS_H, CELL_DOTS_W), dtype=bool))
        return self._rasterizer.dots(char)

    def _render_row(self, text: str) -> np.ndarray:
        """Return the RGB pixels of one display row."""
        dot = self.layout["dot"]
        dots_w = self.columns * (CELL_DOTS_W + CELL_GAP) + CELL_GAP
        matrix = np.zeros((CELL_DOTS_H + CELL_GAP, dots_w), dtype=np.int8)  # -1 gap, 0 off, 1 on
        matrix[:] = -1
        for col in range(self.columns):
            x = CELL_GAP + col * (CELL_DOTS_W + CELL_GAP)
            cell = self._cell_dots(text[col]) if col < len(text) else np.zeros(
                (CELL_DOTS_H, CELL_DOTS_W), dtype=bool)
            matrix[CELL_GAP:, x:x + CELL_DOTS_W] = cell.astype(np.int8)

        palette = np.array([DOT_OFF_COLOR, DOT_COLOR, BG_COLOR], dtype=np.uint8)
        rgb = palette[matrix]  # index -1 picks BG_COLOR
        return np.kron(rgb, np.ones((dot, dot, 1), dtype=np.uint8))

    def _flush(self, y0: int, y1: int) -> None:
        """Write panel rows y0..y1 to the framebuffer."""
        if self._mmap is None:
            return
        pixels = rgb_to_fb_native(self.frame[y0:y1], self.bpp)
        bpp_bytes = self.bpp // 8
        x = self.layout["panel_x"]
        for row in range(pixels.shape[0]):
            offset = (self.layout["panel_y"] + y0 + row) * self.stride + x * bpp_bytes
            self._mmap.seek(offset)
            self._mmap.write(pixels[row].tobytes())

    # -- Display protocol ------------------------------------------------

    def clear(self) -> None:
        for number in range(self.rows):
            self.write_line(number, "")

    def write_line(self, line_number: int, text: str) -> None:
        if not 0 <= line_number < self.rows:
            raise ValueError(f"no display line {line_number}")
        line_h = self.layout["line_h"]
        y0 = line_number * line_h
        row = self._render_row(text[:self.columns])
        self.frame[y0:y0 + row.shape[0], :row.shape[1]] = row
        self._flush(y0, y0 + row.shape[0])

    def create_custom_glyph(self, slot: int, pattern: tuple[int, ...]) -> None:
        if not 0 <= slot <= 7:
            raise ValueError(f"glyph slot out of range: {slot}")
        if len(pattern) != CELL_DOTS_H:
            raise ValueError(f"glyph pattern needs {CELL_DOTS_H} rows, got {len(pattern)}")
        self.glyphs[slot] = glyph_to_dots(tuple(pattern))

    def turn_off(self) -> None:
        self.frame[:] = 0
        self._flush(0, self.frame.shape[0])
        self.close()
