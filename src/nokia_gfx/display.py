"""
Simulated PCD8544 Display Memory
================================

A software model of the controller's display RAM, usable anywhere a
Transport is expected. It is used by tests and by ``nokiaplay --dry-run``
to check that a transmission reproduces a frame byte for byte.

Addressing follows the controller's horizontal addressing mode: after
every data byte the column advances; past the last column it wraps to
column 0 of the next page, and past the last page back to page 0.

Copyright (c) 2025 nokia-gfx contributors
"""

import io
import logging
from dataclasses import dataclass

from PIL import Image, ImageDraw

from nokia_gfx.errors import InvalidDimensionsError
from nokia_gfx.layout import PAGE_HEIGHT, PageMajorBuffer

logger = logging.getLogger(__name__)


@dataclass
class DisplayState:
    """Cursor and write statistics of the simulated controller."""
    page: int = 0
    column: int = 0
    cursor_updates: int = 0
    bytes_written: int = 0


class SimulatedDisplay:
    """
    In-memory PCD8544 display RAM.

    Example:
        >>> display = SimulatedDisplay(84, 48)
        >>> display.set_write_cursor(1, 6)
        >>> display.write_byte(0x07)
        >>> display.memory()[90]
        7
    """

    def __init__(self, width: int = 84, height: int = 48):
        if width <= 0 or height <= 0:
            raise InvalidDimensionsError(width, height)
        self._width = width
        self._height = height
        self._pages = (height + PAGE_HEIGHT - 1) // PAGE_HEIGHT
        self._ram = bytearray(width * self._pages)
        self._state = DisplayState()

    @property
    def width(self) -> int:
        return self._width

    @property
    def height(self) -> int:
        return self._height

    @property
    def pages(self) -> int:
        return self._pages

    @property
    def state(self) -> DisplayState:
        return self._state

    # =========================================================================
    # Transport Interface
    # =========================================================================

    def set_write_cursor(self, page: int, column: int) -> None:
        if not (0 <= page < self._pages and 0 <= column < self._width):
            raise ValueError(f"Invalid cursor position (page {page}, column {column})")
        self._state.page = page
        self._state.column = column
        self._state.cursor_updates += 1

    def write_byte(self, value: int) -> None:
        self._ram[self._state.page * self._width + self._state.column] = value & 0xFF
        self._state.bytes_written += 1

        self._state.column += 1
        if self._state.column == self._width:
            self._state.column = 0
            self._state.page = (self._state.page + 1) % self._pages

    # =========================================================================
    # Inspection
    # =========================================================================

    def memory(self) -> bytes:
        """Copy of the whole display RAM in page-major order."""
        return bytes(self._ram)

    def snapshot(self) -> PageMajorBuffer:
        return PageMajorBuffer(self._width, self._pages, bytes(self._ram))

    def clear(self) -> None:
        """Zero the RAM and reset cursor and counters."""
        for i in range(len(self._ram)):
            self._ram[i] = 0
        self._state = DisplayState()

    def get_pixel(self, x: int, y: int) -> bool:
        if not (0 <= x < self._width and 0 <= y < self._height):
            raise ValueError(f"Invalid pixel position ({x}, {y})")
        page, bit = divmod(y, PAGE_HEIGHT)
        return bool((self._ram[page * self._width + x] >> bit) & 1)

    def render_text(self, on: str = "#", off: str = ".") -> str:
        """Visible area as ASCII art, one line per pixel row."""
        return "\n".join(
            "".join(on if self.get_pixel(x, y) else off for x in range(self._width))
            for y in range(self._height)
        )

    def render_image(
        self,
        scale: int = 4,
        ink_color: tuple = (40, 42, 40),
        paper_color: tuple = (148, 156, 132),
    ) -> bytes:
        """
        Render the visible area as a PNG image.

        Args:
            scale: Pixel scale factor (default 4)
            ink_color: RGB tuple for set pixels
            paper_color: RGB tuple for the LCD background

        Returns:
            PNG image bytes
        """
        img = Image.new("RGB", (self._width * scale, self._height * scale), color=paper_color)
        draw = ImageDraw.Draw(img)

        for y in range(self._height):
            for x in range(self._width):
                if self.get_pixel(x, y):
                    draw.rectangle(
                        [x * scale, y * scale, x * scale + scale - 1, y * scale + scale - 1],
                        fill=ink_color,
                    )

        buffer = io.BytesIO()
        img.save(buffer, format="PNG")
        return buffer.getvalue()
