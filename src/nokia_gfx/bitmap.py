"""
Source Bitmaps and Read-Only Byte Sources
=========================================

A SourceBitmap is the bi-level input image of the layout converter:
row-major, one bit per pixel, each row padded to a whole number of bytes.

Bit Layout
----------
For a bitmap of width W, every row occupies ``ceil(W / 8)`` bytes. Bit
``b`` of byte ``k`` in a row is the pixel at column ``8k + b``, so the
least significant bit is the leftmost pixel of its group of eight. A set
bit is a dark (ink) pixel. This is the native XBM layout, so XBM data can
be used without repacking.

Byte Sources
------------
Pixel and frame data are read through the ByteSource protocol: anything
with ``len()`` and integer indexing returning 0-255. ``bytes``, a read-only
``memoryview`` and MappedFileSource (a read-only memory map of a file
region) all qualify. Core logic never depends on where the bytes live.
"""

import logging
import mmap
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Optional, Protocol, Union

from nokia_gfx.errors import BitmapFormatError, InvalidDimensionsError

logger = logging.getLogger(__name__)

# Characters treated as a set pixel by SourceBitmap.from_rows()
SET_PIXEL_CHARS = frozenset("#X1*@")


# =============================================================================
# Read-Only Byte Sources
# =============================================================================

class ByteSource(Protocol):
    """Read-only, randomly addressable sequence of byte values."""

    def __len__(self) -> int:
        ...

    def __getitem__(self, index: int) -> int:
        ...


class MappedFileSource:
    """
    Read-only memory-mapped view of a region of a file.

    Lets keyframes or raw bitmaps stored in a larger asset file be used
    directly as a ByteSource without copying them into memory.

    Example:
        >>> with MappedFileSource("frames.bin", offset=504, length=504) as src:
        ...     frame = PageMajorBuffer.from_source(84, 6, src)
    """

    def __init__(
        self,
        path: Union[str, Path],
        offset: int = 0,
        length: Optional[int] = None,
    ):
        self.path = Path(path)
        self._file = open(self.path, "rb")
        try:
            size = self.path.stat().st_size
            if length is None:
                length = size - offset
            if offset < 0 or length < 0 or offset + length > size:
                raise BitmapFormatError(
                    f"region {offset}+{length} is outside {self.path} ({size} bytes)"
                )
            self._map = mmap.mmap(self._file.fileno(), 0, access=mmap.ACCESS_READ)
        except Exception:
            self._file.close()
            raise
        self._offset = offset
        self._length = length
        logger.debug("Mapped %s [%d:%d]", self.path, offset, offset + length)

    def __len__(self) -> int:
        return self._length

    def __getitem__(self, index):
        if isinstance(index, slice):
            start, stop, step = index.indices(self._length)
            return bytes(self._map[self._offset + i] for i in range(start, stop, step))
        if index < 0:
            index += self._length
        if not 0 <= index < self._length:
            raise IndexError("byte source index out of range")
        return self._map[self._offset + index]

    def close(self) -> None:
        """Release the mapping and the underlying file."""
        self._map.close()
        self._file.close()

    def __enter__(self) -> "MappedFileSource":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


def row_stride(width: int) -> int:
    """Bytes per padded source row for a bitmap of the given width."""
    return (width + 7) // 8


# =============================================================================
# Source Bitmap
# =============================================================================

@dataclass(frozen=True)
class SourceBitmap:
    """
    Immutable bi-level bitmap in row-major, LSB-first layout.

    Attributes:
        width: Width in pixels (> 0)
        height: Height in pixels (> 0)
        data: Packed rows, at least row_stride * height bytes

    Example:
        >>> bmp = SourceBitmap.blank(16, 8).with_pixel(3, 5)
        >>> bmp.get_pixel(3, 5)
        True
    """
    width: int
    height: int
    data: ByteSource = field(repr=False)

    def __post_init__(self):
        if self.width <= 0 or self.height <= 0:
            raise InvalidDimensionsError(self.width, self.height)

        required = row_stride(self.width) * self.height
        if len(self.data) < required:
            raise BitmapFormatError(
                f"bitmap data too short for {self.width}x{self.height}: "
                f"need {required} bytes, got {len(self.data)}"
            )

        # Freeze mutable inputs so the bitmap really is immutable
        writable_view = isinstance(self.data, memoryview) and not self.data.readonly
        if isinstance(self.data, (bytearray, list)) or writable_view:
            object.__setattr__(self, "data", bytes(self.data))

    @property
    def row_stride(self) -> int:
        """Bytes per padded row."""
        return row_stride(self.width)

    # -------------------------------------------------------------------------
    # Constructors
    # -------------------------------------------------------------------------

    @classmethod
    def blank(cls, width: int, height: int) -> "SourceBitmap":
        """Create an all-clear bitmap."""
        if width <= 0 or height <= 0:
            raise InvalidDimensionsError(width, height)
        return cls(width, height, bytes(row_stride(width) * height))

    @classmethod
    def from_source(
        cls,
        width: int,
        height: int,
        source: ByteSource,
        offset: int = 0,
    ) -> "SourceBitmap":
        """
        Wrap packed rows held in any ByteSource.

        Args:
            width: Width in pixels
            height: Height in pixels
            source: Where the packed rows live
            offset: Index of the first row byte within source
        """
        if offset == 0:
            return cls(width, height, source)
        end = offset + row_stride(max(width, 0)) * max(height, 0)
        return cls(width, height, bytes(source[i] for i in range(offset, min(end, len(source)))))

    @classmethod
    def from_rows(cls, rows: Iterable[str]) -> "SourceBitmap":
        """
        Build a bitmap from ASCII art, one string per row.

        '#', 'X', '1', '*' and '@' are set pixels; anything else is clear.

            >>> SourceBitmap.from_rows(["#..", ".#.", "..#"])
        """
        rows = list(rows)
        if not rows:
            raise InvalidDimensionsError(0, 0)
        width = len(rows[0])
        for number, row in enumerate(rows, start=1):
            if len(row) != width:
                raise BitmapFormatError(
                    f"row {number} is {len(row)} pixels wide, expected {width}"
                )
        if width == 0:
            raise InvalidDimensionsError(0, len(rows))

        stride = row_stride(width)
        data = bytearray(stride * len(rows))
        for y, row in enumerate(rows):
            for x, char in enumerate(row):
                if char in SET_PIXEL_CHARS:
                    data[y * stride + x // 8] |= 1 << (x % 8)
        return cls(width, len(rows), bytes(data))

    # -------------------------------------------------------------------------
    # Pixel Access
    # -------------------------------------------------------------------------

    def get_pixel(self, x: int, y: int) -> bool:
        """Return True if the pixel at (x, y) is set."""
        if not (0 <= x < self.width and 0 <= y < self.height):
            raise ValueError(f"Invalid pixel position ({x}, {y})")
        return bool((self.data[y * self.row_stride + x // 8] >> (x % 8)) & 1)

    def with_pixel(self, x: int, y: int, on: bool = True) -> "SourceBitmap":
        """Return a copy of this bitmap with one pixel set or cleared."""
        if not (0 <= x < self.width and 0 <= y < self.height):
            raise ValueError(f"Invalid pixel position ({x}, {y})")
        size = self.row_stride * self.height
        data = bytearray(self.data[i] for i in range(size))
        index = y * self.row_stride + x // 8
        if on:
            data[index] |= 1 << (x % 8)
        else:
            data[index] &= ~(1 << (x % 8)) & 0xFF
        return SourceBitmap(self.width, self.height, bytes(data))

    def to_rows(self, on: str = "#", off: str = ".") -> list[str]:
        """Render as ASCII art (inverse of from_rows)."""
        return [
            "".join(on if self.get_pixel(x, y) else off for x in range(self.width))
            for y in range(self.height)
        ]
