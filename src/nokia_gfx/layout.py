"""
Layout Converter: Row-Major Bitmap to Page-Major Controller Memory
===================================================================

The PCD8544 controller of the Nokia 3310/5110 LCD (and most other dot
matrix controllers such as the SSD1306) does not store pixels row by row.
Its memory is divided into *pages*, horizontal bands eight pixels tall.
Each byte holds eight vertically stacked pixels of one column within one
page, bit 0 being the topmost. Bytes are addressed page first:

    address = page * W + column

    page 0:  [col 0][col 1][col 2] ... [col W-1]
    page 1:  [col 0][col 1][col 2] ... [col W-1]
    ...

Conversion runs in two stages:

1. rotate_flip(): walk every source column top to bottom and pack each
   run of eight rows into one byte. The result is column-major, with
   ``ceil(H / 8)`` bytes ("bands") per column.

2. arrange_pages(): transpose the column-major bytes into page-major
   order. This is a pure index permutation, no bits are touched:

       out[band * W + column] = in[column * pages + band]

The output can be copied straight into controller memory, or sent with
one cursor setup per page.

Partial Pages
-------------
When H is not a multiple of 8 the last page is only partly covered by
the image. Its unused high bits are always zero.
"""

import logging
from dataclasses import dataclass, field
from typing import Iterator

from nokia_gfx.bitmap import ByteSource, SourceBitmap
from nokia_gfx.errors import (
    AllocationError,
    DimensionMismatchError,
    InvalidDimensionsError,
)

logger = logging.getLogger(__name__)

# Pixel rows packed into one controller byte
PAGE_HEIGHT = 8


def page_count(height: int) -> int:
    """Number of 8-row pages needed to cover the given pixel height."""
    return (height + PAGE_HEIGHT - 1) // PAGE_HEIGHT


def _allocate(size: int) -> bytearray:
    """Allocate a zeroed output buffer, reporting failure as AllocationError."""
    try:
        return bytearray(size)
    except MemoryError as e:
        raise AllocationError(size) from e


# =============================================================================
# Page-Major Buffer
# =============================================================================

@dataclass(frozen=True)
class PageMajorBuffer:
    """
    Immutable image of the controller's addressable memory.

    Attributes:
        width: Columns per page (W)
        pages: Number of pages (ceil(H / 8))
        data: width * pages bytes in page-major order

    Example:
        >>> buf = convert(SourceBitmap.blank(84, 48))
        >>> len(buf), buf.pages
        (504, 6)
        >>> buf.coordinates(90)
        (1, 6)
    """
    width: int
    pages: int
    data: bytes = field(repr=False)

    def __post_init__(self):
        if self.width <= 0 or self.pages <= 0:
            raise InvalidDimensionsError(self.width, self.pages * PAGE_HEIGHT)
        if not isinstance(self.data, bytes):
            if isinstance(self.data, (int, str)):
                raise TypeError(
                    f"buffer data must be bytes-like, not {type(self.data).__name__}"
                )
            object.__setattr__(self, "data", bytes(self.data))
        expected = self.width * self.pages
        if len(self.data) != expected:
            raise DimensionMismatchError(expected, len(self.data))

    @classmethod
    def blank(cls, width: int, pages: int) -> "PageMajorBuffer":
        """All-clear buffer of the given shape."""
        if width <= 0 or pages <= 0:
            raise InvalidDimensionsError(width, pages * PAGE_HEIGHT)
        return cls(width, pages, bytes(_allocate(width * pages)))

    @classmethod
    def from_source(
        cls,
        width: int,
        pages: int,
        source: ByteSource,
        offset: int = 0,
    ) -> "PageMajorBuffer":
        """Load an already converted frame (e.g. a stored keyframe)."""
        if width <= 0 or pages <= 0:
            raise InvalidDimensionsError(width, pages * PAGE_HEIGHT)
        size = width * pages
        if offset < 0 or offset + size > len(source):
            raise DimensionMismatchError(size, max(len(source) - offset, 0))
        return cls(width, pages, bytes(source[offset + i] for i in range(size)))

    # -------------------------------------------------------------------------
    # Sequence Protocol
    # -------------------------------------------------------------------------

    def __len__(self) -> int:
        return len(self.data)

    def __getitem__(self, index):
        return self.data[index]

    def __iter__(self) -> Iterator[int]:
        return iter(self.data)

    def __bytes__(self) -> bytes:
        return self.data

    # -------------------------------------------------------------------------
    # Addressing
    # -------------------------------------------------------------------------

    def address(self, page: int, column: int) -> int:
        """Linear address of the byte at (page, column)."""
        if not (0 <= page < self.pages and 0 <= column < self.width):
            raise ValueError(f"Invalid position (page {page}, column {column})")
        return page * self.width + column

    def coordinates(self, address: int) -> tuple[int, int]:
        """Inverse of address(): (page, column) of a linear address."""
        if not 0 <= address < len(self.data):
            raise ValueError(f"Address {address} outside buffer of {len(self.data)} bytes")
        page = address // self.width
        return page, address - page * self.width

    def page_bytes(self, page: int) -> bytes:
        """The W bytes of one page, left to right."""
        start = self.address(page, 0)
        return self.data[start:start + self.width]

    def get_pixel(self, x: int, y: int) -> bool:
        """True if display pixel (x, y) is set in this buffer."""
        if not (0 <= x < self.width and 0 <= y < self.pages * PAGE_HEIGHT):
            raise ValueError(f"Invalid pixel position ({x}, {y})")
        page, bit = divmod(y, PAGE_HEIGHT)
        return bool((self.data[page * self.width + x] >> bit) & 1)


# =============================================================================
# Conversion Stages
# =============================================================================

def rotate_flip(bitmap: SourceBitmap) -> bytearray:
    """
    Stage 1: rotate the bitmap and pack each column into vertical bands.

    For every column x, source rows are walked top to bottom. Row y sets
    bit (y mod 8) of the band byte, which is stored at
    ``x * pages + y // 8`` once eight rows are collected or the last
    row is reached.

    Returns:
        Column-major intermediate buffer of W * ceil(H / 8) bytes.
    """
    width, height = bitmap.width, bitmap.height
    stride = bitmap.row_stride
    bands = page_count(height)
    data = bitmap.data
    out = _allocate(width * bands)

    for x in range(width):
        byte_index, bit = divmod(x, 8)
        out_byte = 0
        for y in range(height):
            value = (data[y * stride + byte_index] >> bit) & 0x01
            band, row_bit = divmod(y, PAGE_HEIGHT)
            out_byte |= value << row_bit
            if row_bit == PAGE_HEIGHT - 1 or y == height - 1:
                out[x * bands + band] = out_byte
                out_byte = 0

    return out


def arrange_pages(column_major: ByteSource, width: int, pages: int) -> bytearray:
    """
    Stage 2: transpose column-major bands into page-major order.

        x0_0, x0_1, ..., x0_m        x0_0, x1_0, ..., xn_0
        x1_0, x1_1, ..., x1_m   ->   x0_1, x1_1, ..., xn_1
        ...                          ...
        xn_0, xn_1, ..., xn_m        x0_m, x1_m, ..., xn_m

    with n = W - 1 columns and m = pages - 1 bands.
    """
    size = width * pages
    if len(column_major) != size:
        raise DimensionMismatchError(size, len(column_major))

    out = _allocate(size)
    for band in range(pages):
        for column in range(width):
            out[band * width + column] = column_major[column * pages + band]
    return out


def convert(bitmap: SourceBitmap) -> PageMajorBuffer:
    """
    Convert a source bitmap into the controller's page-major memory layout.

    Args:
        bitmap: Row-major, LSB-first bi-level bitmap

    Returns:
        PageMajorBuffer of exactly W * ceil(H / 8) bytes

    Raises:
        InvalidDimensionsError: Width or height is not positive
        AllocationError: The output buffer could not be allocated
    """
    if bitmap.width <= 0 or bitmap.height <= 0:
        raise InvalidDimensionsError(bitmap.width, bitmap.height)

    pages = page_count(bitmap.height)
    column_major = rotate_flip(bitmap)
    page_major = arrange_pages(column_major, bitmap.width, pages)

    logger.debug(
        "Converted %dx%d bitmap into %d pages (%d bytes)",
        bitmap.width, bitmap.height, pages, len(page_major),
    )
    return PageMajorBuffer(bitmap.width, pages, bytes(page_major))
