"""
Image Loading with Pillow
=========================

Turns ordinary image files (PNG, BMP, GIF, ...) into SourceBitmaps and
renders SourceBitmaps back into PNG previews.

Thresholding
------------
Images are converted to 8-bit grayscale. A pixel darker than the
threshold becomes a set (ink) pixel, because on the LCD a set bit is a
dark dot. Pass ``invert=True`` for light-on-dark artwork.
"""

import io
import logging
from pathlib import Path
from typing import Optional, Union

from PIL import Image, UnidentifiedImageError

from nokia_gfx.bitmap import SourceBitmap, row_stride
from nokia_gfx.errors import BitmapFormatError, InvalidDimensionsError
from nokia_gfx.xbm import load_xbm

logger = logging.getLogger(__name__)

DEFAULT_THRESHOLD = 128


def bitmap_from_image(
    img: Image.Image,
    threshold: int = DEFAULT_THRESHOLD,
    invert: bool = False,
    size: Optional[tuple[int, int]] = None,
) -> SourceBitmap:
    """
    Pack a Pillow image into a SourceBitmap.

    Args:
        img: Any Pillow image
        threshold: Gray level (0-255) below which a pixel is set
        invert: Set light pixels instead of dark ones
        size: Resize to (width, height) first, if given
    """
    if not 0 <= threshold <= 255:
        raise ValueError(f"Threshold must be 0-255, got {threshold}")

    gray = img.convert("L")
    if size is not None:
        if size[0] <= 0 or size[1] <= 0:
            raise InvalidDimensionsError(size[0], size[1])
        gray = gray.resize(size, Image.Resampling.LANCZOS)

    width, height = gray.size
    stride = row_stride(width)
    data = bytearray(stride * height)
    pixels = gray.load()

    for y in range(height):
        for x in range(width):
            dark = pixels[x, y] < threshold
            if dark != invert:
                data[y * stride + x // 8] |= 1 << (x % 8)

    return SourceBitmap(width, height, bytes(data))


def load_image(
    path: Union[str, Path],
    threshold: int = DEFAULT_THRESHOLD,
    invert: bool = False,
    size: Optional[tuple[int, int]] = None,
) -> SourceBitmap:
    """
    Load an image file as a SourceBitmap.

    Raises:
        BitmapFormatError: The file is not an image Pillow can read
    """
    path = Path(path)
    try:
        with Image.open(path) as img:
            bitmap = bitmap_from_image(img, threshold=threshold, invert=invert, size=size)
    except UnidentifiedImageError as e:
        raise BitmapFormatError(f"cannot identify image file {path}") from e

    logger.debug("Loaded image %s: %dx%d", path, bitmap.width, bitmap.height)
    return bitmap


def load_bitmap(
    path: Union[str, Path],
    threshold: int = DEFAULT_THRESHOLD,
    invert: bool = False,
) -> SourceBitmap:
    """Load a bitmap from an .xbm file or any image format Pillow reads."""
    path = Path(path)
    if path.suffix.lower() == ".xbm":
        bitmap = load_xbm(path).bitmap
        if invert:
            stride = bitmap.row_stride
            data = bytes(
                (~bitmap.data[i]) & 0xFF for i in range(stride * bitmap.height)
            )
            bitmap = SourceBitmap(bitmap.width, bitmap.height, data)
        return bitmap
    return load_image(path, threshold=threshold, invert=invert)


def render_bitmap_image(bitmap: SourceBitmap, scale: int = 4) -> bytes:
    """
    Render a SourceBitmap as a PNG preview, set pixels black.

    Returns:
        PNG image bytes
    """
    if scale <= 0:
        raise ValueError(f"Scale must be positive, got {scale}")

    img = Image.new("1", (bitmap.width, bitmap.height), color=1)
    pixels = img.load()
    for y in range(bitmap.height):
        for x in range(bitmap.width):
            if bitmap.get_pixel(x, y):
                pixels[x, y] = 0

    if scale != 1:
        img = img.resize((bitmap.width * scale, bitmap.height * scale), Image.Resampling.NEAREST)

    buffer = io.BytesIO()
    img.save(buffer, format="PNG")
    return buffer.getvalue()
