"""
XBM Bitmap Reader and Writer
============================

XBM (X BitMap) files are C source fragments describing a monochrome
image:

    #define logo_width 16
    #define logo_height 8
    static unsigned char logo_bits[] = {
       0x00, 0x00, 0x08, 0x00, ... };

Rows are padded to whole bytes and the least significant bit of each
byte is the leftmost pixel, which is exactly the SourceBitmap layout, so
the array data is used as is. A set bit is a foreground (ink) pixel.

Only the X11 format (``char`` arrays) is supported; the older X10 format
with ``short`` arrays is rejected.
"""

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

from nokia_gfx.bitmap import SourceBitmap
from nokia_gfx.errors import BitmapFormatError, SourceLocation

logger = logging.getLogger(__name__)

DEFINE_PATTERN = re.compile(
    r"^[ \t]*#define[ \t]+(\w+?)_(width|height|x_hot|y_hot)[ \t]+(\S+)",
    re.MULTILINE,
)
ARRAY_PATTERN = re.compile(
    r"(?:static\s+)?(?:const\s+)?(?:unsigned\s+)?(char|short)\s+(\w+?)_bits\s*\[\s*\]"
    r"[^=]*=\s*\{(.*?)\}",
    re.DOTALL,
)


@dataclass(frozen=True)
class XbmImage:
    """
    Parsed XBM file.

    Attributes:
        name: Symbol prefix used in the file (e.g. "logo")
        bitmap: The image data
        hotspot: (x, y) hotspot if the file declares one
    """
    name: str
    bitmap: SourceBitmap
    hotspot: Optional[tuple[int, int]] = None


def _location(text: str, filename: str, pos: int) -> SourceLocation:
    line = text.count("\n", 0, pos) + 1
    column = pos - (text.rfind("\n", 0, pos) + 1) + 1
    return SourceLocation(filename, line, column)


def _parse_number(token: str, text: str, filename: str, pos: int) -> int:
    try:
        return int(token, 0)
    except ValueError:
        raise BitmapFormatError(
            f"invalid number '{token}'",
            location=_location(text, filename, pos),
        ) from None


def parse_xbm(text: str, filename: str = "<input>") -> XbmImage:
    """
    Parse XBM source text.

    Args:
        text: Contents of the XBM file
        filename: Name used in error messages

    Returns:
        XbmImage with the decoded bitmap

    Raises:
        BitmapFormatError: Missing defines, bad numbers or short data
        InvalidDimensionsError: Declared width or height is not positive
    """
    defines: dict[str, dict[str, int]] = {}
    for match in DEFINE_PATTERN.finditer(text):
        prefix, kind, token = match.groups()
        defines.setdefault(prefix, {})[kind] = _parse_number(
            token, text, filename, match.start(3)
        )

    array = ARRAY_PATTERN.search(text)
    if array is None:
        raise BitmapFormatError(
            "no '<name>_bits[]' array found",
            location=SourceLocation(filename, 1, 1),
            hint="is this an XBM file?",
        )
    element_type, name = array.group(1), array.group(2)
    if element_type == "short":
        raise BitmapFormatError(
            "X10 format XBM (short array) is not supported",
            location=_location(text, filename, array.start()),
            hint="re-save the image as an X11 bitmap",
        )

    sizes = defines.get(name, {})
    for kind in ("width", "height"):
        if kind not in sizes:
            raise BitmapFormatError(
                f"missing '#define {name}_{kind}'",
                location=_location(text, filename, array.start()),
                hint=f"XBM files declare both {name}_width and {name}_height",
            )

    values = []
    body_start = array.start(3)
    for match in re.finditer(r"[^,\s]+", array.group(3)):
        value = _parse_number(match.group(), text, filename, body_start + match.start())
        if not 0 <= value <= 0xFF:
            raise BitmapFormatError(
                f"byte value {value} out of range",
                location=_location(text, filename, body_start + match.start()),
            )
        values.append(value)

    width, height = sizes["width"], sizes["height"]
    bitmap = SourceBitmap(width, height, bytes(values))
    if len(values) > bitmap.row_stride * height:
        logger.warning(
            "%s: %d trailing bytes after %dx%d image ignored",
            filename, len(values) - bitmap.row_stride * height, width, height,
        )

    hotspot = None
    if "x_hot" in sizes and "y_hot" in sizes:
        hotspot = (sizes["x_hot"], sizes["y_hot"])

    logger.debug("Parsed XBM %s from %s: %dx%d", name, filename, width, height)
    return XbmImage(name=name, bitmap=bitmap, hotspot=hotspot)


def load_xbm(path: Union[str, Path]) -> XbmImage:
    """Read and parse an XBM file."""
    path = Path(path)
    return parse_xbm(path.read_text(encoding="ascii", errors="replace"), filename=str(path))


def format_xbm(name: str, bitmap: SourceBitmap) -> str:
    """
    Write a bitmap as X11 XBM source.

    Args:
        name: Symbol prefix (e.g. "frame1")
        bitmap: Image to write

    Returns:
        XBM text with 12 bytes per line
    """
    size = bitmap.row_stride * bitmap.height
    values = [f"0x{bitmap.data[i]:02x}" for i in range(size)]
    lines = [
        f"#define {name}_width {bitmap.width}",
        f"#define {name}_height {bitmap.height}",
        f"static unsigned char {name}_bits[] = {{",
    ]
    for start in range(0, size, 12):
        chunk = ", ".join(values[start:start + 12])
        last = start + 12 >= size
        lines.append(f"   {chunk}{' };' if last else ','}")
    return "\n".join(lines) + "\n"
