"""
nokia-gfx - Graphics Toolchain for Nokia 3310/5110 LCDs
=======================================================

This package converts bi-level images into the memory layout of the
PCD8544 dot-matrix LCD controller used in the Nokia 3310 and 5110
displays, encodes animations as byte-level frame diffs, and plays them
back on real hardware or on a simulated display.

The controller stores pixels in pages: 8 vertically stacked pixels per
byte, one byte per column, pages of 84 bytes stacked top to bottom.

Main Components
---------------
- **layout**: Layout converter (row-major bitmap -> page-major memory)
- **diff**: Frame differencer (ordered list of changed bytes)
- **playback**: Playback strategies (full rewrite or targeted updates)
- **animation** / **emit**: Animation building and C code generation
- **xbm** / **images**: Bitmap loaders (XBM, anything Pillow reads)
- **comms**: Serial bridge to a physical display

Quick Start
-----------
Convert an image:
    >>> from nokia_gfx import convert, load_bitmap
    >>> buffer = convert(load_bitmap("logo.xbm"))
    >>> len(buffer)
    504

Diff two frames:
    >>> from nokia_gfx import diff
    >>> changes = diff(frame1, frame2)

Or use the command-line tools:
    $ xbm2nokia animation frame*.xbm -o nokia_gfx.c --header nokia_gfx.h
    $ nokiaplay play frame*.xbm --mode targeted

Version History
---------------
1.0.0 - Initial release
"""

__version__ = "1.0.0"
__author__ = "nokia-gfx contributors"

# =============================================================================
# Public API Exports
# =============================================================================

from nokia_gfx.errors import (
    NokiaGfxError,
    GraphicsError,
    InvalidDimensionsError,
    DimensionMismatchError,
    AllocationError,
    AssetError,
    BitmapFormatError,
    EmissionError,
    CommsError,
    ConnectionError as NokiaGfxConnectionError,  # Avoid collision with builtin
    TransportError,
)
from nokia_gfx.bitmap import ByteSource, MappedFileSource, SourceBitmap
from nokia_gfx.layout import (
    PAGE_HEIGHT,
    PageMajorBuffer,
    arrange_pages,
    convert,
    page_count,
    rotate_flip,
)
from nokia_gfx.diff import DiffEntry, FrameDiff, apply_diff, diff
from nokia_gfx.transport import PCD8544Transport, RecordingTransport, Transport
from nokia_gfx.playback import (
    TARGETED_BREAK_EVEN,
    FullRewriteStrategy,
    PlaybackContext,
    PlaybackMode,
    PlaybackStrategy,
    ShadowMemory,
    TargetedStrategy,
    apply,
    strategy_for,
    suggest_mode,
    transmit_full,
)
from nokia_gfx.animation import Animation, Transition, build_animation
from nokia_gfx.config import DisplayConfig
from nokia_gfx.display import SimulatedDisplay
from nokia_gfx.xbm import XbmImage, format_xbm, load_xbm, parse_xbm
from nokia_gfx.images import load_bitmap, load_image

__all__ = [
    # Version info
    "__version__",
    "__author__",
    # Exception hierarchy
    "NokiaGfxError",
    "GraphicsError",
    "InvalidDimensionsError",
    "DimensionMismatchError",
    "AllocationError",
    "AssetError",
    "BitmapFormatError",
    "EmissionError",
    "CommsError",
    "NokiaGfxConnectionError",
    "TransportError",
    # Bitmaps
    "ByteSource",
    "MappedFileSource",
    "SourceBitmap",
    # Layout converter
    "PAGE_HEIGHT",
    "PageMajorBuffer",
    "arrange_pages",
    "convert",
    "page_count",
    "rotate_flip",
    # Frame differencer
    "DiffEntry",
    "FrameDiff",
    "apply_diff",
    "diff",
    # Transport
    "PCD8544Transport",
    "RecordingTransport",
    "Transport",
    # Playback
    "TARGETED_BREAK_EVEN",
    "FullRewriteStrategy",
    "PlaybackContext",
    "PlaybackMode",
    "PlaybackStrategy",
    "ShadowMemory",
    "TargetedStrategy",
    "apply",
    "strategy_for",
    "suggest_mode",
    "transmit_full",
    # Animation
    "Animation",
    "Transition",
    "build_animation",
    # Configuration and simulation
    "DisplayConfig",
    "SimulatedDisplay",
    # Loaders
    "XbmImage",
    "format_xbm",
    "load_xbm",
    "parse_xbm",
    "load_bitmap",
    "load_image",
]
