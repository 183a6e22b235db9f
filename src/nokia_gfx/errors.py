"""
nokia-gfx Error Hierarchy
=========================

This module defines the exception hierarchy for the whole package.
All exceptions inherit from NokiaGfxError, allowing callers to catch all
package errors with a single except clause if desired.

Exception Hierarchy
-------------------
NokiaGfxError (base)
├── GraphicsError (layout conversion and frame differencing)
│   ├── InvalidDimensionsError - non-positive width or height
│   ├── DimensionMismatchError - buffers of different size
│   └── AllocationError - backing storage unavailable
├── AssetError (asset loading and generation)
│   ├── BitmapFormatError - malformed XBM or image input
│   └── EmissionError - invalid name for generated C code
└── CommsError (serial bridge communication)
    ├── ConnectionError - cannot open the bridge
    └── TransportError - write to the bridge failed

Every error is fatal to the operation in progress. No operation returns a
zeroed or partially filled buffer after raising.
"""

from dataclasses import dataclass
from typing import Optional


# =============================================================================
# Base Exception Class
# =============================================================================

class NokiaGfxError(Exception):
    """
    Base exception for all nokia-gfx errors.

        try:
            buffer = convert(load_xbm("logo.xbm"))
        except NokiaGfxError as e:
            print(f"Error: {e}")
    """
    pass


# =============================================================================
# Source Location Tracking
# =============================================================================

@dataclass(frozen=True)
class SourceLocation:
    """
    Location in a text asset (XBM file) for error reporting.

    Attributes:
        filename: Name of the source file (or "<input>" for string input)
        line: Line number (1-indexed)
        column: Column number (1-indexed)
    """
    filename: str
    line: int
    column: int

    def __str__(self) -> str:
        """Format as 'filename:line:column' for error messages."""
        return f"{self.filename}:{self.line}:{self.column}"


# =============================================================================
# Graphics Exceptions
# =============================================================================

class GraphicsError(NokiaGfxError):
    """Base exception for layout conversion and frame differencing."""
    pass


class InvalidDimensionsError(GraphicsError):
    """
    Width or height is not usable.

    Raised before any buffer is allocated when a bitmap or buffer is
    described with a zero or negative dimension, or when a buffer is too
    large to be addressed with 16-bit diff addresses.
    """

    def __init__(self, width: int, height: int, message: str = ""):
        self.width = width
        self.height = height
        if not message:
            message = (
                f"invalid dimensions {width}x{height}: "
                "width and height must be positive"
            )
        super().__init__(message)


class DimensionMismatchError(GraphicsError):
    """
    Two buffers (or a buffer and its declared shape) disagree in size.

    Raised by the frame differencer when its operands differ in byte
    length, and by buffer constructors when the data length does not match
    width * pages.
    """

    def __init__(self, expected: int, actual: int, message: str = ""):
        self.expected = expected
        self.actual = actual
        if not message:
            message = f"buffer size mismatch: expected {expected} bytes, got {actual}"
        super().__init__(message)


class AllocationError(GraphicsError):
    """Backing storage for an output buffer could not be allocated."""

    def __init__(self, size: int):
        self.size = size
        super().__init__(f"cannot allocate {size} byte buffer")


# =============================================================================
# Asset Exceptions
# =============================================================================

class AssetError(NokiaGfxError):
    """Base exception for asset loading and C code generation."""
    pass


class BitmapFormatError(AssetError):
    """
    Input bitmap could not be read.

    Attributes:
        message: The error description
        location: Where in the source the error occurred (optional)
        hint: A suggestion for fixing the error (optional)
    """

    def __init__(
        self,
        message: str,
        location: Optional[SourceLocation] = None,
        hint: Optional[str] = None,
    ):
        self.message = message
        self.location = location
        self.hint = hint
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """
        Format the error message with location and hint.

        Example output:
            logo.xbm:2:1: error: missing '#define logo_height'
            hint: XBM files declare both <name>_width and <name>_height
        """
        if self.location:
            text = f"{self.location}: error: {self.message}"
        else:
            text = f"error: {self.message}"
        if self.hint:
            text += f"\nhint: {self.hint}"
        return text


class EmissionError(AssetError):
    """Generated asset name is not a valid C identifier."""
    pass


# =============================================================================
# Communication Exceptions
# =============================================================================

class CommsError(NokiaGfxError):
    """Base exception for serial bridge communication."""
    pass


class ConnectionError(CommsError):
    """
    Cannot open or keep the connection to the serial bridge.

    Note: shadows the builtin ConnectionError inside this package. The
    package root re-exports it as NokiaGfxConnectionError.
    """
    pass


class TransportError(CommsError):
    """A controller write could not be delivered to the bridge."""
    pass
