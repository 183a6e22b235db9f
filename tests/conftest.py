"""
nokia-gfx Test Configuration
============================

Shared fixtures for the unit tests: small bitmaps with known pixels,
XBM text, and image files written to a temporary directory.
"""

import pytest
from pathlib import Path

from nokia_gfx.bitmap import SourceBitmap
from nokia_gfx.xbm import format_xbm


# ═══════════════════════════════════════════════════════════════════════════════
# BITMAP FIXTURES
# ═══════════════════════════════════════════════════════════════════════════════


@pytest.fixture
def blank_lcd() -> SourceBitmap:
    """Fixture: all-clear bitmap the size of the Nokia 5110 LCD (84x48)."""
    return SourceBitmap.blank(84, 48)


@pytest.fixture
def checkerboard() -> SourceBitmap:
    """Fixture: 84x48 checkerboard, pixel set where x + y is even."""
    rows = [
        "".join("#" if (x + y) % 2 == 0 else "." for x in range(84))
        for y in range(48)
    ]
    return SourceBitmap.from_rows(rows)


# ═══════════════════════════════════════════════════════════════════════════════
# FILE FIXTURES
# ═══════════════════════════════════════════════════════════════════════════════


@pytest.fixture
def write_xbm(tmp_path: Path):
    """
    Fixture: write a bitmap to an XBM file in tmp_path.

    Returns a function (name, bitmap) -> Path.
    """
    def _write(name: str, bitmap: SourceBitmap) -> Path:
        path = tmp_path / f"{name}.xbm"
        path.write_text(format_xbm(name, bitmap))
        return path

    return _write


@pytest.fixture
def frame_files(write_xbm):
    """
    Fixture: three 84x48 animation frames as XBM files.

    Frame 1 is blank, frame 2 sets pixel (3, 5), frame 3 also sets (6, 9).
    """
    first = SourceBitmap.blank(84, 48)
    second = first.with_pixel(3, 5)
    third = second.with_pixel(6, 9)
    return [
        write_xbm("x1", first),
        write_xbm("x2", second),
        write_xbm("x3", third),
    ]
