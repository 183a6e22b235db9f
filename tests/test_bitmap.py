"""
Source Bitmap Unit Tests
========================

Tests for SourceBitmap and the read-only byte sources.
"""

import pytest

from nokia_gfx.bitmap import MappedFileSource, SourceBitmap, row_stride
from nokia_gfx.errors import BitmapFormatError, InvalidDimensionsError
from nokia_gfx.layout import convert


# =============================================================================
# SourceBitmap Tests
# =============================================================================

class TestSourceBitmap:
    """Test bitmap construction and pixel access."""

    @pytest.mark.parametrize("width,stride", [(1, 1), (8, 1), (9, 2), (84, 11)])
    def test_row_stride(self, width, stride):
        """Rows are padded to whole bytes."""
        assert row_stride(width) == stride
        assert SourceBitmap.blank(width, 1).row_stride == stride

    def test_lsb_is_leftmost(self):
        """Bit b of byte k is pixel 8k + b."""
        bitmap = SourceBitmap(16, 1, bytes([0x01, 0x80]))
        assert bitmap.get_pixel(0, 0)
        assert bitmap.get_pixel(15, 0)
        assert not bitmap.get_pixel(1, 0)

    def test_with_pixel(self):
        blank = SourceBitmap.blank(16, 8)
        bitmap = blank.with_pixel(3, 5)
        assert bitmap.get_pixel(3, 5)
        assert not blank.get_pixel(3, 5)
        assert bitmap.data[5 * 2] == 0x08

    def test_with_pixel_clear(self):
        bitmap = SourceBitmap.from_rows(["##"]).with_pixel(0, 0, on=False)
        assert bitmap.to_rows() == [".#"]

    def test_from_rows(self):
        bitmap = SourceBitmap.from_rows(["#.X", ".*."])
        assert (bitmap.width, bitmap.height) == (3, 2)
        assert bitmap.to_rows() == ["#.#", ".#."]

    def test_from_rows_ragged(self):
        with pytest.raises(BitmapFormatError):
            SourceBitmap.from_rows(["##", "#"])

    def test_from_rows_empty(self):
        with pytest.raises(InvalidDimensionsError):
            SourceBitmap.from_rows([])

    def test_data_too_short(self):
        with pytest.raises(BitmapFormatError, match="too short"):
            SourceBitmap(16, 8, bytes(15))

    def test_pixel_out_of_range(self):
        with pytest.raises(ValueError):
            SourceBitmap.blank(8, 8).get_pixel(8, 0)

    def test_mutable_input_copied(self):
        raw = bytearray(1)
        bitmap = SourceBitmap(8, 1, raw)
        raw[0] = 0xFF
        assert not bitmap.get_pixel(0, 0)

    def test_writable_view_copied(self):
        """A writable memoryview cannot change the bitmap or its conversion."""
        raw = bytearray(8)
        bitmap = SourceBitmap(8, 8, memoryview(raw))
        before = bytes(convert(bitmap))
        raw[0] = 0xFF
        assert not bitmap.get_pixel(0, 0)
        assert bytes(convert(bitmap)) == before

    def test_readonly_view_kept(self):
        """Read-only views are used in place."""
        view = memoryview(bytes(8))
        assert SourceBitmap(8, 8, view).data is view

    def test_from_source_offset(self):
        source = b"\xAA\xBB\x01\x02"
        bitmap = SourceBitmap.from_source(8, 2, source, offset=2)
        assert bitmap.get_pixel(0, 0)
        assert bitmap.get_pixel(1, 1)


# =============================================================================
# MappedFileSource Tests
# =============================================================================

class TestMappedFileSource:
    """Test memory-mapped file regions."""

    def test_region(self, tmp_path):
        path = tmp_path / "assets.bin"
        path.write_bytes(bytes(range(32)))
        with MappedFileSource(path, offset=8, length=4) as source:
            assert len(source) == 4
            assert source[0] == 8
            assert source[-1] == 11
            assert source[1:3] == bytes([9, 10])
            with pytest.raises(IndexError):
                source[4]

    def test_whole_file(self, tmp_path):
        path = tmp_path / "frame.bin"
        path.write_bytes(b"\x01\x00" * 8)
        with MappedFileSource(path) as source:
            bitmap = SourceBitmap.from_source(16, 8, source)
            assert bitmap.get_pixel(0, 7)

    def test_region_outside_file(self, tmp_path):
        path = tmp_path / "small.bin"
        path.write_bytes(bytes(4))
        with pytest.raises(BitmapFormatError):
            MappedFileSource(path, offset=2, length=4)
