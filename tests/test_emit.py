"""
C Emission Unit Tests
=====================

Tests for the generated keyframe arrays, transition structs and the
animation / image-set files.
"""

import pytest

from nokia_gfx.animation import build_animation
from nokia_gfx.bitmap import SourceBitmap
from nokia_gfx.diff import FrameDiff
from nokia_gfx.emit import (
    STRUCT_DEFINITIONS,
    format_animation_source,
    format_frame_transition,
    format_gfx_header,
    format_image_set,
    format_keyframe,
    validate_identifier,
)
from nokia_gfx.errors import EmissionError
from nokia_gfx.layout import PageMajorBuffer, convert


@pytest.fixture
def animation():
    first = SourceBitmap.blank(84, 48)
    second = first.with_pixel(3, 5)
    return build_animation([first, second], name="blink", delay_ms=250)


# =============================================================================
# Identifier Tests
# =============================================================================

class TestIdentifiers:
    """Test C identifier validation."""

    @pytest.mark.parametrize("name", ["logo", "_x1", "nokia_gfx_trans_x1_x2"])
    def test_valid(self, name):
        assert validate_identifier(name) == name

    @pytest.mark.parametrize("name", ["", "1logo", "my-logo", "a b"])
    def test_invalid(self, name):
        with pytest.raises(EmissionError):
            validate_identifier(name)

    def test_keyword(self):
        with pytest.raises(EmissionError, match="keyword"):
            validate_identifier("static")


# =============================================================================
# Keyframe Tests
# =============================================================================

class TestFormatKeyframe:
    """Test full frame arrays."""

    def test_small_frame(self):
        fragment = format_keyframe("logo", PageMajorBuffer(4, 1, b"\x01\x02\x03\x04"))
        assert fragment.source == (
            "const uint8_t logo[] PROGMEM = {\n"
            "    0x01, 0x02, 0x03, 0x04,\n"
            "};\n"
        )
        assert fragment.header == "extern const uint8_t logo[];\n"

    def test_eight_bytes_per_line(self):
        fragment = format_keyframe("frame", PageMajorBuffer.blank(84, 6))
        data_lines = fragment.source.splitlines()[1:-1]
        assert len(data_lines) == 63
        assert all(line.count("0x") == 8 for line in data_lines)

    def test_address_order(self):
        """Bytes appear in ascending address order."""
        buffer = PageMajorBuffer(8, 1, bytes(range(8)))
        line = format_keyframe("f", buffer).source.splitlines()[1]
        assert line.strip() == ", ".join(f"0x{i:02x}" for i in range(8)) + ","


# =============================================================================
# Transition Tests
# =============================================================================

class TestFormatTransition:
    """Test frame transition structs."""

    def test_struct(self):
        frame_diff = FrameDiff.from_pairs([(3, 0x20), (90, 0x07)], delay_ms=500)
        fragment = format_frame_transition("t", frame_diff)
        assert fragment.source == (
            "const struct nokia_gfx_frame t PROGMEM = {\n"
            "    .delay = 500,\n"
            "    .diffcnt = 2,\n"
            "    .diffs = {\n"
            "        {  3, 0x20}, { 90, 0x07},\n"
            "    }\n"
            "};\n"
        )
        assert fragment.header == "extern const struct nokia_gfx_frame t;\n"

    def test_four_per_line(self):
        frame_diff = FrameDiff.from_pairs((a, 1) for a in range(10))
        lines = format_frame_transition("t", frame_diff).source.splitlines()
        diff_lines = [line for line in lines if line.startswith("        {")]
        assert [line.count("{") for line in diff_lines] == [4, 4, 2]

    def test_empty_diff(self):
        fragment = format_frame_transition("t", FrameDiff())
        assert ".diffcnt = 0," in fragment.source

    def test_bad_name(self):
        with pytest.raises(EmissionError):
            format_frame_transition("2fast", FrameDiff())


# =============================================================================
# Animation File Tests
# =============================================================================

class TestAnimationFiles:
    """Test complete header and source output."""

    def test_header(self, animation):
        header = format_gfx_header(animation)
        assert "#ifndef _BLINK_H_" in header
        assert "#define NOKIA_GFX_ANIMATION" in header
        assert STRUCT_DEFINITIONS in header
        assert "#define BLINK_FRAME_COUNT 2" in header
        assert "extern const uint8_t blink_keyframe[];" in header
        assert "extern const struct nokia_gfx_frame blink_trans_x1_x2;" in header
        assert "extern const struct nokia_gfx_frame blink_trans_x2_x1;" in header
        assert header.rstrip().endswith("#endif")

    def test_source(self, animation):
        source = format_animation_source(animation)
        assert '#include "blink.h"' in source
        assert "const uint8_t blink_keyframe[] PROGMEM = {" in source
        assert "{  3, 0x20}," in source
        assert ".delay = 250," in source
        table = source[source.index("blink_frames[BLINK_FRAME_COUNT]"):]
        assert table.index("&blink_trans_x1_x2") < table.index("&blink_trans_x2_x1")

    def test_source_header_name(self, animation):
        source = format_animation_source(animation, header_name="gfx.h")
        assert '#include "gfx.h"' in source


# =============================================================================
# Image Set Tests
# =============================================================================

class TestImageSet:
    """Test still image sets."""

    def test_image_set(self):
        buffers = [convert(SourceBitmap.blank(8, 8)), convert(SourceBitmap.blank(8, 8).with_pixel(0, 0))]
        fragment = format_image_set("icons", buffers)
        assert "#define ICONS_COUNT 2" in fragment.header
        assert "extern const uint8_t icons_x2[];" in fragment.header
        assert "const uint8_t icons_x1[] PROGMEM = {" in fragment.source
        assert "    icons_x1,\n    icons_x2,\n" in fragment.source

    def test_empty(self):
        with pytest.raises(EmissionError, match="empty"):
            format_image_set("icons", [])
