"""
Transport Unit Tests
====================

Tests for RecordingTransport and the PCD8544 command encoding.
"""

import pytest

from nokia_gfx.transport import (
    CMD_SET_X,
    CMD_SET_Y,
    PCD8544Transport,
    RecordingTransport,
)


class FakeBus:
    """CommandBus that logs ("cmd"/"data", byte) pairs."""

    def __init__(self):
        self.log = []

    def command(self, value):
        self.log.append(("cmd", value))

    def data(self, value):
        self.log.append(("data", value))


# =============================================================================
# RecordingTransport Tests
# =============================================================================

class TestRecordingTransport:
    """Test the in-memory operation log."""

    def test_records_in_order(self):
        t = RecordingTransport()
        t.set_write_cursor(1, 6)
        t.write_byte(0x07)
        t.write_byte(0x08)
        assert t.operations == [("cursor", 1, 6), ("write", 7), ("write", 8)]
        assert t.cursor_count == 1
        assert t.written == b"\x07\x08"

    @pytest.mark.parametrize("value", [-1, 0x100, 0x1FF])
    def test_write_rejects_non_byte(self, value):
        """Out-of-range writes fail instead of being logged truncated."""
        t = RecordingTransport()
        with pytest.raises(ValueError):
            t.write_byte(value)
        assert t.operations == []

    def test_clear(self):
        t = RecordingTransport()
        t.write_byte(1)
        t.clear()
        assert t.operations == []


# =============================================================================
# PCD8544 Encoding Tests
# =============================================================================

class TestPCD8544Transport:
    """Test controller command encoding."""

    @pytest.fixture
    def bus(self):
        return FakeBus()

    def test_cursor_commands(self, bus):
        """Cursor is set X (0x80 | column) then Y (0x40 | page)."""
        lcd = PCD8544Transport(bus)
        lcd.set_write_cursor(1, 6)
        assert bus.log == [("cmd", 0x86), ("cmd", 0x41)]

    def test_cursor_last_position(self, bus):
        lcd = PCD8544Transport(bus)
        lcd.set_write_cursor(5, 83)
        assert bus.log == [("cmd", CMD_SET_X | 83), ("cmd", CMD_SET_Y | 5)]

    def test_write_is_data(self, bus):
        lcd = PCD8544Transport(bus)
        lcd.write_byte(0xA5)
        assert bus.log == [("data", 0xA5)]

    @pytest.mark.parametrize("page,column", [(6, 0), (0, 84), (-1, 0), (0, -1)])
    def test_cursor_out_of_range(self, bus, page, column):
        lcd = PCD8544Transport(bus)
        with pytest.raises(ValueError):
            lcd.set_write_cursor(page, column)
        assert bus.log == []

    def test_custom_geometry(self, bus):
        """Range checks follow the configured size."""
        lcd = PCD8544Transport(bus, width=102, pages=9)
        lcd.set_write_cursor(8, 101)
        assert bus.log == [("cmd", 0x80 | 101), ("cmd", 0x40 | 8)]

    def test_initialize_sequence(self, bus):
        """Start line 64 sets S6 and clears S[5:0]."""
        PCD8544Transport(bus).initialize()
        assert [v for _, v in bus.log] == [0x21, 0xC8, 0x05, 0x40, 0x12, 0x20, 0x08, 0x0C]
        assert all(kind == "cmd" for kind, _ in bus.log)

    def test_initialize_start_line_zero(self, bus):
        PCD8544Transport(bus).initialize(start_line=0)
        assert [v for _, v in bus.log][2:4] == [0x04, 0x40]

    def test_initialize_invalid_start_line(self, bus):
        with pytest.raises(ValueError):
            PCD8544Transport(bus).initialize(start_line=128)
