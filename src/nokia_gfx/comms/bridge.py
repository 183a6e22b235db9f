"""
Serial Bridge Command Bus
=========================

SerialBus implements the CommandBus protocol on top of a serial port
connected to a USB-to-SPI bridge. The bridge firmware drives the LCD's
D/C, /CE and SPI lines; the PC only says whether each byte is a command
or data.

Wire Format
-----------
Every controller write is a two-byte frame:

    0x00 <byte>    command (D/C low)
    0x01 <byte>    data    (D/C high)

Frames are buffered and written in batches; flush() forces the batch out.
Callers flush at frame boundaries so a frame reaches the display as a
whole before the next one starts.
"""

import logging
from typing import Final

import serial

from nokia_gfx.errors import TransportError

logger = logging.getLogger(__name__)

FRAME_COMMAND: Final[int] = 0x00
FRAME_DATA: Final[int] = 0x01

# Frames buffered before an automatic write
DEFAULT_BATCH_FRAMES: Final[int] = 64


class SerialBus:
    """
    CommandBus over a serial bridge.

    Example:
        >>> port = open_serial_port("/dev/ttyUSB0")
        >>> with SerialBus(port) as bus:
        ...     lcd = PCD8544Transport(bus)
        ...     lcd.initialize()
    """

    def __init__(self, port: serial.Serial, batch_frames: int = DEFAULT_BATCH_FRAMES):
        if batch_frames <= 0:
            raise ValueError(f"batch_frames must be positive, got {batch_frames}")
        self.port = port
        self.batch_frames = batch_frames
        self.bytes_sent = 0
        self._pending = bytearray()

    def command(self, value: int) -> None:
        self._queue(FRAME_COMMAND, value)

    def data(self, value: int) -> None:
        self._queue(FRAME_DATA, value)

    def _queue(self, kind: int, value: int) -> None:
        self._pending.append(kind)
        self._pending.append(value & 0xFF)
        if len(self._pending) >= self.batch_frames * 2:
            self.flush()

    @property
    def pending(self) -> int:
        """Number of frames waiting to be written."""
        return len(self._pending) // 2

    def flush(self) -> None:
        """
        Write all buffered frames to the port.

        Raises:
            TransportError: The serial write failed or timed out
        """
        if not self._pending:
            return

        wire_bytes = bytes(self._pending)
        self._pending.clear()
        try:
            written = self.port.write(wire_bytes)
            self.port.flush()
        except serial.SerialException as e:
            raise TransportError(f"Serial write failed: {e}") from e

        if isinstance(written, int) and written != len(wire_bytes):
            raise TransportError(
                f"Short serial write: {written} of {len(wire_bytes)} bytes"
            )
        self.bytes_sent += len(wire_bytes)
        logger.debug("Sent %d bytes to bridge", len(wire_bytes))

    def __enter__(self) -> "SerialBus":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if exc_type is None:
            self.flush()
