"""
Display Transport Boundary
==========================

Playback never talks to hardware directly. It writes through a Transport,
a synchronous byte-oriented primitive with exactly two operations:

- ``set_write_cursor(page, column)``: select the next address to write
- ``write_byte(value)``: store one byte at the cursor

Implementations in this package:

- RecordingTransport: keeps an in-memory log (tests, dry runs)
- PCD8544Transport: encodes cursor and data writes as PCD8544 controller
  commands on a CommandBus (see nokia_gfx.comms.bridge.SerialBus)
- SimulatedDisplay (nokia_gfx.display): models the controller memory

PCD8544 Command Encoding
------------------------
The Nokia 3310/5110 controller is driven with one byte per command, sent
with the D/C line low. Data bytes are sent with D/C high.

    0x80 | X   set X address (column 0-83)
    0x40 | Y   set Y address (page 0-5), basic instruction set
    0x20       function set, basic instructions (H = 0)
    0x21       function set, extended instructions (H = 1)
    0x08       display control: blank
    0x0C       display control: normal mode
"""

import logging
from dataclasses import dataclass, field
from typing import Final, Protocol

logger = logging.getLogger(__name__)


# =============================================================================
# Controller Constants
# =============================================================================

CMD_FUNCTION_SET_BASIC: Final[int] = 0x20
CMD_FUNCTION_SET_EXTENDED: Final[int] = 0x21
CMD_SET_X: Final[int] = 0x80
CMD_SET_Y: Final[int] = 0x40
CMD_DISPLAY_BLANK: Final[int] = 0x08
CMD_DISPLAY_NORMAL: Final[int] = 0x0C

# Extended instruction set
CMD_SET_VOP: Final[int] = 0x80          # operating voltage (contrast)
CMD_SET_START_LINE_S6: Final[int] = 0x04
CMD_SET_START_LINE: Final[int] = 0x40   # S[5:0]
CMD_SET_BIAS: Final[int] = 0x10

DEFAULT_VOP: Final[int] = 0x48          # EV[6:0] = 1001000
DEFAULT_BIAS: Final[int] = 0x02         # 1:68
DEFAULT_START_LINE: Final[int] = 64


# =============================================================================
# Protocols
# =============================================================================

class Transport(Protocol):
    """Synchronous write path to the display memory."""

    def set_write_cursor(self, page: int, column: int) -> None:
        ...

    def write_byte(self, value: int) -> None:
        ...


class CommandBus(Protocol):
    """Byte-wide controller bus with a command/data select line."""

    def command(self, value: int) -> None:
        ...

    def data(self, value: int) -> None:
        ...


# =============================================================================
# Recording Transport
# =============================================================================

@dataclass
class RecordingTransport:
    """
    Transport that only records what it was asked to do.

    Operations are stored in order as ``("cursor", page, column)`` and
    ``("write", value)`` tuples.

    Example:
        >>> t = RecordingTransport()
        >>> t.set_write_cursor(1, 6)
        >>> t.write_byte(0x07)
        >>> t.operations
        [('cursor', 1, 6), ('write', 7)]
    """
    operations: list[tuple] = field(default_factory=list)

    def set_write_cursor(self, page: int, column: int) -> None:
        self.operations.append(("cursor", page, column))

    def write_byte(self, value: int) -> None:
        if not 0 <= value <= 0xFF:
            raise ValueError(f"Byte value out of range: {value}")
        self.operations.append(("write", value))

    @property
    def cursor_count(self) -> int:
        return sum(1 for op in self.operations if op[0] == "cursor")

    @property
    def written(self) -> bytes:
        """All data bytes in the order they were written."""
        return bytes(op[1] for op in self.operations if op[0] == "write")

    def clear(self) -> None:
        self.operations.clear()


# =============================================================================
# PCD8544 Transport
# =============================================================================

class PCD8544Transport:
    """
    Transport encoding writes as PCD8544 commands on a CommandBus.

    Args:
        bus: Command/data bus (e.g. SerialBus over a USB-SPI bridge)
        width: Columns per page
        pages: Number of pages

    Example:
        >>> lcd = PCD8544Transport(bus, width=84, pages=6)
        >>> lcd.initialize()
        >>> lcd.set_write_cursor(1, 6)   # sends 0x86, 0x41
        >>> lcd.write_byte(0x07)         # sends data 0x07
    """

    def __init__(self, bus: CommandBus, width: int = 84, pages: int = 6):
        self.bus = bus
        self.width = width
        self.pages = pages

    def initialize(
        self,
        start_line: int = DEFAULT_START_LINE,
        vop: int = DEFAULT_VOP,
        bias: int = DEFAULT_BIAS,
    ) -> None:
        """
        Send the controller start-up sequence.

        Switches to the extended instruction set to program contrast,
        start line and bias, then returns to basic instructions and turns
        the display on in normal mode.

        Args:
            start_line: Display start line register S[6:0]
            vop: Operating voltage EV[6:0]
            bias: Bias system BS[2:0]
        """
        if not 0 <= start_line <= 0x7F:
            raise ValueError(f"Start line out of range: {start_line}")

        sequence = [
            CMD_FUNCTION_SET_EXTENDED,
            CMD_SET_VOP | (vop & 0x7F),
            CMD_SET_START_LINE_S6 | ((start_line >> 6) & 0x01),
            CMD_SET_START_LINE | (start_line & 0x3F),
            CMD_SET_BIAS | (bias & 0x07),
            CMD_FUNCTION_SET_BASIC,
            CMD_DISPLAY_BLANK,
            CMD_DISPLAY_NORMAL,
        ]
        logger.debug("Controller init: %s", " ".join(f"{c:02X}" for c in sequence))
        for command in sequence:
            self.bus.command(command)

    def set_write_cursor(self, page: int, column: int) -> None:
        if not (0 <= page < self.pages and 0 <= column < self.width):
            raise ValueError(f"Invalid cursor position (page {page}, column {column})")
        self.bus.command(CMD_SET_X | column)
        self.bus.command(CMD_SET_Y | page)

    def write_byte(self, value: int) -> None:
        self.bus.data(value & 0xFF)
