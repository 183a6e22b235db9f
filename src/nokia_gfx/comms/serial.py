"""
Serial Port Handling for the Display Bridge
===========================================

The LCD hangs off a microcontroller running the bridge firmware (see
nokia_gfx.comms.bridge). The PC sees that board as a USB-serial port.
This module finds the board, opens its port and closes it again.

Auto-detection ranks USB adapters by how likely they are to be a bridge
board: genuine Arduinos first, then the CH340 used on most clones, then
FTDI and Silicon Labs adapters, then any other USB port. Built-in UARTs
(no USB vendor ID) are never picked.

Most bridge boards reset when the port is opened. open_serial_port()
waits for the firmware to boot before returning, otherwise the first
controller commands are lost.
"""

import errno
import logging
import time
from dataclasses import dataclass
from typing import Final, Optional

import serial
import serial.tools.list_ports

from nokia_gfx.errors import ConnectionError

logger = logging.getLogger(__name__)


# =============================================================================
# Constants
# =============================================================================

# Rates the bridge firmware can be built for
VALID_BAUD_RATES: Final[tuple[int, ...]] = (
    9600, 19200, 38400, 57600, 115200, 230400, 500000, 1000000,
)
DEFAULT_BAUD_RATE: Final[int] = 115200

# Write timeout in seconds; the bridge never answers, so no read timeout
DEFAULT_WRITE_TIMEOUT: Final[float] = 1.0

# Boot time of the bridge after the auto-reset triggered by opening the port
DEFAULT_SETTLE_S: Final[float] = 2.0

# USB vendor ID -> (vendor name, auto-detect rank, lower is preferred)
BRIDGE_VENDORS: Final[dict[int, tuple[str, int]]] = {
    0x2341: ("Arduino", 0),
    0x1A86: ("CH340", 1),
    0x0403: ("FTDI", 2),
    0x10C4: ("Silicon Labs", 2),
}
UNKNOWN_USB_RANK: Final[int] = 3

OPEN_ERROR_HINTS: Final[dict[int, str]] = {
    errno.EACCES: "add your user to the 'dialout' group, then log in again",
    errno.ENOENT: "is the bridge plugged in? Run 'nokiaplay ports'",
    errno.EBUSY: "another program (a serial monitor?) holds the port",
}


@dataclass(frozen=True)
class BridgePort:
    """
    A serial port that may lead to a display bridge.

    Attributes:
        device: Device path ('/dev/ttyACM0', 'COM3')
        description: Driver description, may be empty
        vid: USB vendor ID, None for built-in UARTs
        pid: USB product ID, None for built-in UARTs
    """
    device: str
    description: str = ""
    vid: Optional[int] = None
    pid: Optional[int] = None

    @property
    def is_usb(self) -> bool:
        return self.vid is not None

    @property
    def vendor(self) -> Optional[str]:
        """Known bridge vendor name, or None."""
        known = BRIDGE_VENDORS.get(self.vid) if self.vid is not None else None
        return known[0] if known else None

    @property
    def rank(self) -> Optional[int]:
        """Auto-detect preference, None if the port is not a candidate."""
        if not self.is_usb:
            return None
        known = BRIDGE_VENDORS.get(self.vid)
        return known[1] if known else UNKNOWN_USB_RANK

    @property
    def usb_id(self) -> str:
        """'VVVV:PPPP' for USB ports, '' otherwise."""
        if not self.is_usb:
            return ""
        return f"{self.vid:04X}:{self.pid or 0:04X}"


# =============================================================================
# Detection
# =============================================================================

def list_serial_ports() -> list[BridgePort]:
    """All serial ports pyserial can see, in device order."""
    ports = [
        BridgePort(p.device, p.description or "", p.vid, p.pid)
        for p in serial.tools.list_ports.comports()
    ]
    ports.sort(key=lambda p: p.device)
    logger.debug("Serial ports: %s", ", ".join(p.device for p in ports) or "none")
    return ports


def find_bridge_port() -> Optional[str]:
    """
    Pick the most likely bridge among the connected USB ports.

    Returns:
        Device path, or None when no USB-serial port is connected
    """
    candidates = [p for p in list_serial_ports() if p.rank is not None]
    if not candidates:
        logger.debug("No USB serial port to auto-detect")
        return None

    best = min(candidates, key=lambda p: p.rank)
    logger.info("Auto-detected bridge on %s (%s)", best.device, best.vendor or best.usb_id)
    return best.device


def format_port_list(ports: list[BridgePort], verbose: bool = False) -> str:
    """
    One line per port for 'nokiaplay ports'.

    Bridge candidates are marked with '*'. With verbose, the driver
    description and USB ID are added.
    """
    if not ports:
        return "No serial ports found."

    lines = []
    for port in ports:
        mark = "*" if port.rank is not None else " "
        line = f" {mark} {port.device}"
        if port.vendor:
            line += f"  [{port.vendor}]"
        if verbose:
            details = [d for d in (port.description, port.usb_id) if d]
            if details:
                line += "  " + ", ".join(details)
        lines.append(line)
    return "\n".join(lines)


# =============================================================================
# Opening and Closing
# =============================================================================

def open_serial_port(
    device: str,
    baud_rate: int = DEFAULT_BAUD_RATE,
    write_timeout: float = DEFAULT_WRITE_TIMEOUT,
    settle: float = DEFAULT_SETTLE_S,
) -> serial.Serial:
    """
    Open the bridge's port and wait for its firmware to come up.

    Args:
        device: Device path of the bridge
        baud_rate: One of VALID_BAUD_RATES, as built into the firmware
        write_timeout: Seconds before a blocked write fails
        settle: Seconds to wait after opening (0 for boards without auto-reset)

    Raises:
        ValueError: baud_rate is not supported by the firmware
        ConnectionError: The port cannot be opened
    """
    if baud_rate not in VALID_BAUD_RATES:
        raise ValueError(
            f"Invalid baud rate: {baud_rate} "
            f"(bridge supports {', '.join(map(str, VALID_BAUD_RATES))})"
        )

    try:
        port = serial.Serial(device, baud_rate, write_timeout=write_timeout)
    except serial.SerialException as e:
        hint = OPEN_ERROR_HINTS.get(getattr(e, "errno", None))
        message = f"Cannot open bridge on {device}: {e.strerror or e}"
        if hint:
            message += f" ({hint})"
        raise ConnectionError(message) from e

    if settle > 0:
        logger.debug("Waiting %.1fs for the bridge to boot", settle)
        time.sleep(settle)
    port.reset_output_buffer()

    logger.info("Bridge port %s open at %d baud", device, baud_rate)
    return port


def close_serial_port(port: Optional[serial.Serial]) -> None:
    """Drain and close the bridge's port; close errors are only logged."""
    if port is None or not port.is_open:
        return
    try:
        port.flush()
        port.close()
    except serial.SerialException as e:
        logger.warning("Error closing %s: %s", port.port, e)
