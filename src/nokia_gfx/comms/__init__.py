"""
Display Bridge Communication
============================

Sends controller commands and frame data from the PC to a Nokia LCD
through a USB-serial bridge.

Module Structure
----------------
- **serial**: Serial port utilities (detection, configuration)
- **bridge**: SerialBus, the command/data framing used by the bridge

Quick Start
-----------
    from nokia_gfx.comms import SerialBus, open_serial_port, close_serial_port
    from nokia_gfx.transport import PCD8544Transport

    port = open_serial_port('/dev/ttyUSB0')
    bus = SerialBus(port)
    lcd = PCD8544Transport(bus, width=84, pages=6)
    lcd.initialize()
    ...
    bus.flush()
    close_serial_port(port)

Error Handling
--------------
- `ConnectionError`: The port cannot be opened
- `TransportError`: A write to the bridge failed

Thread Safety
-------------
The communication classes are NOT thread-safe. Use only from a single
thread.
"""

from nokia_gfx.comms.bridge import (
    DEFAULT_BATCH_FRAMES,
    FRAME_COMMAND,
    FRAME_DATA,
    SerialBus,
)
from nokia_gfx.comms.serial import (
    DEFAULT_BAUD_RATE,
    VALID_BAUD_RATES,
    BridgePort,
    close_serial_port,
    find_bridge_port,
    format_port_list,
    list_serial_ports,
    open_serial_port,
)

__all__ = [
    # Bridge
    "DEFAULT_BATCH_FRAMES",
    "FRAME_COMMAND",
    "FRAME_DATA",
    "SerialBus",
    # Serial
    "DEFAULT_BAUD_RATE",
    "VALID_BAUD_RATES",
    "BridgePort",
    "close_serial_port",
    "find_bridge_port",
    "format_port_list",
    "list_serial_ports",
    "open_serial_port",
]
