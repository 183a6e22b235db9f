"""
nokiaplay - Display Playback Command-Line Interface
===================================================

This module implements the command-line interface for showing images
and playing diff-encoded animations on a Nokia 3310/5110 LCD. The LCD
is driven through a USB-serial bridge (see nokia_gfx.comms.bridge), or
through a simulated display with --dry-run.

Usage Examples
--------------
List available serial ports:
    $ nokiaplay ports

Show a still image:
    $ nokiaplay show logo.xbm

Play an animation three times with targeted updates:
    $ nokiaplay --mode targeted play x1.xbm x2.xbm x3.xbm --cycles 3

Try an animation without hardware:
    $ nokiaplay play --dry-run x1.xbm x2.xbm

Configuration
-------------
Defaults come from DisplayConfig and the NOKIA_GFX_* environment
variables; command-line options override both. The playback mode is
fixed for a run and never changes while an animation plays.

Exit Codes
----------
0 - Success
1 - Conversion or communication error
2 - Invalid arguments or configuration error
3 - Internal error
"""

import logging
from pathlib import Path
from typing import Optional

import click

from nokia_gfx import __version__
from nokia_gfx.animation import build_animation
from nokia_gfx.cli.errors import handle_cli_exception
from nokia_gfx.comms import (
    VALID_BAUD_RATES,
    SerialBus,
    close_serial_port,
    find_bridge_port,
    format_port_list,
    list_serial_ports,
    open_serial_port,
)
from nokia_gfx.config import DisplayConfig
from nokia_gfx.display import SimulatedDisplay
from nokia_gfx.errors import DimensionMismatchError
from nokia_gfx.images import DEFAULT_THRESHOLD, load_bitmap
from nokia_gfx.layout import PageMajorBuffer, convert
from nokia_gfx.playback import PlaybackContext, PlaybackMode, transmit_full
from nokia_gfx.transport import PCD8544Transport

# Configure logging
logger = logging.getLogger(__name__)


# =============================================================================
# CLI Context and Utilities
# =============================================================================

class Context:
    """
    Shared context for CLI commands.

    Holds the display configuration and verbosity.
    """

    def __init__(self) -> None:
        self.config: DisplayConfig = DisplayConfig.from_env()
        self.threshold: int = DEFAULT_THRESHOLD
        self.verbose: bool = False

    def setup_logging(self) -> None:
        """Configure logging based on verbosity."""
        level = logging.DEBUG if self.verbose else logging.INFO
        logging.basicConfig(
            level=level,
            format="%(levelname)s: %(message)s" if self.verbose else "%(message)s",
        )

    def load_frame(self, path: Path) -> PageMajorBuffer:
        """Load and convert one image, checking it fits the display."""
        buffer = convert(load_bitmap(path, threshold=self.threshold))
        if (buffer.width, buffer.pages) != (self.config.width, self.config.pages):
            raise DimensionMismatchError(
                self.config.buffer_size, len(buffer),
                message=(
                    f"{path} needs {buffer.width} columns x {buffer.pages} pages, "
                    f"display has {self.config.width} x {self.config.pages}"
                ),
            )
        return buffer

    def port_device(self) -> str:
        """Configured port, or the auto-detected bridge."""
        device = self.config.port or find_bridge_port()
        if not device:
            raise click.BadParameter(
                "no serial port specified and auto-detect failed. "
                "Use --port or 'nokiaplay ports' to find available ports.",
                param_hint="--port",
            )
        return device


pass_context = click.make_pass_decorator(Context, ensure=True)


# =============================================================================
# Main CLI Group
# =============================================================================

@click.group()
@click.option(
    "-p", "--port",
    type=str,
    default=None,
    help="Serial port of the display bridge (auto-detect if not specified)",
)
@click.option(
    "-b", "--baud",
    type=click.Choice([str(b) for b in VALID_BAUD_RATES]),
    default=None,
    help="Baud rate of the display bridge (default: 115200)",
)
@click.option(
    "-m", "--mode",
    type=click.Choice(["full", "targeted"], case_sensitive=False),
    default=None,
    help="Playback mode for frame transitions (default: targeted)",
)
@click.option(
    "--width",
    type=click.IntRange(min=1),
    default=None,
    help="Display width in pixels (default: 84)",
)
@click.option(
    "--height",
    type=click.IntRange(min=1),
    default=None,
    help="Display height in pixels (default: 48)",
)
@click.option(
    "-t", "--threshold",
    type=click.IntRange(0, 255),
    default=DEFAULT_THRESHOLD,
    help=f"Gray level below which image pixels are set (default: {DEFAULT_THRESHOLD})",
)
@click.option(
    "-v", "--verbose",
    is_flag=True,
    help="Enable verbose output",
)
@click.version_option(version=__version__, prog_name="nokiaplay")
@pass_context
def main(
    ctx: Context,
    port: Optional[str],
    baud: Optional[str],
    mode: Optional[str],
    width: Optional[int],
    height: Optional[int],
    threshold: int,
    verbose: bool,
) -> None:
    """
    Show images and play animations on a Nokia 3310/5110 LCD.

    The display is connected through a USB-serial bridge. Use --dry-run
    on 'show' and 'play' to draw on a simulated display instead.

    Use 'nokiaplay ports' to list available serial ports.
    """
    config = ctx.config
    if port is not None:
        config.port = port
    if baud is not None:
        config.baud_rate = int(baud)
    if mode is not None:
        config.mode = PlaybackMode.from_name(mode)
    if width is not None:
        config.width = width
    if height is not None:
        config.height = height
    ctx.threshold = threshold
    ctx.verbose = verbose
    ctx.setup_logging()


# =============================================================================
# Ports Command
# =============================================================================

@main.command()
@click.option(
    "--detailed", "-d",
    is_flag=True,
    help="Show detailed port information",
)
@pass_context
def ports(ctx: Context, detailed: bool) -> None:
    """
    List available serial ports.

    Ports that may lead to a display bridge are marked with '*'.

    Example:
        nokiaplay ports
        nokiaplay ports --detailed
    """
    port_list = list_serial_ports()

    if not port_list:
        click.echo("No serial ports found.")
        click.echo("\nTips:")
        click.echo("  - Connect the display bridge")
        click.echo("  - On Linux, ensure you have permission (dialout group)")
        return

    click.echo("Available serial ports:")
    click.echo(format_port_list(port_list, verbose=detailed))

    auto_port = find_bridge_port()
    if auto_port:
        click.echo(f"\nBridge auto-detect picks: {auto_port}")
    else:
        click.echo("\nNo USB bridge connected; pass --port explicitly.")


# =============================================================================
# Show Command
# =============================================================================

@main.command()
@click.argument("image", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--dry-run",
    is_flag=True,
    help="Draw on a simulated display and print it",
)
@click.option(
    "--png",
    type=click.Path(dir_okay=False, path_type=Path),
    help="With --dry-run, also save the simulated display as PNG",
)
@pass_context
def show(ctx: Context, image: Path, dry_run: bool, png: Optional[Path]) -> None:
    """
    Show a still image with a full frame write.

    Example:
        nokiaplay show logo.xbm
        nokiaplay show --dry-run logo.png
    """
    config = ctx.config
    try:
        config.validate()
        buffer = ctx.load_frame(image)

        if dry_run:
            display = SimulatedDisplay(config.width, config.height)
            transmit_full(buffer, buffer.width, buffer.pages, display)
            click.echo(display.render_text())
            if png is not None:
                _save_png(display, png)
            return

        serial_port = open_serial_port(ctx.port_device(), baud_rate=config.baud_rate)
        try:
            with SerialBus(serial_port) as bus:
                lcd = PCD8544Transport(bus, width=config.width, pages=config.pages)
                lcd.initialize(start_line=config.start_line)
                transmit_full(buffer, buffer.width, buffer.pages, lcd)
            click.echo(f"Sent {image.name} ({len(buffer)} bytes)")
        finally:
            close_serial_port(serial_port)

    except Exception as e:
        handle_cli_exception(e, verbose=ctx.verbose, error_type="Display")


# =============================================================================
# Play Command
# =============================================================================

@main.command()
@click.argument(
    "frames",
    nargs=-1,
    required=True,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option(
    "-c", "--cycles",
    type=click.IntRange(min=1),
    default=1,
    show_default=True,
    help="Number of times to play the animation",
)
@click.option(
    "-d", "--delay",
    type=click.IntRange(0, 0xFFFF),
    default=None,
    help="Delay between frames in milliseconds (default: 500)",
)
@click.option(
    "--loop/--no-loop",
    default=True,
    help="Play the last frame back into the first (default: loop)",
)
@click.option(
    "--dry-run",
    is_flag=True,
    help="Play on a simulated display and print every frame",
)
@pass_context
def play(
    ctx: Context,
    frames: tuple[Path, ...],
    cycles: int,
    delay: Optional[int],
    loop: bool,
    dry_run: bool,
) -> None:
    """
    Play an animation using the configured playback mode.

    FRAMES are the animation frames in playback order. The first frame
    is sent in full, then every transition is sent as a diff.

    Example:
        nokiaplay --mode full play x1.xbm x2.xbm x3.xbm --cycles 5
    """
    if len(frames) < 2:
        raise click.BadParameter("an animation needs at least two frames", param_hint="FRAMES")

    config = ctx.config
    if delay is not None:
        config.frame_delay_ms = delay

    try:
        config.validate()
        bitmaps = [load_bitmap(path, threshold=ctx.threshold) for path in frames]
        anim = build_animation(bitmaps, delay_ms=config.frame_delay_ms, loop=loop)

        if dry_run:
            display = SimulatedDisplay(config.width, config.height)
            player = PlaybackContext.from_config(anim, config, display)

            def print_frame(frame_index: int) -> None:
                click.echo(f"-- frame {frame_index + 1} --")
                click.echo(display.render_text())

            player.show_keyframe()
            print_frame(0)
            player.run(cycles=cycles, on_frame=print_frame)
            return

        serial_port = open_serial_port(ctx.port_device(), baud_rate=config.baud_rate)
        try:
            bus = SerialBus(serial_port)
            lcd = PCD8544Transport(bus, width=config.width, pages=config.pages)
            lcd.initialize(start_line=config.start_line)

            player = PlaybackContext.from_config(anim, config, lcd)
            player.show_keyframe()
            bus.flush()

            click.echo(
                f"Playing {anim.frame_count} frames, {cycles} cycle(s), "
                f"{player.mode.value} mode"
            )
            player.run(cycles=cycles, on_frame=lambda _: bus.flush())
            click.echo(f"Done, {bus.bytes_sent} bytes sent")
        finally:
            close_serial_port(serial_port)

    except Exception as e:
        handle_cli_exception(e, verbose=ctx.verbose, error_type="Playback")


def _save_png(display: SimulatedDisplay, path: Path) -> None:
    path.write_bytes(display.render_image())
    click.echo(f"Wrote {path}")


if __name__ == "__main__":
    main()
