"""
Display and Playback Configuration
==================================

Deployment settings: display geometry, the playback mode, frame timing
and the serial bridge. Configuration can come from:
- Default values (defined here, matching the Nokia 3310/5110 LCD)
- Environment variables (DisplayConfig.from_env)
- Command-line options, which override both

The playback mode is fixed for a deployment. It is chosen once at start
up and never switched while an animation is playing.
"""

from dataclasses import dataclass
from typing import Optional
import os

from nokia_gfx.errors import InvalidDimensionsError
from nokia_gfx.layout import page_count
from nokia_gfx.playback import PlaybackMode


@dataclass
class DisplayConfig:
    """
    Configuration for converting assets and driving a display.

    Attributes:
        width: Display width in pixels (default: 84)
        height: Display height in pixels (default: 48)
        start_line: Controller start line register (default: 64)
        mode: Playback mode for frame transitions (default: TARGETED)
        frame_delay_ms: Delay between animation frames (default: 500)
        port: Serial bridge device, None to auto-detect
        baud_rate: Serial bridge baud rate (default: 115200)
    """

    # ═══════════════════════════════════════════════════════════════════════════
    # DISPLAY GEOMETRY
    # ═══════════════════════════════════════════════════════════════════════════

    width: int = 84
    height: int = 48
    start_line: int = 64

    # ═══════════════════════════════════════════════════════════════════════════
    # PLAYBACK
    # ═══════════════════════════════════════════════════════════════════════════

    mode: PlaybackMode = PlaybackMode.TARGETED
    frame_delay_ms: int = 500

    # ═══════════════════════════════════════════════════════════════════════════
    # SERIAL BRIDGE
    # ═══════════════════════════════════════════════════════════════════════════

    port: Optional[str] = None
    baud_rate: int = 115200

    @property
    def pages(self) -> int:
        """Number of 8-row controller pages."""
        return page_count(self.height)

    @property
    def buffer_size(self) -> int:
        """Bytes in one page-major frame."""
        return self.width * self.pages

    def validate(self) -> None:
        """
        Check the geometry before any buffer is built.

        Raises:
            InvalidDimensionsError: width or height is not positive
            ValueError: start line or delay out of range
        """
        if self.width <= 0 or self.height <= 0:
            raise InvalidDimensionsError(self.width, self.height)
        if not 0 <= self.start_line <= 0x7F:
            raise ValueError(f"start_line must be 0-127, got {self.start_line}")
        if not 0 <= self.frame_delay_ms <= 0xFFFF:
            raise ValueError(f"frame_delay_ms must be 0-65535, got {self.frame_delay_ms}")

    # ═══════════════════════════════════════════════════════════════════════════
    # FACTORY METHODS
    # ═══════════════════════════════════════════════════════════════════════════

    @classmethod
    def from_env(cls) -> "DisplayConfig":
        """
        Create DisplayConfig from environment variables.

        Environment variables (all optional):
            NOKIA_GFX_WIDTH: Display width in pixels
            NOKIA_GFX_HEIGHT: Display height in pixels
            NOKIA_GFX_MODE: "full" or "targeted"
            NOKIA_GFX_DELAY_MS: Frame delay in milliseconds
            NOKIA_GFX_PORT: Serial bridge device
            NOKIA_GFX_BAUD: Serial bridge baud rate

        Returns:
            DisplayConfig with values from environment variables
        """
        config = cls()

        if width := os.environ.get("NOKIA_GFX_WIDTH"):
            try:
                config.width = int(width)
            except ValueError:
                pass  # Ignore invalid values

        if height := os.environ.get("NOKIA_GFX_HEIGHT"):
            try:
                config.height = int(height)
            except ValueError:
                pass

        if mode := os.environ.get("NOKIA_GFX_MODE"):
            try:
                config.mode = PlaybackMode.from_name(mode)
            except ValueError:
                pass

        if delay := os.environ.get("NOKIA_GFX_DELAY_MS"):
            try:
                config.frame_delay_ms = int(delay)
            except ValueError:
                pass

        if port := os.environ.get("NOKIA_GFX_PORT"):
            config.port = port

        if baud := os.environ.get("NOKIA_GFX_BAUD"):
            try:
                config.baud_rate = int(baud)
            except ValueError:
                pass

        return config
