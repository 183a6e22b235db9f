"""
Playback Strategy Selector
==========================

Plays frame transitions (FrameDiff objects) on a display through a
Transport, keeping a ShadowMemory mirror of what the display holds.

Two strategies exist, and a deployment uses exactly one of them:

**FullRewrite**
    Apply every diff entry to the shadow, then send the whole shadow in
    page/column order: one cursor setup per page followed by W data bytes.
    Cost is constant, one full frame, however small the diff.

**Targeted**
    For each diff entry in ascending address order, update the shadow,
    turn the address back into display coordinates

        page = address // W
        column = address - page * W

    and send one cursor setup plus one data byte. Cost grows linearly with
    the number of changed bytes, with an addressing overhead per byte.

Trade-off
---------
Measured on an ATmega328 driving a Nokia 5110 (84x48, 504 bytes), a full
rewrite takes roughly constant time, while targeted updates scale with the
diff count. Targeted wins below about 100 changed bytes per frame,
FullRewrite above. The mode is a static choice (DisplayConfig.mode);
suggest_mode() only reports which side of the break-even point an
animation falls on and is never used to switch modes during playback.

Ordering
--------
For a single frame, mutating the shadow and transmitting it happen
strictly in program order. Nothing else writes the shadow.
"""

import logging
import time
from abc import ABC, abstractmethod
from enum import Enum
from typing import TYPE_CHECKING, Callable, Final, Iterable, Iterator, Optional

from nokia_gfx.bitmap import ByteSource
from nokia_gfx.diff import FrameDiff, apply_diff, diff
from nokia_gfx.errors import DimensionMismatchError, InvalidDimensionsError
from nokia_gfx.layout import PageMajorBuffer
from nokia_gfx.transport import Transport

if TYPE_CHECKING:
    from nokia_gfx.animation import Animation
    from nokia_gfx.config import DisplayConfig

logger = logging.getLogger(__name__)

# Diff count per frame below which targeted updates are cheaper
TARGETED_BREAK_EVEN: Final[int] = 100


class PlaybackMode(Enum):
    """How frame transitions are transmitted."""
    FULL_REWRITE = "full"
    TARGETED = "targeted"

    @classmethod
    def from_name(cls, name: str) -> "PlaybackMode":
        """
        Parse a mode name from configuration or the command line.

        Accepts "full", "full_rewrite", "full-rewrite" and "targeted"
        (case-insensitive).
        """
        key = name.strip().lower().replace("-", "_")
        if key in ("full", "full_rewrite"):
            return cls.FULL_REWRITE
        if key == "targeted":
            return cls.TARGETED
        raise ValueError(f"Unknown playback mode: {name!r} (use 'full' or 'targeted')")


# =============================================================================
# Shadow Memory
# =============================================================================

class ShadowMemory:
    """
    Mutable mirror of the bytes last sent to the display.

    Only playback strategies and PlaybackContext write to it.
    """

    def __init__(self, width: int, pages: int):
        if width <= 0 or pages <= 0:
            raise InvalidDimensionsError(width, pages * 8)
        self._width = width
        self._pages = pages
        self._data = bytearray(width * pages)

    @classmethod
    def from_buffer(cls, buffer: PageMajorBuffer) -> "ShadowMemory":
        shadow = cls(buffer.width, buffer.pages)
        shadow.load(buffer)
        return shadow

    @property
    def width(self) -> int:
        return self._width

    @property
    def pages(self) -> int:
        return self._pages

    def __len__(self) -> int:
        return len(self._data)

    def __getitem__(self, index):
        if isinstance(index, slice):
            return bytes(self._data[index])
        return self._data[index]

    def __iter__(self) -> Iterator[int]:
        return iter(self._data)

    def load(self, frame: ByteSource) -> None:
        """Replace the whole contents (e.g. with a keyframe)."""
        if len(frame) != len(self._data):
            raise DimensionMismatchError(len(self._data), len(frame))
        self._data[:] = bytes(frame[i] for i in range(len(frame)))

    def write(self, address: int, value: int) -> None:
        if not 0 <= address < len(self._data):
            raise ValueError(f"Address {address} outside buffer of {len(self._data)} bytes")
        self._data[address] = value

    def apply(self, frame_diff: FrameDiff) -> None:
        """Write every entry of a diff, in order."""
        apply_diff(self._data, frame_diff)

    def coordinates(self, address: int) -> tuple[int, int]:
        """(page, column) of a linear address, using the configured width."""
        page = address // self._width
        return page, address - page * self._width

    def snapshot(self) -> PageMajorBuffer:
        """Immutable copy of the current contents."""
        return PageMajorBuffer(self._width, self._pages, bytes(self._data))


def transmit_full(frame: ByteSource, width: int, pages: int, transport: Transport) -> int:
    """
    Send a whole page-major frame in address order.

    Every page starts with a cursor update to (page, 0) followed by the W
    bytes of that page.

    Returns:
        Number of data bytes written
    """
    if len(frame) != width * pages:
        raise DimensionMismatchError(width * pages, len(frame))
    for page in range(pages):
        transport.set_write_cursor(page, 0)
        base = page * width
        for column in range(width):
            transport.write_byte(frame[base + column])
    return width * pages


# =============================================================================
# Strategies
# =============================================================================

class PlaybackStrategy(ABC):
    """Materializes a FrameDiff on the display and in the shadow."""

    mode: PlaybackMode

    @abstractmethod
    def apply(
        self,
        shadow: ShadowMemory,
        frame_diff: FrameDiff,
        transport: Transport,
    ) -> int:
        """
        Update shadow with frame_diff and transmit the change.

        Returns:
            Number of data bytes written to the transport
        """


class FullRewriteStrategy(PlaybackStrategy):
    """Apply the diff to the shadow, then resend the entire shadow."""

    mode = PlaybackMode.FULL_REWRITE

    def apply(
        self,
        shadow: ShadowMemory,
        frame_diff: FrameDiff,
        transport: Transport,
    ) -> int:
        shadow.apply(frame_diff)
        return transmit_full(shadow, shadow.width, shadow.pages, transport)


class TargetedStrategy(PlaybackStrategy):
    """Send only the changed bytes, each with its own cursor setup."""

    mode = PlaybackMode.TARGETED

    def apply(
        self,
        shadow: ShadowMemory,
        frame_diff: FrameDiff,
        transport: Transport,
    ) -> int:
        # Reject the whole diff before touching shadow or display
        size = len(shadow)
        for entry in frame_diff:
            if entry.address >= size:
                raise DimensionMismatchError(
                    entry.address + 1, size,
                    message=f"diff address {entry.address} outside {size} byte buffer",
                )

        for entry in frame_diff:
            shadow.write(entry.address, entry.value)
            page, column = shadow.coordinates(entry.address)
            transport.set_write_cursor(page, column)
            transport.write_byte(entry.value)
        return len(frame_diff)


_STRATEGIES = {
    PlaybackMode.FULL_REWRITE: FullRewriteStrategy,
    PlaybackMode.TARGETED: TargetedStrategy,
}


def strategy_for(mode: PlaybackMode) -> PlaybackStrategy:
    """Create the strategy for a configured playback mode."""
    return _STRATEGIES[mode]()


def apply(
    shadow: ShadowMemory,
    frame_diff: FrameDiff,
    mode: PlaybackMode,
    transport: Transport,
) -> int:
    """Apply one diff with the given mode. See PlaybackStrategy.apply()."""
    return strategy_for(mode).apply(shadow, frame_diff, transport)


def suggest_mode(diffs: Iterable[FrameDiff]) -> PlaybackMode:
    """
    Report which mode the measured trade-off favours for a set of diffs.

    Advisory only: based on the mean number of changed bytes per
    transition compared with TARGETED_BREAK_EVEN.
    """
    counts = [len(d) for d in diffs]
    if not counts:
        return PlaybackMode.TARGETED
    mean = sum(counts) / len(counts)
    return PlaybackMode.TARGETED if mean < TARGETED_BREAK_EVEN else PlaybackMode.FULL_REWRITE


# =============================================================================
# Playback Context
# =============================================================================

class PlaybackContext:
    """
    Owns everything needed to play an animation on one display.

    Holds the shadow memory, the transition table and the current frame
    index. Nothing here is module-level state, so several displays can be
    driven from one process.

    Example:
        >>> ctx = PlaybackContext(animation, TargetedStrategy(), transport)
        >>> ctx.show_keyframe()
        >>> ctx.step()             # frame 1 -> frame 2
        >>> ctx.run(cycles=3)      # three full loops, honouring delays
    """

    def __init__(
        self,
        animation: "Animation",
        strategy: PlaybackStrategy,
        transport: Transport,
        sleep: Callable[[float], None] = time.sleep,
    ):
        if not animation.transitions:
            raise ValueError("Animation has no transitions to play")
        self.animation = animation
        self.strategy = strategy
        self.transport = transport
        self.shadow = ShadowMemory(animation.width, animation.pages)
        self.frame_index = 0
        self._sleep = sleep
        self._keyframe_shown = False

    @classmethod
    def from_config(
        cls,
        animation: "Animation",
        config: "DisplayConfig",
        transport: Transport,
        sleep: Callable[[float], None] = time.sleep,
    ) -> "PlaybackContext":
        """Build a context using the mode fixed in the configuration."""
        if (animation.width, animation.pages) != (config.width, config.pages):
            raise DimensionMismatchError(
                config.buffer_size, len(animation.keyframe),
                message=(
                    f"animation is {animation.width}x{animation.height}, "
                    f"display is {config.width}x{config.height}"
                ),
            )
        return cls(animation, strategy_for(config.mode), transport, sleep=sleep)

    @property
    def mode(self) -> PlaybackMode:
        return self.strategy.mode

    def show_keyframe(self) -> None:
        """Send the first frame in full and restart from it."""
        keyframe = self.animation.keyframe
        self.shadow.load(keyframe)
        transmit_full(self.shadow, self.shadow.width, self.shadow.pages, self.transport)
        self.frame_index = 0
        self._keyframe_shown = True
        logger.debug("Keyframe %s shown", self.animation.keyframe_name)

    def step(self) -> FrameDiff:
        """
        Play the next transition and advance the frame index.

        At the end of a non-looping animation the display is brought back
        to the keyframe with a diff computed from the shadow.

        Returns:
            The diff that was applied
        """
        if not self._keyframe_shown:
            raise RuntimeError("show_keyframe() must be called before step()")

        transitions = self.animation.transitions
        if self.frame_index < len(transitions):
            frame_diff = transitions[self.frame_index].diff
            self.frame_index += 1
        else:
            frame_diff = diff(self.shadow, self.animation.keyframe,
                              delay_ms=self.animation.delay_ms)
            self.frame_index = 0

        written = self.strategy.apply(self.shadow, frame_diff, self.transport)
        logger.debug(
            "Frame step (%s): %d diffs, %d bytes written",
            self.mode.value, len(frame_diff), written,
        )

        if self.animation.loop and self.frame_index == len(transitions):
            self.frame_index = 0
        return frame_diff

    def run(self, cycles: int = 1, on_frame: Optional[Callable[[int], None]] = None) -> None:
        """
        Play the animation a number of times, sleeping each transition's delay.

        Args:
            cycles: Number of loops through the transition table
            on_frame: Called with the frame index after every step
        """
        if not self._keyframe_shown:
            self.show_keyframe()

        steps_per_cycle = len(self.animation.transitions)
        if not self.animation.loop:
            steps_per_cycle += 1  # return to the keyframe

        for _ in range(cycles * steps_per_cycle):
            if self.frame_index < len(self.animation.transitions):
                delay_ms = self.animation.transitions[self.frame_index].diff.delay_ms
            else:
                delay_ms = self.animation.delay_ms
            if delay_ms:
                self._sleep(delay_ms / 1000.0)
            self.step()
            if on_frame is not None:
                on_frame(self.frame_index)
