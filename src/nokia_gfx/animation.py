"""
Animation Assets
================

An animation is stored as one full keyframe plus a list of transitions.
Each transition is the FrameDiff from one frame to the next:

    keyframe = convert(frame 1)
    x1 -> x2, x2 -> x3, ..., x(N-1) -> xN, xN -> x1

The closing xN -> x1 transition is only present for looping animations.

Names follow the generated C symbols: ``<name>_keyframe`` and
``<name>_trans_x<i>_x<j>`` with 1-based frame numbers.
"""

import logging
from dataclasses import dataclass, field
from typing import Sequence

from nokia_gfx.bitmap import SourceBitmap
from nokia_gfx.diff import FrameDiff, diff
from nokia_gfx.errors import DimensionMismatchError
from nokia_gfx.layout import PageMajorBuffer, convert

logger = logging.getLogger(__name__)

DEFAULT_ANIMATION_NAME = "nokia_gfx"
DEFAULT_DELAY_MS = 500


@dataclass(frozen=True)
class Transition:
    """
    Diff from one animation frame to another.

    Attributes:
        name: C symbol name of the transition
        source: 1-based number of the frame being left
        target: 1-based number of the frame being shown
        diff: Changes to apply, ascending by address
    """
    name: str
    source: int
    target: int
    diff: FrameDiff


@dataclass
class Animation:
    """
    Keyframe plus ordered transitions for a diff-encoded animation.

    Attributes:
        name: Symbol prefix used for generated C code
        width: Frame width in pixels
        height: Frame height in pixels
        keyframe: First frame, in page-major layout
        transitions: Transitions in playback order
        frame_count: Number of distinct source frames
        loop: True if the last transition returns to the first frame
        delay_ms: Default delay between frames
    """
    name: str
    width: int
    height: int
    keyframe: PageMajorBuffer
    transitions: list[Transition] = field(default_factory=list)
    frame_count: int = 0
    loop: bool = True
    delay_ms: int = DEFAULT_DELAY_MS

    @property
    def pages(self) -> int:
        return self.keyframe.pages

    @property
    def keyframe_name(self) -> str:
        return f"{self.name}_keyframe"

    @property
    def total_diffs(self) -> int:
        return sum(len(t.diff) for t in self.transitions)

    def frame_buffers(self) -> list[PageMajorBuffer]:
        """
        Rebuild every frame by replaying the transitions onto the keyframe.

        Returns:
            One buffer per source frame, in order
        """
        current = bytearray(self.keyframe.data)
        frames = [self.keyframe]
        for transition in self.transitions[:self.frame_count - 1]:
            transition.diff.apply_to(current)
            frames.append(PageMajorBuffer(self.width, self.pages, bytes(current)))
        return frames


def transition_name(name: str, source: int, target: int) -> str:
    """C symbol of the transition from frame source to frame target (1-based)."""
    return f"{name}_trans_x{source}_x{target}"


def build_animation(
    frames: Sequence[SourceBitmap],
    name: str = DEFAULT_ANIMATION_NAME,
    delay_ms: int = DEFAULT_DELAY_MS,
    loop: bool = True,
) -> Animation:
    """
    Convert a sequence of bitmaps into a keyframe and transitions.

    Args:
        frames: Source frames in playback order, all the same size
        name: Symbol prefix for generated names
        delay_ms: Delay stored on every transition
        loop: Add the closing transition from the last frame to the first

    Returns:
        Animation ready for emission or playback

    Raises:
        ValueError: Fewer than two frames
        DimensionMismatchError: Frames differ in size
    """
    if len(frames) < 2:
        raise ValueError(f"An animation needs at least two frames, got {len(frames)}")

    first = frames[0]
    for number, frame in enumerate(frames[1:], start=2):
        if (frame.width, frame.height) != (first.width, first.height):
            raise DimensionMismatchError(
                first.width * first.height, frame.width * frame.height,
                message=(
                    f"frame {number} is {frame.width}x{frame.height}, "
                    f"frame 1 is {first.width}x{first.height}"
                ),
            )

    buffers = [convert(frame) for frame in frames]

    pairs = list(zip(range(1, len(buffers)), range(2, len(buffers) + 1)))
    if loop:
        pairs.append((len(buffers), 1))

    transitions = [
        Transition(
            name=transition_name(name, source, target),
            source=source,
            target=target,
            diff=diff(buffers[source - 1], buffers[target - 1], delay_ms=delay_ms),
        )
        for source, target in pairs
    ]

    animation = Animation(
        name=name,
        width=first.width,
        height=first.height,
        keyframe=buffers[0],
        transitions=transitions,
        frame_count=len(buffers),
        loop=loop,
        delay_ms=delay_ms,
    )
    logger.info(
        "Built animation %s: %d frames, %d transitions, %d diffs",
        name, len(buffers), len(transitions), animation.total_diffs,
    )
    return animation
