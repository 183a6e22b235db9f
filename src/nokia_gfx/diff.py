"""
Frame Differencer
=================

Computes the byte-level changes between two page-major frames. A
transition between animation frames is stored as a FrameDiff: the
addresses whose byte differs, paired with the new value.

Ordering
--------
diff() scans addresses from 0 upwards, so a FrameDiff is always sorted
by strictly ascending address. Consumers rely on this: targeted playback
sends the entries in this order, and emitted assets keep it. FrameDiff
refuses to be built from unordered entries.

The scan is dense and byte-by-byte. Frames are a few hundred bytes, so
nothing smarter is needed.
"""

import logging
from dataclasses import dataclass
from typing import Iterable, Iterator, MutableSequence, Optional

from nokia_gfx.bitmap import ByteSource
from nokia_gfx.errors import DimensionMismatchError, InvalidDimensionsError

logger = logging.getLogger(__name__)

# DiffEntry addresses are unsigned 16-bit values
MAX_ADDRESS = 0xFFFF


@dataclass(frozen=True)
class DiffEntry:
    """
    One changed byte: new value at a linear page-major address.

    Attributes:
        address: Linear address (0-65535)
        value: New byte value (0-255)
    """
    address: int
    value: int

    def __post_init__(self):
        if not 0 <= self.address <= MAX_ADDRESS:
            raise ValueError(f"Diff address out of range: {self.address}")
        if not 0 <= self.value <= 0xFF:
            raise ValueError(f"Diff value out of range: {self.value}")


class FrameDiff:
    """
    Ordered, immutable list of DiffEntry values for one frame transition.

    Attributes:
        entries: Entries in strictly ascending address order
        delay_ms: How long the previous frame stays on screen before this
            transition is played (0 = no delay)

    Example:
        >>> d = diff(prev, nxt)
        >>> [(e.address, e.value) for e in d]
        [(3, 32)]
    """

    __slots__ = ("_entries", "delay_ms")

    def __init__(self, entries: Iterable[DiffEntry] = (), delay_ms: int = 0):
        self._entries: tuple[DiffEntry, ...] = tuple(entries)
        if delay_ms < 0 or delay_ms > 0xFFFF:
            raise ValueError(f"Frame delay out of range: {delay_ms}")
        self.delay_ms = delay_ms

        for before, after in zip(self._entries, self._entries[1:]):
            if after.address <= before.address:
                raise ValueError(
                    f"Diff entries must be in ascending address order "
                    f"({after.address} follows {before.address})"
                )

    @classmethod
    def from_pairs(
        cls,
        pairs: Iterable[tuple[int, int]],
        delay_ms: int = 0,
    ) -> "FrameDiff":
        """Build from (address, value) pairs."""
        return cls((DiffEntry(a, v) for a, v in pairs), delay_ms=delay_ms)

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[DiffEntry]:
        return iter(self._entries)

    def __getitem__(self, index):
        return self._entries[index]

    def __bool__(self) -> bool:
        return bool(self._entries)

    def __eq__(self, other) -> bool:
        if not isinstance(other, FrameDiff):
            return NotImplemented
        return self._entries == other._entries and self.delay_ms == other.delay_ms

    def __repr__(self) -> str:
        return f"FrameDiff({len(self._entries)} entries, delay_ms={self.delay_ms})"

    @property
    def entries(self) -> tuple[DiffEntry, ...]:
        return self._entries

    @property
    def addresses(self) -> list[int]:
        return [entry.address for entry in self._entries]

    def to_pairs(self) -> list[tuple[int, int]]:
        return [(entry.address, entry.value) for entry in self._entries]

    def with_delay(self, delay_ms: int) -> "FrameDiff":
        """Same entries, different delay."""
        return FrameDiff(self._entries, delay_ms=delay_ms)

    def apply_to(self, buffer: MutableSequence[int]) -> None:
        """Overwrite buffer in place with every entry, in order."""
        apply_diff(buffer, self)


# =============================================================================
# Differencing
# =============================================================================

def _shape(frame: ByteSource) -> Optional[tuple[int, int]]:
    """(width, pages) of frames that know their layout, None for plain bytes."""
    width = getattr(frame, "width", None)
    pages = getattr(frame, "pages", None)
    if width is None or pages is None:
        return None
    return width, pages


def diff(prev: ByteSource, next: ByteSource, delay_ms: int = 0) -> FrameDiff:
    """
    List every address where next differs from prev.

    Args:
        prev: Current frame (PageMajorBuffer, shadow memory or bytes)
        next: Frame to change to, same byte length as prev
        delay_ms: Delay to record on the resulting transition

    Returns:
        FrameDiff sorted by ascending address; empty if the frames match

    Raises:
        DimensionMismatchError: prev and next differ in length, or in
            width and page count when both carry their layout
        InvalidDimensionsError: frames exceed the 16-bit address space
    """
    if len(prev) != len(next):
        raise DimensionMismatchError(len(prev), len(next))
    prev_shape, next_shape = _shape(prev), _shape(next)
    if prev_shape and next_shape and prev_shape != next_shape:
        raise DimensionMismatchError(
            len(prev), len(next),
            message=(
                f"frame shapes differ: {prev_shape[0]} columns x {prev_shape[1]} pages "
                f"vs {next_shape[0]} x {next_shape[1]}"
            ),
        )
    if len(prev) > MAX_ADDRESS + 1:
        raise InvalidDimensionsError(
            len(prev), 0,
            message=f"{len(prev)} byte frames exceed the 16-bit diff address space",
        )

    entries = [
        DiffEntry(address, next[address])
        for address in range(len(prev))
        if prev[address] != next[address]
    ]

    logger.debug("Frame diff: %d of %d bytes changed", len(entries), len(prev))
    return FrameDiff(entries, delay_ms=delay_ms)


def apply_diff(buffer: MutableSequence[int], frame_diff: Iterable[DiffEntry]) -> None:
    """
    Write every entry of a diff into a mutable buffer, in order.

    Applying diff(prev, next) to a copy of prev yields next; applying the
    same diff again changes nothing.
    """
    size = len(buffer)
    for entry in frame_diff:
        if entry.address >= size:
            raise DimensionMismatchError(
                entry.address + 1, size,
                message=f"diff address {entry.address} outside {size} byte buffer",
            )
    for entry in frame_diff:
        buffer[entry.address] = entry.value
