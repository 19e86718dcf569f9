"""Core view-state newtypes.

// [LAW:one-source-of-truth] Line/index arithmetic goes through these types only.
// [LAW:one-way-deps] No project imports; every other view_state module depends on this one.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar


class InvalidLineHeight(ValueError):
    """Raised by LineHeight.new() for a height that cannot belong to a rendered entry."""

    def __init__(self, height: int):
        self.height = height
        super().__init__(f"LineHeight must be >= 1 for valid entries (got {height})")


@dataclass(frozen=True, order=True, slots=True)
class LineHeight:
    """Height of an entry in terminal lines.

    LineHeight.ZERO is the sentinel for entries that keep their index slot
    but render nothing (malformed log lines).
    """

    value: int = 1

    ZERO: ClassVar[LineHeight]
    ONE: ClassVar[LineHeight]

    def __post_init__(self):
        if self.value < 0:
            raise InvalidLineHeight(self.value)

    @classmethod
    def new(cls, height: int) -> LineHeight:
        """Smart constructor: rejects 0, which is reserved for ZERO."""
        if height <= 0:
            raise InvalidLineHeight(height)
        return cls(height)

    def get(self) -> int:
        return self.value

    def is_zero(self) -> bool:
        return self.value == 0


LineHeight.ZERO = LineHeight(0)
LineHeight.ONE = LineHeight(1)


@dataclass(frozen=True, order=True, slots=True)
class LineOffset:
    """Absolute 0-based line offset from the start of a conversation."""

    value: int = 0

    def __post_init__(self):
        if self.value < 0:
            raise ValueError(f"LineOffset must be >= 0 (got {self.value})")

    def get(self) -> int:
        return self.value

    def saturating_add(self, amount: int) -> LineOffset:
        return LineOffset(max(0, self.value + amount))

    def saturating_sub(self, amount: int) -> LineOffset:
        return LineOffset(max(0, self.value - amount))


@dataclass(frozen=True, order=True, slots=True)
class EntryIndex:
    """Entry position within its conversation. 0-based; display() is 1-based."""

    value: int = 0

    def __post_init__(self):
        if self.value < 0:
            raise ValueError(f"EntryIndex must be >= 0 (got {self.value})")

    def get(self) -> int:
        return self.value

    def display(self) -> int:
        return self.value + 1

    def next(self) -> EntryIndex:
        return EntryIndex(self.value + 1)

    def prev(self) -> EntryIndex:
        return EntryIndex(max(0, self.value - 1))


@dataclass(frozen=True, slots=True)
class ViewportDimensions:
    """Viewport size in terminal cells."""

    width: int
    height: int

    def __post_init__(self):
        if self.width < 0 or self.height < 0:
            raise ValueError(f"viewport dimensions must be >= 0 (got {self.width}x{self.height})")


def as_index(index: EntryIndex | int) -> int:
    """Accept either an EntryIndex or a raw int at API boundaries."""
    return index.value if isinstance(index, EntryIndex) else int(index)
