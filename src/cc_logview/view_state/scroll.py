"""Semantic scroll position.

A scroll target is kept as intent (top, bottom, anchored entry, ...) rather
than a raw line, so "keep entry 42 at the top" survives a height change
earlier in the document. Every variant resolves through resolve_scroll(),
which clamps to [0, max(0, total_height - viewport_height)] so a viewport is
never blank.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

from cc_logview.view_state.types import EntryIndex, LineOffset

EntryLookup = Callable[[EntryIndex], "LineOffset | None"]


class ScrollPosition:
    """Base of the scroll variants. Construct via the subclasses or helpers below."""

    __slots__ = ()

    @staticmethod
    def at_line(offset: int) -> AtLine:
        return AtLine(LineOffset(offset))

    @staticmethod
    def at_entry(index: EntryIndex | int, line_in_entry: int = 0) -> AtEntry:
        if not isinstance(index, EntryIndex):
            index = EntryIndex(index)
        return AtEntry(index, line_in_entry)


@dataclass(frozen=True, slots=True)
class Top(ScrollPosition):
    pass


@dataclass(frozen=True, slots=True)
class Bottom(ScrollPosition):
    pass


@dataclass(frozen=True, slots=True)
class AtLine(ScrollPosition):
    offset: LineOffset


@dataclass(frozen=True, slots=True)
class AtEntry(ScrollPosition):
    entry_index: EntryIndex
    line_in_entry: int = 0


@dataclass(frozen=True, slots=True)
class Fraction(ScrollPosition):
    """0.0 is the top, 1.0 the bottom. Out-of-range values are clamped on resolve."""

    value: float


TOP = Top()
BOTTOM = Bottom()


def _raw_offset(position: ScrollPosition, max_offset: int, lookup: EntryLookup) -> int:
    if isinstance(position, Top):
        return 0
    if isinstance(position, Bottom):
        return max_offset
    if isinstance(position, AtLine):
        return position.offset.value
    if isinstance(position, AtEntry):
        cumulative = lookup(position.entry_index)
        if cumulative is None:
            return 0
        return cumulative.value + max(0, position.line_in_entry)
    if isinstance(position, Fraction):
        fraction = min(1.0, max(0.0, position.value))
        return round(fraction * max_offset)
    raise TypeError(f"unknown scroll position: {position!r}")


def resolve_scroll(
    position: ScrollPosition,
    total_height: int,
    viewport_height: int,
    lookup: EntryLookup,
) -> LineOffset:
    """Resolve to an absolute, clamped line offset."""
    max_offset = max(0, total_height - viewport_height)
    raw = _raw_offset(position, max_offset, lookup)
    return LineOffset(min(max(0, raw), max_offset))


def approximate_line(position: ScrollPosition, total_height: int, lookup: EntryLookup) -> int:
    """Viewport-free estimate of the scroll line, good enough to pick the active session."""
    if isinstance(position, Bottom):
        return total_height
    raw = _raw_offset(position, total_height, lookup)
    return min(max(0, raw), total_height)
