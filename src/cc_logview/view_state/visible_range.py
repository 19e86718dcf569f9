"""Visible range query result."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field

from cc_logview.view_state.types import EntryIndex, LineOffset


@dataclass(frozen=True, slots=True)
class VisibleRange:
    """Entries [start_index, end_index) at least partially inside the viewport.

    Invariant: start_index <= end_index <= entry count.
    """

    start_index: EntryIndex = field(default_factory=EntryIndex)
    end_index: EntryIndex = field(default_factory=EntryIndex)
    scroll_offset: LineOffset = field(default_factory=LineOffset)
    viewport_height: int = 0

    def __post_init__(self):
        if self.start_index > self.end_index:
            raise ValueError(
                f"start_index {self.start_index.value} > end_index {self.end_index.value}"
            )

    def __len__(self) -> int:
        return self.end_index.value - self.start_index.value

    def is_empty(self) -> bool:
        return len(self) == 0

    def indices(self) -> Iterator[EntryIndex]:
        return (EntryIndex(i) for i in range(self.start_index.value, self.end_index.value))

    def __contains__(self, index: EntryIndex | int) -> bool:
        value = index.value if isinstance(index, EntryIndex) else index
        return self.start_index.value <= value < self.end_index.value
