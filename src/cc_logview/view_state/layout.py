"""Per-entry layout metadata and the global parameters it depends on."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from cc_logview.view_state.types import LineHeight, LineOffset


class WrapMode(Enum):
    WRAP = "wrap"
    NO_WRAP = "nowrap"

    def toggled(self) -> WrapMode:
        return WrapMode.NO_WRAP if self is WrapMode.WRAP else WrapMode.WRAP

    @classmethod
    def from_bool(cls, wrap: bool) -> WrapMode:
        return cls.WRAP if wrap else cls.NO_WRAP


@dataclass(frozen=True, slots=True)
class EntryLayout:
    """Height plus cumulative offset of one entry.

    cumulative_y is the sum of all preceding heights; the owning
    ConversationViewState keeps it consistent across the sequence.
    """

    height: LineHeight = field(default_factory=lambda: LineHeight.ONE)
    cumulative_y: LineOffset = field(default_factory=LineOffset)

    @property
    def bottom_y(self) -> LineOffset:
        """Line immediately after this entry."""
        return LineOffset(self.cumulative_y.value + self.height.value)

    def contains(self, line: int) -> bool:
        return self.cumulative_y.value <= line < self.bottom_y.value


@dataclass(frozen=True, slots=True)
class LayoutParams:
    """Global inputs of a layout pass. Per-entry state lives on EntryView.

    Two equal params produce identical layouts given unchanged entry state,
    which is what needs_relayout() compares.
    """

    width: int
    global_wrap: WrapMode = WrapMode.WRAP
