"""View-state for a single conversation (the main agent or one sub-agent).

Owns EntryViews by value, their layouts, and the semantic scroll target.
Answers visible-range and hit-test queries by binary search over the
cumulative offsets, which relayout keeps non-decreasing.

// [LAW:single-enforcer] cumulative_y is written only by _layout_suffix() and _push().
// [LAW:one-way-deps] Never imports rendering; heights come from the caller's calculator.
"""

from __future__ import annotations

import bisect
import logging
from collections.abc import Callable, Iterable, Iterator
from enum import Enum
from typing import Any, Generic, TypeVar

from cc_logview.io.perf_logging import monitor_slow_path
from cc_logview.view_state.entry_view import EntryView
from cc_logview.view_state.hit_test import HitTestResult
from cc_logview.view_state.layout import EntryLayout, LayoutParams, WrapMode
from cc_logview.view_state.scroll import (
    TOP,
    AtEntry,
    AtLine,
    Bottom,
    ScrollPosition,
    approximate_line,
    resolve_scroll,
)
from cc_logview.view_state.types import (
    EntryIndex,
    LineHeight,
    LineOffset,
    ViewportDimensions,
    as_index,
)
from cc_logview.view_state.visible_range import VisibleRange

logger = logging.getLogger(__name__)

EntryT = TypeVar("EntryT")

# (entry, expanded, effective wrap) -> height. Must return LineHeight.ZERO for
# entries that do not render and otherwise a height already wrapped to the
# width of the LayoutParams passed alongside it.
HeightCalculator = Callable[[Any, bool, WrapMode], LineHeight]


class Missing(Enum):
    """Absence marker for calls whose successful result may itself be None."""

    NO_SUCH_INDEX = "no-such-index"


NO_SUCH_INDEX = Missing.NO_SUCH_INDEX


def _as_height(value: LineHeight | int) -> LineHeight:
    return value if isinstance(value, LineHeight) else LineHeight(int(value))


class ConversationViewState(Generic[EntryT]):
    """Ordered EntryViews with layout, scroll, focus and query support.

    Layout is not computed at construction. Until a layout pass runs, each
    entry carries a provisional one-line height placed at its predecessor's
    bottom edge, so the offset invariant holds between append and relayout.
    """

    def __init__(self, entries: Iterable[EntryT] = (), agent_id: str | None = None):
        self._agent_id = agent_id
        self._model: str | None = None
        self._entries: list[EntryView[EntryT]] = []
        self._scroll: ScrollPosition = TOP
        self._total_height = 0
        self._focused: int | None = None
        self._horizontal_offset = 0
        self._last_params: LayoutParams | None = None
        # First index appended since the last layout pass.
        self._stale_from: int | None = None
        self._push(entries)

    @classmethod
    def empty(cls, agent_id: str | None = None) -> ConversationViewState:
        return cls((), agent_id=agent_id)

    def __repr__(self) -> str:
        return (
            f"ConversationViewState(agent_id={self._agent_id!r}, entries={len(self._entries)}, "
            f"total_height={self._total_height}, scroll={self._scroll!r})"
        )

    # ─── Collection access ───────────────────────────────────────────────

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[EntryView[EntryT]]:
        return iter(self._entries)

    def is_empty(self) -> bool:
        return not self._entries

    def get(self, index: EntryIndex | int) -> EntryView[EntryT] | None:
        i = as_index(index)
        if 0 <= i < len(self._entries):
            return self._entries[i]
        return None

    @property
    def entries(self) -> tuple[EntryView[EntryT], ...]:
        return tuple(self._entries)

    @property
    def agent_id(self) -> str | None:
        return self._agent_id

    @property
    def model(self) -> str | None:
        return self._model

    def set_model_if_none(self, model: str) -> bool:
        """Record the model name once. Returns True if it was set by this call."""
        if self._model is not None:
            return False
        self._model = model
        return True

    @property
    def total_height(self) -> int:
        return self._total_height

    @property
    def last_layout_params(self) -> LayoutParams | None:
        return self._last_params

    def entry_cumulative_y(self, index: EntryIndex | int) -> LineOffset | None:
        view = self.get(index)
        return view.layout.cumulative_y if view is not None else None

    def entry_height(self, index: EntryIndex | int) -> LineHeight | None:
        view = self.get(index)
        return view.layout.height if view is not None else None

    # ─── Append & layout ─────────────────────────────────────────────────

    def _push(self, entries: Iterable[EntryT]) -> int:
        start = len(self._entries)
        offset = self._total_height
        for entry in entries:
            index = EntryIndex(len(self._entries))
            self._entries.append(
                EntryView(entry, index, EntryLayout(LineHeight.ONE, LineOffset(offset)))
            )
            offset += 1
        added = len(self._entries) - start
        if added:
            self._total_height = offset
            if self._stale_from is None:
                self._stale_from = start
        return added

    def append(self, entries: Iterable[EntryT]) -> int:
        """Append to the tail (streaming). Returns the number of entries added."""
        return self._push(entries)

    def needs_relayout(self, params: LayoutParams) -> bool:
        """True if the global params changed or entries arrived since the last pass.

        Per-entry expand/wrap changes are relaid by toggle_expand() and
        set_wrap_override() directly and never set this.
        """
        return self._last_params != params or self._stale_from is not None

    def _layout_suffix(
        self, start: int, params: LayoutParams, height_calculator: HeightCalculator
    ) -> None:
        entries = self._entries
        offset = entries[start - 1].layout.bottom_y.value if start > 0 else 0
        global_wrap = params.global_wrap
        for i in range(start, len(entries)):
            view = entries[i]
            height = _as_height(
                height_calculator(view.entry, view.expanded, view.effective_wrap(global_wrap))
            )
            view.set_layout(EntryLayout(height, LineOffset(offset)))
            offset += height.value
        self._total_height = offset

    def recompute_layout(
        self, params: LayoutParams, height_calculator: HeightCalculator
    ) -> None:
        """Full O(n) layout pass."""
        with monitor_slow_path(
            "conversation.recompute_layout",
            logger=logger,
            context=lambda: {"agent_id": self._agent_id, "entries": len(self._entries)},
        ):
            self._layout_suffix(0, params, height_calculator)
        self._last_params = params
        self._stale_from = None

    def relayout_from(
        self,
        index: EntryIndex | int,
        params: LayoutParams,
        height_calculator: HeightCalculator,
    ) -> None:
        """Recompute the suffix starting at index. Out-of-range index is a no-op."""
        start = as_index(index)
        if start < 0 or start >= len(self._entries):
            return
        if start == 0:
            self.recompute_layout(params, height_calculator)
            return
        with monitor_slow_path(
            "conversation.relayout_from",
            logger=logger,
            context=lambda: {"agent_id": self._agent_id, "start": start},
        ):
            self._layout_suffix(start, params, height_calculator)
        if (
            self._stale_from is not None
            and start <= self._stale_from
            and params == self._last_params
        ):
            self._stale_from = None

    def ensure_layout(
        self, params: LayoutParams, height_calculator: HeightCalculator
    ) -> bool:
        """Bring layout up to date as cheaply as possible. Returns True if work was done."""
        if self._last_params != params:
            self.recompute_layout(params, height_calculator)
            return True
        if self._stale_from is not None:
            self.relayout_from(self._stale_from, params, height_calculator)
            return True
        return False

    # ─── Per-entry state ─────────────────────────────────────────────────

    def _anchor_first_visible(
        self, changed_index: int, viewport: ViewportDimensions
    ) -> ScrollPosition | None:
        """AtEntry anchor on the first visible entry when changed_index lies above it."""
        visible = self.visible_range(viewport)
        first = visible.start_index.value
        if changed_index >= first or first >= len(self._entries):
            return None
        first_y = self._entries[first].layout.cumulative_y.value
        return AtEntry(EntryIndex(first), max(0, visible.scroll_offset.value - first_y))

    def toggle_expand(
        self,
        index: EntryIndex | int,
        params: LayoutParams,
        height_calculator: HeightCalculator,
        viewport: ViewportDimensions | None = None,
    ) -> bool | None:
        """Flip expand state and relayout the suffix. Returns the previous state, or None.

        With a viewport, toggling an entry above the viewport re-anchors the
        scroll on the first visible entry so the visible content stays put.
        """
        i = as_index(index)
        view = self.get(i)
        if view is None:
            return None
        anchor = self._anchor_first_visible(i, viewport) if viewport is not None else None
        previous = view.expanded
        expanded = view.toggle_expanded()
        self.relayout_from(i, params, height_calculator)
        if anchor is not None:
            self._scroll = anchor
        logger.debug("toggle_expand agent=%s index=%d expanded=%s", self._agent_id, i, expanded)
        return previous

    def set_wrap_override(
        self,
        index: EntryIndex | int,
        wrap: WrapMode | None,
        params: LayoutParams,
        height_calculator: HeightCalculator,
    ) -> WrapMode | None | Missing:
        """Set or clear one entry's wrap override. Returns the previous override or NO_SUCH_INDEX."""
        i = as_index(index)
        view = self.get(i)
        if view is None:
            return NO_SUCH_INDEX
        previous = view.wrap_override
        view.set_wrap_override(wrap)
        self.relayout_from(i, params, height_calculator)
        return previous

    def toggle_wrap(
        self,
        index: EntryIndex | int,
        params: LayoutParams,
        height_calculator: HeightCalculator,
    ) -> WrapMode | None | Missing:
        """Override to the opposite of the global mode, or clear. Returns the new override."""
        view = self.get(index)
        if view is None:
            return NO_SUCH_INDEX
        new_override = view.wrap_override
        new_override = None if new_override is not None else params.global_wrap.toggled()
        self.set_wrap_override(index, new_override, params, height_calculator)
        return new_override

    # ─── Focus ───────────────────────────────────────────────────────────

    @property
    def focused(self) -> EntryIndex | None:
        return EntryIndex(self._focused) if self._focused is not None else None

    def set_focused(self, index: EntryIndex | int | None) -> None:
        """Focus an entry, clamping to the last one. None clears focus."""
        if index is None or not self._entries:
            self._focused = None
            return
        self._focused = min(max(0, as_index(index)), len(self._entries) - 1)

    def focused_entry(self) -> EntryView[EntryT] | None:
        return self.get(self._focused) if self._focused is not None else None

    def focus_next(self) -> EntryIndex | None:
        self.set_focused(0 if self._focused is None else self._focused + 1)
        return self.focused

    def focus_prev(self) -> EntryIndex | None:
        if self._focused is None:
            self.set_focused(len(self._entries) - 1)
        else:
            self.set_focused(self._focused - 1)
        return self.focused

    # ─── Scrolling ───────────────────────────────────────────────────────

    @property
    def scroll(self) -> ScrollPosition:
        return self._scroll

    def set_scroll(self, position: ScrollPosition) -> None:
        self._scroll = position

    def resolve_scroll(self, viewport_height: int) -> LineOffset:
        return resolve_scroll(
            self._scroll, self._total_height, viewport_height, self.entry_cumulative_y
        )

    def approximate_scroll_line(self) -> int:
        return approximate_line(self._scroll, self._total_height, self.entry_cumulative_y)

    def is_at_bottom(self, viewport: ViewportDimensions) -> bool:
        """True when the last content line is inside the viewport."""
        if self._total_height <= viewport.height:
            return True
        max_offset = self._total_height - viewport.height
        return self.resolve_scroll(viewport.height).value >= max_offset

    def scroll_by(self, delta: int, viewport: ViewportDimensions) -> LineOffset:
        """Move by delta lines from the resolved position. Reaching the end re-engages Bottom."""
        current = self.resolve_scroll(viewport.height)
        target = current.saturating_add(delta)
        max_offset = max(0, self._total_height - viewport.height)
        if delta > 0 and target.value >= max_offset:
            self._scroll = Bottom()
        else:
            self._scroll = AtLine(LineOffset(min(target.value, max_offset)))
        return self.resolve_scroll(viewport.height)

    def page_down(self, viewport: ViewportDimensions) -> LineOffset:
        return self.scroll_by(max(1, viewport.height), viewport)

    def page_up(self, viewport: ViewportDimensions) -> LineOffset:
        return self.scroll_by(-max(1, viewport.height), viewport)

    def scroll_to_entry(self, index: EntryIndex | int) -> bool:
        """Anchor the top of the viewport on an entry. Returns False for no such index."""
        view = self.get(index)
        if view is None:
            return False
        self._scroll = AtEntry(view.index, 0)
        return True

    @property
    def horizontal_offset(self) -> int:
        return self._horizontal_offset

    def set_horizontal_offset(self, offset: int) -> None:
        self._horizontal_offset = max(0, offset)

    def scroll_left(self, amount: int) -> None:
        self._horizontal_offset = max(0, self._horizontal_offset - amount)

    def scroll_right(self, amount: int) -> None:
        self._horizontal_offset += max(0, amount)

    # ─── Queries ─────────────────────────────────────────────────────────

    def visible_range(self, viewport: ViewportDimensions) -> VisibleRange:
        """Entries overlapping the viewport at the resolved scroll offset. O(log n)."""
        height = viewport.height
        if not self._entries:
            return VisibleRange(viewport_height=height)
        offset = self.resolve_scroll(height)
        top = offset.value
        # First entry whose bottom edge is past the scroll offset.
        start = bisect.bisect_right(self._entries, top, key=lambda v: v.layout.bottom_y.value)
        # First entry whose top edge is at or past the viewport bottom.
        end = bisect.bisect_left(
            self._entries, top + height, key=lambda v: v.layout.cumulative_y.value
        )
        return VisibleRange(EntryIndex(start), EntryIndex(max(start, end)), offset, height)

    def hit_test(
        self, screen_y: int, screen_x: int, scroll_offset: LineOffset | int
    ) -> HitTestResult:
        """Map a viewport coordinate to the entry under it. O(log n)."""
        if not self._entries or screen_y < 0:
            return HitTestResult.miss()
        base = scroll_offset.value if isinstance(scroll_offset, LineOffset) else scroll_offset
        absolute_y = base + screen_y
        index = bisect.bisect_right(
            self._entries, absolute_y, key=lambda v: v.layout.bottom_y.value
        )
        if index >= len(self._entries):
            return HitTestResult.miss()
        entry_y = self._entries[index].layout.cumulative_y.value
        if absolute_y < entry_y:
            return HitTestResult.miss()
        return HitTestResult.hit(EntryIndex(index), absolute_y - entry_y, max(0, screen_x))
