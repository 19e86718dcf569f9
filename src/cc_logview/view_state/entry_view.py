"""EntryView: one owned domain entry plus its layout and presentation state."""

from __future__ import annotations

from typing import Generic, TypeVar

from cc_logview.view_state.layout import EntryLayout, WrapMode
from cc_logview.view_state.types import EntryIndex

EntryT = TypeVar("EntryT")


class EntryView(Generic[EntryT]):
    """Holds the entry by value. Only the owning conversation replaces the layout."""

    __slots__ = ("_entry", "_index", "_layout", "_expanded", "_wrap_override")

    def __init__(self, entry: EntryT, index: EntryIndex, layout: EntryLayout | None = None):
        self._entry = entry
        self._index = index
        self._layout = layout if layout is not None else EntryLayout()
        self._expanded = False
        self._wrap_override: WrapMode | None = None

    def __repr__(self) -> str:
        return (
            f"EntryView(index={self._index.value}, layout={self._layout!r}, "
            f"expanded={self._expanded}, wrap_override={self._wrap_override})"
        )

    @property
    def entry(self) -> EntryT:
        return self._entry

    @property
    def index(self) -> EntryIndex:
        return self._index

    @property
    def display_index(self) -> int:
        return self._index.display()

    @property
    def layout(self) -> EntryLayout:
        return self._layout

    def set_layout(self, layout: EntryLayout) -> None:
        self._layout = layout

    @property
    def expanded(self) -> bool:
        return self._expanded

    def set_expanded(self, expanded: bool) -> None:
        self._expanded = expanded

    def toggle_expanded(self) -> bool:
        """Flip expand state and return the new value."""
        self._expanded = not self._expanded
        return self._expanded

    @property
    def wrap_override(self) -> WrapMode | None:
        return self._wrap_override

    def set_wrap_override(self, mode: WrapMode | None) -> None:
        self._wrap_override = mode

    def toggle_wrap(self, global_wrap: WrapMode) -> WrapMode | None:
        """Override to the opposite of the global mode, or clear an existing override.

        Returns the new override.
        """
        if self._wrap_override is None:
            self._wrap_override = global_wrap.toggled()
        else:
            self._wrap_override = None
        return self._wrap_override

    def effective_wrap(self, global_wrap: WrapMode) -> WrapMode:
        return self._wrap_override if self._wrap_override is not None else global_wrap
