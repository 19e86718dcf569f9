"""Tests for EntryView presentation state."""

from cc_logview.view_state.entry_view import EntryView
from cc_logview.view_state.layout import EntryLayout, WrapMode
from cc_logview.view_state.types import EntryIndex, LineHeight, LineOffset
from tests.harness import FakeEntry


def _view():
    return EntryView(FakeEntry("a"), EntryIndex(4))


def test_defaults():
    view = _view()
    assert view.entry == FakeEntry("a")
    assert view.index == EntryIndex(4)
    assert view.display_index == 5
    assert view.layout == EntryLayout()
    assert view.expanded is False
    assert view.wrap_override is None


def test_toggle_expanded_returns_new_state_and_is_self_inverse():
    view = _view()
    assert view.toggle_expanded() is True
    assert view.toggle_expanded() is False
    assert view.expanded is False


def test_effective_wrap_prefers_override():
    view = _view()
    assert view.effective_wrap(WrapMode.WRAP) is WrapMode.WRAP
    view.set_wrap_override(WrapMode.NO_WRAP)
    assert view.effective_wrap(WrapMode.WRAP) is WrapMode.NO_WRAP
    assert view.effective_wrap(WrapMode.NO_WRAP) is WrapMode.NO_WRAP
    view.set_wrap_override(None)
    assert view.effective_wrap(WrapMode.NO_WRAP) is WrapMode.NO_WRAP


def test_toggle_wrap_sets_opposite_of_global_then_clears():
    view = _view()
    assert view.toggle_wrap(WrapMode.WRAP) is WrapMode.NO_WRAP
    assert view.effective_wrap(WrapMode.WRAP) is WrapMode.NO_WRAP
    assert view.toggle_wrap(WrapMode.WRAP) is None
    assert view.wrap_override is None


def test_set_layout_replaces_layout():
    view = _view()
    layout = EntryLayout(LineHeight.new(3), LineOffset(7))
    view.set_layout(layout)
    assert view.layout is layout
    assert view.layout.bottom_y == LineOffset(10)
