"""Tests for visible-range and hit-test queries over a laid-out conversation."""

import random

import pytest

from cc_logview.view_state.conversation import ConversationViewState
from cc_logview.view_state.hit_test import HitTestResult
from cc_logview.view_state.scroll import BOTTOM, TOP, AtLine
from cc_logview.view_state.types import EntryIndex, LineOffset, ViewportDimensions
from cc_logview.view_state.visible_range import VisibleRange
from tests.harness import cumulative, heights, make_conversation


def _viewport(height):
    return ViewportDimensions(80, height)


# ─── VisibleRange value type ──────────────────────────────────────────────


def test_visible_range_defaults_to_empty():
    visible = VisibleRange()
    assert visible.is_empty()
    assert len(visible) == 0
    assert list(visible.indices()) == []


def test_visible_range_membership():
    visible = VisibleRange(EntryIndex(2), EntryIndex(5), LineOffset(4), 4)
    assert len(visible) == 3
    assert EntryIndex(2) in visible
    assert 4 in visible
    assert 5 not in visible
    assert [i.value for i in visible.indices()] == [2, 3, 4]


# ─── Visible range ────────────────────────────────────────────────────────


def test_top_of_mixed_heights():
    # Lines 0..3 hold entry 0 (line 0) and entry 1 (lines 1-3); entry 2
    # begins exactly at the viewport's bottom edge and is excluded.
    conv = make_conversation([1, 3, 1, 2, 1])
    conv.set_scroll(TOP)
    visible = conv.visible_range(_viewport(4))
    assert (visible.start_index.value, visible.end_index.value) == (0, 2)
    assert visible.scroll_offset == LineOffset(0)
    assert visible.viewport_height == 4


def test_bottom_of_mixed_heights():
    conv = make_conversation([1, 3, 1, 2, 1])
    conv.set_scroll(BOTTOM)
    assert conv.resolve_scroll(4) == LineOffset(4)
    visible = conv.visible_range(_viewport(4))
    assert (visible.start_index.value, visible.end_index.value) == (2, 5)
    assert visible.scroll_offset == LineOffset(4)


def test_partial_entry_at_top_is_included():
    conv = make_conversation([1, 3, 1, 2, 1])
    conv.set_scroll(AtLine(LineOffset(2)))
    visible = conv.visible_range(_viewport(4))
    assert (visible.start_index.value, visible.end_index.value) == (1, 4)


def test_viewport_larger_than_content_shows_everything():
    conv = make_conversation([1, 2])
    conv.set_scroll(BOTTOM)
    visible = conv.visible_range(_viewport(40))
    assert (visible.start_index.value, visible.end_index.value) == (0, 2)
    assert visible.scroll_offset == LineOffset(0)


def test_zero_height_viewport_is_empty():
    conv = make_conversation([1, 3, 1])
    assert conv.visible_range(_viewport(0)).is_empty()


def test_empty_conversation_range():
    visible = ConversationViewState().visible_range(_viewport(10))
    assert visible.is_empty()
    assert visible.viewport_height == 10


def test_zero_height_entries_on_boundary_are_excluded():
    conv = make_conversation([2, 0, 3])
    visible = conv.visible_range(_viewport(2))
    assert (visible.start_index.value, visible.end_index.value) == (0, 1)


def _assert_range_matches_overlap(conv, viewport):
    visible = conv.visible_range(viewport)
    offsets = cumulative(conv)
    sizes = heights(conv)
    top = visible.scroll_offset.value
    bottom = top + viewport.height
    start, end = visible.start_index.value, visible.end_index.value
    assert 0 <= start <= end <= len(conv)
    for i in range(start, end):
        assert offsets[i] < bottom
        assert offsets[i] + sizes[i] > top
    for i, (y, h) in enumerate(zip(offsets, sizes)):
        if h and y < bottom and y + h > top:
            assert start <= i < end, (i, offsets, sizes, top, viewport.height)


def test_visible_range_matches_linear_overlap_scan():
    rng = random.Random(2024)
    for _ in range(300):
        sizes = [rng.choice([0, 1, 1, 2, 3, 5, 11]) for _ in range(rng.randint(0, 30))]
        conv = make_conversation(sizes)
        conv.set_scroll(AtLine(LineOffset(rng.randint(0, sum(sizes) + 5))))
        _assert_range_matches_overlap(conv, _viewport(rng.randint(0, 25)))


# ─── Hit test ─────────────────────────────────────────────────────────────


def test_hit_inside_tall_entry():
    conv = make_conversation([1, 3, 1, 2, 1])
    result = conv.hit_test(2, 5, LineOffset(0))
    assert result.is_hit
    assert result.entry_index == EntryIndex(1)
    assert result.line_in_entry == 1
    assert result.column == 5


def test_hit_accounts_for_scroll_offset():
    conv = make_conversation([1, 3, 1, 2, 1])
    result = conv.hit_test(0, 0, 4)
    assert result.entry_index == EntryIndex(2)
    assert result.line_in_entry == 0


@pytest.mark.parametrize("screen_y,scroll", [(8, 0), (4, 4), (100, 0), (-1, 0)])
def test_miss_outside_content(screen_y, scroll):
    conv = make_conversation([1, 3, 1, 2, 1])
    result = conv.hit_test(screen_y, 0, LineOffset(scroll))
    assert not result.is_hit
    assert not result
    assert result == HitTestResult.miss()


def test_hit_skips_zero_height_entries():
    conv = make_conversation([2, 0, 3])
    result = conv.hit_test(2, 0, 0)
    assert result.entry_index == EntryIndex(2)
    assert result.line_in_entry == 0


def test_hit_on_empty_conversation():
    assert not ConversationViewState().hit_test(0, 0, 0)


def test_negative_column_clamps_to_zero():
    conv = make_conversation([3])
    assert conv.hit_test(1, -4, 0).column == 0


def test_every_hit_lands_inside_its_entry():
    rng = random.Random(99)
    for _ in range(200):
        sizes = [rng.choice([0, 1, 2, 4, 9]) for _ in range(rng.randint(1, 25))]
        conv = make_conversation(sizes)
        total = conv.total_height
        scroll = rng.randint(0, total + 3)
        for screen_y in range(0, 12):
            result = conv.hit_test(screen_y, 3, scroll)
            absolute = scroll + screen_y
            if absolute >= total:
                assert not result.is_hit
                continue
            assert result.is_hit
            view = conv.get(result.entry_index)
            assert view.layout.contains(absolute)
            assert result.line_in_entry < view.layout.height.value
