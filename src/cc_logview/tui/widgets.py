"""ConversationView: Line API view over one ConversationViewState.

// [LAW:one-source-of-truth] Scroll intent lives in the ConversationViewState;
//   Textual's scroll_y is a mirror, written only through _apply_scroll().
// [LAW:single-enforcer] Layout is brought up to date only by sync_layout().
"""

from __future__ import annotations

import logging
from contextlib import contextmanager

from textual.binding import Binding
from textual.geometry import Size
from textual.message import Message
from textual.scroll_view import ScrollView
from textual.strip import Strip

from cc_logview.model import Entry
from cc_logview.tui.rendering import EntryRenderer
from cc_logview.view_state.conversation import ConversationViewState
from cc_logview.view_state.layout import LayoutParams, WrapMode
from cc_logview.view_state.scroll import BOTTOM, TOP, AtLine, Bottom
from cc_logview.view_state.types import LineOffset, ViewportDimensions

logger = logging.getLogger(__name__)

HORIZONTAL_STEP = 8


class ConversationView(ScrollView):
    """Virtual-rendering conversation display.

    render_line(y) hit-tests the virtual line into (entry, line_in_entry) and
    draws that line from the renderer's cached output, so only visible lines
    are ever rendered per frame.
    """

    DEFAULT_CSS = """
    ConversationView {
        color: $foreground;
        overflow-y: scroll;
        overflow-x: auto;
        height: 1fr;
        & > .conversation-view--focused {
            background: $boost;
        }
    }
    """

    COMPONENT_CLASSES = {"conversation-view--focused"}

    class Moved(Message):
        """Posted when the scroll position or the focused entry changed."""

    BINDINGS = [
        Binding("j,down", "line_down", "Down", show=False),
        Binding("k,up", "line_up", "Up", show=False),
        Binding("pagedown", "page_next", "Page down", show=False),
        Binding("pageup", "page_prev", "Page up", show=False),
        Binding("g,home", "go_top", "Top"),
        Binding("G,end", "go_bottom", "Bottom"),
        Binding("n", "focus_next_entry", "Next"),
        Binding("p", "focus_prev_entry", "Prev"),
        Binding("enter,space", "toggle_focused", "Expand"),
        Binding("w", "wrap_focused", "Wrap entry"),
        Binding("left", "pan_left", "Left", show=False),
        Binding("right", "pan_right", "Right", show=False),
    ]

    def __init__(
        self,
        renderer: EntryRenderer,
        conversation: ConversationViewState[Entry] | None = None,
        global_wrap: WrapMode = WrapMode.WRAP,
        *,
        id: str | None = None,
    ):
        super().__init__(id=id)
        self._renderer = renderer
        self._conversation: ConversationViewState[Entry] = (
            conversation if conversation is not None else ConversationViewState()
        )
        self._global_wrap = global_wrap
        self._widest_line = 0
        self._scrolling_programmatically = False

    @contextmanager
    def _programmatic_scroll(self):
        """Guard scroll operations from being mirrored back into the view-state."""
        self._scrolling_programmatically = True
        try:
            yield
        finally:
            self._scrolling_programmatically = False

    # ─── Accessors ───────────────────────────────────────────────────────

    @property
    def conversation(self) -> ConversationViewState[Entry]:
        return self._conversation

    def set_conversation(self, conversation: ConversationViewState[Entry]) -> None:
        """Show a different conversation, keeping its own scroll intent."""
        self._conversation = conversation
        self._widest_line = 0
        self.sync_layout()

    @property
    def global_wrap(self) -> WrapMode:
        return self._global_wrap

    def set_global_wrap(self, mode: WrapMode) -> None:
        self._global_wrap = mode
        self._widest_line = 0
        if mode is WrapMode.WRAP:
            self._conversation.set_horizontal_offset(0)
        self.sync_layout()

    @property
    def _content_width(self) -> int:
        return max(1, self.scrollable_content_region.width)

    @property
    def viewport(self) -> ViewportDimensions:
        return ViewportDimensions(
            self._content_width, max(0, self.scrollable_content_region.height)
        )

    def layout_params(self) -> LayoutParams:
        return LayoutParams(self._content_width, self._global_wrap)

    # ─── Layout & scroll sync ────────────────────────────────────────────

    def _height_calculator(self, params: LayoutParams):
        base = self._renderer.height_calculator(params)

        def measure(entry, expanded, wrap):
            height = base(entry, expanded, wrap)
            if wrap is WrapMode.NO_WRAP and not height.is_zero():
                lines = self._renderer.render(entry, params.width, expanded, wrap).lines
                widest = max((strip.cell_length for strip in lines), default=0)
                self._widest_line = max(self._widest_line, widest)
            return height

        return measure

    def sync_layout(self) -> None:
        """Relayout what is stale, resize the virtual canvas and re-apply scroll."""
        if self.size.width <= 0:
            return
        params = self.layout_params()
        self._conversation.ensure_layout(params, self._height_calculator(params))
        self._update_virtual_size()
        self._apply_scroll()
        self.refresh()

    def _update_virtual_size(self) -> None:
        width = self._content_width
        if self._global_wrap is WrapMode.NO_WRAP or self._widest_line > width:
            width = max(width, self._widest_line)
        with self._programmatic_scroll():
            self.virtual_size = Size(width, self._conversation.total_height)

    def _apply_scroll(self) -> None:
        viewport = self.viewport
        offset = self._conversation.resolve_scroll(viewport.height)
        with self._programmatic_scroll():
            self.scroll_to(
                x=self._conversation.horizontal_offset,
                y=offset.value,
                animate=False,
                immediate=True,
            )
        self.post_message(self.Moved())

    def on_resize(self, event) -> None:
        self.sync_layout()

    def entries_added(self) -> None:
        """Called after entries were appended to the shown conversation."""
        self.sync_layout()

    def watch_scroll_y(self, old_value: float, new_value: float) -> None:
        super().watch_scroll_y(old_value, new_value)
        if self._scrolling_programmatically:
            return
        # User scroll (wheel, scrollbar): reaching the end re-engages follow.
        if self.is_vertical_scroll_end:
            self._conversation.set_scroll(BOTTOM)
        else:
            self._conversation.set_scroll(AtLine(LineOffset(max(0, int(new_value)))))
        self.post_message(self.Moved())

    def watch_scroll_x(self, old_value: float, new_value: float) -> None:
        super().watch_scroll_x(old_value, new_value)
        if not self._scrolling_programmatically:
            self._conversation.set_horizontal_offset(int(new_value))

    @property
    def is_following(self) -> bool:
        return isinstance(self._conversation.scroll, Bottom)

    def pin(self) -> None:
        """Hold the current top line in place as entries arrive."""
        offset = self._conversation.resolve_scroll(self.viewport.height)
        self._conversation.set_scroll(AtLine(offset))

    # ─── Line API ────────────────────────────────────────────────────────

    def render_line(self, y: int) -> Strip:
        """Line API: render a single line at virtual position y."""
        scroll_x, scroll_y = self.scroll_offset
        width = self._content_width
        try:
            hit = self._conversation.hit_test(y, 0, int(scroll_y))
            if not hit:
                return Strip.blank(width, self.rich_style)
            view = self._conversation.get(hit.entry_index)
            lines = self._renderer.lines_for(view, width, self._global_wrap)
            if hit.line_in_entry >= len(lines):
                return Strip.blank(width, self.rich_style)
            strip = lines[hit.line_in_entry].crop_extend(
                scroll_x, scroll_x + width, self.rich_style
            )
            if hit.entry_index == self._conversation.focused:
                strip = strip.apply_style(
                    self.get_component_rich_style("conversation-view--focused")
                )
            return strip.apply_style(self.rich_style)
        except Exception:
            logger.exception("render_line failed at y=%d scroll_y=%s", y, scroll_y)
            return Strip.blank(width, self.rich_style)

    # ─── Mouse ───────────────────────────────────────────────────────────

    def on_click(self, event) -> None:
        """Toggle expand on the entry under the pointer and focus it."""
        offset = event.get_content_offset(self)
        if offset is None:
            return
        hit = self._conversation.hit_test(offset.y, offset.x, int(self.scroll_offset.y))
        if not hit:
            return
        self._conversation.set_focused(hit.entry_index)
        self._toggle(hit.entry_index)

    # ─── Commands ────────────────────────────────────────────────────────

    def _toggle(self, index) -> None:
        params = self.layout_params()
        self._conversation.toggle_expand(
            index, params, self._height_calculator(params), self.viewport
        )
        self.sync_layout()

    def _scroll_lines(self, delta: int) -> None:
        self._conversation.scroll_by(delta, self.viewport)
        self._apply_scroll()
        self.refresh()

    def _reveal_focused(self) -> None:
        focused = self._conversation.focused
        if focused is None:
            return
        if focused not in self._conversation.visible_range(self.viewport):
            self._conversation.scroll_to_entry(focused)
            self._apply_scroll()
        self.post_message(self.Moved())
        self.refresh()

    def action_line_down(self) -> None:
        self._scroll_lines(1)

    def action_line_up(self) -> None:
        self._scroll_lines(-1)

    def action_page_next(self) -> None:
        self._conversation.page_down(self.viewport)
        self._apply_scroll()
        self.refresh()

    def action_page_prev(self) -> None:
        self._conversation.page_up(self.viewport)
        self._apply_scroll()
        self.refresh()

    def action_go_top(self) -> None:
        self._conversation.set_scroll(TOP)
        self._apply_scroll()
        self.refresh()

    def action_go_bottom(self) -> None:
        self._conversation.set_scroll(BOTTOM)
        self._apply_scroll()
        self.refresh()

    def action_focus_next_entry(self) -> None:
        self._conversation.focus_next()
        self._reveal_focused()

    def action_focus_prev_entry(self) -> None:
        self._conversation.focus_prev()
        self._reveal_focused()

    def action_toggle_focused(self) -> None:
        focused = self._conversation.focused
        if focused is not None:
            self._toggle(focused)

    def action_wrap_focused(self) -> None:
        focused = self._conversation.focused
        if focused is None:
            return
        params = self.layout_params()
        self._conversation.toggle_wrap(focused, params, self._height_calculator(params))
        self.sync_layout()

    def action_pan_left(self) -> None:
        self._conversation.scroll_left(HORIZONTAL_STEP)
        self._apply_scroll()

    def action_pan_right(self) -> None:
        if self._global_wrap is WrapMode.WRAP and self._widest_line <= self._content_width:
            return
        limit = max(0, self._widest_line - self._content_width)
        self._conversation.scroll_right(HORIZONTAL_STEP)
        if self._conversation.horizontal_offset > limit:
            self._conversation.set_horizontal_offset(limit)
        self._apply_scroll()
