"""Entry rendering: domain entry -> list of Strips.

// [LAW:one-source-of-truth] Heights are the length of the cached render, so layout
//   and drawing can never disagree about how tall an entry is.
// [LAW:single-enforcer] All rich console rendering for entries happens in render_entry_lines().
"""

from __future__ import annotations

from rich.console import Console
from rich.segment import Segment
from rich.style import Style
from rich.text import Text
from textual.strip import Strip

from cc_logview.model import Entry, EntryType, LogEntry, MalformedEntry, entry_identity
from cc_logview.view_state.cache import CachedRender, RenderCache, RenderCacheKey
from cc_logview.view_state.conversation import HeightCalculator
from cc_logview.view_state.entry_view import EntryView
from cc_logview.view_state.layout import LayoutParams, WrapMode
from cc_logview.view_state.types import LineHeight

DEFAULT_COLLAPSE_THRESHOLD = 10
DEFAULT_SUMMARY_LINES = 3

_LABEL_STYLES: dict[EntryType, tuple[str, str]] = {
    EntryType.USER: ("USER", "bold cyan"),
    EntryType.ASSISTANT: ("ASSISTANT", "bold green"),
    EntryType.SYSTEM: ("SYSTEM", "bold yellow"),
    EntryType.SUMMARY: ("SUMMARY", "bold magenta"),
    EntryType.RESULT: ("RESULT", "bold blue"),
}

_DIM = Style(dim=True)


def _header(entry: LogEntry) -> Text:
    label, style = _LABEL_STYLES[entry.entry_type]
    header = Text("▌ ", style=style)
    header.append(label, style=style)
    if entry.timestamp is not None:
        header.append(f"  {entry.timestamp.strftime('%H:%M:%S')}", style=_DIM)
    if entry.model:
        header.append(f"  {entry.model}", style=_DIM)
    return header


def _body_lines(
    text: str, expanded: bool, collapse_threshold: int, summary_lines: int
) -> tuple[list[str], int]:
    """Visible body lines and the number of lines hidden by collapsing."""
    lines = text.split("\n") if text else []
    if expanded or len(lines) <= max(collapse_threshold, summary_lines):
        return lines, 0
    return lines[:summary_lines], len(lines) - summary_lines


def render_entry_lines(
    entry: Entry,
    console: Console,
    width: int,
    expanded: bool,
    wrap: WrapMode,
    collapse_threshold: int = DEFAULT_COLLAPSE_THRESHOLD,
    summary_lines: int = DEFAULT_SUMMARY_LINES,
) -> list[Strip]:
    """Render one entry. Malformed entries render no lines.

    WRAP output is adjusted to exactly `width` cells. NO_WRAP output keeps one
    strip per logical line at its full length so the view can scroll it
    horizontally.
    """
    if isinstance(entry, MalformedEntry):
        return []

    render_width = max(1, width)
    text = _header(entry)
    body, hidden = _body_lines(entry.text, expanded, collapse_threshold, summary_lines)
    for line in body:
        text.append("\n")
        text.append(line)
    if hidden:
        text.append(f"\n… (+{hidden} more lines)", style=_DIM)

    options = console.options.update_width(render_width)
    if wrap is WrapMode.NO_WRAP:
        options = options.update(overflow="ignore", no_wrap=True)
    segments = console.render(text, options)
    lines = list(Segment.split_lines(segments))
    if wrap is WrapMode.NO_WRAP:
        return [s.extend_cell_length(render_width) for s in Strip.from_lines(lines)]
    return [s.adjust_cell_length(render_width) for s in Strip.from_lines(lines)]


class EntryRenderer:
    """Renders entries through a RenderCache and derives layout heights from them."""

    def __init__(
        self,
        console: Console,
        cache: RenderCache,
        collapse_threshold: int = DEFAULT_COLLAPSE_THRESHOLD,
        summary_lines: int = DEFAULT_SUMMARY_LINES,
    ):
        self.console = console
        self.cache = cache
        self.collapse_threshold = collapse_threshold
        self.summary_lines = summary_lines

    def render(self, entry: Entry, width: int, expanded: bool, wrap: WrapMode) -> CachedRender:
        key = RenderCacheKey(entry_identity(entry), width, expanded, wrap)
        return self.cache.get_or_render(
            key,
            lambda: render_entry_lines(
                entry,
                self.console,
                width,
                expanded,
                wrap,
                self.collapse_threshold,
                self.summary_lines,
            ),
        )

    def lines_for(
        self, view: EntryView[Entry], width: int, global_wrap: WrapMode
    ) -> tuple[Strip, ...]:
        return self.render(
            view.entry, width, view.expanded, view.effective_wrap(global_wrap)
        ).lines

    def height_calculator(self, params: LayoutParams) -> HeightCalculator:
        """Height callable for layout passes at params.width."""

        def calculate(entry: Entry, expanded: bool, wrap: WrapMode) -> LineHeight:
            height = self.render(entry, params.width, expanded, wrap).height
            return LineHeight.new(height) if height else LineHeight.ZERO

        return calculate
