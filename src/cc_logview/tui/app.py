"""Main TUI application using Textual.

// [LAW:locality-or-seam] Thin coordinator: the LogViewState owns all view-state,
//   ConversationView draws one conversation, this module wires input and polling.
// [LAW:dataflow-not-control-flow] The source is polled on every tick; follow
//   mode only decides where views anchor.
"""

from __future__ import annotations

import logging

from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.css.query import NoMatches
from textual.widgets import Footer, Header, Tab, Tabs

from cc_logview import settings
from cc_logview.io.source import LineSource, iter_entries, load_log
from cc_logview.model import Entry
from cc_logview.settings import ResolvedConfig
from cc_logview.tui.rendering import EntryRenderer
from cc_logview.tui.widgets import ConversationView
from cc_logview.view_state.cache import RenderCache
from cc_logview.view_state.conversation import ConversationViewState
from cc_logview.view_state.layout import WrapMode
from cc_logview.view_state.log import LogViewState
from cc_logview.view_state.scroll import BOTTOM, TOP, AtEntry
from cc_logview.view_state.session import SessionViewState
from cc_logview.view_state.types import EntryIndex

logger = logging.getLogger(__name__)

POLL_INTERVAL_SECONDS = 0.5
MAIN_TAB_ID = "tab-main"


def find_entry_at_line(
    log: LogViewState[Entry], line_number: int
) -> tuple[int, EntryIndex] | None:
    """(session index, entry index) of the first main entry read from line_number or later."""
    for session_index, session in enumerate(log):
        for view in session.main:
            if view.entry.line_number >= line_number:
                return session_index, view.index
    return None


def session_status(
    log: LogViewState[Entry],
    session: SessionViewState[Entry],
    conversation: ConversationViewState[Entry],
) -> str:
    """Sub-title text: session, start time, position and focused entry.

    Main conversation positions are lines of the whole log (session start_line
    plus the line inside the session); sub-agent positions are local.
    """
    parts = [session.session_id]
    if session.start_time is not None:
        parts.append(f"started {session.start_time:%Y-%m-%d %H:%M:%S}")
    line = min(conversation.approximate_scroll_line() + 1, conversation.total_height)
    if conversation is session.main:
        parts.append(f"line {session.start_line + line}/{log.total_height()}")
    else:
        parts.append(f"{conversation.agent_id} line {line}/{conversation.total_height}")
    focused = conversation.focused_entry()
    if focused is not None:
        parts.append(f"entry {focused.display_index}/{len(conversation)}")
    return " · ".join(parts)


class LogViewerApp(App):
    """Header, session/agent tabs, one ConversationView, footer."""

    # Keys go to the conversation, not the tab bar.
    AUTO_FOCUS = "#conversation"

    BINDINGS = [
        Binding("q", "quit", "Quit"),
        Binding("tab", "next_tab", "Next agent", show=False, priority=True),
        Binding("left_square_bracket", "prev_session", "Prev session", key_display="["),
        Binding("right_square_bracket", "next_session", "Next session", key_display="]"),
        Binding("W", "toggle_global_wrap", "Wrap"),
        Binding("f", "toggle_follow", "Follow"),
    ]

    def __init__(
        self,
        source: LineSource | None = None,
        config: ResolvedConfig | None = None,
        log: LogViewState[Entry] | None = None,
        *,
        start_line: int | None = None,
        persist_settings: bool = True,
    ):
        super().__init__()
        self._source = source
        self._config = config if config is not None else ResolvedConfig()
        self._log: LogViewState[Entry] = log if log is not None else LogViewState()
        self._start_line = start_line
        self._persist_settings = persist_settings
        self._settings_ready = False
        self._follow = self._config.follow
        self._session_index = 0
        self._tab_session: SessionViewState[Entry] | None = None
        self._tab_agents: list[str] = []
        self._renderer = EntryRenderer(
            self.console,
            RenderCache.from_config(self._config),
            self._config.collapse_threshold,
            self._config.summary_lines,
        )

    # ─── Widget accessors ──────────────────────────────────────────────

    @property
    def log_state(self) -> LogViewState[Entry]:
        return self._log

    @property
    def renderer(self) -> EntryRenderer:
        return self._renderer

    @property
    def session_index(self) -> int:
        return self._session_index

    @property
    def following(self) -> bool:
        return self._follow

    def _get_conv(self) -> ConversationView | None:
        try:
            return self.query_one(ConversationView)
        except NoMatches:
            return None

    def _get_tabs(self) -> Tabs | None:
        try:
            return self.query_one(Tabs)
        except NoMatches:
            return None

    def _current_session(self) -> SessionViewState[Entry] | None:
        return self._log.get_session(self._session_index)

    # ─── Lifecycle ─────────────────────────────────────────────────────

    def compose(self) -> ComposeResult:
        yield Header()
        yield Tabs(Tab("main", id=MAIN_TAB_ID))
        global_wrap = WrapMode.from_bool(self._config.line_wrap)
        yield ConversationView(self._renderer, global_wrap=global_wrap, id="conversation")
        yield Footer()

    async def on_mount(self) -> None:
        saved = self._config.theme
        if saved and saved in self.available_themes:
            self.theme = saved
        self._settings_ready = True

        if self._source is not None:
            load_log(self._source, self._log)
        self._place_initial_view()
        await self._show_session()
        logger.info(
            "loaded %d session(s) from %s",
            self._log.session_count(),
            self._source.name if self._source is not None else "<memory>",
        )
        if self._source is not None:
            self.set_interval(POLL_INTERVAL_SECONDS, self._poll_source)

    def _place_initial_view(self) -> None:
        """Pick the starting session and anchor every main conversation."""
        self._session_index = 0
        if self._log.session_count():
            # Start on the session that holds the end of the file.
            index = self._log.active_session_index(self._log.total_height())
            self._session_index = index if index is not None else 0
        for session in self._log:
            session.main.set_scroll(BOTTOM if self._follow else TOP)
        if self._start_line is None:
            return
        target = find_entry_at_line(self._log, self._start_line)
        if target is None:
            logger.info("no entry at or after line %d, keeping default position", self._start_line)
            return
        self._session_index, entry_index = target
        main = self._log.get_session(self._session_index).main
        main.set_scroll(AtEntry(entry_index))
        main.set_focused(entry_index)

    def watch_theme(self, theme: str) -> None:
        if self._settings_ready and self._persist_settings:
            settings.save_theme(theme)

    # ─── Session / tab sync ────────────────────────────────────────────

    async def _show_session(self) -> None:
        session = self._current_session()
        await self._sync_tabs()
        conv = self._get_conv()
        if conv is not None:
            conv.set_conversation(session.main if session is not None else ConversationViewState())
        self._refresh_status()

    def _refresh_status(self) -> None:
        session = self._current_session()
        conv = self._get_conv()
        if session is None or conv is None:
            self.sub_title = ""
            return
        self._log.refresh_start_lines()
        self.sub_title = session_status(self._log, session, conv.conversation)

    def on_conversation_view_moved(self, event: ConversationView.Moved) -> None:
        self._refresh_status()

    async def _sync_tabs(self) -> None:
        """Mirror the current session's sub-agent ids into the tab bar (append-only)."""
        tabs = self._get_tabs()
        if tabs is None:
            return
        session = self._current_session()
        if session is not self._tab_session:
            await tabs.clear()
            await tabs.add_tab(Tab("main", id=MAIN_TAB_ID))
            self._tab_session = session
            self._tab_agents = []
        if session is None:
            return
        for agent_id in session.subagent_ids()[len(self._tab_agents):]:
            tab_id = f"tab-agent-{len(self._tab_agents)}"
            self._tab_agents.append(agent_id)
            await tabs.add_tab(Tab(agent_id, id=tab_id))

    def _conversation_for_tab(self, tab_id: str | None) -> ConversationViewState[Entry] | None:
        session = self._current_session()
        if session is None:
            return None
        if tab_id is None or tab_id == MAIN_TAB_ID:
            return session.main
        index = int(tab_id.rsplit("-", 1)[1])
        if index >= len(self._tab_agents):
            return None
        agent_id = self._tab_agents[index]
        materialized = session.has_subagent(agent_id)
        conversation = session.subagent(agent_id)
        if not materialized:
            conversation.set_scroll(BOTTOM if self._follow else TOP)
        return conversation

    def on_tabs_tab_activated(self, event: Tabs.TabActivated) -> None:
        conversation = self._conversation_for_tab(event.tab.id if event.tab else None)
        conv = self._get_conv()
        if conversation is None or conv is None:
            return
        conv.set_conversation(conversation)
        self._refresh_status()

    # ─── Polling ───────────────────────────────────────────────────────

    async def _poll_source(self) -> None:
        if self._source is None:
            return
        resets = self._source.reset_count
        try:
            entries = list(iter_entries(self._source))
        except OSError as exc:
            logger.warning("failed to read %s: %s", self._source.name, exc)
            return
        if self._source.reset_count != resets:
            await self.reload(entries)
            return
        if not entries:
            return
        await self.ingest(entries)

    async def reload(self, entries: list[Entry]) -> None:
        """Replace everything shown with entries, read from the start of a rewritten file."""
        logger.info("log was rewritten, reloading %d entries", len(entries))
        self._log = LogViewState()
        for entry in entries:
            self._log.add_entry(entry, entry.agent_id)
        # A rewrite can reuse uuids with different content.
        self._renderer.cache.clear()
        self._tab_session = None
        self._start_line = None
        self._place_initial_view()
        await self._show_session()

    async def ingest(self, entries: list[Entry]) -> None:
        """Route new entries into the log and refresh whatever they touched."""
        conv = self._get_conv()
        if conv is not None and not self._follow and conv.is_following:
            conv.pin()
        sessions_before = self._log.session_count()
        for entry in entries:
            self._log.add_entry(entry, entry.agent_id)
        for session in self._log.sessions()[sessions_before:]:
            session.main.set_scroll(BOTTOM if self._follow else TOP)
        if self._follow and self._log.session_count() > sessions_before:
            self._session_index = self._log.session_count() - 1
            await self._show_session()
            return
        await self._sync_tabs()
        if conv is not None:
            conv.entries_added()
        self._refresh_status()

    # ─── Actions ───────────────────────────────────────────────────────

    def action_next_tab(self) -> None:
        tabs = self._get_tabs()
        if tabs is not None:
            tabs.action_next_tab()

    async def _switch_session(self, delta: int) -> None:
        count = self._log.session_count()
        if count <= 1:
            return
        self._session_index = (self._session_index + delta) % count
        await self._show_session()

    async def action_next_session(self) -> None:
        await self._switch_session(1)

    async def action_prev_session(self) -> None:
        await self._switch_session(-1)

    def action_toggle_global_wrap(self) -> None:
        conv = self._get_conv()
        if conv is not None:
            conv.set_global_wrap(conv.global_wrap.toggled())

    def action_toggle_follow(self) -> None:
        self._follow = not self._follow
        conv = self._get_conv()
        if conv is not None:
            if self._follow:
                conv.action_go_bottom()
            else:
                conv.pin()
        self.notify(f"follow {'on' if self._follow else 'off'}")
