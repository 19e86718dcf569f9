"""Top-level view-state: every session in a log file, in file order.

Sessions are delimited by a change of session id. Each session's start_line
places it in one continuous scroll space spanning the whole file.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from typing import Generic, TypeVar

from cc_logview.io.perf_logging import monitor_slow_path
from cc_logview.view_state.session import SessionViewState

logger = logging.getLogger(__name__)

EntryT = TypeVar("EntryT")

UNKNOWN_SESSION_ID = "unknown-session"


class LogViewState(Generic[EntryT]):
    def __init__(self):
        self._sessions: list[SessionViewState[EntryT]] = []
        self._last_session_id: str | None = None

    def __repr__(self) -> str:
        return f"LogViewState(sessions={len(self._sessions)}, total_height={self.total_height()})"

    def __len__(self) -> int:
        return len(self._sessions)

    def __iter__(self) -> Iterator[SessionViewState[EntryT]]:
        return iter(self._sessions)

    def sessions(self) -> tuple[SessionViewState[EntryT], ...]:
        return tuple(self._sessions)

    def session_count(self) -> int:
        return len(self._sessions)

    def get_session(self, index: int) -> SessionViewState[EntryT] | None:
        if 0 <= index < len(self._sessions):
            return self._sessions[index]
        return None

    def current_session(self) -> SessionViewState[EntryT] | None:
        return self._sessions[-1] if self._sessions else None

    def total_height(self) -> int:
        return sum(session.total_height() for session in self._sessions)

    def _open_session(self, session_id: str) -> SessionViewState[EntryT]:
        session: SessionViewState[EntryT] = SessionViewState(session_id, self.total_height())
        self._sessions.append(session)
        self._last_session_id = session_id
        logger.debug(
            "session boundary id=%s index=%d start_line=%d",
            session_id,
            len(self._sessions) - 1,
            session.start_line,
        )
        return session

    def add_entry(self, entry: EntryT, agent_id: str | None = None) -> SessionViewState[EntryT]:
        """Route an entry to its session, opening a new session on an id change.

        Returns the session the entry landed in. Entries without a session id
        join the current session.
        """
        with monitor_slow_path(
            "log.add_entry",
            logger=logger,
            context=lambda: {"sessions": len(self._sessions), "agent_id": agent_id},
        ):
            session_id = getattr(entry, "session_id", None)
            current = self.current_session()
            if current is None:
                session = self._open_session(session_id or UNKNOWN_SESSION_ID)
            elif session_id is not None and session_id != self._last_session_id:
                session = self._open_session(session_id)
            else:
                session = current
            if agent_id is None:
                session.add_main_entry(entry)
            else:
                session.add_subagent_entry(agent_id, entry)
            return session

    def active_session_index(self, scroll_line: int) -> int | None:
        """Index of the last session whose start_line <= scroll_line."""
        for index in range(len(self._sessions) - 1, -1, -1):
            if self._sessions[index].start_line <= scroll_line:
                return index
        return 0 if self._sessions else None

    def active_session(self, scroll_line: int) -> SessionViewState[EntryT] | None:
        index = self.active_session_index(scroll_line)
        return self._sessions[index] if index is not None else None

    def refresh_start_lines(self) -> None:
        """Recompute every start_line from current session heights.

        After sub-agents are materialized and laid out, this replaces the
        one-line-per-pending-entry estimate with measured heights.
        """
        offset = 0
        for session in self._sessions:
            session.start_line = offset
            offset += session.total_height()
