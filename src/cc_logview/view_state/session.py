"""View-state for one session: the main conversation plus lazily-opened sub-agents.

Sub-agent entries are stashed as plain entries until something asks for that
sub-agent, so a log with hundreds of sub-agents only pays layout cost for the
ones the user actually opens.

// [LAW:one-source-of-truth] A sub-agent id lives in exactly one of _pending / _subagents.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from datetime import datetime
from typing import Generic, TypeVar

from cc_logview.view_state.conversation import ConversationViewState, HeightCalculator
from cc_logview.view_state.layout import LayoutParams

logger = logging.getLogger(__name__)

EntryT = TypeVar("EntryT")


def _entry_model(entry: object) -> str | None:
    model = getattr(entry, "model", None)
    return model if isinstance(model, str) and model else None


class SessionViewState(Generic[EntryT]):
    def __init__(self, session_id: str, start_line: int = 0):
        self._session_id = session_id
        self._start_line = start_line
        self._start_time: datetime | None = None
        self._main: ConversationViewState[EntryT] = ConversationViewState()
        self._pending: dict[str, list[EntryT]] = {}
        self._subagents: dict[str, ConversationViewState[EntryT]] = {}
        # dict preserves first-seen order; values unused
        self._known_ids: dict[str, None] = {}

    def __repr__(self) -> str:
        return (
            f"SessionViewState(session_id={self._session_id!r}, start_line={self._start_line}, "
            f"main={len(self._main)}, subagents={len(self._known_ids)})"
        )

    @property
    def session_id(self) -> str:
        return self._session_id

    @property
    def start_line(self) -> int:
        return self._start_line

    @start_line.setter
    def start_line(self, value: int) -> None:
        self._start_line = max(0, value)

    @property
    def start_time(self) -> datetime | None:
        return self._start_time

    @property
    def main(self) -> ConversationViewState[EntryT]:
        return self._main

    # ─── Routing ─────────────────────────────────────────────────────────

    def _note_entry(self, entry: EntryT) -> None:
        if self._start_time is None:
            timestamp = getattr(entry, "timestamp", None)
            if isinstance(timestamp, datetime):
                self._start_time = timestamp

    def add_main_entry(self, entry: EntryT) -> None:
        self._note_entry(entry)
        model = _entry_model(entry)
        if model is not None:
            self._main.set_model_if_none(model)
        self._main.append((entry,))

    def add_subagent_entry(self, agent_id: str, entry: EntryT) -> None:
        self._note_entry(entry)
        self._known_ids.setdefault(agent_id, None)
        conversation = self._subagents.get(agent_id)
        if conversation is None:
            self._pending.setdefault(agent_id, []).append(entry)
            return
        model = _entry_model(entry)
        if model is not None:
            conversation.set_model_if_none(model)
        conversation.append((entry,))

    # ─── Sub-agent access ────────────────────────────────────────────────

    def subagent(self, agent_id: str) -> ConversationViewState[EntryT]:
        """Return the sub-agent conversation, materializing it from the stash on first access."""
        conversation = self._subagents.get(agent_id)
        if conversation is not None:
            return conversation
        pending = self._pending.pop(agent_id, [])
        conversation = ConversationViewState(pending, agent_id=agent_id)
        for entry in pending:
            model = _entry_model(entry)
            if model is not None:
                conversation.set_model_if_none(model)
                break
        self._subagents[agent_id] = conversation
        self._known_ids.setdefault(agent_id, None)
        logger.debug(
            "materialized subagent session=%s agent=%s entries=%d",
            self._session_id,
            agent_id,
            len(pending),
        )
        return conversation

    def get_subagent(self, agent_id: str) -> ConversationViewState[EntryT] | None:
        """Materialized sub-agent conversation, or None. Never materializes."""
        return self._subagents.get(agent_id)

    def has_subagent(self, agent_id: str) -> bool:
        return agent_id in self._subagents

    def subagent_ids(self) -> list[str]:
        """Every sub-agent id seen in this session, pending or materialized, first-seen first."""
        return list(self._known_ids)

    def materialized_subagents(self) -> Iterator[ConversationViewState[EntryT]]:
        return iter(self._subagents.values())

    def pending_count(self, agent_id: str) -> int:
        return len(self._pending.get(agent_id, ()))

    def subagent_entry_count(self, agent_id: str) -> int:
        conversation = self._subagents.get(agent_id)
        if conversation is not None:
            return len(conversation)
        return self.pending_count(agent_id)

    # ─── Layout & heights ────────────────────────────────────────────────

    def relayout_all(
        self, params: LayoutParams, height_calculator: HeightCalculator
    ) -> None:
        """Bring main and every materialized sub-agent up to date for params."""
        self._main.ensure_layout(params, height_calculator)
        for conversation in self._subagents.values():
            conversation.ensure_layout(params, height_calculator)

    def main_height(self) -> int:
        return self._main.total_height

    def total_height(self) -> int:
        """Main + materialized sub-agents + one line per still-pending sub-agent entry.

        The pending term is an estimate; see LogViewState.refresh_start_lines().
        """
        total = self._main.total_height
        total += sum(c.total_height for c in self._subagents.values())
        total += sum(len(entries) for entries in self._pending.values())
        return total
