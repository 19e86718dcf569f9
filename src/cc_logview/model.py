"""Domain entries delivered by the parser.

// [LAW:one-source-of-truth] The class IS the kind: LogEntry or MalformedEntry.
// [LAW:one-way-deps] The view-state core never imports this module.

The view-state layer only reads `session_id`, `model` and `timestamp` from
these (duck-typed) and compares ids by equality.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class EntryType(Enum):
    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"
    SUMMARY = "summary"
    RESULT = "result"


class Role(Enum):
    USER = "user"
    ASSISTANT = "assistant"


@dataclass(frozen=True)
class Usage:
    """Token usage counts."""

    input_tokens: int = 0
    output_tokens: int = 0
    cache_read_input_tokens: int = 0
    cache_creation_input_tokens: int = 0

    def __add__(self, other: Usage) -> Usage:
        return Usage(
            self.input_tokens + other.input_tokens,
            self.output_tokens + other.output_tokens,
            self.cache_read_input_tokens + other.cache_read_input_tokens,
            self.cache_creation_input_tokens + other.cache_creation_input_tokens,
        )

    @property
    def total_tokens(self) -> int:
        return (
            self.input_tokens
            + self.output_tokens
            + self.cache_read_input_tokens
            + self.cache_creation_input_tokens
        )


@dataclass(frozen=True)
class LogEntry:
    """One parsed log line.

    `text` is the message content flattened to display text: text blocks
    verbatim, tool calls as `[tool_use name]`, tool results and thinking as
    their text.
    """

    uuid: str
    session_id: str
    entry_type: EntryType
    role: Role
    text: str
    line_number: int
    agent_id: str | None = None
    timestamp: datetime | None = None
    model: str | None = None
    usage: Usage | None = None

    @property
    def is_subagent(self) -> bool:
        return self.agent_id is not None


@dataclass(frozen=True)
class MalformedEntry:
    """A line that failed to parse. Keeps its slot but renders nothing."""

    line_number: int
    raw: str
    error: str
    session_id: str | None = None

    # Fields read duck-typed by the view-state layer.
    agent_id = None
    model = None
    timestamp = None


Entry = LogEntry | MalformedEntry


def entry_identity(entry: Entry) -> str:
    """Stable identity used in render cache keys."""
    if isinstance(entry, MalformedEntry):
        return f"malformed:{entry.line_number}"
    return entry.uuid
