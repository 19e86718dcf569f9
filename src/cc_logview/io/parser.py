"""JSONL log line -> domain entry.

// [LAW:single-enforcer] parse_entry is the sole validation boundary for log lines.

parse_entry() raises ParseError; parse_entry_graceful() never raises and turns
any failure into a MalformedEntry so the line keeps its index slot.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime

from cc_logview.model import Entry, EntryType, LogEntry, MalformedEntry, Role, Usage

logger = logging.getLogger(__name__)

UNKNOWN_SESSION_ID = "unknown-session"

JsonDict = dict[str, object]


class ParseError(ValueError):
    """A log line that cannot become a LogEntry."""

    def __init__(self, line_number: int, message: str):
        self.line_number = line_number
        self.message = message
        super().__init__(f"line {line_number}: {message}")


def _non_empty_str(value: object) -> str | None:
    return value if isinstance(value, str) and value else None


def _session_id(data: JsonDict) -> str | None:
    return _non_empty_str(data.get("sessionId")) or _non_empty_str(data.get("session_id"))


def _parse_timestamp(raw: object, line_number: int) -> datetime | None:
    if raw is None:
        return None
    if not isinstance(raw, str):
        raise ParseError(line_number, f"invalid timestamp {raw!r}")
    try:
        return datetime.fromisoformat(raw)
    except ValueError:
        raise ParseError(line_number, f"invalid timestamp {raw!r}") from None


def _block_text(block: object) -> str:
    if not isinstance(block, dict):
        return ""
    kind = block.get("type")
    if kind == "text":
        return str(block.get("text", ""))
    if kind == "tool_use":
        return f"[tool_use {block.get('name', '?')}]"
    if kind == "tool_result":
        content = block.get("content", "")
        if isinstance(content, list):
            return "\n".join(filter(None, (_block_text(part) for part in content)))
        return str(content) if content is not None else ""
    if kind == "thinking":
        return str(block.get("thinking", ""))
    return ""


def _content_text(content: object) -> str:
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        return "\n".join(filter(None, (_block_text(block) for block in content)))
    return ""


def _parse_usage(raw: object) -> Usage | None:
    if not isinstance(raw, dict):
        return None

    def count(key: str) -> int:
        value = raw.get(key, 0)
        return value if isinstance(value, int) else 0

    return Usage(
        input_tokens=count("input_tokens"),
        output_tokens=count("output_tokens"),
        cache_read_input_tokens=count("cache_read_input_tokens"),
        cache_creation_input_tokens=count("cache_creation_input_tokens"),
    )


def parse_entry(raw: str, line_number: int) -> LogEntry:
    """Parse one JSONL line. Raises ParseError."""
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ParseError(line_number, f"invalid JSON: {exc.msg}") from None
    if not isinstance(data, dict):
        raise ParseError(line_number, "expected a JSON object")

    type_name = _non_empty_str(data.get("type"))
    if type_name is None:
        raise ParseError(line_number, "missing field 'type'")
    try:
        entry_type = EntryType(type_name)
    except ValueError:
        raise ParseError(line_number, f"unknown entry type {type_name!r}") from None

    uuid = _non_empty_str(data.get("uuid"))
    if uuid is None:
        raise ParseError(line_number, "missing field 'uuid'")

    agent_id = _non_empty_str(data.get("parent_tool_use_id")) or _non_empty_str(
        data.get("agentId")
    )
    timestamp = _parse_timestamp(data.get("timestamp"), line_number)

    message = data.get("message")
    if not isinstance(message, dict):
        message = {}
    role = Role.USER if message.get("role") == "user" else Role.ASSISTANT
    model = _non_empty_str(message.get("model")) or _non_empty_str(data.get("model"))

    return LogEntry(
        uuid=uuid,
        session_id=_session_id(data) or UNKNOWN_SESSION_ID,
        entry_type=entry_type,
        role=role,
        text=_content_text(message.get("content")),
        line_number=line_number,
        agent_id=agent_id,
        timestamp=timestamp,
        model=model,
        usage=_parse_usage(message.get("usage")),
    )


def _session_id_best_effort(raw: str) -> str | None:
    try:
        data = json.loads(raw)
    except ValueError:
        return None
    return _session_id(data) if isinstance(data, dict) else None


def parse_entry_graceful(raw: str, line_number: int) -> Entry:
    """Parse one line, returning a MalformedEntry instead of raising."""
    try:
        return parse_entry(raw, line_number)
    except ParseError as exc:
        logger.debug("malformed log line %d: %s", line_number, exc.message)
        return MalformedEntry(
            line_number=line_number,
            raw=raw,
            error=str(exc),
            session_id=_session_id_best_effort(raw),
        )
