"""Shared builders for view-state and parser tests."""

import json
from dataclasses import dataclass
from datetime import datetime

from cc_logview.view_state.conversation import ConversationViewState
from cc_logview.view_state.layout import LayoutParams, WrapMode
from cc_logview.view_state.types import LineHeight


@dataclass(frozen=True)
class FakeEntry:
    """Domain entry stand-in whose heights are fixed by the test.

    Args:
        height: Collapsed height (0 marks an entry that must not render)
        expanded_height: Height when expanded (default: height + 2, or 0)
        nowrap_height: Height under NO_WRAP (default: same as wrapped)
    """

    name: str
    height: int = 1
    expanded_height: int | None = None
    nowrap_height: int | None = None
    session_id: str | None = "s1"
    model: str | None = None
    timestamp: datetime | None = None


def fake_height(entry: FakeEntry, expanded: bool, wrap: WrapMode) -> LineHeight:
    """Deterministic height calculator for FakeEntry."""
    if entry.height == 0:
        return LineHeight.ZERO
    height = entry.height
    if wrap is WrapMode.NO_WRAP and entry.nowrap_height is not None:
        height = entry.nowrap_height
    if expanded:
        height = entry.expanded_height if entry.expanded_height is not None else height + 2
    return LineHeight.new(height)


PARAMS = LayoutParams(width=80, global_wrap=WrapMode.WRAP)


def make_entries(heights, prefix="e", **kwargs):
    return [FakeEntry(f"{prefix}{i}", height=h, **kwargs) for i, h in enumerate(heights)]


def make_conversation(heights, params=PARAMS, layout=True, agent_id=None):
    """ConversationViewState over FakeEntry with the given heights, laid out by default."""
    conv = ConversationViewState(make_entries(heights), agent_id=agent_id)
    if layout:
        conv.recompute_layout(params, fake_height)
    return conv


def cumulative(conv):
    return [view.layout.cumulative_y.value for view in conv]


def heights(conv):
    return [view.layout.height.value for view in conv]


def make_log_line(
    uuid="u1",
    session_id="s1",
    entry_type="user",
    content="Hello",
    role=None,
    agent_id=None,
    timestamp="2025-01-15T10:30:00Z",
    model=None,
    **extra,
):
    """One JSONL line in the on-disk log format."""
    message = {"role": role or ("user" if entry_type == "user" else "assistant"), "content": content}
    if model is not None:
        message["model"] = model
    data = {
        "type": entry_type,
        "uuid": uuid,
        "sessionId": session_id,
        "message": message,
    }
    if timestamp is not None:
        data["timestamp"] = timestamp
    if agent_id is not None:
        data["parent_tool_use_id"] = agent_id
    data.update(extra)
    return json.dumps(data)


def make_log_text(lines):
    return "".join(line + "\n" for line in lines)
