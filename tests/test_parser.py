"""Tests for JSONL line parsing."""

import json
from datetime import datetime, timezone

import pytest

from cc_logview.io.parser import (
    UNKNOWN_SESSION_ID,
    ParseError,
    parse_entry,
    parse_entry_graceful,
)
from cc_logview.model import EntryType, LogEntry, MalformedEntry, Role, Usage, entry_identity
from tests.harness import make_log_line


class TestParseEntry:
    def test_basic_user_entry(self):
        entry = parse_entry(make_log_line(uuid="u1", session_id="s1", content="Hi"), 3)
        assert isinstance(entry, LogEntry)
        assert entry.uuid == "u1"
        assert entry.session_id == "s1"
        assert entry.entry_type is EntryType.USER
        assert entry.role is Role.USER
        assert entry.text == "Hi"
        assert entry.line_number == 3
        assert entry.timestamp == datetime(2025, 1, 15, 10, 30, tzinfo=timezone.utc)
        assert not entry.is_subagent

    def test_assistant_content_blocks_are_flattened(self):
        content = [
            {"type": "thinking", "thinking": "hmm"},
            {"type": "text", "text": "Reading the file."},
            {"type": "tool_use", "name": "Read", "input": {"path": "a.py"}},
            {"type": "image", "source": {}},
        ]
        entry = parse_entry(make_log_line(entry_type="assistant", content=content), 1)
        assert entry.role is Role.ASSISTANT
        assert entry.text == "hmm\nReading the file.\n[tool_use Read]"

    def test_tool_result_content(self):
        content = [
            {"type": "tool_result", "content": "plain result"},
            {"type": "tool_result", "content": [{"type": "text", "text": "nested"}]},
        ]
        entry = parse_entry(make_log_line(content=content), 1)
        assert entry.text == "plain result\nnested"

    def test_subagent_id_from_parent_tool_use_id(self):
        entry = parse_entry(make_log_line(agent_id="toolu_1"), 1)
        assert entry.agent_id == "toolu_1"
        assert entry.is_subagent

    def test_subagent_id_from_agent_id_field(self):
        entry = parse_entry(make_log_line(agentId="agent-b"), 1)
        assert entry.agent_id == "agent-b"

    def test_model_and_usage(self):
        raw = json.loads(make_log_line(entry_type="assistant", model="claude-opus"))
        raw["message"]["usage"] = {"input_tokens": 12, "output_tokens": 5, "bogus": "x"}
        entry = parse_entry(json.dumps(raw), 1)
        assert entry.model == "claude-opus"
        assert entry.usage == Usage(input_tokens=12, output_tokens=5)

    def test_top_level_model_fallback(self):
        raw = json.loads(make_log_line(entry_type="assistant"))
        raw["model"] = "haiku"
        assert parse_entry(json.dumps(raw), 1).model == "haiku"

    def test_snake_case_session_id(self):
        raw = json.loads(make_log_line())
        raw["session_id"] = raw.pop("sessionId")
        assert parse_entry(json.dumps(raw), 1).session_id == "s1"

    def test_missing_session_id_is_unknown(self):
        raw = json.loads(make_log_line())
        del raw["sessionId"]
        assert parse_entry(json.dumps(raw), 1).session_id == UNKNOWN_SESSION_ID

    def test_missing_timestamp_is_none(self):
        assert parse_entry(make_log_line(timestamp=None), 1).timestamp is None

    @pytest.mark.parametrize(
        "raw,message",
        [
            ("{not json", "invalid JSON"),
            ("[1, 2]", "expected a JSON object"),
            ('{"uuid": "u1"}', "missing field 'type'"),
            ('{"type": "bogus", "uuid": "u1"}', "unknown entry type"),
            ('{"type": "user"}', "missing field 'uuid'"),
            (make_log_line(timestamp="yesterday"), "invalid timestamp"),
        ],
    )
    def test_errors(self, raw, message):
        with pytest.raises(ParseError) as excinfo:
            parse_entry(raw, 7)
        assert excinfo.value.line_number == 7
        assert message in str(excinfo.value)

    def test_parse_error_is_value_error(self):
        with pytest.raises(ValueError):
            parse_entry("", 1)


class TestGraceful:
    def test_valid_line_parses(self):
        assert isinstance(parse_entry_graceful(make_log_line(), 1), LogEntry)

    def test_malformed_keeps_line_and_session(self):
        raw = json.dumps({"type": "bogus", "sessionId": "s4"})
        entry = parse_entry_graceful(raw, 9)
        assert isinstance(entry, MalformedEntry)
        assert entry.line_number == 9
        assert entry.raw == raw
        assert entry.session_id == "s4"
        assert "unknown entry type" in entry.error
        assert entry.agent_id is None

    def test_malformed_json_has_no_session(self):
        entry = parse_entry_graceful("{{{", 2)
        assert isinstance(entry, MalformedEntry)
        assert entry.session_id is None


def test_entry_identity():
    assert entry_identity(parse_entry(make_log_line(uuid="abc"), 1)) == "abc"
    assert entry_identity(MalformedEntry(4, "x", "bad")) == "malformed:4"
