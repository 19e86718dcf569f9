"""Tests for token usage totals."""

import json

from cc_logview.io.parser import parse_entry_graceful
from cc_logview.model import Usage
from cc_logview.stats import UNKNOWN_MODEL, session_entries, summarize_usage
from cc_logview.view_state.log import LogViewState
from tests.harness import make_log_line


def _assistant(uuid, usage, model="claude-opus", session_id="s1", agent_id=None):
    data = json.loads(
        make_log_line(
            uuid=uuid,
            entry_type="assistant",
            model=model,
            session_id=session_id,
            agent_id=agent_id,
        )
    )
    data["message"]["usage"] = usage
    return json.dumps(data)


def _log(lines):
    log = LogViewState()
    for n, line in enumerate(lines, start=1):
        entry = parse_entry_graceful(line, n)
        log.add_entry(entry, entry.agent_id)
    return log


def test_usage_adds_field_by_field():
    total = Usage(1, 2, 3, 4) + Usage(10, 20, 30, 40)
    assert total == Usage(11, 22, 33, 44)
    assert total.total_tokens == 110


def test_empty_log():
    summary = summarize_usage(LogViewState())
    assert summary.total == Usage()
    assert summary.by_session == {}
    assert summary.by_model == {}
    assert summary.turns == 0


def test_totals_by_session_and_model():
    log = _log(
        [
            make_log_line(uuid="u1", session_id="a"),
            _assistant("a1", {"input_tokens": 10, "output_tokens": 5}, session_id="a"),
            _assistant(
                "a2",
                {"input_tokens": 3, "cache_read_input_tokens": 100},
                model="claude-haiku",
                session_id="a",
                agent_id="toolu_x",
            ),
            _assistant("b1", {"output_tokens": 7, "cache_creation_input_tokens": 9}, session_id="b"),
        ]
    )
    summary = summarize_usage(log)
    assert summary.turns == 3
    assert summary.by_session["a"] == Usage(13, 5, 100, 0)
    assert summary.by_session["b"] == Usage(0, 7, 0, 9)
    assert summary.by_model["claude-opus"] == Usage(10, 12, 0, 9)
    assert summary.by_model["claude-haiku"] == Usage(3, 0, 100, 0)
    assert summary.total.total_tokens == 134


def test_entries_without_model_or_usage():
    log = _log(
        [
            _assistant("a1", {"input_tokens": 4}, model=None),
            _assistant("a2", "not a dict"),
            "{broken",
        ]
    )
    summary = summarize_usage(log)
    assert summary.by_model == {UNKNOWN_MODEL: Usage(input_tokens=4)}
    assert summary.turns == 1


def test_session_entries_opens_subagents():
    log = _log(
        [
            make_log_line(uuid="m1"),
            make_log_line(uuid="s1", agent_id="toolu_a"),
            make_log_line(uuid="m2"),
        ]
    )
    session = log.get_session(0)
    assert not session.has_subagent("toolu_a")
    assert [e.uuid for e in session_entries(session)] == ["m1", "m2", "s1"]
    assert session.has_subagent("toolu_a")
