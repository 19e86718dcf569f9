"""Tests for LogViewState session boundaries and the continuous scroll space."""

from cc_logview.view_state.log import UNKNOWN_SESSION_ID, LogViewState
from tests.harness import PARAMS, FakeEntry, fake_height


def _log(session_ids):
    log = LogViewState()
    for i, session_id in enumerate(session_ids):
        log.add_entry(FakeEntry(f"e{i}", session_id=session_id))
    return log


def test_empty_log():
    log = LogViewState()
    assert len(log) == 0
    assert log.current_session() is None
    assert log.total_height() == 0
    assert log.active_session_index(0) is None
    assert log.active_session(5) is None


def test_session_id_change_opens_new_session():
    log = _log(["s1", "s1", "s2", "s2", "s2", "s3"])
    assert [s.session_id for s in log] == ["s1", "s2", "s3"]
    assert [len(s.main) for s in log] == [2, 3, 1]
    assert log.session_count() == 3


def test_returning_session_id_opens_another_session():
    log = _log(["s1", "s2", "s1"])
    assert [s.session_id for s in log.sessions()] == ["s1", "s2", "s1"]


def test_start_lines_are_cumulative():
    log = _log(["s1", "s1", "s2", "s3", "s3", "s3"])
    assert [s.start_line for s in log] == [0, 2, 3]
    assert log.total_height() == 6


def test_entry_without_session_id_joins_current_session():
    log = _log(["s1"])
    session = log.add_entry(FakeEntry("orphan", session_id=None))
    assert session is log.current_session()
    assert len(log) == 1
    assert len(session.main) == 2


def test_first_entry_without_session_id_opens_unknown_session():
    log = LogViewState()
    session = log.add_entry(FakeEntry("orphan", session_id=None))
    assert session.session_id == UNKNOWN_SESSION_ID
    assert len(log) == 1


def test_object_without_session_attribute():
    log = LogViewState()
    log.add_entry("plain string entry")
    assert log.current_session().session_id == UNKNOWN_SESSION_ID


def test_add_entry_routes_subagents():
    log = LogViewState()
    log.add_entry(FakeEntry("main"))
    session = log.add_entry(FakeEntry("sub"), agent_id="agent-7")
    assert len(session.main) == 1
    assert session.subagent_ids() == ["agent-7"]
    assert session.pending_count("agent-7") == 1


def test_active_session_follows_scroll_line():
    log = _log(["s1", "s1", "s2", "s3", "s3", "s3"])
    assert log.active_session_index(0) == 0
    assert log.active_session_index(1) == 0
    assert log.active_session_index(2) == 1
    assert log.active_session_index(3) == 2
    assert log.active_session_index(500) == 2
    assert log.active_session(2).session_id == "s2"


def test_get_session_bounds():
    log = _log(["s1", "s2"])
    assert log.get_session(1).session_id == "s2"
    assert log.get_session(2) is None
    assert log.get_session(-1) is None


def test_refresh_start_lines_uses_measured_heights():
    log = LogViewState()
    log.add_entry(FakeEntry("a", height=3, session_id="s1"))
    log.add_entry(FakeEntry("b", height=4, session_id="s1"), agent_id="agent")
    log.add_entry(FakeEntry("c", height=2, session_id="s2"))
    # Before layout every entry counts as one line.
    assert [s.start_line for s in log] == [0, 2]

    first = log.get_session(0)
    first.subagent("agent")
    for session in log:
        session.relayout_all(PARAMS, fake_height)
    log.refresh_start_lines()
    assert [s.start_line for s in log] == [0, 7]
    assert log.total_height() == 9
