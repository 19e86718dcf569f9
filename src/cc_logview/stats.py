"""Token usage totals for the --stats report.

// [LAW:dataflow-not-control-flow] Totals are sums over entries; nothing is
//   accumulated incrementally, so a reload can never double count.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field

from cc_logview.model import Entry, LogEntry, Usage
from cc_logview.view_state.log import LogViewState
from cc_logview.view_state.session import SessionViewState

UNKNOWN_MODEL = "unknown"


@dataclass
class UsageSummary:
    total: Usage = field(default_factory=Usage)
    by_session: dict[str, Usage] = field(default_factory=dict)
    by_model: dict[str, Usage] = field(default_factory=dict)
    # Assistant entries carrying a usage block.
    turns: int = 0


def session_entries(session: SessionViewState[Entry]) -> Iterator[Entry]:
    """Main entries, then each sub-agent's. Opens every sub-agent."""
    for view in session.main:
        yield view.entry
    for agent_id in session.subagent_ids():
        for view in session.subagent(agent_id):
            yield view.entry


def summarize_usage(log: LogViewState[Entry]) -> UsageSummary:
    summary = UsageSummary()
    for session in log:
        session_total = summary.by_session.get(session.session_id, Usage())
        for entry in session_entries(session):
            if not isinstance(entry, LogEntry) or entry.usage is None:
                continue
            model = entry.model or UNKNOWN_MODEL
            session_total = session_total + entry.usage
            summary.by_model[model] = summary.by_model.get(model, Usage()) + entry.usage
            summary.total = summary.total + entry.usage
            summary.turns += 1
        summary.by_session[session.session_id] = session_total
    return summary
