"""Test harness for cc-logview.

Re-exports all public API for convenient imports:
    from tests.harness import run_app, press_and_settle, make_conversation, ...
"""

from tests.harness.app_runner import (
    click_and_settle,
    press_and_settle,
    resize_and_settle,
    run_app,
)
from tests.harness.builders import (
    PARAMS,
    FakeEntry,
    cumulative,
    fake_height,
    heights,
    make_conversation,
    make_entries,
    make_log_line,
    make_log_text,
)
from tests.harness.content import strip_text, strips_to_text, visible_text

__all__ = [
    "run_app",
    "PARAMS",
    "FakeEntry",
    "cumulative",
    "fake_height",
    "heights",
    "make_conversation",
    "make_entries",
    "make_log_line",
    "make_log_text",
    "strip_text",
    "strips_to_text",
    "visible_text",
    "click_and_settle",
    "press_and_settle",
    "resize_and_settle",
]
