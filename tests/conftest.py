"""Pytest configuration and shared fixtures for cc-logview tests."""

import pytest

from cc_logview.io import logging_setup, perf_logging
from tests.harness import make_log_text


# ---------------------------------------------------------------------------
# Global state resets
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def _reset_logging_state():
    """Undo configure()/set_enabled() so caplog sees records in every test."""
    yield
    logging_setup.reset()
    perf_logging.set_enabled(True)


# ---------------------------------------------------------------------------
# Settings & environment isolation
# ---------------------------------------------------------------------------

@pytest.fixture
def tmp_settings(tmp_path, monkeypatch):
    """Redirect settings file to a temp directory."""
    settings_file = tmp_path / "config" / "settings.json"
    monkeypatch.setattr(
        "cc_logview.settings.get_config_path",
        lambda: settings_file,
    )
    return settings_file


@pytest.fixture
def clean_env(monkeypatch):
    """Remove every CC_LOGVIEW_* variable inherited from the developer's shell."""
    for name in (
        "CC_LOGVIEW_FOLLOW",
        "CC_LOGVIEW_LINE_WRAP",
        "CC_LOGVIEW_CACHE_CAPACITY",
        "CC_LOGVIEW_LOG_LEVEL",
        "CC_LOGVIEW_LOG_FILE",
        "CC_LOGVIEW_LOG_DIR",
    ):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


# ---------------------------------------------------------------------------
# Log file fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def log_file(tmp_path):
    """Factory: write JSONL lines to a temp log and return its path.

    Calling again with append=True adds lines to the same file, which is
    how tailing tests simulate a growing log.
    """
    path = tmp_path / "session.jsonl"

    def _write(lines, append=False):
        mode = "a" if append else "w"
        with open(path, mode, encoding="utf-8") as f:
            f.write(make_log_text(lines))
        return path

    return _write
