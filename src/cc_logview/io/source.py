"""JSONL log sources with incremental tailing.

FileSource reads only complete lines; a trailing partial line is held back
until its newline arrives. If the file shrinks (truncated or rotated in
place) reading restarts from the beginning and reset_count goes up.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Iterator
from pathlib import Path
from typing import Protocol

from cc_logview.io.parser import parse_entry_graceful
from cc_logview.model import Entry
from cc_logview.view_state.log import LogViewState

logger = logging.getLogger(__name__)


class SourceError(OSError):
    """The log path is missing or not a regular file."""


class LineSource(Protocol):
    """Anything the app can tail: a file on disk or a pipe."""

    @property
    def name(self) -> str: ...

    @property
    def line_count(self) -> int: ...

    @property
    def reset_count(self) -> int: ...

    def read_new_lines(self) -> list[str]: ...


class FileSource:
    def __init__(self, path: str | os.PathLike[str]):
        self._path = Path(path)
        if not self._path.exists():
            raise SourceError(f"log file not found: {self._path}")
        if not self._path.is_file():
            raise SourceError(f"not a regular file: {self._path}")
        self._offset = 0
        self._partial = b""
        self._line_count = 0
        self._reset_count = 0

    def __repr__(self) -> str:
        return f"FileSource(path={str(self._path)!r}, offset={self._offset}, lines={self._line_count})"

    @property
    def path(self) -> Path:
        return self._path

    @property
    def name(self) -> str:
        return str(self._path)

    @property
    def line_count(self) -> int:
        """Complete lines delivered so far."""
        return self._line_count

    @property
    def reset_count(self) -> int:
        """Times the file shrank and reading restarted from byte 0.

        Lines returned after a reset replace, not extend, what was read before.
        """
        return self._reset_count

    def read_new_lines(self) -> list[str]:
        """Complete lines appended since the last call, without their newlines."""
        size = self._path.stat().st_size
        if size < self._offset:
            logger.info("log file shrank (%d -> %d bytes), rereading %s", self._offset, size, self._path)
            self._offset = 0
            self._partial = b""
            self._line_count = 0
            self._reset_count += 1
        if size == self._offset:
            return []
        with self._path.open("rb") as fh:
            fh.seek(self._offset)
            chunk = fh.read()
        self._offset += len(chunk)
        data = self._partial + chunk
        *complete, self._partial = data.split(b"\n")
        lines = [line.rstrip(b"\r").decode("utf-8", errors="replace") for line in complete]
        self._line_count += len(lines)
        return lines


def iter_entries(source: LineSource) -> Iterator[Entry]:
    """Parse the lines the source has gained since the last read. Blank lines are skipped."""
    lines = source.read_new_lines()
    first_line_number = source.line_count - len(lines) + 1
    for offset, line in enumerate(lines):
        if not line.strip():
            continue
        yield parse_entry_graceful(line, first_line_number + offset)


def load_log(source: LineSource, log: LogViewState[Entry] | None = None) -> LogViewState[Entry]:
    """Route every entry the source has gained into log (a new one if None)."""
    log = LogViewState() if log is None else log
    for entry in iter_entries(source):
        log.add_entry(entry, entry.agent_id)
    return log
