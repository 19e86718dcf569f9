"""Piped stdin as a log source.

A daemon thread does the blocking reads and hands complete lines to the UI
loop through a queue, so read_new_lines() never waits. A last line without
its newline at EOF is dropped.
"""

from __future__ import annotations

import logging
import os
import queue
import sys
import threading
from typing import BinaryIO

from cc_logview.io.source import SourceError

logger = logging.getLogger(__name__)

STDIN_NAME = "<stdin>"
_EOF = None


class StdinSource:
    def __init__(self, stream: BinaryIO):
        if stream.isatty():
            raise SourceError("no input: pass a log file or pipe JSONL into stdin")
        self._queue: queue.Queue[bytes | None] = queue.Queue()
        self._line_count = 0
        self._complete = False
        self._thread = threading.Thread(
            target=self._read, args=(stream,), name="stdin-reader", daemon=True
        )
        self._thread.start()

    @classmethod
    def from_process_stdin(cls, reattach_tty: bool = False) -> StdinSource:
        """Read the pipe on fd 0.

        With reattach_tty, fd 0 is pointed back at the controlling terminal
        once the pipe has been duplicated, so Textual still gets keystrokes.
        """
        if sys.stdin is None or sys.stdin.isatty():
            raise SourceError("no input: pass a log file or pipe JSONL into stdin")
        stream = os.fdopen(os.dup(0), "rb")
        if reattach_tty:
            try:
                tty = os.open("/dev/tty", os.O_RDONLY)
            except OSError as exc:
                logger.warning("cannot reopen /dev/tty for keyboard input: %s", exc)
            else:
                os.dup2(tty, 0)
                os.close(tty)
        return cls(stream)

    def __repr__(self) -> str:
        return f"StdinSource(lines={self._line_count}, complete={self._complete})"

    @property
    def name(self) -> str:
        return STDIN_NAME

    @property
    def line_count(self) -> int:
        return self._line_count

    @property
    def reset_count(self) -> int:
        # A pipe cannot be truncated.
        return 0

    @property
    def complete(self) -> bool:
        """True once EOF has been seen by read_new_lines()."""
        return self._complete

    def _read(self, stream: BinaryIO) -> None:
        try:
            for raw in stream:
                if not raw.endswith(b"\n"):
                    logger.debug("dropping %d-byte partial line at end of stdin", len(raw))
                    break
                self._queue.put(raw)
        except (OSError, ValueError) as exc:
            logger.warning("reading stdin failed: %s", exc)
        finally:
            self._queue.put(_EOF)

    def wait(self, timeout: float | None = None) -> bool:
        """Block until the writer closes the pipe. Returns False on timeout."""
        self._thread.join(timeout)
        return not self._thread.is_alive()

    def read_new_lines(self) -> list[str]:
        lines: list[str] = []
        while True:
            try:
                raw = self._queue.get_nowait()
            except queue.Empty:
                break
            if raw is _EOF:
                self._complete = True
                break
            lines.append(raw.rstrip(b"\n").rstrip(b"\r").decode("utf-8", errors="replace"))
        self._line_count += len(lines)
        return lines
