"""CLI entry point for cc-logview."""

from __future__ import annotations

import argparse
import logging
import sys

from rich.console import Console
from rich.table import Table

from cc_logview import settings
from cc_logview.io import logging_setup
from cc_logview.io.source import FileSource, LineSource, SourceError, load_log
from cc_logview.io.stdin import StdinSource
from cc_logview.model import Entry, Usage
from cc_logview.settings import ResolvedConfig
from cc_logview.stats import summarize_usage
from cc_logview.tui.app import LogViewerApp
from cc_logview.tui.rendering import EntryRenderer
from cc_logview.view_state.cache import RenderCache
from cc_logview.view_state.layout import LayoutParams, WrapMode
from cc_logview.view_state.log import LogViewState

logger = logging.getLogger(__name__)

STATS_WIDTH = 100


def _positive_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not a number: {value!r}") from None
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be 1 or more: {number}")
    return number


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="cc-logview",
        description="Terminal viewer for append-only conversation logs (JSONL)",
    )
    parser.add_argument(
        "path", nargs="?", default=None, help="Path to the JSONL log file (reads stdin if omitted)"
    )
    parser.add_argument(
        "-l",
        "--line",
        type=_positive_int,
        default=None,
        help="Open at the first entry read from this line of the input (1-based)",
    )
    parser.add_argument(
        "--follow",
        dest="follow",
        action="store_true",
        default=None,
        help="Stick to the bottom as new lines arrive (default: on)",
    )
    parser.add_argument(
        "--no-follow", dest="follow", action="store_false", help="Open at the top; new lines are still read"
    )
    parser.add_argument(
        "--no-wrap",
        dest="line_wrap",
        action="store_false",
        default=None,
        help="Start with line wrapping off",
    )
    parser.add_argument(
        "--cache-capacity",
        dest="render_cache_capacity",
        type=int,
        default=None,
        help="Rendered entries kept in the LRU cache (default: 1000). Env: CC_LOGVIEW_CACHE_CAPACITY",
    )
    parser.add_argument(
        "--collapse-threshold",
        type=int,
        default=None,
        help="Collapse entries with more body lines than this (default: 10)",
    )
    parser.add_argument(
        "--summary-lines",
        type=int,
        default=None,
        help="Body lines shown for a collapsed entry (default: 3)",
    )
    parser.add_argument(
        "--stats",
        action="store_true",
        default=False,
        help="Print per-session entry counts, heights and token usage, then exit (no TUI)",
    )
    return parser


def _overrides(args: argparse.Namespace) -> dict:
    return {
        "follow": args.follow,
        "line_wrap": args.line_wrap,
        "render_cache_capacity": args.render_cache_capacity,
        "collapse_threshold": args.collapse_threshold,
        "summary_lines": args.summary_lines,
    }


def _format_start(session) -> str:
    start = session.start_time
    return start.strftime("%Y-%m-%d %H:%M:%S") if start is not None else "-"


def _usage_cells(usage: Usage) -> list[str]:
    return [
        f"{usage.input_tokens:,}",
        f"{usage.output_tokens:,}",
        f"{usage.cache_read_input_tokens:,}",
        f"{usage.cache_creation_input_tokens:,}",
    ]


def _add_usage_columns(table: Table) -> None:
    for name in ("input", "output", "cache read", "cache write"):
        table.add_column(name, justify="right")


def print_stats(
    log: LogViewState[Entry], config: ResolvedConfig, console: Console | None = None
) -> None:
    """Lay out every conversation at a fixed width and print per-session and per-model tables."""
    console = console if console is not None else Console()
    renderer = EntryRenderer(
        Console(width=STATS_WIDTH, color_system=None, force_terminal=False),
        RenderCache.from_config(config),
        config.collapse_threshold,
        config.summary_lines,
    )
    params = LayoutParams(STATS_WIDTH, WrapMode.from_bool(config.line_wrap))
    calculator = renderer.height_calculator(params)

    usage = summarize_usage(log)
    for session in log:
        session.relayout_all(params, calculator)
    log.refresh_start_lines()

    table = Table(title=f"{log.session_count()} session(s)")
    table.add_column("#", justify="right")
    table.add_column("session", no_wrap=True)
    table.add_column("started", no_wrap=True)
    table.add_column("start line", justify="right")
    table.add_column("main entries", justify="right")
    table.add_column("sub-agents", justify="right")
    table.add_column("sub-agent entries", justify="right")
    table.add_column("main height", justify="right")
    table.add_column("height", justify="right")
    _add_usage_columns(table)

    for index, session in enumerate(log):
        ids = session.subagent_ids()
        table.add_row(
            str(index + 1),
            session.session_id,
            _format_start(session),
            str(session.start_line),
            str(len(session.main)),
            str(len(ids)),
            str(sum(session.subagent_entry_count(agent_id) for agent_id in ids)),
            str(session.main_height()),
            str(session.total_height()),
            *_usage_cells(usage.by_session.get(session.session_id, Usage())),
        )
    console.print(table)

    if usage.by_model:
        models = Table(title="token usage by model")
        models.add_column("model", no_wrap=True)
        _add_usage_columns(models)
        models.add_column("total", justify="right")
        for model, model_usage in sorted(usage.by_model.items()):
            models.add_row(model, *_usage_cells(model_usage), f"{model_usage.total_tokens:,}")
        console.print(models)

    console.print(f"total height: {log.total_height()} lines at width {STATS_WIDTH}")
    console.print(f"total tokens: {usage.total.total_tokens:,} over {usage.turns} turn(s)")


def _open_source(path: str | None, *, headless: bool) -> LineSource:
    if path is not None:
        return FileSource(path)
    # The TUI needs fd 0 back for the keyboard; --stats just drains the pipe.
    return StdinSource.from_process_stdin(reattach_tty=not headless)


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    logging_setup.configure("cc-logview", stream=args.stats)
    config = settings.resolve_config(_overrides(args))
    logger.debug("resolved config %s", config)

    try:
        source = _open_source(args.path, headless=args.stats)
    except SourceError as exc:
        logger.error("%s", exc)
        print(f"cc-logview: {exc}", file=sys.stderr)
        return 2

    if args.stats:
        if isinstance(source, StdinSource):
            source.wait()
        print_stats(load_log(source), config)
        return 0

    LogViewerApp(source, config, start_line=args.line).run()
    return 0


if __name__ == "__main__":
    sys.exit(main())
