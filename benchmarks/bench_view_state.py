"""Repeatable benchmark for view-state queries on a large conversation.

Builds a synthetic conversation with mixed entry heights and measures the
operations that run per frame or per keystroke: full layout, suffix relayout
after an expand, visible-range and hit-test queries, and scroll resolution.

Usage:
    uv run python benchmarks/bench_view_state.py                 # default 100k entries
    uv run python benchmarks/bench_view_state.py --entries 1000000
    uv run python benchmarks/bench_view_state.py --json          # machine-readable output
"""

import argparse
import json
import random
import sys
import time
import tracemalloc

from cc_logview.view_state.conversation import ConversationViewState
from cc_logview.view_state.layout import LayoutParams, WrapMode
from cc_logview.view_state.scroll import AtLine
from cc_logview.view_state.types import LineHeight, LineOffset, ViewportDimensions

VIEWPORT = ViewportDimensions(120, 50)
PARAMS = LayoutParams(VIEWPORT.width, WrapMode.WRAP)


def _height(entry: int, expanded: bool, wrap: WrapMode) -> LineHeight:
    """Entries are their own collapsed heights; expanding adds ten lines."""
    return LineHeight.new(entry + (10 if expanded else 0))


def _percentile(samples: list[int], pct: float) -> float:
    ordered = sorted(samples)
    index = min(len(ordered) - 1, int(round(pct / 100 * (len(ordered) - 1))))
    return ordered[index] / 1000


def _summarize(samples: list[int]) -> dict:
    return {
        "count": len(samples),
        "min_us": round(min(samples) / 1000, 2),
        "max_us": round(max(samples) / 1000, 2),
        "mean_us": round(sum(samples) / len(samples) / 1000, 2),
        "p50_us": round(_percentile(samples, 50), 2),
        "p95_us": round(_percentile(samples, 95), 2),
        "p99_us": round(_percentile(samples, 99), 2),
    }


def _time_ns(fn) -> int:
    start = time.perf_counter_ns()
    fn()
    return time.perf_counter_ns() - start


def run_benchmark(n_entries: int, n_queries: int, seed: int) -> dict:
    """Run every stage and return the results dict."""
    rng = random.Random(seed)
    heights = [rng.choice((1, 1, 2, 3, 5, 8, 20)) for _ in range(n_entries)]

    tracemalloc.start()
    conv = ConversationViewState(heights)
    layout_ns = _time_ns(lambda: conv.recompute_layout(PARAMS, _height))
    mem_current, mem_peak = tracemalloc.get_traced_memory()
    tracemalloc.stop()

    total = conv.total_height
    stages: dict[str, list[int]] = {
        "visible_range": [],
        "hit_test": [],
        "resolve_scroll": [],
        "toggle_expand": [],
    }
    for _ in range(n_queries):
        conv.set_scroll(AtLine(LineOffset(rng.randrange(max(1, total)))))
        stages["visible_range"].append(_time_ns(lambda: conv.visible_range(VIEWPORT)))
        y = rng.randrange(VIEWPORT.height)
        stages["hit_test"].append(_time_ns(lambda: conv.hit_test(y, 0, rng.randrange(max(1, total)))))
        stages["resolve_scroll"].append(_time_ns(lambda: conv.resolve_scroll(VIEWPORT.height)))

    # Expanding near the tail relayouts a short suffix; near the head, nearly everything.
    for _ in range(min(n_queries, 50)):
        index = n_entries - 1 - rng.randrange(min(n_entries, 100))
        stages["toggle_expand"].append(
            _time_ns(lambda: conv.toggle_expand(index, PARAMS, _height, VIEWPORT))
        )

    return {
        "n_entries": n_entries,
        "total_height": total,
        "layout_ms": layout_ns / 1_000_000,
        "mem_peak_kb": mem_peak / 1024,
        "mem_current_kb": mem_current / 1024,
        "stages": {name: _summarize(samples) for name, samples in stages.items() if samples},
    }


def print_report(results: dict) -> None:
    """Print a human-readable benchmark report."""
    print(f"\n{'='*60}")
    print("  View-State Query Benchmark")
    print(f"{'='*60}")
    print(f"  Entries:    {results['n_entries']} ({results['total_height']} lines)")
    print(f"  Layout:     {results['layout_ms']:.1f} ms")
    print(f"  Memory:     {results['mem_peak_kb']:.0f} KB peak, "
          f"{results['mem_current_kb']:.0f} KB current")
    print()

    for stage_name, stats in results["stages"].items():
        print(f"  [{stage_name}] ({stats['count']} samples)")
        print(f"    min={stats['min_us']:.1f}us  "
              f"p50={stats['p50_us']:.1f}us  "
              f"p95={stats['p95_us']:.1f}us  "
              f"p99={stats['p99_us']:.1f}us  "
              f"max={stats['max_us']:.1f}us")
        print()

    print(f"{'='*60}\n")


def main() -> None:
    parser = argparse.ArgumentParser(description="View-state query benchmark")
    parser.add_argument("--entries", type=int, default=100_000,
                        help="Number of entries in the conversation (default: 100000)")
    parser.add_argument("--queries", type=int, default=1000,
                        help="Queries per stage (default: 1000)")
    parser.add_argument("--seed", type=int, default=0)
    parser.add_argument("--json", action="store_true",
                        help="Output machine-readable JSON")
    args = parser.parse_args()

    results = run_benchmark(args.entries, args.queries, args.seed)

    if args.json:
        json.dump(results, sys.stdout, indent=2)
        sys.stdout.write("\n")
    else:
        print_report(results)


if __name__ == "__main__":
    main()
