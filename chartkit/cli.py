"""
chartkit — inspect Clone Hero .chart files

Parses one or more notes.chart files and prints a summary, the parse
warnings and any requested tick/time conversions.

Usage:
    chartkit notes.chart
    chartkit --json "songs/Go To Sleep/notes.chart"
    chartkit --tick 768 --time 12.5 notes.chart

Flags:
    --json      Output the full parsed chart as JSON
    --tick N    Print the time (seconds) of tick N
    --time S    Print the tick at time S (seconds)
    --verbose   Show debug logging, including every warning as it is found
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any

from loguru import logger

from chartkit import config
from chartkit.models import ChartParseError, ParseResult
from chartkit.services.chart_export import chart_to_json, get_chart_summary
from chartkit.services.chart_parser import parse_chart
from chartkit.services.tempo import TempoMap

LOG_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
    "<level>{message}</level>"
)


def setup_logging(verbose: bool = False) -> None:
    """Install a single stderr sink; stdout is reserved for results."""
    logger.remove()
    logger.enable("chartkit")
    logger.add(
        sys.stderr,
        level="DEBUG" if verbose or config.DEBUG else config.LOG_LEVEL,
        format=LOG_FORMAT,
        colorize=True,
    )


def load_chart(path: Path) -> ParseResult:
    """Read and parse a chart file."""
    if not path.is_file():
        raise FileNotFoundError(f"Chart file not found: {path}")
    if path.suffix.lower() in (".mid", ".midi"):
        raise ChartParseError(f"MIDI charts are not supported here: {path}")
    # Read with BOM-aware encoding
    text = path.read_text(encoding="utf-8-sig", errors="replace")
    return parse_chart(text)


def conversions(
    result: ParseResult, ticks: list[int], times: list[float]
) -> dict[str, Any]:
    tempo_map = TempoMap.from_chart(result.chart)
    return {
        "ticks": {str(t): tempo_map.tick_to_time(t) for t in ticks},
        "times": {str(s): tempo_map.time_to_tick(s) for s in times},
    }


def print_report(path: Path, result: ParseResult, lookups: dict[str, Any]) -> None:
    summary = get_chart_summary(result.chart)
    print()
    print("=" * 60)
    print(f"{summary['artist']} - {summary['name']}  ({path})")
    print("-" * 60)
    print(f"  Resolution : {summary['resolution']:g}")
    print(f"  Duration   : {summary['duration_s']:.1f}s")
    bpm = summary["bpm_range"]
    print(f"  BPM        : {bpm['primary']} (min {bpm['min']}, max {bpm['max']})")
    if summary["sections"]:
        print(f"  Sections   : {', '.join(summary['sections'])}")
    for title, info in summary["tracks"].items():
        print(
            f"  [{title}] {info['note_count']} notes, "
            f"{info['star_power_count']} star power, "
            f"{info['hopo_count']} HOPOs, {info['tap_count']} taps"
        )
    for tick, seconds in lookups["ticks"].items():
        print(f"  tick {tick} → {seconds:.4f}s")
    for seconds, tick in lookups["times"].items():
        print(f"  {seconds}s → tick {tick}")
    if result.warnings:
        print()
        print(f"  {len(result.warnings)} warning(s):")
        for w in result.warnings:
            print(f"    ⚠️ {w}")
    print()


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        description="Inspect Clone Hero .chart files",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument("path", nargs="+", help="notes.chart file(s) to parse")
    parser.add_argument("--json", action="store_true", help="Output results as JSON")
    parser.add_argument(
        "--tick", type=int, action="append", default=[], help="Convert a tick to seconds"
    )
    parser.add_argument(
        "--time", type=float, action="append", default=[], help="Convert seconds to a tick"
    )
    parser.add_argument(
        "--verbose", "-v", action="store_true", help="Show debug logging"
    )

    args = parser.parse_args(argv)
    setup_logging(args.verbose)

    failed = False
    outputs: list[dict[str, Any]] = []

    for target in args.path:
        path = Path(target)
        try:
            result = load_chart(path)
        except (OSError, ChartParseError) as e:
            logger.error("❌ {}: {}", path, e)
            failed = True
            continue

        lookups = conversions(result, args.tick, args.time)
        if args.json:
            payload = chart_to_json(result)
            payload["path"] = str(path)
            payload["conversions"] = lookups
            outputs.append(payload)
        else:
            print_report(path, result, lookups)

    if args.json:
        print(json.dumps(outputs, indent=config.JSON_INDENT, ensure_ascii=False))

    return 1 if failed else 0


if __name__ == "__main__":
    sys.exit(main())
