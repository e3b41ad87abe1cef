"""
chartkit - Low-level line parsers

Shared by every section parser.  Lines inside a section are either
``key = value`` pairs ([Song]) or tick-prefixed ``<tick> = <fragment>``
entries (everything else).

Recoverable problems are reported through :func:`warn`, which appends the
message to the caller's collector and mirrors it to the logger.
"""

from __future__ import annotations

import math
import re
from collections.abc import Iterable

from loguru import logger

_RE_COMMON_LINE = re.compile(r"^(.+)\s+=\s+(.+)$")
_RE_QUOTED = re.compile(r'^"|"$')
_RE_INT_PREFIX = re.compile(r"^\s*([+-]?\d+)", re.ASCII)
_RE_FLOAT_PREFIX = re.compile(
    r"^\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)", re.ASCII
)

# (tick, fragment, raw line)
TickLine = tuple[int, str, str]


def warn(warnings: list[str], message: str) -> None:
    """Record a recoverable problem."""
    warnings.append(message)
    logger.debug("⚠️ {}", message)


def strip_quotes(value: str) -> str:
    """Remove one leading and one trailing double quote."""
    return _RE_QUOTED.sub("", value)


def parse_int(text: str) -> int | None:
    """Parse the leading integer of ``text`` (``"12abc"`` → 12), or None."""
    m = _RE_INT_PREFIX.match(text)
    return int(m.group(1)) if m else None


def parse_float(text: str) -> float:
    """Parse the leading decimal number of ``text``; NaN when there is none."""
    m = _RE_FLOAT_PREFIX.match(text)
    if not m:
        return math.nan
    return float(m.group(1))


def parse_string_line(
    line: str, section_title: str, warnings: list[str]
) -> tuple[str, str] | None:
    m = _RE_COMMON_LINE.match(line)
    if not m:
        warn(warnings, f"Invalid [{section_title}] entry '{line}'.")
        return None
    return m.group(1), m.group(2)


def parse_tick_line(
    line: str, section_title: str, warnings: list[str]
) -> TickLine | None:
    pair = parse_string_line(line, section_title, warnings)
    if pair is None:
        return None
    tick = parse_int(pair[0])
    if tick is None or tick < 0:
        warn(warnings, f"Invalid [{section_title}] entry '{line}'.")
        return None
    return tick, pair[1], line


def parse_and_sort_tick_lines(
    lines: Iterable[str], section_title: str, warnings: list[str]
) -> list[TickLine]:
    """Parse tick-prefixed lines and stable-sort them by tick."""
    parsed = [parse_tick_line(line, section_title, warnings) for line in lines]
    return sorted((p for p in parsed if p is not None), key=lambda p: p[0])
