"""
chartkit - Track parser

Parses an instrument/difficulty section (e.g. ``[ExpertSingle]``) or the
generic ``[Events]`` section into a tick-ordered, time-annotated event list.

Instrument sections contain three line shapes, tried in this order:

    <tick> = N <lane> <sustain>     – note (lanes 5 and 6 are modifiers)
    <tick> = S 2 <duration>         – star power phrase
    <tick> = E <text>               – generic event

Lane 5 forces the notes of its tick (HOPO ↔ strum) and lane 6 turns them into
taps.  Modifiers never become notes themselves.  Chord, forced and tap flags
are resolved per tick group; HOPO flags are resolved in a second pass over
the finished note list.
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from dataclasses import dataclass, replace

from chartkit.models import (
    NoteEvent,
    PlayEvent,
    SimpleEvent,
    StarPowerEvent,
    TempoEvent,
)
from chartkit.services.lines import (
    TickLine,
    parse_and_sort_tick_lines,
    parse_int,
    strip_quotes,
    warn,
)
from chartkit.services.tempo import get_timed_track

LANE_FORCED = 5
LANE_TAP = 6
MODIFIER_LANES = (LANE_FORCED, LANE_TAP)

# Single notes within 65/192 of a beat of a different lane are HOPOs
HOPO_THRESHOLD_RATIO = 65 / 192

_RE_NOTE = re.compile(r"^N\s+(\d+)\s+(\d+)", re.ASCII)
_RE_STAR_POWER = re.compile(r"^S\s+2\s+(\d+)", re.ASCII)
_RE_SIMPLE_EVENT = re.compile(r"^E\s+(.+)")


# ---------------------------------------------------------------------------
# Line shapes
# ---------------------------------------------------------------------------


def parse_note_event(tick: int, fragment: str) -> NoteEvent | None:
    """Parse ``N <lane> <sustain>``; flags are resolved later."""
    m = _RE_NOTE.match(fragment)
    if not m:
        return None
    return NoteEvent(tick, lane=int(m.group(1)), duration=int(m.group(2)))


def parse_star_power_event(tick: int, fragment: str) -> StarPowerEvent | None:
    m = _RE_STAR_POWER.match(fragment)
    if not m:
        return None
    duration = parse_int(m.group(1))
    if duration is None or duration <= 0:
        return None
    return StarPowerEvent(tick, duration=duration)


def parse_simple_event(tick: int, fragment: str) -> SimpleEvent | None:
    m = _RE_SIMPLE_EVENT.match(fragment)
    if not m:
        return None
    return SimpleEvent(tick, value=strip_quotes(m.group(1)))


_PLAY_EVENT_PARSERS = (parse_note_event, parse_star_power_event, parse_simple_event)


# ---------------------------------------------------------------------------
# Tick-group accumulator
# ---------------------------------------------------------------------------


@dataclass
class _TickGroup:
    """Notes and modifier flags seen so far at one tick."""

    tick: int
    notes: list[NoteEvent]
    forced: bool = False
    tap: bool = False

    def add(self, note: NoteEvent) -> None:
        if note.lane == LANE_FORCED:
            self.forced = True
        elif note.lane == LANE_TAP:
            self.tap = True
        else:
            self.notes.append(note)

    def flush(self) -> list[NoteEvent]:
        """Resolve chord/forced/tap flags for every note in the group."""
        is_chord = len(self.notes) > 1
        forced = self.forced and not self.tap
        return [
            replace(n, is_chord=is_chord, forced=forced, tap=self.tap)
            for n in self.notes
        ]


def _group_events(
    tick_lines: Sequence[TickLine], section_title: str, warnings: list[str]
) -> list[PlayEvent]:
    result: list[PlayEvent] = []
    if not tick_lines:
        return result

    group = _TickGroup(tick_lines[0][0], [])
    for tick, fragment, line in tick_lines:
        if tick != group.tick:
            result.extend(group.flush())
            group = _TickGroup(tick, [])

        for parse in _PLAY_EVENT_PARSERS:
            event = parse(tick, fragment)
            if event is None:
                continue
            if isinstance(event, NoteEvent):
                # Buffered until the tick changes so modifiers can apply
                group.add(event)
            else:
                result.append(event)
            break
        else:
            warn(warnings, f"Invalid [{section_title}] entry '{line}'.")

    result.extend(group.flush())
    return result


def assign_hopo_flags(events: Sequence[PlayEvent], resolution: float) -> list[PlayEvent]:
    """
    Second pass: decide ``is_hopo`` for every note, in order.

    Taps are never HOPOs and chords are HOPOs only when forced.  A single
    note is a HOPO when a different lane was last played within the
    threshold; ``forced`` inverts that.
    """
    threshold = HOPO_THRESHOLD_RATIO * resolution
    last_seen: dict[int, int] = {}
    result: list[PlayEvent] = []

    for event in events:
        if not isinstance(event, NoteEvent):
            result.append(event)
            continue

        is_hopo = False
        if not event.tap:
            if event.is_chord:
                is_hopo = event.forced
            else:
                natural = any(
                    lane != event.lane and event.tick - threshold <= seen
                    for lane, seen in last_seen.items()
                )
                is_hopo = not natural if event.forced else natural

        last_seen[event.lane] = event.tick
        result.append(replace(event, is_hopo=is_hopo))

    return result


# ---------------------------------------------------------------------------
# Section entry points
# ---------------------------------------------------------------------------


def parse_instrument_section(
    section_title: str,
    lines: Sequence[str],
    resolution: float,
    bpms: Sequence[TempoEvent],
    warnings: list[str],
) -> list[PlayEvent]:
    """Parse one instrument/difficulty section into annotated play events."""
    tick_lines = parse_and_sort_tick_lines(lines, section_title, warnings)
    events = _group_events(tick_lines, section_title, warnings)
    events = assign_hopo_flags(events, resolution)
    return get_timed_track(events, resolution, bpms)


def parse_events_section(
    section_title: str,
    lines: Sequence[str],
    resolution: float,
    bpms: Sequence[TempoEvent],
    warnings: list[str],
) -> list[SimpleEvent]:
    """Parse ``[Events]``: only generic ``E`` lines are accepted."""
    result: list[SimpleEvent] = []
    for tick, fragment, line in parse_and_sort_tick_lines(lines, section_title, warnings):
        event = parse_simple_event(tick, fragment)
        if event is None:
            warn(warnings, f"Invalid [{section_title}] entry '{line}'.")
            continue
        result.append(event)
    return get_timed_track(result, resolution, bpms)
