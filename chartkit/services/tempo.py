"""
chartkit - Timing engine

Converts between tick positions and elapsed seconds using a resolution
(ticks per quarter note) and an ascending tempo timeline whose events already
carry ``assigned_time``.

The free functions are the public contract used by the parser and by
playback code that needs to turn a playhead time into a tick every frame.
:class:`TempoMap` bundles a resolution with a timeline for convenience.
"""

from __future__ import annotations

import math
from collections.abc import Callable, Iterable, Sequence
from typing import TypeVar

from chartkit.models import Chart, TempoEvent, TickEvent

T = TypeVar("T", bound=TickEvent)


# ---------------------------------------------------------------------------
# Distance helpers
# ---------------------------------------------------------------------------


def dis_to_time(
    tick_start: float, tick_end: float, resolution: float, bpm: float
) -> float:
    """Seconds spanned by ``tick_start → tick_end`` at a constant ``bpm``."""
    beats = (tick_end - tick_start) / resolution
    if bpm == 0:
        # Keep IEEE semantics: 0/0 is NaN, anything else diverges
        return math.nan if beats == 0 else math.copysign(math.inf, beats)
    return beats * 60 / bpm


def time_to_dis(
    time_start: float, time_end: float, resolution: float, bpm: float
) -> int:
    """Ticks spanned by ``time_start → time_end`` at a constant ``bpm``."""
    # Round half up, not half to even
    return math.floor((time_end - time_start) * bpm / 60 * resolution + 0.5)


# ---------------------------------------------------------------------------
# Ordered search
# ---------------------------------------------------------------------------


def find_closest_position(
    value: float,
    events: Sequence[T],
    key: Callable[[T], float] = lambda e: e.tick,
) -> int:
    """
    Binary-search ``events`` (ascending by ``key``) for ``value``.

    Returns the index of an exact hit, otherwise the last midpoint probed,
    which is either the nearest event below or the nearest event above.
    Returns -1 for an empty sequence.
    """
    lo, hi = 0, len(events) - 1
    index = -1
    while lo <= hi:
        mid = (lo + hi) // 2
        index = mid
        probe = key(events[mid])
        if probe == value:
            break
        if probe < value:
            # data is in upper half
            lo = mid + 1
        else:
            hi = mid - 1
    return index


def find_last_tick_event(tick: float, events: Sequence[T]) -> int:
    """Index of the latest event with ``event.tick <= tick``."""
    idx = find_closest_position(tick, events)
    if events[idx].tick > tick:
        idx -= 1
    return max(idx, 0)


def find_last_time_event(time_s: float, events: Sequence[T]) -> int:
    """Index of the latest event with ``event.assigned_time <= time_s``."""
    idx = find_closest_position(time_s, events, key=_assigned_time)
    if _assigned_time(events[idx]) > time_s:
        idx -= 1
    return max(idx, 0)


def _assigned_time(event: TickEvent) -> float:
    if event.assigned_time is None:
        raise ValueError(f"Tempo event at tick {event.tick} has no assigned time")
    return event.assigned_time


# ---------------------------------------------------------------------------
# Timeline construction and conversion
# ---------------------------------------------------------------------------


def get_timed_bpms(bpms: Sequence[TempoEvent], resolution: float) -> list[TempoEvent]:
    """
    Annotate an ascending tempo list with the time each change takes effect.

    Each event's bpm governs the interval up to the next change; the first
    event is at time 0.  The input is not modified.
    """
    result: list[TempoEvent] = []
    if not bpms:
        return result

    time_s = 0.0
    prev = bpms[0]
    for ev in bpms:
        time_s += dis_to_time(prev.tick, ev.tick, resolution, prev.bpm)
        result.append(ev.with_time(time_s))
        prev = ev
    return result


def tick_to_time(tick: float, resolution: float, bpms: Sequence[TempoEvent]) -> float:
    """Convert an absolute tick position to seconds."""
    prev = bpms[find_last_tick_event(tick, bpms)]
    return _assigned_time(prev) + dis_to_time(prev.tick, tick, resolution, prev.bpm)


def time_to_tick(time_s: float, resolution: float, bpms: Sequence[TempoEvent]) -> int:
    """Convert seconds to the nearest absolute tick.  Negative times clamp to 0."""
    if time_s < 0:
        time_s = 0.0
    prev = bpms[find_last_time_event(time_s, bpms)]
    return prev.tick + time_to_dis(_assigned_time(prev), time_s, resolution, prev.bpm)


def get_timed_track(
    events: Iterable[T], resolution: float, bpms: Sequence[TempoEvent]
) -> list[T]:
    """Return annotated copies of ``events``."""
    return [ev.with_time(tick_to_time(ev.tick, resolution, bpms)) for ev in events]


# ---------------------------------------------------------------------------
# TempoMap
# ---------------------------------------------------------------------------


class TempoMap:
    """
    A resolution bound to a timed tempo timeline, with tick ↔ time helpers.

    Accepts either raw or already-timed tempo events; raw ones are
    annotated on construction.
    """

    resolution: float

    def __init__(self, bpms: Sequence[TempoEvent], resolution: float):
        if not bpms:
            raise ValueError("TempoMap needs at least one tempo event")
        self.resolution = resolution
        if any(b.assigned_time is None for b in bpms):
            bpms = get_timed_bpms(bpms, resolution)
        self.bpms: tuple[TempoEvent, ...] = tuple(bpms)

    @classmethod
    def from_chart(cls, chart: Chart) -> TempoMap:
        return cls(chart.sync_track.bpms, chart.resolution)

    def tick_to_time(self, tick: float) -> float:
        return tick_to_time(tick, self.resolution, self.bpms)

    def time_to_tick(self, time_s: float) -> int:
        return time_to_tick(time_s, self.resolution, self.bpms)

    def __repr__(self) -> str:
        return f"TempoMap(resolution={self.resolution}, markers={len(self.bpms)})"
