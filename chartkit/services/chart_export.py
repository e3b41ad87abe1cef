"""
chartkit - JSON-safe export and summaries

Turns a parsed :class:`~chartkit.models.Chart` into plain dicts that can be
dumped with :mod:`json`, and builds lightweight summaries for listings.
"""

from __future__ import annotations

from typing import Any

from chartkit import config
from chartkit.models import (
    Chart,
    NoteEvent,
    ParseResult,
    SimpleEvent,
    StarPowerEvent,
    TempoEvent,
    TickEvent,
    TimeSignatureEvent,
)
from chartkit.services.tempo import TempoMap

SECTION_EVENT_PREFIX = "section "


def event_to_dict(event: TickEvent, precision: int | None = None) -> dict[str, Any]:
    """Serialise one event, tagging it with its kind."""
    if not isinstance(event, TickEvent):
        raise TypeError(f"Not a chart event: {type(event).__name__}")
    if precision is None:
        precision = config.TIME_PRECISION
    assigned = event.assigned_time
    d: dict[str, Any] = {
        "tick": event.tick,
        "assigned_time": round(assigned, precision) if assigned is not None else None,
    }

    if isinstance(event, TempoEvent):
        d.update(type="bpm", bpm=event.bpm)
    elif isinstance(event, TimeSignatureEvent):
        d.update(type="ts", numerator=event.numerator, denominator=event.denominator)
    elif isinstance(event, NoteEvent):
        d.update(
            type="note",
            lane=event.lane,
            duration=event.duration,
            is_hopo=event.is_hopo,
            is_chord=event.is_chord,
            forced=event.forced,
            tap=event.tap,
        )
    elif isinstance(event, StarPowerEvent):
        d.update(type="starpower", duration=event.duration)
    elif isinstance(event, SimpleEvent):
        d.update(type="event", value=event.value)
    else:
        raise TypeError(f"Unknown event type: {type(event).__name__}")
    return d


def chart_to_json(
    parsed: Chart | ParseResult, precision: int | None = None
) -> dict[str, Any]:
    """
    Convert a chart (or a parse result, to include its warnings) into a
    fully JSON-serialisable dict.
    """
    chart = parsed.chart if isinstance(parsed, ParseResult) else parsed

    def dump(events) -> list[dict[str, Any]]:
        return [event_to_dict(e, precision) for e in events]

    result: dict[str, Any] = {
        "song": dict(chart.song),
        "sync_track": {
            "bpms": dump(chart.sync_track.bpms),
            "time_signatures": dump(chart.sync_track.time_signatures),
            "all_events": dump(chart.sync_track.all_events),
        },
        "events": dump(chart.events) if chart.events is not None else None,
        "tracks": {title: dump(events) for title, events in chart.tracks.items()},
    }
    if isinstance(parsed, ParseResult):
        result["warnings"] = list(parsed.warnings)
    return result


def get_chart_duration(chart: Chart) -> float:
    """End time of the last note (including its sustain), in seconds."""
    max_tick = 0
    for events in chart.tracks.values():
        for e in events:
            if isinstance(e, NoteEvent):
                max_tick = max(max_tick, e.tick + e.duration)
    if max_tick == 0:
        return 0.0
    return TempoMap.from_chart(chart).tick_to_time(max_tick)


def get_chart_summary(chart: Chart) -> dict[str, Any]:
    """
    Return a lightweight summary of a parsed chart (no note data).

    Useful for listing charts without loading full note arrays.
    """
    song = chart.song
    section_names = [
        e.value[len(SECTION_EVENT_PREFIX) :]
        for e in chart.events or ()
        if e.value.startswith(SECTION_EVENT_PREFIX)
    ]

    track_summary = {}
    for title, events in chart.tracks.items():
        notes = [e for e in events if isinstance(e, NoteEvent)]
        track_summary[title] = {
            "note_count": len(notes),
            "star_power_count": sum(isinstance(e, StarPowerEvent) for e in events),
            "chord_count": sum(n.is_chord for n in notes),
            "hopo_count": sum(n.is_hopo for n in notes),
            "tap_count": sum(n.tap for n in notes),
        }

    bpms = [b.bpm for b in chart.sync_track.bpms]

    return {
        "name": song.get("name", "Unknown"),
        "artist": song.get("artist", "Unknown"),
        "album": song.get("album", ""),
        "charter": song.get("charter", ""),
        "genre": song.get("genre", ""),
        "resolution": chart.resolution,
        "duration_s": round(get_chart_duration(chart), 3),
        "sections": section_names,
        "tracks": track_summary,
        "bpm_range": {
            "min": round(min(bpms), 1),
            "max": round(max(bpms), 1),
            "primary": round(bpms[0], 1),
        },
    }
