"""
chartkit - Clone Hero ``.chart`` parsing and timing.

Parses chart text into an immutable, time-annotated structure and exposes the
tick ↔ time conversions that playback and rendering code rely on.
"""

from loguru import logger

from chartkit.models import (
    Chart,
    ChartParseError,
    MidiConverter,
    NoteEvent,
    ParseResult,
    PlayEvent,
    SimpleEvent,
    SongMetadata,
    StarPowerEvent,
    SyncTrack,
    SyncTrackEvent,
    TempoEvent,
    TickEvent,
    TimeSignatureEvent,
)
from chartkit.services.chart_parser import parse_chart, parse_chart_string
from chartkit.services.tempo import TempoMap, tick_to_time, time_to_tick

# Silent when used as a library; the CLI enables its own sink.
logger.disable("chartkit")

__version__ = "1.0.0"

__all__ = [
    "Chart",
    "ChartParseError",
    "MidiConverter",
    "NoteEvent",
    "ParseResult",
    "PlayEvent",
    "SimpleEvent",
    "SongMetadata",
    "StarPowerEvent",
    "SyncTrack",
    "SyncTrackEvent",
    "TempoEvent",
    "TempoMap",
    "TickEvent",
    "TimeSignatureEvent",
    "parse_chart",
    "parse_chart_string",
    "tick_to_time",
    "time_to_tick",
]
