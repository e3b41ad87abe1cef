"""
chartkit - Chart parser service

Parses Clone Hero style ``.chart`` text into an immutable, time-annotated
:class:`~chartkit.models.Chart`.

The ``.chart`` format is a plain-text INI-like file with bracketed sections:

    [Song]        – metadata key/value pairs (must contain Resolution)
    [SyncTrack]   – tempo (B) and time-signature (TS) events
    [Events]      – section markers, lyrics, and other global events
    [ExpertSingle] / [HardDoubleBass] / ...
                  – note data for one instrument at one difficulty

Parse order matters: every track needs the resolution from [Song] and the
tempo timeline from [SyncTrack], so those two are parsed first.

Problems fall into two tiers.  Missing [Song]/[SyncTrack] sections or a
missing resolution raise :class:`~chartkit.models.ChartParseError`; anything
else is reported as a warning string and the offending line or section is
skipped.
"""

from __future__ import annotations

import math
import re
from collections.abc import Sequence
from types import MappingProxyType

from loguru import logger

from chartkit.models import (
    Chart,
    ChartParseError,
    MidiConverter,
    ParseResult,
    PlayEvent,
    SimpleEvent,
    SongMetadata,
    SyncTrack,
    SyncTrackEvent,
    TempoEvent,
    TimeSignatureEvent,
)
from chartkit.services.lines import (
    parse_and_sort_tick_lines,
    parse_float,
    parse_int,
    parse_string_line,
    strip_quotes,
    warn,
)
from chartkit.services.tempo import get_timed_bpms, get_timed_track
from chartkit.services.track_parser import (
    parse_events_section,
    parse_instrument_section,
)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------
DEFAULT_BPM = 120.0
DEFAULT_TS_NUMERATOR = 4
DEFAULT_TS_EXPONENT = 2  # denominator 2**2 = 4

REQUIRED_SECTIONS = ("Song", "SyncTrack")
EVENTS_SECTION = "Events"

DIFFICULTIES = ("Easy", "Medium", "Hard", "Expert")
INSTRUMENTS = (
    "Single",
    "DoubleGuitar",
    "DoubleBass",
    "DoubleRhythm",
    "Keyboard",
    "Vocals",
    "GHLGuitar",
    "GHLBass",
)
INSTRUMENT_SECTIONS = frozenset(d + i for i in INSTRUMENTS for d in DIFFICULTIES)

# [Song] keys whose values are numbers
NUMERICAL_SONG_KEYS = frozenset(
    {"resolution", "offset", "difficulty", "previewstart", "previewend"}
)

# A section needs its title, both braces and at least one body line
MIN_SECTION_SPAN = 4

_RE_SECTION_HEADER = re.compile(r"^\[(.+)\]$")
_RE_SYNC_EVENT = re.compile(r"^(TS|B)\s+(.+)", re.ASCII)


# ---------------------------------------------------------------------------
# Section splitter
# ---------------------------------------------------------------------------


def split_sections(text: str) -> dict[str, list[str]]:
    """
    Split chart text into ``{title: body lines}``.

    Lines are stripped and blank lines dropped.  A section body is everything
    between the line after its title (the ``{``) and the line before the next
    title (the ``}``).  Spans shorter than :data:`MIN_SECTION_SPAN` lines are
    ignored.
    """
    # Remove BOM if present
    if text.startswith("\ufeff"):
        text = text[1:]
    lines = [raw.strip() for raw in text.split("\n")]
    lines = [line for line in lines if line]

    headers: list[tuple[int, str]] = []
    for i, line in enumerate(lines):
        m = _RE_SECTION_HEADER.match(line)
        if m:
            headers.append((i, m.group(1)))

    sections: dict[str, list[str]] = {}
    for n, (start, title) in enumerate(headers):
        end = headers[n + 1][0] if n + 1 < len(headers) else len(lines)
        if end - start < MIN_SECTION_SPAN:
            continue
        sections[title] = lines[start + 2 : end - 1]
    return sections


# ---------------------------------------------------------------------------
# [Song]
# ---------------------------------------------------------------------------


def parse_song_section(lines: Sequence[str], warnings: list[str]) -> SongMetadata:
    """Parse the [Song] section into lower-cased metadata fields."""
    fields: dict[str, str | float] = {}
    for line in lines:
        pair = parse_string_line(line, "Song", warnings)
        if pair is None:
            continue
        key, value = pair
        key_final = key.lower()
        value_final: str | float = strip_quotes(value)

        if key_final in NUMERICAL_SONG_KEYS:
            number = parse_float(value_final)
            if not math.isfinite(number) or (key_final == "resolution" and number <= 0):
                warn(warnings, f"Invalid numerical [Song] entry: '{key} = {value}'.")
                continue
            value_final = number

        fields[key_final] = value_final

    if "resolution" not in fields:
        raise ChartParseError("Invalid [Song] section - missing 'resolution'.")
    return SongMetadata(fields)


# ---------------------------------------------------------------------------
# [SyncTrack]
# ---------------------------------------------------------------------------


def parse_sync_track_event(
    tick: int, fragment: str, warnings: list[str]
) -> SyncTrackEvent | None:
    """Parse ``B <milli-bpm>`` or ``TS <numerator> [<exponent>]``."""
    m = _RE_SYNC_EVENT.match(fragment)
    if not m:
        warn(warnings, f"Unknown sync track event '{fragment}'.")
        return None

    kind, args = m.group(1), m.group(2)
    if kind == "B":
        milli_bpm = parse_int(args)
        if milli_bpm is None:
            warn(warnings, f"Invalid BPM '{fragment}'.")
            return None
        return TempoEvent(tick, bpm=milli_bpm / 1000)

    parts = args.split()
    if len(parts) > 2:
        warn(warnings, f"Invalid TS '{fragment}'.")
        return None
    numerator = parse_int(parts[0])
    exponent = parse_int(parts[1]) if len(parts) > 1 else DEFAULT_TS_EXPONENT
    if numerator is None or exponent is None or exponent < 0:
        warn(warnings, f"Invalid TS '{fragment}'.")
        return None
    return TimeSignatureEvent(tick, numerator=numerator, denominator=2**exponent)


def parse_sync_track(lines: Sequence[str], warnings: list[str]) -> SyncTrack:
    """
    Parse the [SyncTrack] section into tempo and time-signature lists.

    The returned events are not yet time-annotated.  A 120 BPM tempo and a
    4/4 time signature are synthesized at tick 0 when the chart lacks them.
    """
    bpms: list[TempoEvent] = []
    time_signatures: list[TimeSignatureEvent] = []
    all_events: list[SyncTrackEvent] = []

    for tick, fragment, line in parse_and_sort_tick_lines(lines, "SyncTrack", warnings):
        event = parse_sync_track_event(tick, fragment, warnings)
        if event is None:
            warn(warnings, f"Invalid [SyncTrack] entry '{line}'.")
            continue
        all_events.append(event)
        if isinstance(event, TempoEvent):
            bpms.append(event)
        else:
            time_signatures.append(event)

    defaults: list[SyncTrackEvent] = []
    if not any(e.tick == 0 for e in bpms):
        base_bpm = TempoEvent(0, bpm=DEFAULT_BPM)
        bpms.insert(0, base_bpm)
        defaults.append(base_bpm)
    if not any(e.tick == 0 for e in time_signatures):
        base_ts = TimeSignatureEvent(
            0, numerator=DEFAULT_TS_NUMERATOR, denominator=2**DEFAULT_TS_EXPONENT
        )
        time_signatures.insert(0, base_ts)
        defaults.append(base_ts)

    return SyncTrack(
        bpms=tuple(bpms),
        time_signatures=tuple(time_signatures),
        all_events=tuple(defaults + all_events),
    )


# ---------------------------------------------------------------------------
# Assembler
# ---------------------------------------------------------------------------


def is_instrument_section(title: str) -> bool:
    return title in INSTRUMENT_SECTIONS


def parse_chart_string(text: str, warnings: list[str]) -> Chart:
    """
    Parse chart text into a :class:`Chart`, appending warnings to ``warnings``.

    Raises
    ------
    ChartParseError
        If [Song] or [SyncTrack] is missing, or [Song] has no resolution.
    """
    sections = split_sections(text)

    for name in REQUIRED_SECTIONS:
        if name not in sections:
            raise ChartParseError(f"Missing [{name}] section in chart.")

    song = parse_song_section(sections.pop("Song"), warnings)
    resolution = song.resolution

    raw_sync = parse_sync_track(sections.pop("SyncTrack"), warnings)
    timed_bpms = get_timed_bpms(raw_sync.bpms, resolution)
    sync_track = SyncTrack(
        bpms=tuple(timed_bpms),
        time_signatures=tuple(
            get_timed_track(raw_sync.time_signatures, resolution, timed_bpms)
        ),
        all_events=tuple(get_timed_track(raw_sync.all_events, resolution, timed_bpms)),
    )

    events: tuple[SimpleEvent, ...] | None = None
    tracks: dict[str, tuple[PlayEvent, ...]] = {}
    for title, lines in sections.items():
        if title == EVENTS_SECTION:
            events = tuple(
                parse_events_section(title, lines, resolution, timed_bpms, warnings)
            )
        elif is_instrument_section(title):
            tracks[title] = tuple(
                parse_instrument_section(title, lines, resolution, timed_bpms, warnings)
            )
        else:
            warn(warnings, f"Unsupported chart section '[{title}]'.")

    logger.info(
        "📊 Parsed chart: resolution={} | {} tempo markers | {} events | "
        "tracks: {} | {} warnings",
        resolution,
        len(timed_bpms),
        len(events) if events is not None else 0,
        ", ".join(tracks) or "none",
        len(warnings),
    )

    return Chart(
        song=song,
        sync_track=sync_track,
        events=events,
        tracks=MappingProxyType(tracks),
    )


def parse_chart(
    source: str | bytes, converter: MidiConverter | None = None
) -> ParseResult:
    """
    Parse a chart and collect its warnings.

    ``source`` is either chart text or binary MIDI data; the latter is
    rendered to chart text by ``converter`` first.
    """
    warnings: list[str] = []
    if isinstance(source, (bytes, bytearray)):
        if converter is None:
            raise ChartParseError("Binary input needs a MIDI converter.")
        text = converter(bytes(source), warnings)
    else:
        text = source

    chart = parse_chart_string(text, warnings)
    return ParseResult(chart=chart, warnings=tuple(warnings))
