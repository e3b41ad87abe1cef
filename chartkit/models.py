"""
chartkit - Chart data model

Frozen dataclasses for every event kind found in a ``.chart`` file, plus the
aggregate :class:`Chart` returned by the parser.

Every event carries its native ``tick`` and an ``assigned_time`` (seconds)
that is ``None`` until the timing engine annotates it.  Everything reachable
from a returned :class:`Chart` is annotated.
"""

from __future__ import annotations

import dataclasses
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Protocol, TypeVar, Union


class ChartParseError(ValueError):
    """Fatal parse failure: the chart cannot produce a usable structure."""


# ---------------------------------------------------------------------------
# Events
# ---------------------------------------------------------------------------

E = TypeVar("E", bound="TickEvent")


@dataclass(frozen=True)
class TickEvent:
    """Base for anything positioned on the tick timeline."""

    tick: int
    # Seconds from the start of the song, filled in by the timing engine
    assigned_time: float | None = field(default=None, kw_only=True)

    def with_time(self: E, seconds: float) -> E:
        """Return a copy of this event annotated with ``seconds``."""
        return dataclasses.replace(self, assigned_time=seconds)


@dataclass(frozen=True)
class TempoEvent(TickEvent):
    """A ``B`` tempo change; ``bpm`` is the raw milli-BPM value / 1000."""

    bpm: float


@dataclass(frozen=True)
class TimeSignatureEvent(TickEvent):
    """A ``TS`` event.  ``denominator`` is already expanded from its exponent."""

    numerator: int
    denominator: int


@dataclass(frozen=True)
class NoteEvent(TickEvent):
    lane: int
    duration: int  # sustain length in ticks
    is_hopo: bool = False
    is_chord: bool = False
    forced: bool = False
    tap: bool = False


@dataclass(frozen=True)
class StarPowerEvent(TickEvent):
    duration: int


@dataclass(frozen=True)
class SimpleEvent(TickEvent):
    """A generic ``E`` event (sections, lyrics, solo markers, ...)."""

    value: str


SyncTrackEvent = Union[TempoEvent, TimeSignatureEvent]
PlayEvent = Union[NoteEvent, StarPowerEvent, SimpleEvent]


# ---------------------------------------------------------------------------
# Song metadata
# ---------------------------------------------------------------------------


class SongMetadata(Mapping[str, Union[str, float]]):
    """
    Read-only view of the ``[Song]`` section.

    Keys are lower-cased.  Numeric keys (resolution, offset, difficulty,
    previewstart, previewend) hold floats, everything else holds the raw
    string with its surrounding quotes removed.
    """

    def __init__(self, fields: Mapping[str, str | float]):
        self._fields = MappingProxyType(dict(fields))

    def __getitem__(self, key: str) -> str | float:
        return self._fields[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._fields)

    def __len__(self) -> int:
        return len(self._fields)

    def __repr__(self) -> str:
        return f"SongMetadata({dict(self._fields)!r})"

    @property
    def resolution(self) -> float:
        """Ticks per quarter note."""
        return float(self._fields["resolution"])


# ---------------------------------------------------------------------------
# Aggregates
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class SyncTrack:
    bpms: tuple[TempoEvent, ...]
    time_signatures: tuple[TimeSignatureEvent, ...]
    # Both lists merged in tick order
    all_events: tuple[SyncTrackEvent, ...]


@dataclass(frozen=True)
class Chart:
    """
    A fully parsed, time-annotated chart.

    ``tracks`` maps a section title such as ``ExpertSingle`` to its events,
    in the order the sections appeared in the file.  ``events`` is ``None``
    when the chart has no ``[Events]`` section.
    """

    song: SongMetadata
    sync_track: SyncTrack
    events: tuple[SimpleEvent, ...] | None = None
    tracks: Mapping[str, tuple[PlayEvent, ...]] = field(
        default_factory=lambda: MappingProxyType({})
    )

    @property
    def resolution(self) -> float:
        return self.song.resolution

    def track(self, difficulty: str, instrument: str) -> tuple[PlayEvent, ...] | None:
        """Look up a track by difficulty (``Expert``) and instrument (``Single``)."""
        return self.tracks.get(f"{difficulty}{instrument}")

    def notes(self, title: str) -> list[NoteEvent]:
        """Only the notes of the track titled ``title`` (empty if absent)."""
        return [e for e in self.tracks.get(title, ()) if isinstance(e, NoteEvent)]


@dataclass(frozen=True)
class ParseResult:
    chart: Chart
    warnings: tuple[str, ...] = ()


class MidiConverter(Protocol):
    """
    Renders a binary MIDI chart into ``.chart`` text.

    Implementations live outside this package; they may append to
    ``warnings`` while converting.
    """

    def __call__(self, data: bytes, warnings: list[str]) -> str: ...
