"""
chartkit - Pytest Configuration & Shared Fixtures

Provides reusable fixtures for:
- Sample chart text (valid, tempo changes, modifiers, and broken variants)
- Parsed results of the sample charts
- Chart files written to a temporary directory
- Tempo timelines for timing-engine tests
"""

from __future__ import annotations

from pathlib import Path

import pytest

from chartkit.models import ParseResult, TempoEvent
from chartkit.services.chart_parser import parse_chart

# ---------------------------------------------------------------------------
# Sample chart content constants
# ---------------------------------------------------------------------------

SAMPLE_CHART_VALID = """\
[Song]
{
  Name = "Test Song"
  Artist = "Test Artist"
  Album = "Test Album"
  Year = ", 2024"
  Charter = "testcharter"
  Offset = 0
  Resolution = 192
  Player2 = bass
  Difficulty = 0
  PreviewStart = 0
  PreviewEnd = 0
  Genre = "rock"
  MediaType = "cd"
  MusicStream = "song.ogg"
}
[SyncTrack]
{
  0 = TS 4
  0 = B 120000
}
[Events]
{
  768 = E "section Intro"
  5760 = E "section Verse 1"
  11520 = E "section Chorus"
}
[ExpertSingle]
{
  768 = N 0 0
  960 = N 1 0
  1152 = N 2 0
  1344 = N 3 0
  1536 = N 4 0
  1728 = N 0 0
  1920 = N 1 0
  2112 = N 2 96
  2304 = N 0 0
  2496 = N 3 0
  2688 = S 2 768
}
[HardSingle]
{
  768 = N 0 0
  1152 = N 1 0
  1536 = N 2 0
  1920 = N 0 0
  2304 = N 1 0
}
[MediumSingle]
{
  768 = N 0 0
  1536 = N 1 0
  2304 = N 0 0
}
[EasySingle]
{
  768 = N 0 0
  1536 = N 0 0
  2304 = N 1 0
}
"""

# 60 BPM for the first beat, then 120 BPM; a 6/8 bar starts at tick 384.
# Lines are deliberately out of order.
SAMPLE_CHART_TEMPO_CHANGES = """\
[Song]
{
  Name = "Tempo Changes"
  Resolution = 192
}
[SyncTrack]
{
  384 = TS 6 3
  192 = B 120000
  0 = B 60000
}
[ExpertSingle]
{
  384 = N 0 0
  0 = N 0 0
  192 = N 1 0
}
"""

# Forced, tap and chord combinations (see test_track_parser.py)
SAMPLE_CHART_MODIFIERS = """\
[Song]
{
  Resolution = 192
}
[SyncTrack]
{
  0 = B 120000
}
[ExpertSingle]
{
  0 = N 0 0
  50 = N 1 0
  100 = N 2 0
  100 = N 5 0
  384 = N 0 0
  384 = N 1 0
  384 = N 2 0
  400 = N 3 0
  400 = N 4 0
  400 = N 5 0
  768 = N 1 0
  768 = N 6 0
  800 = N 2 0
  800 = N 5 0
  800 = N 6 0
  1200 = N 0 0
  1200 = S 2 100
  1210 = E solo
}
"""

SAMPLE_CHART_NO_SONG = """\
[SyncTrack]
{
  0 = B 120000
}
[ExpertSingle]
{
  768 = N 0 0
}
"""

SAMPLE_CHART_NO_RESOLUTION = """\
[Song]
{
  Name = "No Resolution"
}
[SyncTrack]
{
  0 = B 120000
}
"""

SAMPLE_CHART_WITH_PROBLEMS = """\
[Song]
{
  Name = "Problems"
  Resolution = 192
  Offset = abc
  garbage line
}
[SyncTrack]
{
  0 = B 120000
  192 = A 0
}
[ExpertSingle]
{
  768 = N 0 0
  960 = N x 0
  1152 = S 2 0
}
[ExpertDrums]
{
  768 = N 0 0
}
"""

# ---------------------------------------------------------------------------
# Tempo timeline fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def irregular_bpms() -> list[TempoEvent]:
    """Tempo list with awkward ticks and tempos (not yet time-annotated)."""
    return [
        TempoEvent(0, bpm=60),
        TempoEvent(19, bpm=120),
        TempoEvent(400, bpm=6),
        TempoEvent(3000, bpm=17),
    ]


# ---------------------------------------------------------------------------
# Parsed chart fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def parsed_valid() -> ParseResult:
    return parse_chart(SAMPLE_CHART_VALID)


@pytest.fixture
def parsed_modifiers() -> ParseResult:
    return parse_chart(SAMPLE_CHART_MODIFIERS)


@pytest.fixture
def chart_file(tmp_path: Path) -> Path:
    """A valid notes.chart written with a UTF-8 BOM, like Clone Hero saves it."""
    p = tmp_path / "notes.chart"
    p.write_text(SAMPLE_CHART_VALID, encoding="utf-8-sig")
    return p


@pytest.fixture
def broken_chart_file(tmp_path: Path) -> Path:
    p = tmp_path / "broken.chart"
    p.write_text(SAMPLE_CHART_NO_SONG, encoding="utf-8")
    return p
