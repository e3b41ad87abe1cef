"""
chartkit - CLI Tests

Tests for chartkit.cli.main(). Validates:
- A valid chart prints a readable report and exits 0
- --json prints the parsed chart plus requested tick/time conversions
- Unreadable or fatally broken charts exit 1
"""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from chartkit import cli


@pytest.fixture(autouse=True)
def _no_logging_setup(monkeypatch):
    """Keep the CLI from replacing the global loguru sinks during tests."""
    monkeypatch.setattr(cli, "setup_logging", lambda verbose=False: None)


class TestCli:
    def test_report(self, chart_file: Path, capsys):
        assert cli.main([str(chart_file)]) == 0
        out = capsys.readouterr().out
        assert "Test Artist - Test Song" in out
        assert "[ExpertSingle] 10 notes" in out
        assert "Intro, Verse 1, Chorus" in out

    def test_report_conversions(self, chart_file: Path, capsys):
        assert cli.main(["--tick", "768", "--time", "1.5", str(chart_file)]) == 0
        out = capsys.readouterr().out
        assert "tick 768 → 2.0000s" in out
        assert "1.5s → tick 576" in out

    def test_json(self, chart_file: Path, capsys):
        assert cli.main(["--json", "--tick", "768", str(chart_file)]) == 0
        data = json.loads(capsys.readouterr().out)
        assert len(data) == 1
        assert data[0]["song"]["resolution"] == 192.0
        assert data[0]["conversions"]["ticks"] == {"768": 2.0}
        assert data[0]["warnings"] == []

    def test_missing_file(self, tmp_path: Path):
        assert cli.main([str(tmp_path / "nope.chart")]) == 1

    def test_fatal_chart(self, broken_chart_file: Path):
        assert cli.main([str(broken_chart_file)]) == 1

    def test_one_bad_file_fails_the_run(self, chart_file: Path, broken_chart_file: Path):
        assert cli.main([str(chart_file), str(broken_chart_file)]) == 1

    def test_midi_rejected(self, tmp_path: Path):
        p = tmp_path / "notes.mid"
        p.write_bytes(b"MThd")
        assert cli.main([str(p)]) == 1
