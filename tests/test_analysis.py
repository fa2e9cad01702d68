"""
Tests for grouping live detections into chord events and exporting them.
"""

import csv
import json

import pytest

from livechord.analysis.export import export_events
from livechord.analysis.grouping import group_chord_events

from conftest import make_result


def _results(*pairs):
    return [make_result(chord, conf, t) for t, chord, conf in pairs]


class TestGroupChordEvents:
    def test_empty(self) -> None:
        assert group_chord_events([]) == []

    def test_merges_repeats(self) -> None:
        results = _results((0.0, "C", 0.8), (1.5, "C", 1.0), (3.0, "G", 0.9), (4.5, "G", 0.9))
        events = group_chord_events(results, tail_sec=1.5)
        assert [e["chord"] for e in events] == ["C", "G"]
        assert events[0]["start"] == 0.0
        assert events[0]["end"] == 3.0
        assert events[0]["confidence"] == pytest.approx(0.9)
        assert events[1]["end"] == 6.0

    def test_sorts_by_timestamp(self) -> None:
        results = _results((3.0, "G", 0.9), (0.0, "C", 0.9))
        assert [e["chord"] for e in group_chord_events(results)] == ["C", "G"]

    def test_tail_defaults_to_median_gap(self) -> None:
        results = _results((0.0, "C", 0.9), (1.0, "F", 0.9), (3.0, "G", 0.9))
        events = group_chord_events(results)
        assert events[-1]["end"] == pytest.approx(4.5)

    def test_single_detection(self) -> None:
        events = group_chord_events(_results((2.0, "Am", 0.7)))
        assert events == [{"start": 2.0, "end": pytest.approx(2.1), "chord": "Am", "confidence": 0.7}]

    def test_short_events_are_dropped(self) -> None:
        results = _results((0.0, "C", 0.9), (1.0, "Dm", 0.9), (1.05, "G", 0.9))
        events = group_chord_events(results, tail_sec=1.0)
        assert [e["chord"] for e in events] == ["C", "G"]
        assert events[1]["start"] == 1.05


class TestExport:
    EVENTS = [
        {"start": 0.0, "end": 1.5, "chord": "C", "confidence": 0.91234},
        {"start": 1.5, "end": 3.25, "chord": "G", "confidence": 0.8},
    ]

    def test_csv(self, tmp_path) -> None:
        path = tmp_path / "chords.csv"
        assert export_events(self.EVENTS, str(path)) == "csv"
        with open(path, newline="", encoding="utf-8") as f:
            rows = list(csv.reader(f))
        assert rows[0] == ["start_time", "end_time", "chord", "confidence"]
        assert rows[1] == ["0.000", "1.500", "C", "0.912"]
        assert rows[2] == ["1.500", "3.250", "G", "0.800"]

    def test_json(self, tmp_path) -> None:
        path = tmp_path / "chords.JSON"
        assert export_events(self.EVENTS, str(path)) == "json"
        assert json.loads(path.read_text(encoding="utf-8")) == self.EVENTS

    def test_unknown_extension(self, tmp_path) -> None:
        with pytest.raises(ValueError, match="unsupported export format"):
            export_events(self.EVENTS, str(tmp_path / "chords.xml"))
