import csv
import json
import os
from typing import Any, Dict, List


def export_events_csv(events: List[Dict[str, Any]], path: str) -> None:
    with open(path, "w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(["start_time", "end_time", "chord", "confidence"])
        for event in events:
            writer.writerow(
                [f"{event['start']:.3f}", f"{event['end']:.3f}", event["chord"], f"{event['confidence']:.3f}"]
            )


def export_events_json(events: List[Dict[str, Any]], path: str) -> None:
    with open(path, "w", encoding="utf-8") as f:
        json.dump(events, f, indent=4)


def export_events(events: List[Dict[str, Any]], path: str) -> str:
    """write `events` as CSV or JSON depending on the file extension; returns the format used."""
    ext = os.path.splitext(path)[1].lower()
    if ext == ".json":
        export_events_json(events, path)
        return "json"
    if ext == ".csv":
        export_events_csv(events, path)
        return "csv"
    raise ValueError(f"unsupported export format {ext!r}, use .csv or .json")
