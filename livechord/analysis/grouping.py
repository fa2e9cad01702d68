import numpy as np
from typing import List, Dict, Any, Optional, Sequence

from ..models import ChordDetectionResult


def group_chord_events(
    results: Sequence[ChordDetectionResult],
    min_duration_sec: float = 0.1,
    tail_sec: Optional[float] = None,
) -> List[Dict[str, Any]]:
    """
    group consecutive identical detections into events with start/end times.
    get rid of very short/abrupt events (<min_duration_sec).

    a live session only samples the chord every throttle interval, so an event
    ends where the next different chord was first seen. the last event lasts
    `tail_sec`, or the median gap between detections when not given.
    """
    events: List[Dict[str, Any]] = []
    if not results:
        return events

    ordered = sorted(results, key=lambda r: r.timestamp)
    times = np.array([r.timestamp for r in ordered], dtype=float)

    current_label = ordered[0].chord
    current_start = float(times[0])
    accum_conf = [ordered[0].confidence]

    for idx in range(1, len(ordered)):
        label = ordered[idx].chord
        t = float(times[idx])
        c = ordered[idx].confidence

        if label == current_label:
            accum_conf.append(c)
        else:
            duration = t - current_start
            if duration >= min_duration_sec:
                events.append(
                    {
                        "start": current_start,
                        "end": t,
                        "chord": current_label,
                        "confidence": float(np.mean(accum_conf)),
                    }
                )
            current_label = label
            current_start = t
            accum_conf = [c]

    if tail_sec is None:
        tail_sec = float(np.median(np.diff(times))) if len(times) >= 2 else min_duration_sec
    final_end = float(times[-1]) + tail_sec
    if final_end - current_start >= min_duration_sec:
        events.append(
            {
                "start": current_start,
                "end": final_end,
                "chord": current_label,
                "confidence": float(np.mean(accum_conf)),
            }
        )

    return events
