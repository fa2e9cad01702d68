"""
Shared fixtures for the test suite.

Provides a manual-clock event loop stand-in for driving the scheduler's
debounce and throttle timers deterministically, plus helpers that build
analyser-style dB spectra with peaks at chosen frequencies.
"""

from typing import Iterable, List, Optional

import numpy as np
import pytest

from livechord.models import AudioFrame, ChordDetectionResult, DetectionMethod

SAMPLE_RATE = 44100
N_BINS = 8192
SILENCE_DB = -100.0

# C4, E4, G4
C_MAJOR_FREQS = (261.63, 329.63, 392.00)


# ---------------------------------------------------------------------------
# Manual clock
# ---------------------------------------------------------------------------


class FakeTimerHandle:
    def __init__(self, when: float, callback, args) -> None:
        self.when = when
        self.callback = callback
        self.args = args
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class FakeLoop:
    """The slice of the asyncio loop API the scheduler uses, on a manual clock."""

    def __init__(self) -> None:
        self._now = 0.0
        self._timers: List[FakeTimerHandle] = []

    def time(self) -> float:
        return self._now

    def call_later(self, delay: float, callback, *args) -> FakeTimerHandle:
        handle = FakeTimerHandle(self._now + delay, callback, args)
        self._timers.append(handle)
        return handle

    def create_task(self, coro):
        coro.close()
        raise AssertionError("FakeLoop cannot run coroutines; use a real loop for remote paths")

    def advance_to(self, target: float) -> None:
        """run every timer due up to `target`, in time order, then set the clock."""
        while True:
            due = [h for h in self._timers if not h.cancelled and h.when <= target]
            if not due:
                break
            handle = min(due, key=lambda h: h.when)
            self._timers.remove(handle)
            self._now = handle.when
            handle.callback(*handle.args)
        self._timers = [h for h in self._timers if not h.cancelled]
        self._now = max(self._now, target)

    def advance(self, seconds: float) -> None:
        self.advance_to(self._now + seconds)

    @property
    def pending(self) -> int:
        return sum(1 for h in self._timers if not h.cancelled)


@pytest.fixture
def fake_loop() -> FakeLoop:
    return FakeLoop()


# ---------------------------------------------------------------------------
# Spectra and frames
# ---------------------------------------------------------------------------


def bin_width(sample_rate: float = SAMPLE_RATE, n_bins: int = N_BINS) -> float:
    return sample_rate / (2.0 * n_bins)


def make_spectrum(
    peaks: Iterable,
    sample_rate: float = SAMPLE_RATE,
    n_bins: int = N_BINS,
    floor: float = SILENCE_DB,
) -> np.ndarray:
    """
    dB spectrum at `floor` with a single-bin peak per entry.

    entries are either a frequency (peak at -10 dB) or (frequency, level_db).
    """
    spectrum = np.full(n_bins, floor, dtype=float)
    width = bin_width(sample_rate, n_bins)
    for entry in peaks:
        freq, level = entry if isinstance(entry, tuple) else (entry, -10.0)
        spectrum[int(round(freq / width))] = level
    return spectrum


def make_frame(
    peaks: Iterable = C_MAJOR_FREQS,
    current_time: float = 0.0,
    samples: Optional[np.ndarray] = None,
) -> AudioFrame:
    return AudioFrame(
        spectrum=make_spectrum(peaks),
        sample_rate=SAMPLE_RATE,
        current_time=current_time,
        samples=samples,
    )


def silent_frame(current_time: float = 0.0) -> AudioFrame:
    return AudioFrame(
        spectrum=np.full(N_BINS, -90.0),
        sample_rate=SAMPLE_RATE,
        current_time=current_time,
    )


def make_result(
    chord: str = "C",
    confidence: float = 0.9,
    timestamp: float = 0.0,
    method: DetectionMethod = DetectionMethod.LOCAL,
    match_count: Optional[int] = 3,
) -> ChordDetectionResult:
    return ChordDetectionResult(chord, confidence, timestamp, method, match_count)
