"""
value types passed between the stages of the live detection pipeline.
"""

import enum
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Sequence


class DetectionMethod(str, enum.Enum):
    LOCAL = "local"
    BACKEND = "backend"


@dataclass(frozen=True)
class AudioFrame:
    """
    one analyser snapshot pushed by the capture/decoding pipeline.

    `spectrum` holds one value per frequency bin, in dB unless
    `spectrum_in_db` is False. `samples` is the matching block of raw
    time-domain audio in [-1, 1]; only the remote path needs it.
    """

    spectrum: Sequence[float]
    sample_rate: float
    current_time: float
    samples: Optional[Sequence[float]] = field(default=None, repr=False)
    spectrum_in_db: bool = True


@dataclass(frozen=True)
class Fundamental:
    frequency: float
    magnitude: float


@dataclass(frozen=True)
class ChordDetectionResult:
    chord: str
    confidence: float
    timestamp: float
    method: DetectionMethod
    # number of template pitch classes found; unknown for remote results
    match_count: Optional[int] = None

    def to_record(self, source_id: str) -> "ChordRecord":
        return ChordRecord(
            source_id=source_id,
            timestamp=self.timestamp,
            chord=self.chord,
            confidence=self.confidence,
            method=self.method.value,
        )


@dataclass(frozen=True)
class ChordRecord:
    """the append-only persisted form of an accepted detection."""

    source_id: str
    timestamp: float
    chord: str
    confidence: float
    method: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "source_id": self.source_id,
            "timestamp": self.timestamp,
            "chord": self.chord,
            "confidence": self.confidence,
            "method": self.method,
        }
