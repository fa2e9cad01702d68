import logging
from typing import Optional

from ..config import DetectionConfig
from ..features.peaks import extract_fundamentals
from ..features.pitch import pitch_classes_of
from ..models import AudioFrame, ChordDetectionResult, DetectionMethod
from ..profiles.detector import ChordTemplateMatcher
from .base import ChordDetector

logger = logging.getLogger(__name__)


class LocalChordDetector(ChordDetector):
    """Spectral peaks -> pitch classes -> template match, all in-process."""

    method = DetectionMethod.LOCAL

    def __init__(
        self,
        chord_matcher: Optional[ChordTemplateMatcher] = None,
        min_freq: float = 80.0,
        max_freq: float = 2000.0,
        floor_db: float = -40.0,
        max_fundamentals: int = 6,
    ):
        self.chord_matcher = chord_matcher or ChordTemplateMatcher()
        self.min_freq = min_freq
        self.max_freq = max_freq
        self.floor_db = floor_db
        self.max_fundamentals = max_fundamentals

    @classmethod
    def from_config(cls, config: DetectionConfig, chord_matcher: Optional[ChordTemplateMatcher] = None):
        return cls(
            chord_matcher=chord_matcher or ChordTemplateMatcher(min_match_count=config.min_match_count),
            min_freq=config.min_freq_hz,
            max_freq=config.max_freq_hz,
            floor_db=config.peak_floor_db,
            max_fundamentals=config.max_fundamentals,
        )

    def detect(self, frame: AudioFrame) -> Optional[ChordDetectionResult]:
        fundamentals = extract_fundamentals(
            frame.spectrum,
            frame.sample_rate,
            min_freq=self.min_freq,
            max_freq=self.max_freq,
            floor_db=self.floor_db,
            max_peaks=self.max_fundamentals,
            spectrum_in_db=frame.spectrum_in_db,
        )
        if len(fundamentals) < 2:
            logger.debug("t=%.2fs: %d fundamental(s), nothing to match", frame.current_time, len(fundamentals))
            return None

        notes = pitch_classes_of(f.frequency for f in fundamentals)
        match = self.chord_matcher.detect(notes)
        if match is None:
            logger.debug("t=%.2fs: no template matches %s", frame.current_time, notes)
            return None

        return ChordDetectionResult(
            chord=match.chord,
            confidence=match.score,
            timestamp=frame.current_time,
            method=self.method,
            match_count=match.match_count,
        )
