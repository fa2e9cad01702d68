from typing import Optional, Sequence

from .config import DEFAULT_CONFIG, DetectionConfig
from .models import AudioFrame, ChordDetectionResult, ChordRecord, DetectionMethod, Fundamental
from .features.peaks import extract_fundamentals
from .features.pitch import PITCH_CLASSES, frequency_to_pitch_class
from .profiles.detector import ChordMatch, ChordTemplateMatcher
from .profiles.templates import DEFAULT_TEMPLATES, ChordTemplate
from .detection.base import ChordDetector, build_detector
from .detection.local import LocalChordDetector
from .detection.remote import RemoteChordClassifier
from .detection.scheduler import DetectionScheduler
from .storage.sinks import JsonlChordStore, MemoryChordStore


def recognize(
    spectrum: Sequence[float],
    sample_rate: float,
    current_time: float = 0.0,
    spectrum_in_db: bool = True,
    config: DetectionConfig = DEFAULT_CONFIG,
) -> Optional[ChordDetectionResult]:
    """
    recognize the chord in a single analyser spectrum, without scheduling.

    runs the local pipeline:
      1. picks up to `config.max_fundamentals` spectral peaks above the floor.
      2. maps them to pitch classes.
      3. matches the pitch classes against the chord templates.

    the result is returned only when it would be reported live, i.e. when its
    confidence is above `config.confidence_cutoff`.
    """
    detector = LocalChordDetector.from_config(config)
    frame = AudioFrame(
        spectrum=spectrum,
        sample_rate=sample_rate,
        current_time=current_time,
        spectrum_in_db=spectrum_in_db,
    )
    result = detector.detect(frame)
    if result is None or result.confidence <= config.confidence_cutoff:
        return None
    return result


__all__ = [
    "AudioFrame",
    "ChordDetectionResult",
    "ChordDetector",
    "ChordMatch",
    "ChordRecord",
    "ChordTemplate",
    "ChordTemplateMatcher",
    "DEFAULT_CONFIG",
    "DEFAULT_TEMPLATES",
    "DetectionConfig",
    "DetectionMethod",
    "DetectionScheduler",
    "Fundamental",
    "JsonlChordStore",
    "LocalChordDetector",
    "MemoryChordStore",
    "PITCH_CLASSES",
    "RemoteChordClassifier",
    "build_detector",
    "extract_fundamentals",
    "frequency_to_pitch_class",
    "recognize",
]
