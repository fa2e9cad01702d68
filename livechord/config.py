import os
from dataclasses import dataclass, fields
from typing import Optional

SAMPLE_RATE = 44100
N_FFT = 4096
HOP_LENGTH = 2048
NOTE_NAMES = ['C', 'C#', 'D', 'D#', 'E', 'F', 'F#', 'G', 'G#', 'A', 'A#', 'B']

DETECTION_METHODS = ("local", "backend")


@dataclass(frozen=True)
class DetectionConfig:
    """
    Tunables for one live detection session.

    The defaults are the empirically chosen values the detector has always
    shipped with: a 1.5 s throttle window, a 100 ms debounce, a 0.5 acceptance
    cutoff and a -40 dB peak floor.

    Attributes:
        detection_method: "local" for spectral analysis, "backend" for the
            remote inference endpoint.
        enabled: whether the scheduler starts accepting frames immediately.
        throttle_interval_sec: minimum gap between two dispatched attempts.
        debounce_sec: quiet period that coalesces bursts of frames.
        confidence_cutoff: results must score strictly above this to be emitted.
        peak_floor_db: spectral bins must exceed this level to count as peaks.
        min_freq_hz, max_freq_hz: musical range searched for fundamentals.
        max_fundamentals: candidate fundamentals kept per frame.
        min_match_count: pitch classes a template must share with the input.
        remote_url: inference endpoint, required for "backend".
        remote_timeout_sec: transport timeout for one remote call.
        remote_default_confidence: used when the endpoint omits a confidence.
    """

    detection_method: str = "local"
    enabled: bool = True
    throttle_interval_sec: float = 1.5
    debounce_sec: float = 0.1
    confidence_cutoff: float = 0.5
    peak_floor_db: float = -40.0
    min_freq_hz: float = 80.0
    max_freq_hz: float = 2000.0
    max_fundamentals: int = 6
    min_match_count: int = 2
    remote_url: Optional[str] = None
    remote_timeout_sec: float = 10.0
    remote_default_confidence: float = 0.8

    def __post_init__(self) -> None:
        if self.detection_method not in DETECTION_METHODS:
            raise ValueError(
                f"detection_method must be one of {DETECTION_METHODS}, "
                f"got {self.detection_method!r}"
            )
        if self.throttle_interval_sec < 0:
            raise ValueError(
                f"throttle_interval_sec must be non-negative, got {self.throttle_interval_sec}"
            )
        if self.debounce_sec < 0:
            raise ValueError(f"debounce_sec must be non-negative, got {self.debounce_sec}")
        if not 0.0 <= self.confidence_cutoff <= 1.0:
            raise ValueError(
                f"confidence_cutoff must be within [0, 1], got {self.confidence_cutoff}"
            )
        if not 0.0 < self.min_freq_hz < self.max_freq_hz:
            raise ValueError(
                f"frequency range must satisfy 0 < min < max, "
                f"got ({self.min_freq_hz}, {self.max_freq_hz})"
            )
        if self.max_fundamentals <= 0:
            raise ValueError(f"max_fundamentals must be positive, got {self.max_fundamentals}")
        if self.min_match_count <= 0:
            raise ValueError(f"min_match_count must be positive, got {self.min_match_count}")
        if self.remote_timeout_sec <= 0:
            raise ValueError(
                f"remote_timeout_sec must be positive, got {self.remote_timeout_sec}"
            )
        if not 0.0 <= self.remote_default_confidence <= 1.0:
            raise ValueError(
                f"remote_default_confidence must be within [0, 1], "
                f"got {self.remote_default_confidence}"
            )

    @classmethod
    def from_env(cls, prefix: str = "LIVECHORD_", **overrides) -> "DetectionConfig":
        """
        build a config from `<prefix><FIELD_NAME>` environment variables.

        explicit keyword overrides win over the environment.
        """
        values = {}
        for field in fields(cls):
            raw = os.getenv(prefix + field.name.upper())
            if raw is None:
                continue
            values[field.name] = _coerce(field.name, field.type, raw)
        values.update(overrides)
        return cls(**values)


def _coerce(name: str, annotation, raw: str):
    kind = annotation if isinstance(annotation, str) else getattr(annotation, "__name__", "")
    if "bool" in kind:
        lowered = raw.strip().lower()
        if lowered in ("1", "true", "yes", "on"):
            return True
        if lowered in ("0", "false", "no", "off"):
            return False
        raise ValueError(f"{name} expects a boolean, got {raw!r}")
    if "int" in kind:
        return int(raw)
    if "float" in kind:
        return float(raw)
    return raw or None


DEFAULT_CONFIG = DetectionConfig()
