import abc
from typing import Awaitable, Optional, Union

from ..config import DEFAULT_CONFIG, DetectionConfig
from ..models import AudioFrame, ChordDetectionResult, DetectionMethod

DetectionOutcome = Union[Optional[ChordDetectionResult], Awaitable[Optional[ChordDetectionResult]]]


class ChordDetector(abc.ABC):
    """
    One way of turning an AudioFrame into a chord.

    `detect` may return the result directly (the local path, which never
    suspends) or an awaitable (the remote path). Either way a failed or empty
    detection is None, never an exception.
    """

    method: DetectionMethod

    @abc.abstractmethod
    def detect(self, frame: AudioFrame) -> DetectionOutcome:
        raise NotImplementedError


def build_detector(config: DetectionConfig = DEFAULT_CONFIG, **kwargs) -> ChordDetector:
    """pick the detection strategy once, from `config.detection_method`."""
    if config.detection_method == DetectionMethod.LOCAL.value:
        from .local import LocalChordDetector

        return LocalChordDetector.from_config(config, **kwargs)

    from .remote import RemoteChordClassifier

    if not config.remote_url:
        raise ValueError("detection_method 'backend' requires remote_url")
    return RemoteChordClassifier.from_config(config, **kwargs)
