import json
import logging
import math
from typing import Any, Dict, Mapping, Optional

import httpx

from .._internal.dsp import encode_pcm16_base64
from ..config import DetectionConfig
from ..models import AudioFrame, ChordDetectionResult, DetectionMethod
from .base import ChordDetector

logger = logging.getLogger(__name__)


class RemoteChordClassifier(ChordDetector):
    """
    Ships the raw audio of a frame to an inference endpoint.

    Request body: {"action": "detect_chord", "audioData": <base64 pcm16>,
    "timestamp": <seconds>}. Response body: {"chord"?: str, "confidence"?: float};
    no chord means no detection.

    Every failure (transport error, timeout, non-2xx status, bad JSON) is
    logged and reported as None.
    """

    method = DetectionMethod.BACKEND

    def __init__(
        self,
        endpoint_url: str,
        timeout: float = 10.0,
        headers: Optional[Mapping[str, str]] = None,
        client: Optional[httpx.AsyncClient] = None,
        default_confidence: float = 0.8,
    ):
        self.endpoint_url = endpoint_url
        self.timeout = timeout
        self.headers = dict(headers or {})
        self.default_confidence = default_confidence
        self._client = client
        self._owns_client = client is None

    @classmethod
    def from_config(cls, config: DetectionConfig, **kwargs) -> "RemoteChordClassifier":
        kwargs.setdefault("timeout", config.remote_timeout_sec)
        kwargs.setdefault("default_confidence", config.remote_default_confidence)
        return cls(config.remote_url, **kwargs)

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout)
        return self._client

    def build_payload(self, frame: AudioFrame) -> Dict[str, Any]:
        return {
            "action": "detect_chord",
            "audioData": encode_pcm16_base64(frame.samples),
            "timestamp": frame.current_time,
        }

    async def detect(self, frame: AudioFrame) -> Optional[ChordDetectionResult]:
        if frame.samples is None or len(frame.samples) == 0:
            logger.warning("t=%.2fs: frame has no samples, skipping remote detection", frame.current_time)
            return None

        try:
            response = await self._get_client().post(
                self.endpoint_url,
                json=self.build_payload(frame),
                headers=self.headers,
                timeout=self.timeout,
            )
        except httpx.HTTPError as e:
            logger.warning("remote chord detection failed: %s", e)
            return None
        except Exception as e:
            # closed client, unencodable body and similar; CancelledError still propagates
            logger.warning("remote chord detection could not send request: %r", e)
            return None

        if not 200 <= response.status_code < 300:
            logger.warning("remote chord detection returned HTTP %d", response.status_code)
            return None

        try:
            data = response.json()
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            logger.warning("remote chord detection returned invalid JSON: %s", e)
            return None

        return self._parse_result(data, frame.current_time)

    def _parse_result(self, data: Any, timestamp: float) -> Optional[ChordDetectionResult]:
        if not isinstance(data, dict):
            logger.warning("remote chord detection returned %s, expected an object", type(data).__name__)
            return None

        chord = data.get("chord")
        if not chord or not isinstance(chord, str):
            return None

        confidence = data.get("confidence")
        if isinstance(confidence, bool) or not isinstance(confidence, (int, float)) or not math.isfinite(confidence):
            confidence = self.default_confidence
        confidence = min(max(float(confidence), 0.0), 1.0)

        return ChordDetectionResult(
            chord=chord,
            confidence=confidence,
            timestamp=timestamp,
            method=self.method,
        )

    async def aclose(self) -> None:
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None
