import asyncio
import inspect
import logging
from dataclasses import dataclass
from typing import Callable, Optional

from ..config import DEFAULT_CONFIG, DetectionConfig
from ..models import AudioFrame, ChordDetectionResult
from ..storage.sinks import ChordStore
from .base import ChordDetector, build_detector
from .timers import CancellableTimer, CancellationToken

logger = logging.getLogger(__name__)

ChordCallback = Callable[[str, float, float], None]


@dataclass
class SchedulerStats:
    frames_received: int = 0
    dispatched: int = 0
    dropped_busy: int = 0
    dropped_throttled: int = 0
    accepted: int = 0
    discarded_stale: int = 0


class DetectionScheduler:
    """
    Decides, per audio source, when a frame gets analyzed.

    Frames are coalesced by a short debounce; when it elapses the latest frame
    is dispatched unless an attempt is still in flight or the previous one
    started less than the throttle interval ago. Dropped frames are never
    queued. Accepted results go to `on_chord_detected(chord, timestamp,
    confidence)` and then to the store.

    Nothing raised by the detector, the callback or the store escapes
    `push_frame` or the timer callbacks; failures are logged and the source
    simply returns to idle.
    """

    def __init__(
        self,
        detector: ChordDetector,
        on_chord_detected: Optional[ChordCallback] = None,
        source_id: str = "default",
        store: Optional[ChordStore] = None,
        config: DetectionConfig = DEFAULT_CONFIG,
        loop: Optional[asyncio.AbstractEventLoop] = None,
    ):
        self.detector = detector
        self.on_chord_detected = on_chord_detected
        self.source_id = source_id
        self.store = store
        self.config = config
        self.stats = SchedulerStats()

        self._debounce = CancellableTimer(loop)
        self._enabled = config.enabled
        self._closed = False
        self._is_processing = False
        self._last_detection_time: Optional[float] = None
        self._last_emitted_timestamp: Optional[float] = None
        self._pending_frame: Optional[AudioFrame] = None
        self._token = CancellationToken()
        self._in_flight: Optional[asyncio.Task] = None

    @classmethod
    def from_config(
        cls,
        on_chord_detected: Optional[ChordCallback] = None,
        config: DetectionConfig = DEFAULT_CONFIG,
        **kwargs,
    ) -> "DetectionScheduler":
        """build the scheduler together with the strategy `config` selects."""
        return cls(build_detector(config), on_chord_detected, config=config, **kwargs)

    # state

    @property
    def enabled(self) -> bool:
        return self._enabled

    @enabled.setter
    def enabled(self, value: bool) -> None:
        value = bool(value)
        if value and self._closed:
            raise RuntimeError("cannot re-enable a closed DetectionScheduler")
        if value == self._enabled:
            return
        self._enabled = value
        if value:
            self._token = CancellationToken()
        else:
            self._cancel_session()

    @property
    def is_processing(self) -> bool:
        return self._is_processing

    @property
    def last_detection_time(self) -> Optional[float]:
        return self._last_detection_time

    @property
    def has_pending_frame(self) -> bool:
        return self._debounce.pending

    # frame ingestion

    def push_frame(self, frame: AudioFrame) -> None:
        """entry point for the capture callback; never raises."""
        if not self._enabled:
            return
        try:
            self.stats.frames_received += 1
            self._pending_frame = frame
            self._debounce.start(self.config.debounce_sec, self._on_debounce_elapsed)
        except Exception:
            logger.exception("[%s] could not schedule chord detection", self.source_id)

    def _on_debounce_elapsed(self) -> None:
        frame, self._pending_frame = self._pending_frame, None
        if frame is None or not self._enabled:
            return

        if self._is_processing:
            self.stats.dropped_busy += 1
            logger.debug("[%s] t=%.2fs dropped: detection in flight", self.source_id, frame.current_time)
            return

        now = self._debounce.loop.time()
        if (
            self._last_detection_time is not None
            and now - self._last_detection_time < self.config.throttle_interval_sec
        ):
            self.stats.dropped_throttled += 1
            logger.debug("[%s] t=%.2fs dropped: throttled", self.source_id, frame.current_time)
            return

        self._dispatch(frame, now)

    def _dispatch(self, frame: AudioFrame, now: float) -> None:
        self._is_processing = True
        self._last_detection_time = now
        self.stats.dispatched += 1
        token = self._token

        try:
            outcome = self.detector.detect(frame)
        except Exception:
            logger.exception("[%s] chord detection failed", self.source_id)
            self._is_processing = False
            return

        if inspect.isawaitable(outcome):
            # guard stays set until the remote call settles
            self._in_flight = self._debounce.loop.create_task(self._settle(outcome, token))
            return

        try:
            self._deliver(outcome, token)
        finally:
            self._is_processing = False

    async def _settle(self, outcome, token: CancellationToken) -> None:
        try:
            try:
                result = await outcome
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.exception("[%s] remote chord detection failed", self.source_id)
                return
            self._deliver(result, token)
        finally:
            self._is_processing = False
            self._in_flight = None

    # delivery

    def _accepts(self, result: ChordDetectionResult) -> bool:
        if result.confidence <= self.config.confidence_cutoff:
            return False
        if result.match_count is not None and result.match_count < self.config.min_match_count:
            return False
        return True

    def _deliver(self, result: Optional[ChordDetectionResult], token: CancellationToken) -> None:
        if result is None:
            return
        if token.cancelled:
            self.stats.discarded_stale += 1
            logger.debug("[%s] discarding %s from a finished session", self.source_id, result.chord)
            return
        if not self._accepts(result):
            logger.debug(
                "[%s] %s rejected at confidence %.2f", self.source_id, result.chord, result.confidence
            )
            return
        if self._last_emitted_timestamp is not None and result.timestamp < self._last_emitted_timestamp:
            logger.debug(
                "[%s] %s at t=%.2fs is older than the last detection",
                self.source_id,
                result.chord,
                result.timestamp,
            )
            return

        self._last_emitted_timestamp = result.timestamp
        self.stats.accepted += 1
        logger.info(
            "[%s] %s at t=%.2fs (confidence %.2f, %s)",
            self.source_id,
            result.chord,
            result.timestamp,
            result.confidence,
            result.method.value,
        )

        # callback before store; each failure is contained on its own
        if self.on_chord_detected is not None:
            try:
                self.on_chord_detected(result.chord, result.timestamp, result.confidence)
            except Exception:
                logger.exception("[%s] on_chord_detected callback failed", self.source_id)

        if self.store is not None:
            try:
                self.store.append(result.to_record(self.source_id))
            except Exception:
                logger.exception("[%s] failed to store %s", self.source_id, result.chord)

    # lifecycle

    def _cancel_session(self) -> None:
        self._debounce.cancel()
        self._pending_frame = None
        self._token.cancel()

    def reset_session(self) -> None:
        """
        start a fresh session, e.g. after the host seeks.

        pending and in-flight work from the old session is discarded and the
        throttle and timestamp ordering start over. an in-flight remote call
        still blocks new dispatches until it settles.
        """
        self._cancel_session()
        self._token = CancellationToken()
        self._last_detection_time = None
        self._last_emitted_timestamp = None

    def close(self) -> None:
        """permanent teardown: stop accepting frames and discard late results."""
        self.enabled = False
        self._closed = True

    async def wait_idle(self) -> None:
        """wait for the in-flight remote attempt, if any, to settle."""
        task = self._in_flight
        if task is not None:
            await asyncio.wait([task])

    async def aclose(self) -> None:
        self.close()
        await self.wait_idle()
        aclose = getattr(self.detector, "aclose", None)
        if aclose is not None:
            await aclose()
