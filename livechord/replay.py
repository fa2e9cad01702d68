import asyncio
import logging
import numpy as np
import librosa
from typing import Callable, Iterator, List, Optional, Tuple

from .config import DEFAULT_CONFIG, DetectionConfig, HOP_LENGTH, N_FFT, SAMPLE_RATE
from .models import AudioFrame, ChordDetectionResult, DetectionMethod
from .detection.scheduler import DetectionScheduler

logger = logging.getLogger(__name__)


def analyser_frames(
    y: np.ndarray,
    sr: int,
    n_fft: int = N_FFT,
    hop_length: int = HOP_LENGTH,
) -> Iterator[Tuple[float, np.ndarray, np.ndarray]]:
    """
    yield (time_sec, db_spectrum, samples) for each hop of `y`.

    the spectrum imitates a browser analyser node: Blackman window,
    magnitudes normalized by n_fft, in dB, n_fft / 2 bins (Nyquist dropped).
    """
    if len(y) < n_fft:
        y = librosa.util.fix_length(y, size=n_fft)

    stft_matrix = librosa.stft(y, n_fft=n_fft, hop_length=hop_length, window="blackman", center=False)
    mag_spec = np.abs(stft_matrix)[:-1, :] / n_fft
    db_spec = librosa.amplitude_to_db(mag_spec, ref=1.0, amin=1e-10, top_db=None)

    for t in range(db_spec.shape[1]):
        start = t * hop_length
        # the analyser reports the time at the end of its window
        yield (start + n_fft) / float(sr), db_spec[:, t], y[start:start + n_fft]


async def replay_file(
    file_path: str,
    config: DetectionConfig = DEFAULT_CONFIG,
    n_fft: int = N_FFT,
    hop_length: int = HOP_LENGTH,
    speed: float = 1.0,
    store=None,
    source_id: Optional[str] = None,
    progress: Optional[Callable[[str, int], None]] = None,
) -> List[ChordDetectionResult]:
    """
    play an audio file through a live DetectionScheduler at `speed` x real time.

    returns the accepted detections in delivery order.
    """
    if speed <= 0:
        raise ValueError(f"speed must be positive, got {speed}")

    def report(message: str, percent: int) -> None:
        logger.info(message)
        if progress is not None:
            progress(message, percent)

    report("Loading audio file...", 10)
    y, sr = librosa.load(file_path, sr=SAMPLE_RATE, mono=True)

    method = DetectionMethod(config.detection_method)
    detections: List[ChordDetectionResult] = []

    def on_chord_detected(chord: str, timestamp: float, confidence: float) -> None:
        detections.append(ChordDetectionResult(chord, confidence, timestamp, method))

    scheduler = DetectionScheduler.from_config(
        on_chord_detected,
        config=config,
        source_id=source_id or file_path,
        store=store,
    )

    report("Streaming frames...", 30)
    frame_period = hop_length / float(sr) / speed
    try:
        for time_sec, spectrum, samples in analyser_frames(y, sr, n_fft, hop_length):
            scheduler.push_frame(
                AudioFrame(spectrum=spectrum, sample_rate=sr, current_time=time_sec, samples=samples)
            )
            await asyncio.sleep(frame_period)

        # let the last debounce fire and any remote call settle
        await asyncio.sleep(config.debounce_sec)
        await scheduler.wait_idle()
    finally:
        await scheduler.aclose()

    report("Replay complete!", 100)
    return detections
