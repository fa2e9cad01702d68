# livechord/features/peaks.py

import logging
import numpy as np
from typing import List, Optional, Sequence

from .._internal.peak_finding import find_peaks
from ..models import Fundamental

logger = logging.getLogger(__name__)


def to_decibels(mag_spectrum: np.ndarray) -> np.ndarray:
    """convert a linear magnitude spectrum to dB, avoiding log(0)."""
    eps = 1e-12
    safe_mag = np.maximum(np.abs(mag_spectrum), eps)
    return 20.0 * np.log10(safe_mag)


def extract_fundamentals(
    spectrum: Sequence[float],
    sample_rate: float,
    min_freq: float = 80.0,
    max_freq: float = 2000.0,
    floor_db: float = -40.0,
    max_peaks: int = 6,
    spectrum_in_db: bool = True,
    min_peak_distance_hz: Optional[float] = None,
    interpolate: bool = False,
) -> List[Fundamental]:
    """
    Picks candidate fundamental frequencies out of one analyser spectrum.

    Steps:
      1. Bring the spectrum to dB so the floor is an absolute level.
      2. Compute the bin width from the bin count (N bins span 0..sr/2).
      3. Find strict local maxima above `floor_db`.
      4. Keep only peaks inside [min_freq, max_freq].
      5. Sort by descending magnitude and keep the top `max_peaks`.
      6. (Optional) refine each frequency by parabolic interpolation.

    An empty list means silence: nothing cleared the floor.
    """
    # 1) dB domain
    db_spectrum = np.asarray(spectrum, dtype=np.float64)
    if not spectrum_in_db:
        db_spectrum = to_decibels(db_spectrum)

    num_bins = db_spectrum.shape[0]
    if num_bins < 3 or sample_rate <= 0:
        return []

    # 2) Hz per bin
    freq_bin_width = sample_rate / (2.0 * num_bins)

    # 3) Peak picking; the distance filter is off unless asked for
    distance = None
    if min_peak_distance_hz is not None:
        distance = max(int(round(min_peak_distance_hz / freq_bin_width)), 1)
    peak_indices, properties = find_peaks(db_spectrum, height=floor_db, distance=distance)
    peak_heights = properties["peak_heights"]

    # 4) Musical range
    peak_freqs = peak_indices * freq_bin_width
    in_range = (peak_freqs >= min_freq) & (peak_freqs <= max_freq)
    peak_indices = peak_indices[in_range]
    peak_heights = peak_heights[in_range]

    if peak_indices.size == 0:
        logger.debug("no spectral peak above %.1f dB in %.0f-%.0f Hz", floor_db, min_freq, max_freq)
        return []

    # 5) Strongest first; stable so equal peaks keep bin order
    order = np.argsort(-peak_heights, kind="stable")[:max_peaks]
    selected = peak_indices[order]
    heights = peak_heights[order]

    # 6) Parabolic interpolation
    if interpolate:
        freqs = []
        for idx in selected:
            y1, y2, y3 = db_spectrum[idx - 1], db_spectrum[idx], db_spectrum[idx + 1]
            denom = y1 - 2 * y2 + y3
            delta = 0.5 * (y1 - y3) / denom if denom != 0 and np.isfinite(denom) else 0.0
            freqs.append((idx + delta) * freq_bin_width)
    else:
        freqs = (selected * freq_bin_width).tolist()

    return [Fundamental(frequency=float(f), magnitude=float(h)) for f, h in zip(freqs, heights)]
