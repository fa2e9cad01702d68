import math
import numpy as np
from numba import stencil, guvectorize


@stencil
def _stencil_strict_peak(x):
    return (x[0] > x[-1]) & (x[0] > x[1])


@guvectorize(
    [
        "void(float32[:], bool_[:])",
        "void(float64[:], bool_[:])",
    ],
    "(n)->(n)",
    cache=True,
    nopython=True,
)
def _gufunc_strict_peak(x, y):
    y[:] = _stencil_strict_peak(x)


def find_strict_maxima(x: np.ndarray) -> np.ndarray:
    """
    marks the interior points that are strictly greater than both neighbors,
    accelerated with numba.

    unlike a plateau-aware maximum, a flat top never counts as a peak. the
    first and last points are never peaks.
    """
    is_peak = np.zeros(x.shape[0], dtype=bool)
    if x.shape[0] < 3:
        return is_peak
    _gufunc_strict_peak(x, is_peak)
    is_peak[0] = False
    is_peak[-1] = False
    return is_peak


def _filter_by_distance(indices, priorities, min_separation):
    """
    removes peaks that are too close to higher-priority peaks.

    it walks through peaks from highest to lowest priority, invalidating
    any neighbors that fall within the `min_separation` window.
    """
    num_indices = indices.shape[0]
    separation = math.ceil(min_separation)
    is_valid = np.ones(num_indices, dtype=bool)

    priority_order = np.argsort(priorities, kind="stable")

    for i in range(num_indices - 1, -1, -1):
        j = priority_order[i]
        if not is_valid[j]:
            continue

        k = j - 1
        while k >= 0 and indices[j] - indices[k] < separation:
            is_valid[k] = False
            k -= 1

        k = j + 1
        while k < num_indices and indices[k] - indices[j] < separation:
            is_valid[k] = False
            k += 1
    return is_valid


def _as_float_array(arr):
    """validates and prepares the main signal array."""
    prepared_arr = np.asarray(arr, order="C", dtype=np.float64)
    if prepared_arr.ndim != 1:
        raise ValueError("Input signal must be a 1-D array.")
    return prepared_arr


def find_peaks(x, height=None, distance=None):
    """
    finds strict local maxima in a 1D signal.

    Args:
        x: the signal.
        height: peaks must be strictly above this value.
        distance: minimum separation in samples; lower peaks inside the window
            of a higher one are discarded.

    Returns:
        (peak_indices, properties) where properties holds `peak_heights`.
    """
    signal_array = _as_float_array(x)
    if distance is not None and distance < 1:
        raise ValueError("`distance` must be 1 or greater.")

    # non-finite bins (e.g. -inf from a silent analyser) never qualify
    finite = np.isfinite(signal_array)
    peak_mask = find_strict_maxima(np.where(finite, signal_array, -np.inf)) & finite
    peak_indices = np.flatnonzero(peak_mask).astype(np.intp)
    amplitudes = signal_array[peak_indices]

    if height is not None:
        keep = amplitudes > height
        peak_indices = peak_indices[keep]
        amplitudes = amplitudes[keep]

    if distance is not None and peak_indices.size > 1:
        keep = _filter_by_distance(peak_indices, amplitudes, distance)
        peak_indices = peak_indices[keep]
        amplitudes = amplitudes[keep]

    return peak_indices, {"peak_heights": amplitudes}
