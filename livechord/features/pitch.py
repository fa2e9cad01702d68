import math
from typing import Iterable, List, Optional

from ..config import NOTE_NAMES

PITCH_CLASSES = tuple(NOTE_NAMES)

A4_FREQ = 440.0
C0_FREQ = A4_FREQ * 2 ** -4.75
MIN_OCTAVE = 0
MAX_OCTAVE = 9


def frequency_to_pitch_class(frequency: float) -> Optional[str]:
    """
    map a frequency to its equal-tempered pitch class, or None when it falls
    outside octaves 0-9 (or is not a positive finite number).
    """
    if not math.isfinite(frequency) or frequency <= 0:
        return None

    # half-up rounding, so a frequency exactly between two semitones goes up
    h = math.floor(12 * math.log2(frequency / C0_FREQ) + 0.5)
    octave = h // 12
    if octave < MIN_OCTAVE or octave > MAX_OCTAVE:
        return None
    return PITCH_CLASSES[h % 12]


def pitch_classes_of(frequencies: Iterable[float]) -> List[str]:
    """deduplicated pitch classes of `frequencies`, in first-seen order."""
    seen: List[str] = []
    for freq in frequencies:
        name = frequency_to_pitch_class(freq)
        if name is not None and name not in seen:
            seen.append(name)
    return seen
