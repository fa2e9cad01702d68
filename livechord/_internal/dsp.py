import base64
import numpy as np
from typing import Sequence


def float_to_pcm16(samples: Sequence[float]) -> np.ndarray:
    """
    quantize float audio to signed 16-bit PCM.

    samples are clipped to [-1, 1]; negative values scale by 0x8000 and
    positive ones by 0x7FFF, truncating toward zero.
    """
    clipped = np.clip(np.asarray(samples, dtype=np.float64), -1.0, 1.0)
    scaled = np.where(clipped < 0, clipped * 0x8000, clipped * 0x7FFF)
    return np.trunc(scaled).astype("<i2")


def encode_pcm16_base64(samples: Sequence[float]) -> str:
    """little-endian PCM16 bytes of `samples`, base64 encoded."""
    return base64.b64encode(float_to_pcm16(samples).tobytes()).decode("ascii")
