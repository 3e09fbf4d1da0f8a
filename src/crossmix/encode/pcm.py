"""
Float -> signed 16-bit PCM conversion.

Asymmetric scaling: negative samples scale by 32768, non-negative by 32767,
after clamping to [-1, 1]. Fractions truncate toward zero; NaN becomes 0.
"""

import numpy as np

INT16_NEG_SCALE = 32768.0
INT16_POS_SCALE = 32767.0


def float_to_int16(samples: np.ndarray) -> np.ndarray:
    """
    Convert float samples in [-1, 1] to int16.

    Args:
        samples: Float array of any shape

    Returns:
        numpy.ndarray: int16 array of the same shape
    """
    x = np.nan_to_num(np.asarray(samples, dtype=np.float64), nan=0.0)
    x = np.clip(x, -1.0, 1.0)
    scaled = np.where(x < 0, x * INT16_NEG_SCALE, x * INT16_POS_SCALE)
    return scaled.astype(np.int16)


def interleave(left: np.ndarray, right: np.ndarray) -> np.ndarray:
    """Interleave two equally long int16 channels as L R L R ..."""
    out = np.empty(left.size + right.size, dtype=np.int16)
    out[0::2] = left
    out[1::2] = right
    return out
