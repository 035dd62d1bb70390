"""Window functions applied before every FFT."""

from __future__ import annotations
from typing import Sequence
import numpy as np


RECTANGULAR = 'rectangular'
HANNING = 'hanning'
HAMMING = 'hamming'
BLACKMAN = 'blackman'

WINDOW_TYPES = (RECTANGULAR, HANNING, HAMMING, BLACKMAN)

_NUMPY_WINDOWS = {
    HANNING: np.hanning,
    HAMMING: np.hamming,
    BLACKMAN: np.blackman,
}


def window_weights(n: int, window_type: str) -> np.ndarray:
    """Per-sample multipliers for an ``n`` sample window.

    Uses the symmetric form, i.e. sample ``i`` is weighted at ``i / (n - 1)``.
    A window of one sample (or none) has unit weight.

    Raises:
        ValueError: If ``window_type`` is not one of WINDOW_TYPES
    """
    if window_type not in WINDOW_TYPES:
        raise ValueError(f"Unknown window function: {window_type}")

    if window_type == RECTANGULAR or n <= 1:
        return np.ones(n)
    return _NUMPY_WINDOWS[window_type](n)


def apply_window(data: Sequence[float], window_type: str) -> np.ndarray:
    """Multiply ``data`` by the selected window.

    The rectangular window is the identity: values are returned unchanged.
    """
    samples = np.array(data, dtype=float)
    if window_type == RECTANGULAR:
        return samples
    return samples * window_weights(samples.size, window_type)
