"""Radix-2 FFT for real-valued signals."""

from __future__ import annotations
from typing import Sequence, Tuple
import numpy as np


def next_power_of_two(n: int) -> int:
    """Smallest power of two >= n (1 for n <= 1)."""
    if n <= 1:
        return 1
    return 1 << (n - 1).bit_length()


def fft(data: Sequence[float]) -> Tuple[np.ndarray, np.ndarray]:
    """Forward FFT of a real sequence.

    The input is zero-padded at the tail to the next power of two, so the
    output length (and hence the frequency resolution) depends on the padded
    length, not on ``len(data)``. Uses the negative-exponent convention
    ``X[k] = sum x[n] * exp(-2j*pi*k*n/N)``.

    Args:
        data: Real-valued samples

    Returns:
        (real, imag) arrays of the padded length. For one sample or none the
        input is returned as the real part with a zero imaginary part.
    """
    x = np.array(data, dtype=float)
    n = x.size
    if n <= 1:
        return x, np.zeros(n)

    spectrum = np.fft.fft(x, n=next_power_of_two(n))
    return spectrum.real.copy(), spectrum.imag.copy()
