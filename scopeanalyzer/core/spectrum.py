"""Frequency spectrum analysis of waveform channels.

Each channel is windowed, transformed with the radix-2 FFT and reduced to
single-sided amplitude magnitudes. All channels share one frequency axis
because they share the padded FFT length.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, List, Sequence, TYPE_CHECKING
import numpy as np

from .fft import fft, next_power_of_two
from .windowing import HANNING, apply_window

if TYPE_CHECKING:
    from .waveform import Waveform


SCOPE_VIEW = 'view'  # Spectrum of the displayed slice
SCOPE_FULL = 'full'  # Spectrum of the whole original capture
SCOPES = (SCOPE_VIEW, SCOPE_FULL)


@dataclass
class FrequencyBin:
    """Magnitude of every channel at one frequency."""
    frequency: float  # Hz
    magnitudes: Dict[str, float]

    def get(self, channel: str) -> float:
        return self.magnitudes.get(channel, 0.0)


@dataclass
class SpectralRunMetadata:
    """How a spectrum was computed."""
    window: str
    scope: str
    fft_length: int  # Padded length, power of two
    frequency_resolution: float  # Hz per bin (sample_rate / fft_length)


@dataclass
class SpectrumResult:
    """Result of a spectral pass over several channels."""
    bins: List[FrequencyBin]
    dominant_frequencies: Dict[str, float]
    fft_length: int
    frequency_resolution: float

    # Arrays for plotting
    frequencies: np.ndarray = field(default_factory=lambda: np.zeros(0))
    magnitudes: Dict[str, np.ndarray] = field(default_factory=dict)

    def run_metadata(self, window: str, scope: str) -> SpectralRunMetadata:
        return SpectralRunMetadata(
            window=window,
            scope=scope,
            fft_length=self.fft_length,
            frequency_resolution=self.frequency_resolution,
        )


def magnitude_spectrum(samples: Sequence[float], window_type: str) -> np.ndarray:
    """Single-sided magnitudes of one windowed signal.

    Keeps the first ``fft_length / 2`` bins, scaled by ``2 / fft_length``.
    """
    real, imag = fft(apply_window(samples, window_type))
    half = real.size // 2
    return np.sqrt(real[:half] ** 2 + imag[:half] ** 2) * (2.0 / real.size)


def dominant_bin(magnitudes: np.ndarray, first_bin: int = 1) -> int:
    """Index of the largest magnitude at or above ``first_bin``, 0 if none."""
    if magnitudes.size <= first_bin:
        return 0
    return int(np.argmax(magnitudes[first_bin:])) + first_bin


def perform_fft_analysis(waveform: 'Waveform', sample_rate_hz: float,
                         channels: Sequence[str],
                         window_type: str = HANNING) -> SpectrumResult:
    """Compute the spectrum of every channel in ``waveform``.

    The dominant frequency of each channel skips the DC bin. The engine works
    on whatever window it is given; choosing between the displayed slice and
    the full capture is up to the caller.

    Args:
        waveform: Samples to analyze
        sample_rate_hz: Declared sampling rate
        channels: Channels to include, in output order
        window_type: Window applied before the FFT

    Returns:
        SpectrumResult; empty when the waveform has no samples

    Raises:
        ValueError: If the sample rate is negative or the window unknown
    """
    if sample_rate_hz < 0:
        raise ValueError(f"Sample rate must not be negative: {sample_rate_hz}")

    n = len(waveform)
    if n == 0:
        return SpectrumResult(
            bins=[],
            dominant_frequencies={ch: 0.0 for ch in channels},
            fft_length=0,
            frequency_resolution=0.0,
        )

    fft_length = next_power_of_two(n)
    resolution = sample_rate_hz / fft_length

    magnitudes: Dict[str, np.ndarray] = {}
    dominant: Dict[str, float] = {}
    for ch in channels:
        mags = magnitude_spectrum(waveform.column(ch), window_type)
        magnitudes[ch] = mags
        peak = dominant_bin(mags)
        dominant[ch] = peak * sample_rate_hz / fft_length

    num_bins = fft_length // 2 if channels else 0
    frequencies = np.arange(num_bins) * resolution

    bins = [
        FrequencyBin(
            frequency=float(frequencies[i]),
            magnitudes={ch: float(magnitudes[ch][i]) for ch in channels},
        )
        for i in range(num_bins)
    ]

    return SpectrumResult(
        bins=bins,
        dominant_frequencies=dominant,
        fft_length=fft_length,
        frequency_resolution=resolution,
        frequencies=frequencies,
        magnitudes=magnitudes,
    )
