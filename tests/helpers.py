from __future__ import annotations

import numpy as np

from scopeanalyzer.core.waveform import Waveform


def make_waveform(sample_rate: float, columns: dict) -> Waveform:
    """Waveform with a synthesized time axis at ``sample_rate``."""
    n = len(next(iter(columns.values())))
    times = np.arange(n) / sample_rate
    return Waveform.from_columns(times, columns)


def sine(freq: float, sample_rate: float, n: int, amplitude: float = 1.0,
         phase_deg: float = 0.0) -> np.ndarray:
    t = np.arange(n) / sample_rate
    return amplitude * np.sin(2 * np.pi * freq * t + np.radians(phase_deg))
