"""Point reduction for display consumers."""

from __future__ import annotations
import math
from typing import List, TYPE_CHECKING

if TYPE_CHECKING:
    from .spectrum import FrequencyBin
    from .waveform import Waveform


DEFAULT_WAVEFORM_POINTS = 2000
DEFAULT_SPECTRUM_POINTS = 1500


def downsample_waveform(waveform: 'Waveform',
                        target_count: int = DEFAULT_WAVEFORM_POINTS) -> 'Waveform':
    """Keep every ``ceil(n / target_count)``-th sample.

    Waveforms already within the target are returned unchanged.
    """
    n = len(waveform)
    if target_count <= 0 or n <= target_count:
        return waveform
    step = math.ceil(n / target_count)
    return type(waveform)(
        times=waveform.times[::step].copy(),
        data={ch: arr[::step].copy() for ch, arr in waveform.data.items()},
    )


def downsample_spectrum(bins: List['FrequencyBin'],
                        target_count: int = DEFAULT_SPECTRUM_POINTS) -> List['FrequencyBin']:
    """Max-pool spectrum bins so peaks survive decimation.

    Each block of ``floor(n / target_count)`` bins is replaced by the bin with
    the largest magnitude summed over channels.
    """
    n = len(bins)
    if target_count <= 0 or n <= target_count:
        return list(bins)
    step = n // target_count

    result = []
    for start in range(0, n, step):
        block = bins[start:start + step]
        best = max(block, key=lambda b: sum(b.magnitudes.values()))
        result.append(best)
    return result
