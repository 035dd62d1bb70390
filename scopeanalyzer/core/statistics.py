"""Per-channel statistical summary of a waveform window."""

from __future__ import annotations
from dataclasses import dataclass, replace
import math
from typing import List, Mapping, Sequence, TYPE_CHECKING

if TYPE_CHECKING:
    from .waveform import Waveform


@dataclass
class ChannelStatistics:
    """Statistical summary of one channel."""
    channel_id: str
    min: float
    max: float
    average: float
    rms: float  # RMS about zero
    ac_rms: float  # RMS about the mean (standard deviation)
    dominant_frequency: float = 0.0  # Hz, filled in by the spectral pass

    @property
    def peak_to_peak(self) -> float:
        return self.max - self.min

    @classmethod
    def zero(cls, channel_id: str) -> 'ChannelStatistics':
        return cls(channel_id=channel_id, min=0.0, max=0.0, average=0.0,
                   rms=0.0, ac_rms=0.0)

    @classmethod
    def from_values(cls, channel_id: str, values: Sequence[float]) -> 'ChannelStatistics':
        """Calculate statistics with two sequential passes.

        Pass 1 accumulates sum, sum of squares, min and max. Pass 2 sums the
        squared deviations from the mean found in pass 1.
        """
        n = len(values)
        if n == 0:
            return cls.zero(channel_id)

        total = 0.0
        total_sq = 0.0
        v_min = math.inf
        v_max = -math.inf
        for v in values:
            total += v
            total_sq += v * v
            if v < v_min:
                v_min = v
            if v > v_max:
                v_max = v

        # Constant signal: report exact values instead of accumulated rounding
        if v_min == v_max:
            return cls(channel_id=channel_id, min=v_min, max=v_max,
                       average=v_min, rms=abs(v_min), ac_rms=0.0)

        average = total / n
        rms = math.sqrt(total_sq / n)

        dev_sq = 0.0
        for v in values:
            dev_sq += (v - average) ** 2
        ac_rms = math.sqrt(dev_sq / n)

        return cls(channel_id=channel_id, min=v_min, max=v_max,
                   average=average, rms=rms, ac_rms=ac_rms)


def calculate_statistics(waveform: 'Waveform',
                         channels: Sequence[str]) -> List[ChannelStatistics]:
    """One ChannelStatistics per channel, in channel order.

    Undefined channels read as zeros; an empty waveform gives zero-filled
    records. Dominant frequency stays 0 until
    :func:`apply_dominant_frequencies` fills it in.
    """
    return [
        ChannelStatistics.from_values(ch, waveform.column(ch).tolist())
        for ch in channels
    ]


def apply_dominant_frequencies(stats: Sequence[ChannelStatistics],
                               frequencies: Mapping[str, float]) -> List[ChannelStatistics]:
    """Copies of ``stats`` with dominant frequencies from a spectral pass."""
    return [
        replace(s, dominant_frequency=frequencies.get(s.channel_id, 0.0))
        for s in stats
    ]
