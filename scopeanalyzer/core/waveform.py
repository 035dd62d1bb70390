"""Waveform data structures."""

from __future__ import annotations
from dataclasses import dataclass, field, replace
from typing import Dict, Iterator, List, Mapping, Optional, Sequence, Tuple
import numpy as np


MATH_CHANNEL_PREFIX = "Math"


@dataclass
class WaveformSample:
    """Single sample: timestamp plus one value per channel."""
    time: float  # Seconds
    values: Dict[str, float]

    def get(self, channel: str) -> float:
        """Value of a channel, 0 when the channel is undefined."""
        return self.values.get(channel, 0.0)

    def __str__(self) -> str:
        channels = ", ".join(f"{ch}={v:.4f}" for ch, v in self.values.items())
        return f"WaveformSample(t={self.time:.6f}, {channels})"


@dataclass(frozen=True)
class SignalMetadata:
    """Description of one capture, fixed once parsing completes."""
    sampling_rate_hz: float
    y_unit: str
    channels: Tuple[str, ...]
    points: int
    time_base: str = "Unknown"
    sampling_rate: str = "Unknown"
    amplitude_scale: str = "Unknown"
    has_time_column: bool = False
    raw_header: Dict[str, str] = field(default_factory=dict)
    channel_units: Dict[str, str] = field(default_factory=dict)

    def unit_for(self, channel: str) -> str:
        """Vertical unit of a channel (math channels may carry their own)."""
        return self.channel_units.get(channel, self.y_unit)

    def with_points(self, points: int) -> 'SignalMetadata':
        """Copy describing a view of ``points`` samples."""
        return replace(self, points=points)

    def with_channel(self, channel: str, unit: Optional[str] = None) -> 'SignalMetadata':
        """Copy with ``channel`` appended to the channel list."""
        units = dict(self.channel_units)
        units[channel] = unit or self.y_unit
        return replace(self, channels=self.channels + (channel,), channel_units=units)


@dataclass(frozen=True, eq=False)
class Waveform:
    """Columnar waveform: a shared time axis and one array per channel.

    Channel order is the insertion order of ``data``. All arrays have the
    same length. The arrays are marked read-only on construction, so views
    handed out by ``column`` or shared between captures cannot be altered;
    slicing and channel additions return copies.
    """
    times: np.ndarray
    data: Dict[str, np.ndarray] = field(default_factory=dict)

    def __post_init__(self):
        self.times.setflags(write=False)
        for arr in self.data.values():
            arr.setflags(write=False)

    @classmethod
    def from_columns(cls, times: Sequence[float],
                     columns: Mapping[str, Sequence[float]]) -> 'Waveform':
        """Build a waveform from plain sequences."""
        t = np.array(times, dtype=float)
        data = {}
        for channel, values in columns.items():
            arr = np.array(values, dtype=float)
            if arr.shape != t.shape:
                raise ValueError(
                    f"Channel {channel} has {arr.size} samples, expected {t.size}"
                )
            data[channel] = arr
        return cls(times=t, data=data)

    @classmethod
    def empty(cls, channels: Sequence[str] = ()) -> 'Waveform':
        return cls(times=np.zeros(0), data={ch: np.zeros(0) for ch in channels})

    @property
    def channels(self) -> List[str]:
        return list(self.data.keys())

    def __len__(self) -> int:
        return int(self.times.size)

    def __getitem__(self, index: int) -> WaveformSample:
        return WaveformSample(
            time=float(self.times[index]),
            values={ch: float(arr[index]) for ch, arr in self.data.items()},
        )

    def __iter__(self) -> Iterator[WaveformSample]:
        for i in range(len(self)):
            yield self[i]

    def column(self, channel: str) -> np.ndarray:
        """Amplitudes of a channel; zeros for an undefined channel."""
        arr = self.data.get(channel)
        if arr is None:
            return np.zeros(len(self))
        return arr

    def slice(self, start: int, stop: int) -> 'Waveform':
        """Value copy of samples ``start`` (inclusive) to ``stop`` (exclusive)."""
        return Waveform(
            times=self.times[start:stop].copy(),
            data={ch: arr[start:stop].copy() for ch, arr in self.data.items()},
        )

    def with_channel(self, channel: str, values: Sequence[float]) -> 'Waveform':
        """Copy of this waveform with ``channel`` appended."""
        arr = np.asarray(values, dtype=float)
        if arr.shape != self.times.shape:
            raise ValueError(
                f"Channel {channel} has {arr.size} samples, expected {len(self)}"
            )
        data = {ch: a.copy() for ch, a in self.data.items()}
        data[channel] = np.array(arr)
        return Waveform(times=self.times.copy(), data=data)

    def index_range(self, start_time: float, end_time: float) -> Optional[Tuple[int, int]]:
        """Inclusive sample index range covering ``[start_time, end_time]``.

        Times outside the capture clamp to its ends. Returns None when the
        range is empty or inverted.
        """
        n = len(self)
        if n == 0 or start_time >= end_time:
            return None

        # First sample at or after each bound
        start_idx = int(np.searchsorted(self.times, start_time, side='left'))
        if start_idx >= n:
            start_idx = 0 if start_time <= self.times[0] else n - 1

        end_idx = int(np.searchsorted(self.times, end_time, side='left'))
        if end_idx >= n:
            end_idx = n - 1 if end_time >= self.times[-1] else 0

        start_idx = max(0, start_idx)
        end_idx = min(n - 1, end_idx)
        if start_idx >= end_idx:
            return None
        return start_idx, end_idx


def next_math_channel_name(channels: Sequence[str]) -> str:
    """Name for the next derived channel: Math1, Math2, ..."""
    count = sum(1 for ch in channels if ch.startswith(MATH_CHANNEL_PREFIX))
    return f"{MATH_CHANNEL_PREFIX}{count + 1}"


def add_math_channel(waveform: Waveform, metadata: SignalMetadata,
                     source: str, factor: float,
                     unit: str = "") -> Tuple[Waveform, SignalMetadata]:
    """Append a scaled copy of ``source`` as a new MathN channel.

    Args:
        waveform: Full waveform to extend
        metadata: Metadata of that waveform
        source: Channel to scale
        factor: Multiplier applied to every sample
        unit: Unit of the new channel; empty keeps the capture unit

    Returns:
        (waveform, metadata) copies carrying the new channel

    Raises:
        ValueError: If the source channel is unknown or factor is not finite
    """
    if source not in metadata.channels:
        raise ValueError(f"Unknown source channel: {source}")
    if not np.isfinite(factor):
        raise ValueError(f"Invalid math factor: {factor}")

    name = next_math_channel_name(metadata.channels)
    new_waveform = waveform.with_channel(name, waveform.column(source) * factor)
    new_metadata = metadata.with_channel(name, unit.strip() or metadata.y_unit)
    return new_waveform, new_metadata
