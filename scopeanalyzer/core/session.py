"""Recomputation of the analysis view from the original capture.

Every change (load, zoom, reset, window or scope change, math channel)
recomputes statistics and spectrum from scratch. Nothing here mutates the
capture; each function returns new objects.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Tuple, Union

from ..export.csv_importer import OscilloscopeCSVParser
from .decimation import downsample_spectrum, downsample_waveform
from .power_quality import PowerQualityAnalyzer, PowerQualityResult
from .settings import AnalysisSettings
from .spectrum import (
    SCOPE_FULL,
    SCOPES,
    SCOPE_VIEW,
    FrequencyBin,
    SpectralRunMetadata,
    SpectrumResult,
    perform_fft_analysis,
)
from .statistics import ChannelStatistics, apply_dominant_frequencies, calculate_statistics
from .waveform import SignalMetadata, Waveform, add_math_channel as _add_math_channel
from .windowing import HANNING, WINDOW_TYPES


@dataclass(frozen=True)
class SpectrumConfig:
    """Spectral pass options chosen by the user."""
    scope: str = SCOPE_VIEW
    window: str = HANNING

    def __post_init__(self):
        if self.scope not in SCOPES:
            raise ValueError(f"Unknown FFT scope: {self.scope}")
        if self.window not in WINDOW_TYPES:
            raise ValueError(f"Unknown window function: {self.window}")

    @classmethod
    def from_settings(cls, settings: 'AnalysisSettings') -> 'SpectrumConfig':
        return cls(scope=settings.fft_scope, window=settings.window_function)


@dataclass
class Capture:
    """Original parsed capture, the source of every view."""
    waveform: Waveform
    metadata: SignalMetadata
    stats: List[ChannelStatistics] = field(default_factory=list)


@dataclass
class AnalysisView:
    """What is currently displayed."""
    waveform: Waveform
    metadata: SignalMetadata  # points reflects the view
    stats: List[ChannelStatistics]
    spectrum: SpectrumResult
    spectral_run: SpectralRunMetadata
    zoomed: bool = False


def _capture_from(waveform: Waveform, metadata: SignalMetadata) -> Capture:
    return Capture(
        waveform=waveform,
        metadata=metadata,
        stats=calculate_statistics(waveform, metadata.channels),
    )


def load_capture(text: str, settings: Optional[AnalysisSettings] = None) -> Capture:
    """Parse CSV text into a capture with statistics.

    ``settings`` supplies the sampling rate and unit used when the header
    declares none.
    """
    settings = settings or AnalysisSettings()
    waveform, metadata = OscilloscopeCSVParser.parse_text(
        text, settings.default_sampling_rate_hz, settings.default_unit)
    return _capture_from(waveform, metadata)


def load_capture_file(filepath: Path,
                      settings: Optional[AnalysisSettings] = None) -> Capture:
    settings = settings or AnalysisSettings()
    waveform, metadata = OscilloscopeCSVParser.import_csv(
        filepath, settings.default_sampling_rate_hz, settings.default_unit)
    return _capture_from(waveform, metadata)


def build_view(capture: Capture, waveform: Waveform,
               config: SpectrumConfig, zoomed: bool = False,
               stats: Optional[List[ChannelStatistics]] = None) -> AnalysisView:
    """Assemble the view of ``waveform`` under ``config``.

    The spectrum source is ``waveform`` for the "view" scope and the whole
    capture for the "full" scope. Dominant frequencies from that spectrum are
    copied into the statistics.
    """
    metadata = capture.metadata
    if stats is None:
        stats = calculate_statistics(waveform, metadata.channels)

    source = capture.waveform if config.scope == SCOPE_FULL else waveform
    spectrum = perform_fft_analysis(source, metadata.sampling_rate_hz,
                                    metadata.channels, config.window)

    return AnalysisView(
        waveform=waveform,
        metadata=metadata.with_points(len(waveform)),
        stats=apply_dominant_frequencies(stats, spectrum.dominant_frequencies),
        spectrum=spectrum,
        spectral_run=spectrum.run_metadata(config.window, config.scope),
        zoomed=zoomed,
    )


def full_view(capture: Capture, config: SpectrumConfig) -> AnalysisView:
    """View of the whole capture (initial load and zoom reset)."""
    return build_view(capture, capture.waveform, config, zoomed=False,
                      stats=capture.stats)


reset_zoom = full_view


def zoom(capture: Capture, start_time: float, end_time: float,
         config: SpectrumConfig,
         settings: Optional[AnalysisSettings] = None) -> Optional[AnalysisView]:
    """View of the samples between two times.

    Returns None when the range is empty or inverted, or when it holds fewer
    than ``settings.min_zoom_samples`` samples; the caller keeps its current
    view.
    """
    min_samples = (settings or AnalysisSettings()).min_zoom_samples
    index_range = capture.waveform.index_range(start_time, end_time)
    if index_range is None:
        return None

    start_idx, end_idx = index_range
    sliced = capture.waveform.slice(start_idx, end_idx + 1)
    if len(sliced) < min_samples:
        return None
    return build_view(capture, sliced, config, zoomed=True)


def change_config(capture: Capture, view: AnalysisView,
                  config: SpectrumConfig) -> AnalysisView:
    """Recompute the current view after a window or scope change."""
    return build_view(capture, view.waveform, config, zoomed=view.zoomed,
                      stats=view.stats)


def add_math_channel(capture: Capture, source: str, factor: float,
                     unit: str = "") -> Capture:
    """New capture with ``source * factor`` appended as the next MathN channel."""
    waveform, metadata = _add_math_channel(capture.waveform, capture.metadata,
                                           source, factor, unit)
    return _capture_from(waveform, metadata)


def power_quality(source: Union[Capture, AnalysisView], channel_u: Optional[str],
                  channel_v: Optional[str],
                  analyzer: Optional[PowerQualityAnalyzer] = None) -> Optional[PowerQualityResult]:
    """Run the power quality analyzer over a capture or the current view."""
    analyzer = analyzer or PowerQualityAnalyzer()
    return analyzer.analyze(source.waveform, source.metadata.sampling_rate_hz,
                            channel_u, channel_v)


def display_data(view: AnalysisView,
                 settings: Optional[AnalysisSettings] = None) -> Tuple[Waveform, List[FrequencyBin]]:
    """Decimated waveform and spectrum bins of a view, sized for plotting."""
    settings = settings or AnalysisSettings()
    return (
        downsample_waveform(view.waveform, settings.waveform_display_points),
        downsample_spectrum(view.spectrum.bins, settings.spectrum_display_points),
    )
