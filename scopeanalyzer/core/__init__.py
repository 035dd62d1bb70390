"""Core data structures and signal analysis for ScopeAnalyzer."""

from .waveform import SignalMetadata, Waveform, WaveformSample, add_math_channel
from .windowing import WINDOW_TYPES, apply_window, window_weights
from .fft import fft, next_power_of_two
from .statistics import ChannelStatistics, apply_dominant_frequencies, calculate_statistics
from .spectrum import (
    FrequencyBin,
    SpectralRunMetadata,
    SpectrumResult,
    perform_fft_analysis,
)
from .power_quality import (
    HarmonicInfo,
    PhaseResult,
    PowerQualityAnalyzer,
    PowerQualityResult,
)
from .decimation import downsample_spectrum, downsample_waveform
from .settings import AnalysisSettings
from .session import AnalysisView, Capture, SpectrumConfig

__all__ = [
    'SignalMetadata',
    'Waveform',
    'WaveformSample',
    'add_math_channel',
    'WINDOW_TYPES',
    'apply_window',
    'window_weights',
    'fft',
    'next_power_of_two',
    'ChannelStatistics',
    'apply_dominant_frequencies',
    'calculate_statistics',
    'FrequencyBin',
    'SpectralRunMetadata',
    'SpectrumResult',
    'perform_fft_analysis',
    'HarmonicInfo',
    'PhaseResult',
    'PowerQualityAnalyzer',
    'PowerQualityResult',
    'downsample_spectrum',
    'downsample_waveform',
    'AnalysisSettings',
    'AnalysisView',
    'Capture',
    'SpectrumConfig',
]
