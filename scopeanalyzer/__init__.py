"""ScopeAnalyzer package."""

from .version import __version__, __version_info__, APP_NAME
from .core import (
    AnalysisSettings,
    ChannelStatistics,
    PowerQualityAnalyzer,
    SignalMetadata,
    Waveform,
    perform_fft_analysis,
)
from .export import OscilloscopeCSVParser, SignalSummarizer

__all__ = [
    "__version__",
    "__version_info__",
    "APP_NAME",
    "AnalysisSettings",
    "ChannelStatistics",
    "PowerQualityAnalyzer",
    "SignalMetadata",
    "Waveform",
    "perform_fft_analysis",
    "OscilloscopeCSVParser",
    "SignalSummarizer",
]
