"""Import and summary export for ScopeAnalyzer."""

from .csv_importer import OscilloscopeCSVParser
from .ai_summary import SignalSummarizer, SummarizerUnavailableError, build_summary_prompt

__all__ = [
    "OscilloscopeCSVParser",
    "SignalSummarizer",
    "SummarizerUnavailableError",
    "build_summary_prompt",
]
