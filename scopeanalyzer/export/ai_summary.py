"""Prompt formatting for an external LLM signal summarizer.

The summarizer itself is an opaque callable that takes the prompt text and
returns prose. Its response is passed through untouched.
"""

from __future__ import annotations
import logging
from typing import Callable, Sequence, TYPE_CHECKING

if TYPE_CHECKING:
    from ..core.settings import AnalysisSettings
    from ..core.statistics import ChannelStatistics
    from ..core.waveform import SignalMetadata, Waveform

logger = logging.getLogger(__name__)


DEFAULT_EXCERPT_ROWS = 10
NO_ANALYSIS_TEXT = "No analysis generated."

LANGUAGE_INSTRUCTIONS = {
    'en': "Respond in English.",
    'zh': "Respond in Simplified Chinese.",
}


class SummarizerUnavailableError(RuntimeError):
    """The external summarizer could not be reached or failed."""


def format_data_excerpt(waveform: 'Waveform', rows: int = DEFAULT_EXCERPT_ROWS) -> str:
    """First ``rows`` samples as ``"0.00100s: ch0:1.23, ch1:4.56"`` lines."""
    lines = []
    for sample in waveform.slice(0, rows):
        channels = ", ".join(f"{ch}:{v:.2f}" for ch, v in sample.values.items())
        lines.append(f"{sample.time:.5f}s: {channels}")
    return "\n".join(lines)


def format_statistics(stats: Sequence['ChannelStatistics'],
                      metadata: 'SignalMetadata') -> str:
    """Per-channel statistics block of the prompt."""
    blocks = []
    for s in stats:
        unit = metadata.unit_for(s.channel_id)
        blocks.append(
            f"- Channel {s.channel_id} ({unit}):\n"
            f"  - Minimum Amplitude: {s.min:.2f}\n"
            f"  - Maximum Amplitude: {s.max:.2f}\n"
            f"  - Average (DC Offset): {s.average:.2f}\n"
            f"  - RMS Value: {s.rms:.2f}\n"
            f"  - AC RMS Value: {s.ac_rms:.2f}\n"
            f"  - Dominant Frequency Component: {s.dominant_frequency:.2f} Hz"
        )
    return "\n".join(blocks)


def build_summary_prompt(metadata: 'SignalMetadata',
                         stats: Sequence['ChannelStatistics'],
                         excerpt: str,
                         language: str = 'en') -> str:
    """Assemble the text sent to the summarizer.

    Args:
        metadata: Capture metadata
        stats: Statistics of the channels being summarized
        excerpt: Literal data excerpt (see :func:`format_data_excerpt`)
        language: Response language code ('en' or 'zh')

    Returns:
        Prompt text
    """
    language_line = LANGUAGE_INSTRUCTIONS.get(language, LANGUAGE_INSTRUCTIONS['en'])
    return (
        "You are an expert electrical engineer and signal processing specialist.\n"
        "Analyze the following oscilloscope data summary and provide insights "
        "on the signal characteristics.\n"
        "\n"
        "**Signal Metadata:**\n"
        f"- Sample Rate: {metadata.sampling_rate}\n"
        f"- Data Points: {metadata.points}\n"
        f"- Time Base: {metadata.time_base}\n"
        f"- Vertical Unit: {metadata.y_unit}\n"
        f"- Channels: {', '.join(metadata.channels)}\n"
        "\n"
        "**Calculated Statistics:**\n"
        f"{format_statistics(stats, metadata)}\n"
        "\n"
        "**Raw Data Snippet:**\n"
        f"{excerpt}\n"
        "\n"
        "**Instructions:**\n"
        "1. Describe the likely nature of this signal based on the stats "
        "(e.g., AC, DC, Noise, Sine wave, Pulse).\n"
        "2. Comment on the signal quality or any anomalies visible from the stats "
        "(e.g., significant offset, high peak-to-average ratio).\n"
        "3. Suggest what physical phenomenon this might represent given typical "
        "oscilloscope applications (e.g., current sensor, voltage ripple).\n"
        "4. Keep the response concise (under 200 words) and professional. "
        "Use Markdown formatting.\n"
        f"5. {language_line}\n"
    )


class SignalSummarizer:
    """Send a formatted capture summary to an external text generator."""

    def __init__(self, backend: Callable[[str], str],
                 excerpt_rows: int = DEFAULT_EXCERPT_ROWS,
                 language: str = 'en'):
        """Initialize summarizer.

        Args:
            backend: Callable taking the prompt and returning prose
            excerpt_rows: Number of samples quoted in the prompt
            language: Response language code
        """
        self.backend = backend
        self.excerpt_rows = excerpt_rows
        self.language = language

    @classmethod
    def from_settings(cls, backend: Callable[[str], str],
                      settings: 'AnalysisSettings') -> 'SignalSummarizer':
        return cls(backend, excerpt_rows=settings.summary_excerpt_rows,
                   language=settings.summary_language)

    def build_prompt(self, metadata: 'SignalMetadata',
                     stats: Sequence['ChannelStatistics'],
                     waveform: 'Waveform') -> str:
        excerpt = format_data_excerpt(waveform, self.excerpt_rows)
        return build_summary_prompt(metadata, stats, excerpt, self.language)

    def summarize(self, metadata: 'SignalMetadata',
                  stats: Sequence['ChannelStatistics'],
                  waveform: 'Waveform') -> str:
        """Ask the backend for a narrative summary.

        Raises:
            SummarizerUnavailableError: If the backend call fails
        """
        prompt = self.build_prompt(metadata, stats, waveform)
        try:
            response = self.backend(prompt)
        except Exception as e:
            logger.error(f"Summarizer request failed: {e}")
            raise SummarizerUnavailableError("Could not reach summarizer") from e
        return response or NO_ANALYSIS_TEXT
