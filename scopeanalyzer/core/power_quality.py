"""Three-phase power quality analysis.

Provides per-phase signal analysis including:
- RMS value
- Fundamental frequency and phase angle relative to phase U
- Individual harmonic components (1st to 15th)
- Total Harmonic Distortion (THD)
- Phase unbalance across the three phases
"""

from __future__ import annotations
from dataclasses import dataclass, field
import math
from typing import Dict, List, Optional, TYPE_CHECKING
import numpy as np

from .fft import fft
from .windowing import HANNING, apply_window

if TYPE_CHECKING:
    from .settings import AnalysisSettings
    from .waveform import Waveform


PHASE_IDS = ('U', 'V', 'W')


@dataclass
class HarmonicInfo:
    """Single harmonic component information."""
    order: int  # Harmonic order (1=fundamental, 2=2nd harmonic, etc.)
    frequency: float  # Frequency in Hz
    magnitude: float  # Amplitude in original units
    percentage: float  # Percentage relative to fundamental (%)


@dataclass
class PhaseResult:
    """Analysis results for one phase."""
    phase_id: str
    rms: float
    frequency: float  # Fundamental frequency (Hz)
    angle_rad: float  # Raw FFT phase at the fundamental bin
    angle_deg: float  # Relative to phase U, in (-180, 180]
    thd: float  # Total Harmonic Distortion (%)
    harmonics: List[HarmonicInfo] = field(default_factory=list)


@dataclass
class PowerQualityResult:
    """Complete three-phase analysis results."""
    fundamental_freq: float  # Hz, taken from phase U
    phases: List[PhaseResult]  # Always U, V, W
    unbalance: float  # Max RMS deviation from the average (%)

    def phase(self, phase_id: str) -> PhaseResult:
        for p in self.phases:
            if p.phase_id == phase_id:
                return p
        raise KeyError(phase_id)


def normalize_angle(rad: float) -> float:
    """Convert radians to degrees wrapped into (-180, 180]."""
    deg = math.fmod(math.degrees(rad), 360.0)
    if deg > 180.0:
        deg -= 360.0
    if deg <= -180.0:
        deg += 360.0
    return deg


def calculate_unbalance(rms_values: List[float]) -> float:
    """Phase unbalance: max deviation from the average RMS, in percent.

    Returns 0 when the average RMS is 0.
    """
    if not rms_values:
        return 0.0
    avg_rms = sum(rms_values) / len(rms_values)
    if avg_rms <= 0:
        return 0.0
    max_dev = max(abs(r - avg_rms) for r in rms_values)
    return max_dev / avg_rms * 100.0


class PowerQualityAnalyzer:
    """Analyzer for three-phase currents or voltages.

    Two phases are measured; the third is derived assuming a balanced
    three-wire system (``U + V + W = 0``).
    """

    # Reference THD limits (%)
    VOLTAGE_THD_LIMIT = 5.0  # IEEE 519 voltage distortion
    MOTOR_CURRENT_THD_LIMIT = 10.0  # Motor current under load
    UNBALANCE_LIMIT = 2.0  # Unbalance above this is flagged

    MAX_HARMONIC_ORDER = 15  # Harmonic table is always orders 1..15
    SEARCH_RADIUS = 2  # Bins searched on each side of an ideal harmonic bin

    def __init__(self, voltage_thd_limit: float = VOLTAGE_THD_LIMIT,
                 current_thd_limit: float = MOTOR_CURRENT_THD_LIMIT,
                 unbalance_limit: float = UNBALANCE_LIMIT):
        """Initialize power quality analyzer.

        Args:
            voltage_thd_limit: THD limit for voltage signals (%)
            current_thd_limit: THD limit for current signals (%)
            unbalance_limit: Unbalance above this is flagged (%)
        """
        self.voltage_thd_limit = voltage_thd_limit
        self.current_thd_limit = current_thd_limit
        self.unbalance_limit = unbalance_limit

    @classmethod
    def from_settings(cls, settings: 'AnalysisSettings') -> 'PowerQualityAnalyzer':
        return cls(
            voltage_thd_limit=settings.voltage_thd_limit,
            current_thd_limit=settings.current_thd_limit,
            unbalance_limit=settings.unbalance_warning_percent,
        )

    def analyze(self, waveform: 'Waveform', sample_rate_hz: float,
                channel_u: Optional[str],
                channel_v: Optional[str]) -> Optional[PowerQualityResult]:
        """Analyze two measured phases and the derived third phase.

        Args:
            waveform: Samples to analyze
            sample_rate_hz: Declared sampling rate
            channel_u: Channel carrying phase U
            channel_v: Channel carrying phase V

        Returns:
            PowerQualityResult, or None if a phase channel is unset or the
            waveform is empty

        Raises:
            ValueError: If the sample rate is negative
        """
        if sample_rate_hz < 0:
            raise ValueError(f"Sample rate must not be negative: {sample_rate_hz}")
        if not channel_u or not channel_v or len(waveform) == 0:
            return None

        data_u = np.array(waveform.column(channel_u), dtype=float)
        data_v = np.array(waveform.column(channel_v), dtype=float)
        data_w = -data_u - data_v

        phase_u = self.analyze_phase('U', data_u, sample_rate_hz)
        phase_v = self.analyze_phase('V', data_v, sample_rate_hz)
        phase_w = self.analyze_phase('W', data_w, sample_rate_hz)
        phases = [phase_u, phase_v, phase_w]

        # Angles relative to phase U
        ref_angle = phase_u.angle_rad
        for p in phases:
            p.angle_deg = normalize_angle(p.angle_rad - ref_angle)

        return PowerQualityResult(
            fundamental_freq=phase_u.frequency,
            phases=phases,
            unbalance=calculate_unbalance([p.rms for p in phases]),
        )

    def analyze_phase(self, phase_id: str, data: np.ndarray,
                      sample_rate_hz: float) -> PhaseResult:
        """RMS, fundamental, harmonics and THD of a single phase.

        ``angle_deg`` is left at 0; it is only meaningful relative to
        another phase.
        """
        n = data.size
        if n == 0:
            return PhaseResult(phase_id=phase_id, rms=0.0, frequency=0.0,
                               angle_rad=0.0, angle_deg=0.0, thd=0.0,
                               harmonics=self._empty_harmonics(0.0))

        # RMS on the raw time-domain samples
        rms = math.sqrt(float(np.dot(data, data)) / n)

        # Hanning window for cleaner harmonics
        real, imag = fft(apply_window(data, HANNING))
        fft_length = real.size
        half = fft_length // 2
        magnitudes = np.sqrt(real[:half] ** 2 + imag[:half] ** 2) * (2.0 / fft_length)
        phases = np.arctan2(imag[:half], real[:half])

        # Fundamental: skip DC and the first bin (low frequency leakage)
        if half <= 2:
            return PhaseResult(phase_id=phase_id, rms=rms, frequency=0.0,
                               angle_rad=0.0, angle_deg=0.0, thd=0.0,
                               harmonics=self._empty_harmonics(0.0))
        peak_idx = int(np.argmax(magnitudes[2:])) + 2
        fundamental_mag = float(magnitudes[peak_idx])
        bin_hz = sample_rate_hz / fft_length
        fundamental_freq = peak_idx * bin_hz

        harmonics = self._extract_harmonics(magnitudes, peak_idx, fundamental_mag, bin_hz)

        if fundamental_mag > 0:
            harmonics_sum_sq = sum(h.magnitude ** 2 for h in harmonics if h.order > 1)
            thd = math.sqrt(harmonics_sum_sq) / fundamental_mag * 100.0
        else:
            thd = 0.0

        return PhaseResult(
            phase_id=phase_id,
            rms=rms,
            frequency=fundamental_freq,
            angle_rad=float(phases[peak_idx]),
            angle_deg=0.0,
            thd=thd,
            harmonics=harmonics,
        )

    def _extract_harmonics(self, magnitudes: np.ndarray, peak_idx: int,
                           fundamental_mag: float, bin_hz: float) -> List[HarmonicInfo]:
        """Harmonic table for orders 1..MAX_HARMONIC_ORDER.

        Each order searches ``SEARCH_RADIUS`` bins around its ideal bin for the
        local peak to tolerate leakage and frequency drift. Orders whose ideal
        bin lies beyond Nyquist are reported with zero magnitude.
        """
        half = magnitudes.size
        harmonics = []
        for order in range(1, self.MAX_HARMONIC_ORDER + 1):
            target = peak_idx * order
            best_idx = -1
            best_mag = -1.0
            for offset in range(-self.SEARCH_RADIUS, self.SEARCH_RADIUS + 1):
                idx = target + offset
                if 0 < idx < half and magnitudes[idx] > best_mag:
                    best_mag = float(magnitudes[idx])
                    best_idx = idx

            if best_idx < 0:
                harmonics.append(HarmonicInfo(order=order, frequency=target * bin_hz,
                                              magnitude=0.0, percentage=0.0))
                continue

            percentage = best_mag / fundamental_mag * 100.0 if fundamental_mag > 0 else 0.0
            harmonics.append(HarmonicInfo(
                order=order,
                frequency=best_idx * bin_hz,
                magnitude=best_mag,
                percentage=percentage,
            ))
        return harmonics

    def _empty_harmonics(self, fundamental_freq: float) -> List[HarmonicInfo]:
        return [
            HarmonicInfo(order=order, frequency=fundamental_freq * order,
                         magnitude=0.0, percentage=0.0)
            for order in range(1, self.MAX_HARMONIC_ORDER + 1)
        ]

    def get_thd_limits(self) -> Dict[str, float]:
        """Reference THD limits by signal kind (%)."""
        return {
            'voltage': self.voltage_thd_limit,
            'current': self.current_thd_limit,
        }

    def check_compliance(self, result: PowerQualityResult,
                         signal_kind: str = 'current') -> Dict[str, dict]:
        """Check each phase's THD against the reference limit.

        Args:
            result: Power quality results
            signal_kind: 'voltage' or 'current'

        Returns:
            Dictionary with compliance status for each phase
        """
        limits = self.get_thd_limits()
        if signal_kind not in limits:
            raise ValueError(f"Unknown signal kind: {signal_kind}")
        limit = limits[signal_kind]

        compliance = {}
        for p in result.phases:
            compliance[p.phase_id] = {
                'measured': p.thd,
                'limit': limit,
                'compliant': p.thd <= limit,
                'margin': limit - p.thd,
            }
        return compliance

    def is_unbalanced(self, result: PowerQualityResult) -> bool:
        return result.unbalance > self.unbalance_limit

    def get_quality_recommendations(self, result: PowerQualityResult,
                                    signal_kind: str = 'current') -> List[str]:
        """Get recommendations based on power quality results.

        Args:
            result: Power quality results
            signal_kind: 'voltage' or 'current'

        Returns:
            List of recommendation strings
        """
        recommendations = []
        limit = self.get_thd_limits().get(signal_kind, self.current_thd_limit)

        worst = max(result.phases, key=lambda p: p.thd)
        if worst.thd <= limit / 2:
            recommendations.append(f"✓ Low harmonic distortion (max THD {worst.thd:.2f}%)")
        elif worst.thd <= limit:
            recommendations.append(f"✓ Harmonic distortion within {limit:.0f}% limit "
                                   f"(phase {worst.phase_id}: {worst.thd:.2f}%)")
        else:
            recommendations.append(f"✗ Phase {worst.phase_id} THD {worst.thd:.2f}% "
                                   f"exceeds {limit:.0f}% limit")
            dominant = max(
                (h for h in worst.harmonics if h.order > 1),
                key=lambda h: h.magnitude,
                default=None,
            )
            if dominant is not None and dominant.magnitude > 0:
                recommendations.append(f"• Strongest harmonic: order {dominant.order} "
                                       f"({dominant.percentage:.1f}% of fundamental)")
            recommendations.append("• Consider harmonic filtering or a line reactor")

        if self.is_unbalanced(result):
            recommendations.append(f"⚠ Phase unbalance {result.unbalance:.2f}% "
                                   f"exceeds {self.unbalance_limit:.0f}%")
            recommendations.append("• Check load distribution and connections per phase")
        else:
            recommendations.append(f"✓ Phases balanced (unbalance {result.unbalance:.2f}%)")

        return recommendations
