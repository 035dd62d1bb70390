"""Analysis settings with persistence."""

from __future__ import annotations
from dataclasses import dataclass, fields
import logging
from typing import Optional

from PySide6.QtCore import QSettings

from ..version import APP_NAME

logger = logging.getLogger(__name__)


@dataclass
class AnalysisSettings:
    """Analysis settings."""
    # Parsing fallbacks
    default_sampling_rate_hz: float = 1000.0
    default_unit: str = "V"

    # Spectrum
    window_function: str = "hanning"  # rectangular/hanning/hamming/blackman
    fft_scope: str = "view"  # view/full

    # Power quality (the harmonic table itself is fixed at orders 1..15)
    unbalance_warning_percent: float = 2.0
    voltage_thd_limit: float = 5.0
    current_thd_limit: float = 10.0

    # Display
    min_zoom_samples: int = 2  # Smallest window accepted by zoom
    waveform_display_points: int = 2000
    spectrum_display_points: int = 1500

    # AI summary
    summary_excerpt_rows: int = 10
    summary_language: str = "en"

    @staticmethod
    def _open(settings: Optional[QSettings]) -> QSettings:
        if settings is not None:
            return settings
        return QSettings(APP_NAME, APP_NAME)

    def save(self, settings: Optional[QSettings] = None) -> None:
        """Save settings to persistent storage.

        Uses QSettings which automatically handles:
        - Linux: ~/.config/ScopeAnalyzer/ScopeAnalyzer.conf
        - Windows: Registry HKEY_CURRENT_USER\\Software\\ScopeAnalyzer
        - macOS: ~/Library/Preferences/com.ScopeAnalyzer.plist

        Args:
            settings: Store to write to, the per-user store if omitted
        """
        try:
            store = self._open(settings)
            for f in fields(self):
                store.setValue(f.name, getattr(self, f.name))
            store.sync()
        except Exception as e:
            # Settings will use defaults next time
            logger.warning(f"Could not save settings: {e}")

    @classmethod
    def load(cls, settings: Optional[QSettings] = None) -> 'AnalysisSettings':
        """Load settings from persistent storage.

        Returns default settings if the store is missing or unreadable.
        """
        instance = cls()  # Start with defaults

        try:
            store = cls._open(settings)

            for f in fields(instance):
                if not store.contains(f.name):
                    continue
                stored = store.value(f.name)
                default_val = getattr(instance, f.name)

                # Type conversion based on default value type
                if isinstance(default_val, int):
                    value = int(stored)
                elif isinstance(default_val, float):
                    value = float(stored)
                else:
                    value = str(stored)
                setattr(instance, f.name, value)
        except Exception as e:
            logger.warning(f"Could not load settings, using defaults: {e}")
            return cls()

        return instance
