"""CSV import for oscilloscope exports with auto-detection of format."""

from __future__ import annotations
import logging
from pathlib import Path
import re
from typing import Dict, List, Optional, Tuple

import numpy as np

from ..core.waveform import SignalMetadata, Waveform

logger = logging.getLogger(__name__)


# Leading number of a field, like JavaScript parseFloat ("1.5V" -> 1.5)
_NUMBER_PREFIX = re.compile(r'^\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)')
_DATA_LINE_START = re.compile(r'^[+-]?\.?\d')


def parse_number(text: str) -> Optional[float]:
    """Parse the numeric prefix of a field, None if it has none."""
    match = _NUMBER_PREFIX.match(text)
    if not match:
        return None
    return float(match.group(1))


class OscilloscopeCSVParser:
    """Import waveform data from loosely structured vendor CSV exports.

    Each heuristic (unit, sampling rate, header pairs, data start, time
    column) is a separate rule over the same header text. Parsing never
    fails on malformed content: unknown values fall back to defaults and an
    unparseable body gives an empty waveform.
    """

    HEADER_SCAN_LINES = 50
    TIME_CHECK_ROW = 20  # Third row checked by the time column heuristic

    DEFAULT_SAMPLING_RATE_HZ = 1000.0
    DEFAULT_UNIT = "V"

    # "Data Uint:mv", "Vert Unit:A", "Unit = V" (Uint is a common vendor typo)
    UNIT_PATTERN = re.compile(
        r'(?:Data|Vert)?\s*(?:Unit|Uint)\s*[:=]\s*([a-zA-Z\u03bc\u00b5\u03a9\u2126]+)', re.IGNORECASE
    )

    # "Sampling Rate:1kSa/s", "Sampling Rate = 2.5 MSa/s"
    RATE_PATTERN = re.compile(
        r'Sampling\s*Rate\s*[:=]\s*(\d+(?:\.\d*)?|\.\d+)\s*([kM]?Sa/s)', re.IGNORECASE
    )
    RATE_LABEL = re.compile(r'Sampling\s*Rate\s*[:=]', re.IGNORECASE)
    # Bare token such as "Acquisition 10kSa/s"; never the tail of a longer number
    BARE_RATE_PATTERN = re.compile(
        r'(?<![\w.,+-])(\d+(?:\.\d*)?|\.\d+)\s*([kM]?Sa/s)', re.IGNORECASE
    )
    RATE_SCALES = {'sa/s': 1.0, 'ksa/s': 1e3, 'msa/s': 1e6}

    KEY_VALUE_SPLIT = re.compile(r'[:=]')
    TRAILING_KEY = re.compile(r'([a-zA-Z\s]+)$')

    # Header columns recognized as the time axis
    TIME_COLUMN_NAMES = ('s', 'second')

    @staticmethod
    def format_rate(rate_hz: float) -> str:
        """Display string for a sampling rate without a header entry."""
        if float(rate_hz).is_integer():
            return f"{int(rate_hz)} Hz"
        return f"{rate_hz} Hz"

    @staticmethod
    def split_lines(text: str) -> List[str]:
        """Split on LF or CRLF."""
        return re.split(r'\r?\n', text)

    @classmethod
    def header_region(cls, lines: List[str]) -> List[int]:
        """Indices of the first non-empty lines scanned for metadata."""
        region = []
        for i, line in enumerate(lines):
            if line.strip():
                region.append(i)
                if len(region) >= cls.HEADER_SCAN_LINES:
                    break
        return region

    @classmethod
    def extract_unit(cls, header_text: str) -> Optional[str]:
        """Vertical unit declared in the header, if any."""
        match = cls.UNIT_PATTERN.search(header_text)
        if match and match.group(1):
            return match.group(1).strip()
        return None

    @classmethod
    def extract_sampling_rate(cls, header_text: str) -> Optional[float]:
        """Sampling rate in Hz declared in the header, if any.

        A labelled "Sampling Rate" entry is preferred over a bare
        ``<number>Sa/s`` token elsewhere in the header. A label whose value
        does not parse gives None.
        """
        match = cls.RATE_PATTERN.search(header_text)
        if not match:
            if cls.RATE_LABEL.search(header_text):
                return None
            match = cls.BARE_RATE_PATTERN.search(header_text)
        if not match:
            return None
        try:
            value = float(match.group(1))
        except ValueError:
            return None
        scale = cls.RATE_SCALES.get(match.group(2).lower(), 1.0)
        rate = value * scale
        if rate <= 0:
            return None
        return rate

    @classmethod
    def split_key_value(cls, line: str) -> Optional[Tuple[str, str]]:
        """Split a ``key:value`` or ``key=value`` header line.

        Keys glued to a previous value ("2.00AData Uint") keep only their
        trailing alphabetic run.
        """
        parts = cls.KEY_VALUE_SPLIT.split(line)
        if len(parts) < 2:
            return None
        key = parts[0].strip()
        key_match = cls.TRAILING_KEY.search(key)
        if key_match:
            key = key_match.group(1).strip()
        value = ':'.join(parts[1:]).strip()
        if not key or not value:
            return None
        return key, value

    @staticmethod
    def is_column_header(line: str) -> bool:
        return line.lower().startswith('time') and ',' in line

    @staticmethod
    def is_data_line(line: str) -> bool:
        """Line starting with a (possibly signed) number and holding a comma."""
        return ',' in line and _DATA_LINE_START.match(line) is not None

    @classmethod
    def scan_header(cls, lines: List[str],
                    region: List[int]) -> Tuple[Dict[str, str], Optional[int], Optional[int]]:
        """Collect header pairs and locate the data start.

        Returns:
            (raw_header, data_start, header_line) where the indices are None
            when not found in the header region
        """
        raw_header: Dict[str, str] = {}
        data_start: Optional[int] = None
        header_line: Optional[int] = None

        for i in region:
            line = lines[i].strip()

            if cls.is_data_line(line):
                if data_start is None:
                    data_start = i
                continue

            # A column header row wins over a bare data line
            if cls.is_column_header(line):
                if header_line is None:
                    header_line = i
                    data_start = i + 1
                continue

            if data_start is not None and i >= data_start:
                continue

            pair = cls.split_key_value(line)
            if pair:
                raw_header[pair[0]] = pair[1]

        return raw_header, data_start, header_line

    @classmethod
    def find_data_start(cls, lines: List[str]) -> Tuple[Optional[int], Optional[int]]:
        """Fallback: first line anywhere whose first field is numeric.

        Returns:
            (data_start, header_line); the previous line is taken as the
            column header when it mentions "time"
        """
        for i, line in enumerate(lines):
            if ',' in line and parse_number(line.split(',')[0]) is not None:
                header_line = None
                if i > 0 and 'time' in lines[i - 1].lower():
                    header_line = i - 1
                return i, header_line
        return None, None

    @classmethod
    def time_column_from_header(cls, header: str) -> Optional[int]:
        """Index of the time column in a column header row."""
        columns = [c.strip().lower() for c in header.split(',')]
        for idx, col in enumerate(columns):
            if 'time' in col or col in cls.TIME_COLUMN_NAMES:
                return idx
        return None

    @classmethod
    def infer_time_column(cls, rows: List[str]) -> bool:
        """Guess whether column 0 of header-less data is a time ramp.

        Compares the first field of rows 0, 1 and ~20 (clamped to the last
        row); all must be strictly increasing. This can misfire on a noisy
        or monotonic first channel.
        """
        if len(rows) < 2:
            return False

        first_fields = rows[0].split(',')
        if sum(1 for p in first_fields if parse_number(p) is not None) < 2:
            return False  # A time column needs at least one value column

        check_idx = min(cls.TIME_CHECK_ROW, len(rows) - 1)
        first = parse_number(first_fields[0])
        second = parse_number(rows[1].split(',')[0])
        later = parse_number(rows[check_idx].split(',')[0])
        if first is None or second is None or later is None:
            return False

        if not second > first:
            return False
        return check_idx == 1 or later > second

    @staticmethod
    def numeric_fields(line: str) -> List[float]:
        """Numeric fields of a row; non-numeric fields are dropped."""
        values = []
        for part in line.split(','):
            value = parse_number(part)
            if value is not None:
                values.append(value)
        return values

    @classmethod
    def parse_text(cls, text: str,
                   default_sampling_rate_hz: Optional[float] = None,
                   default_unit: Optional[str] = None) -> Tuple[Waveform, SignalMetadata]:
        """Parse an oscilloscope CSV export.

        Args:
            text: Full file content
            default_sampling_rate_hz: Rate used when the header declares none
            default_unit: Unit used when the header declares none

        Returns:
            (waveform, metadata); an empty waveform when no data rows exist
        """
        lines = cls.split_lines(text)
        region = cls.header_region(lines)
        header_text = '\n'.join(lines[i] for i in region)

        unit = cls.extract_unit(header_text)
        declared_rate = cls.extract_sampling_rate(header_text)
        fallback_rate = default_sampling_rate_hz or cls.DEFAULT_SAMPLING_RATE_HZ
        y_unit = unit if unit else (default_unit or cls.DEFAULT_UNIT)
        sampling_rate_hz = declared_rate if declared_rate else fallback_rate

        raw_header, data_start, header_line = cls.scan_header(lines, region)
        if data_start is None:
            data_start, header_line = cls.find_data_start(lines)

        rows: List[str] = []
        if data_start is not None:
            rows = [line.strip() for line in lines[data_start:] if line.strip()]

        # Time column: header row first, then the ramp heuristic
        time_col: Optional[int] = None
        time_values_trusted = False
        if header_line is not None:
            time_col = cls.time_column_from_header(lines[header_line])
            time_values_trusted = time_col is not None
        if time_col is None and cls.infer_time_column(rows):
            time_col = 0
            # A declared sampling rate is authoritative over an inferred ramp
            time_values_trusted = declared_rate is None

        times: List[float] = []
        samples: List[List[float]] = []
        channel_count = 0
        for line in rows:
            numeric = cls.numeric_fields(line)
            if not numeric:
                continue

            has_time = time_col is not None and len(numeric) > time_col
            if has_time and time_values_trusted:
                t = numeric[time_col]
            else:
                t = len(times) / sampling_rate_hz

            if has_time:
                values = numeric[:time_col] + numeric[time_col + 1:]
            else:
                values = numeric

            channel_count = max(channel_count, len(values))
            times.append(t)
            samples.append(values)

        channels = [f"ch{i}" for i in range(channel_count)]
        matrix = np.zeros((len(samples), channel_count))
        for row_idx, values in enumerate(samples):
            matrix[row_idx, :len(values)] = values

        waveform = Waveform(
            times=np.asarray(times, dtype=float),
            data={ch: matrix[:, i].copy() for i, ch in enumerate(channels)},
        )

        if not samples:
            logger.warning("No numeric data rows found in CSV content")
        logger.debug(
            f"Parsed {len(samples)} samples, {channel_count} channels, "
            f"{sampling_rate_hz} Hz, unit {y_unit}, time column {time_col}"
        )

        metadata = SignalMetadata(
            sampling_rate_hz=sampling_rate_hz,
            y_unit=y_unit,
            channels=tuple(channels),
            points=len(samples),
            time_base=raw_header.get('Time Base', 'Unknown'),
            sampling_rate=raw_header.get('Sampling Rate', cls.format_rate(sampling_rate_hz)),
            amplitude_scale=raw_header.get('Amplitude', 'Unknown'),
            has_time_column=time_col is not None,
            raw_header=raw_header,
            channel_units={ch: y_unit for ch in channels},
        )
        return waveform, metadata

    @classmethod
    def import_csv(cls, filepath: Path,
                   default_sampling_rate_hz: Optional[float] = None,
                   default_unit: Optional[str] = None) -> Tuple[Waveform, SignalMetadata]:
        """Import a waveform from a CSV file.

        Args:
            filepath: Path to the CSV file
            default_sampling_rate_hz: Rate used when the header declares none
            default_unit: Unit used when the header declares none

        Returns:
            (waveform, metadata)

        Raises:
            FileNotFoundError: If file doesn't exist
        """
        filepath = Path(filepath)
        if not filepath.exists():
            raise FileNotFoundError(f"File not found: {filepath}")

        text = filepath.read_text(encoding='utf-8', errors='replace')
        return cls.parse_text(text, default_sampling_rate_hz, default_unit)
