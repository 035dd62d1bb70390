from __future__ import annotations

import math

import numpy as np
import pytest

from scopeanalyzer.core.session import (
    SpectrumConfig,
    add_math_channel,
    change_config,
    display_data,
    full_view,
    load_capture,
    load_capture_file,
    power_quality,
    reset_zoom,
    zoom,
)
from scopeanalyzer.core.settings import AnalysisSettings


def _capture_text(n: int = 1000, rate: str = "1kSa/s") -> str:
    lines = [f"Sampling Rate:{rate}", "Vert Unit:A", "Time Base:1ms"]
    for i in range(n):
        t = i / 1000.0
        lines.append(f"{math.cos(2 * math.pi * 50 * t):.6f},"
                     f"{math.cos(2 * math.pi * 50 * t - 2 * math.pi / 3):.6f}")
    return "\n".join(lines)


@pytest.fixture
def capture():
    return load_capture(_capture_text())


def test_load_computes_statistics(capture) -> None:
    assert capture.metadata.channels == ("ch0", "ch1")
    assert capture.metadata.y_unit == "A"
    assert len(capture.waveform) == 1000
    assert [s.channel_id for s in capture.stats] == ["ch0", "ch1"]
    assert capture.stats[0].rms == pytest.approx(1 / math.sqrt(2), rel=1e-3)


def test_full_view(capture) -> None:
    view = full_view(capture, SpectrumConfig())

    assert not view.zoomed
    assert view.metadata.points == 1000
    assert view.spectrum.fft_length == 1024
    assert view.spectral_run.window == "hanning"
    assert view.spectral_run.scope == "view"
    for s in view.stats:
        assert s.dominant_frequency == pytest.approx(50.0, abs=1000 / 1024)
    # The capture statistics are not touched
    assert all(s.dominant_frequency == 0.0 for s in capture.stats)


def test_full_view_cannot_alter_capture(capture) -> None:
    view = full_view(capture, SpectrumConfig())
    first = float(capture.waveform.column("ch0")[0])

    with pytest.raises(ValueError):
        view.waveform.column("ch0")[0] = 42.0
    assert capture.waveform.column("ch0")[0] == first


def test_zoom_selects_inclusive_range() -> None:
    text = "\n".join(["Sampling Rate:1kSa/s"] + [f"{(-1) ** i}" + ",0" for i in range(10)])
    capture = load_capture(text)

    view = zoom(capture, 0.002, 0.005, SpectrumConfig())
    assert view is not None
    assert view.zoomed
    assert len(view.waveform) == 4
    assert view.metadata.points == 4
    np.testing.assert_allclose(view.waveform.times, [0.002, 0.003, 0.004, 0.005])


@pytest.mark.parametrize("start, end", [
    (0.005, 0.002),  # inverted
    (0.004, 0.004),  # empty
    (0.0021, 0.0025),  # no sample pair inside
])
def test_zoom_rejects_degenerate_ranges(capture, start, end) -> None:
    assert zoom(capture, start, end, SpectrumConfig()) is None


def test_zoom_clamps_to_capture(capture) -> None:
    view = zoom(capture, -1.0, 10.0, SpectrumConfig())
    assert len(view.waveform) == len(capture.waveform)


def test_zoom_minimum_samples(capture) -> None:
    strict = AnalysisSettings(min_zoom_samples=5)
    assert zoom(capture, 0.0, 0.002, SpectrumConfig(), strict) is None
    assert len(zoom(capture, 0.0, 0.002, SpectrumConfig()).waveform) == 3


def test_zoom_recomputes_statistics(capture) -> None:
    view = zoom(capture, 0.0, 0.099, SpectrumConfig())
    assert len(view.waveform) == 100
    expected_max = float(np.max(capture.waveform.column("ch0")[:100]))
    assert view.stats[0].max == pytest.approx(expected_max)
    assert view.spectrum.fft_length == 128


def test_full_scope_uses_whole_capture(capture) -> None:
    config = SpectrumConfig(scope="full")
    view = zoom(capture, 0.0, 0.099, config)

    assert len(view.waveform) == 100
    assert view.spectrum.fft_length == 1024
    assert view.spectral_run.scope == "full"


def test_change_config_keeps_zoom(capture) -> None:
    view = zoom(capture, 0.0, 0.099, SpectrumConfig())
    changed = change_config(capture, view, SpectrumConfig(window="blackman"))

    assert changed.zoomed
    assert len(changed.waveform) == 100
    assert changed.spectral_run.window == "blackman"
    assert [s.min for s in changed.stats] == [s.min for s in view.stats]


def test_reset_zoom(capture) -> None:
    zoom(capture, 0.0, 0.099, SpectrumConfig())
    view = reset_zoom(capture, SpectrumConfig())
    assert not view.zoomed
    assert len(view.waveform) == 1000


def test_spectrum_config_validation() -> None:
    with pytest.raises(ValueError):
        SpectrumConfig(scope="partial")
    with pytest.raises(ValueError):
        SpectrumConfig(window="kaiser")

    config = SpectrumConfig.from_settings(AnalysisSettings(window_function="hamming",
                                                           fft_scope="full"))
    assert config == SpectrumConfig(scope="full", window="hamming")


def test_math_channels(capture) -> None:
    first = add_math_channel(capture, "ch0", 10.0)
    second = add_math_channel(first, "ch1", -0.5, unit="mV")

    assert second.metadata.channels == ("ch0", "ch1", "Math1", "Math2")
    np.testing.assert_allclose(second.waveform.column("Math1"),
                               capture.waveform.column("ch0") * 10.0)
    np.testing.assert_allclose(second.waveform.column("Math2"),
                               capture.waveform.column("ch1") * -0.5)
    assert second.metadata.unit_for("Math1") == "A"
    assert second.metadata.unit_for("Math2") == "mV"
    assert [s.channel_id for s in second.stats][-1] == "Math2"
    assert second.stats[2].max == pytest.approx(capture.stats[0].max * 10.0)

    # The source capture is left as it was
    assert capture.metadata.channels == ("ch0", "ch1")
    assert "Math1" not in capture.waveform.data


def test_math_channel_errors(capture) -> None:
    with pytest.raises(ValueError):
        add_math_channel(capture, "ch7", 2.0)
    with pytest.raises(ValueError):
        add_math_channel(capture, "ch0", float("nan"))


def test_power_quality_on_view(capture) -> None:
    view = full_view(capture, SpectrumConfig())

    assert power_quality(view, "ch0", None) is None
    result = power_quality(view, "ch0", "ch1")
    assert result.phase("V").angle_deg == pytest.approx(-120.0, abs=2.0)
    assert result.phase("W").angle_deg == pytest.approx(120.0, abs=2.0)


def test_load_capture_file(tmp_path) -> None:
    path = tmp_path / "scope.csv"
    path.write_text(_capture_text(n=64), encoding="utf-8")

    capture = load_capture_file(path)
    assert len(capture.waveform) == 64
    assert capture.metadata.time_base == "1ms"


def test_settings_fill_missing_header_values() -> None:
    settings = AnalysisSettings(default_sampling_rate_hz=250.0, default_unit="mA")
    capture = load_capture("1.0,2.0\n0.5,3.0\n", settings)

    assert capture.metadata.sampling_rate_hz == 250.0
    assert capture.metadata.y_unit == "mA"
    assert capture.waveform.times.tolist() == [0.0, 0.004]

    declared = load_capture("Sampling Rate:1kSa/s\nVert Unit:A\n1.0,2.0\n0.5,3.0\n", settings)
    assert declared.metadata.sampling_rate_hz == 1000.0
    assert declared.metadata.y_unit == "A"


def test_display_data_uses_point_targets(capture) -> None:
    view = full_view(capture, SpectrumConfig())
    settings = AnalysisSettings(waveform_display_points=100, spectrum_display_points=64)

    waveform, bins = display_data(view, settings)
    assert len(waveform) == 100
    assert len(bins) == 64

    full_waveform, full_bins = display_data(view)
    assert len(full_waveform) == 1000
    assert len(full_bins) == 512
