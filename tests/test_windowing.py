from __future__ import annotations

import numpy as np
import pytest

from scopeanalyzer.core.windowing import WINDOW_TYPES, apply_window, window_weights


def test_rectangular_window_is_identity() -> None:
    data = np.random.randn(37)
    out = apply_window(data, 'rectangular')
    assert np.array_equal(out, data)


def test_hanning_endpoints_and_center() -> None:
    w = window_weights(9, 'hanning')
    assert w[0] == pytest.approx(0.0, abs=1e-12)
    assert w[-1] == pytest.approx(0.0, abs=1e-12)
    assert w[4] == pytest.approx(1.0)


def test_hamming_endpoints() -> None:
    w = window_weights(11, 'hamming')
    assert w[0] == pytest.approx(0.08)
    assert w[-1] == pytest.approx(0.08)
    assert w[5] == pytest.approx(1.0)


@pytest.mark.parametrize("window_type, a0, a1", [("hanning", 0.5, 0.5), ("hamming", 0.54, 0.46)])
def test_cosine_window_formula(window_type: str, a0: float, a1: float) -> None:
    n = 20
    i = np.arange(n)
    expected = a0 - a1 * np.cos(2 * np.pi * i / (n - 1))
    assert np.allclose(window_weights(n, window_type), expected)


def test_blackman_formula() -> None:
    n = 16
    i = np.arange(n)
    expected = (0.42 - 0.5 * np.cos(2 * np.pi * i / (n - 1))
                + 0.08 * np.cos(4 * np.pi * i / (n - 1)))
    assert np.allclose(window_weights(n, 'blackman'), expected)


@pytest.mark.parametrize("window_type", WINDOW_TYPES)
def test_window_preserves_length(window_type: str) -> None:
    data = np.ones(25)
    assert apply_window(data, window_type).size == 25


@pytest.mark.parametrize("window_type", WINDOW_TYPES)
def test_single_sample_has_unit_weight(window_type: str) -> None:
    assert apply_window([2.0], window_type).tolist() == [2.0]


def test_apply_window_multiplies_samples() -> None:
    data = np.full(9, 3.0)
    out = apply_window(data, 'hanning')
    assert np.allclose(out, 3.0 * window_weights(9, 'hanning'))


def test_unknown_window_raises() -> None:
    with pytest.raises(ValueError):
        apply_window([1.0, 2.0], 'kaiser')
