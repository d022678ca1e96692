"""Harmonic distortion profiler: gating, ratio, masking and frequency remapping."""

from __future__ import annotations

import numpy as np
import pytest

from silence_sweep_analyzer.analysis.distortion import harmonic_distortion_curve, upsample_spectrum


def _col(x: np.ndarray) -> np.ndarray:
    return np.asarray(x, dtype=float)[:, None, None, None]


def test_upsample_linear_spectrum_exactly() -> None:
    p = np.arange(50, dtype=float)
    np.testing.assert_allclose(upsample_spectrum(p, 3), np.arange(50) / 3.0, atol=1e-9)
    np.testing.assert_array_equal(upsample_spectrum(p, 1), p)
    with pytest.raises(ValueError):
        upsample_spectrum(p, 0)


@pytest.mark.parametrize("k", [2, 3, 4, 5])
def test_tone_appears_at_excitation_frequency(k: int) -> None:
    n = 128
    df = 8000.0 / 255
    freqs = np.arange(n) * df
    j_r = 90
    fundamental = np.ones(n)
    harmonic = np.zeros(n)
    harmonic[j_r] = 1e-2
    floor = np.zeros(n)

    curve = harmonic_distortion_curve(freqs, _col(fundamental), _col(harmonic), _col(floor), k)

    pts = curve.points()
    assert len(pts) == 1
    f_exc, level = pts[0]
    assert f_exc == pytest.approx(freqs[j_r] / k)
    assert level == pytest.approx(-20.0)
    assert curve.order == k
    assert curve.n_valid == 1


def test_ratio_uses_fundamental_at_excitation_bin() -> None:
    n = 100
    freqs = np.arange(n) * 10.0
    fundamental = 1.0 + np.arange(n, dtype=float)  # linear: spline is exact
    harmonic = np.full(n, 0.5)
    curve = harmonic_distortion_curve(freqs, _col(fundamental), _col(harmonic), _col(np.zeros(n)), 2)
    j = 40
    expected = 10 * np.log10(0.5 / (1.0 + j / 2.0))
    assert curve.level_db[j, 0, 0, 0] == pytest.approx(expected, abs=1e-9)


def test_noise_floor_gate_and_threshold() -> None:
    n = 64
    freqs = np.arange(n, dtype=float)
    fundamental = np.ones(n)
    floor = np.full(n, 1e-4)
    harmonic = floor * 2.0  # about 3 dB above the floor

    present = harmonic_distortion_curve(freqs, _col(fundamental), _col(harmonic), _col(floor), 2, threshold_db=0.0)
    assert present.n_valid == n
    np.testing.assert_allclose(present.level_db, 10 * np.log10(2e-4))

    gated = harmonic_distortion_curve(freqs, _col(fundamental), _col(harmonic), _col(floor), 2, threshold_db=6.0)
    assert gated.n_valid == 0
    assert np.all(np.isnan(gated.level_db))

    equal = harmonic_distortion_curve(freqs, _col(fundamental), _col(floor), _col(floor), 2)
    assert equal.n_valid == 0


def test_invalid_ratios_are_absent() -> None:
    n = 32
    freqs = np.arange(n, dtype=float)
    fundamental = np.zeros(n)
    fundamental[10:] = 1.0
    fundamental[20] = -1.0
    harmonic = np.ones(n)
    curve = harmonic_distortion_curve(freqs, _col(fundamental), _col(harmonic), _col(np.zeros(n)), 2)
    assert not np.any(np.isinf(curve.level_db))
    assert np.isnan(curve.level_db[0, 0, 0, 0])  # zero fundamental
    for f, v in curve.points():
        assert np.isfinite(v)


def test_order_and_shape_checks() -> None:
    z = _col(np.ones(8))
    with pytest.raises(ValueError):
        harmonic_distortion_curve(np.arange(8.0), z, z, z, 1)
    with pytest.raises(ValueError):
        harmonic_distortion_curve(np.arange(8.0), z, z, _col(np.ones(7)), 2)
