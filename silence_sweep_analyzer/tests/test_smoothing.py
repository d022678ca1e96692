"""Fractional-octave smoothing: identity at order 0, no negatives, no content below the cutoff."""

from __future__ import annotations

import numpy as np
import pytest

from silence_sweep_analyzer.analysis.smoothing import (
    discard_below_cutoff,
    low_frequency_cutoff,
    octave_smooth,
    smooth_and_discard,
    smooth_and_zero,
    zero_below_cutoff,
)
from silence_sweep_analyzer.analysis.spectral import rfft_frequencies, welch_frequencies


def test_order_zero_is_identity() -> None:
    p = np.random.default_rng(0).random((64, 2))
    assert octave_smooth(p, 0) is p
    f = rfft_frequencies(8000.0, 127)
    assert smooth_and_zero(f, p, 0, 8000.0, 127) is p
    f2, out = smooth_and_discard(f, {"a": p}, 0, 8000.0, 127)
    assert out["a"] is p
    np.testing.assert_array_equal(f2, f)


def test_negative_order_rejected() -> None:
    with pytest.raises(ValueError):
        octave_smooth(np.ones(8), -1)


def test_constant_spectrum_is_preserved() -> None:
    p = np.full((200, 3), 2.5)
    np.testing.assert_allclose(octave_smooth(p, 3), 2.5)


def test_band_average_of_a_single_peak() -> None:
    p = np.zeros(300)
    p[100] = 1.0
    s = octave_smooth(p, 1)
    # bins ceil(100/sqrt2)=71 .. floor(100*sqrt2)=141 share the peak
    assert s[100] == pytest.approx(1.0 / 71.0)
    assert s[60] == 0.0
    assert s[0] == 0.0


def test_cutoff_value() -> None:
    assert low_frequency_cutoff(48000.0, 127) == pytest.approx(128 * 48000.0 / 127)


def test_discard_keeps_only_bins_above_cutoff() -> None:
    f = np.linspace(0.0, 4000.0, 101)
    p = np.linspace(-1.0, 1.0, 101)
    f2, out = discard_below_cutoff(f, {"p": p}, 1000.0)
    assert np.all(f2 > 1000.0)
    assert out["p"].shape == f2.shape
    assert np.all(out["p"] >= 0.0)


def test_zero_keeps_length() -> None:
    f = np.linspace(0.0, 4000.0, 101)
    p = np.linspace(-1.0, 1.0, 101)
    out = zero_below_cutoff(f, p, 1000.0)
    assert out.shape == p.shape
    assert np.all(out[f < 1000.0] == 0.0)
    assert np.all(out >= 0.0)


@pytest.mark.parametrize("order", [1, 3, 6, 12])
def test_smoothed_spectra_are_bounded(order: int) -> None:
    fs, W = 8000.0, 511
    rng = np.random.default_rng(order)
    p = rng.random((W // 2 + 1, 2)) * np.logspace(0, -12, W // 2 + 1)[:, None]
    f = rfft_frequencies(fs, W)
    cutoff = low_frequency_cutoff(fs, W)

    z = smooth_and_zero(f, p, order, fs, W)
    assert z.shape == p.shape
    assert np.all(z >= 0.0)
    assert np.all(z[f < cutoff] == 0.0)

    fw = welch_frequencies(fs, W)
    f2, out = smooth_and_discard(fw, {"x": p[: fw.size]}, order, fs, W)
    assert f2.size > 0
    assert np.all(f2 > cutoff)
    assert np.all(out["x"] >= 0.0)


def test_infinite_bins_do_not_spread_nan() -> None:
    p = np.array([1.0] * 5 + [np.inf] * 59)
    s = octave_smooth(p, 3)
    assert not np.any(np.isnan(s))
    np.testing.assert_array_equal(s[:5], 1.0)
    assert np.all(np.isinf(s[6:]))


def test_wide_dynamic_range_keeps_quiet_bins() -> None:
    # 180 dB between the low band and the floor
    p = np.full(256, 1e-18)
    p[:8] = 1.0
    s = octave_smooth(p, 3)
    np.testing.assert_allclose(s[200:205], 1e-18, rtol=1e-12)
    assert np.all(s > 0.0)
