"""Harmonic distortion versus excitation frequency.

For harmonic order ``k`` the response at frequency ``f`` in the harmonic's
spectrum was excited by a tone at ``f / k``.  The fundamental spectrum is
therefore resampled at bin ``j / k`` for every harmonic bin ``j`` before the
ratio is taken, and the resulting curve is reported against ``freqs / k``.

Harmonic bins not exceeding the matched noise floor (scaled by the threshold)
are gated to zero first; zero, negative and non-finite ratios become NaN,
which marks the point as absent.
"""

from __future__ import annotations

from typing import Dict

import numpy as np
from scipy.interpolate import CubicSpline

from silence_sweep_analyzer.models.results import HarmonicDistortionCurve, ImpulseResponseSet

from .layout import N_HARMONICS


def upsample_spectrum(power: np.ndarray, factor: int) -> np.ndarray:
    """Resample a spectrum at bin positions ``j / factor``, ``j = 0..n-1`` (axis 0)."""
    k = int(factor)
    if k != factor or k < 1:
        raise ValueError(f"factor must be a positive integer, got {factor}")
    p = np.asarray(power, dtype=float)
    n = p.shape[0]
    if k == 1:
        return p.copy()
    if n < 2:
        raise ValueError(f"need at least 2 bins to interpolate, got {n}")
    spline = CubicSpline(np.arange(n, dtype=float), p, axis=0)
    return spline(np.arange(n, dtype=float) / float(k))


def harmonic_distortion_curve(
    freqs: np.ndarray,
    fundamental: np.ndarray,
    harmonic: np.ndarray,
    noise_floor: np.ndarray,
    order: int,
    threshold_db: float = 0.0,
) -> HarmonicDistortionCurve:
    """Distortion curve of one harmonic order.

    Parameters
    ----------
    freqs:
        Frequency axis of the three spectra (response frequency).
    fundamental, harmonic, noise_floor:
        Power spectra of the sweep fundamental, harmonic ``order`` and the
        matching silence segment; identical shapes.
    order:
        Harmonic order k >= 2.
    threshold_db:
        Margin above the noise floor a harmonic bin must exceed.

    Returns
    -------
    HarmonicDistortionCurve
        Levels in dB relative to the fundamental, NaN where absent.
    """
    k = int(order)
    if k < 2:
        raise ValueError(f"harmonic order must be >= 2, got {order}")
    h = np.array(harmonic, dtype=float, copy=True)
    floor = np.asarray(noise_floor, dtype=float)
    if h.shape != floor.shape or h.shape != np.shape(fundamental):
        raise ValueError(
            f"spectra shapes differ: fundamental {np.shape(fundamental)}, "
            f"harmonic {h.shape}, noise floor {floor.shape}"
        )

    h[h <= floor * 10.0 ** (float(threshold_db) / 10.0)] = 0.0
    h0 = upsample_spectrum(fundamental, k)

    with np.errstate(divide="ignore", invalid="ignore"):
        ratio = h / h0
        level = np.full(ratio.shape, np.nan)
        ok = np.isfinite(ratio) & (ratio > 0)
        level[ok] = 10.0 * np.log10(ratio[ok])
    level[~np.isfinite(level)] = np.nan

    return HarmonicDistortionCurve(
        order=k,
        excitation_freqs=np.asarray(freqs, dtype=float) / float(k),
        level_db=level,
    )


def harmonic_distortion_profile(
    irs: ImpulseResponseSet,
    threshold_db: float = 0.0,
) -> Dict[int, HarmonicDistortionCurve]:
    """Curves for harmonic orders 2..5 from an impulse-response set."""
    return {
        k: harmonic_distortion_curve(
            irs.freqs,
            irs.sweep_spectra[1],
            irs.sweep_spectra[k],
            irs.silence_spectra[k],
            k,
            threshold_db,
        )
        for k in range(2, N_HARMONICS + 1)
    }
