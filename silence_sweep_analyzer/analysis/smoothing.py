"""Fractional-octave smoothing of power spectra.

Contract
--------
``octave_smooth(power, order)`` returns a spectrum of the same shape.
Order 0 returns the input unchanged; order ``n > 0`` replaces every bin by
the mean power over a band of ``1/n`` octave centred (geometrically) on it.
The bandwidth is proportional to frequency, so on a uniform grid starting at
DC only the bin index matters and the sample rate drops out.

After smoothing the analysis removes everything below a low-frequency cutoff
of ``128`` cycles per analysis-window duration (a known artefact of smoothing
narrow windows near DC) and clamps negative values to zero.  SNR-type curves
*discard* those bins (the frequency axis is truncated); impulse-response
spectra *zero* them so that bin indices stay aligned for the distortion
profiler.
"""

from __future__ import annotations

from typing import Dict, Tuple

import numpy as np


DEFAULT_LOW_CUTOFF_CYCLES = 128.0


def _band_edges(n_bins: int, order: int) -> Tuple[np.ndarray, np.ndarray]:
    """Inclusive bin-index band edges for every bin (DC maps to itself)."""
    i = np.arange(n_bins, dtype=float)
    half = 2.0 ** (1.0 / (2.0 * float(order)))
    lo = np.ceil(i / half - 1e-9).astype(int)
    hi = np.floor(i * half + 1e-9).astype(int)
    lo = np.clip(lo, 0, n_bins - 1)
    hi = np.clip(hi, 0, n_bins - 1)
    lo = np.minimum(lo, np.arange(n_bins))
    hi = np.maximum(hi, np.arange(n_bins))
    return lo, hi


def octave_smooth(power: np.ndarray, order: int) -> np.ndarray:
    """Fractional-octave smoothing along axis 0.

    Parameters
    ----------
    power:
        Power spectrum with frequency on axis 0, bin 0 at DC, uniform spacing.
    order:
        0 = no smoothing, 1 = octave, 3 = third-octave, ...

    Returns
    -------
    np.ndarray
        Smoothed copy (or the input itself when ``order == 0``).
    """
    n = int(order)
    if n != order or n < 0:
        raise ValueError(f"smoothing order must be a non-negative integer, got {order}")
    if n == 0:
        return power

    p = np.asarray(power, dtype=float)
    n_bins = p.shape[0]
    if n_bins == 0:
        return p.copy()

    lo, hi = _band_edges(n_bins, n)
    out = np.empty_like(p)
    for i in range(n_bins):
        out[i] = np.mean(p[lo[i] : hi[i] + 1], axis=0)
    return out


def low_frequency_cutoff(fs: float, win_len: int, cycles: float = DEFAULT_LOW_CUTOFF_CYCLES) -> float:
    """Cutoff frequency in Hz: ``cycles`` periods per analysis window."""
    return float(cycles) / (float(win_len) / float(fs))


def clamp_negative(power: np.ndarray) -> np.ndarray:
    out = np.array(power, dtype=float, copy=True)
    out[out < 0] = 0.0
    return out


def discard_below_cutoff(
    freqs: np.ndarray,
    spectra: Dict[str, np.ndarray],
    cutoff_hz: float,
) -> Tuple[np.ndarray, Dict[str, np.ndarray]]:
    """Keep only bins strictly above ``cutoff_hz``; clamp negatives to zero."""
    f = np.asarray(freqs, dtype=float)
    keep = f > float(cutoff_hz)
    return f[keep], {name: clamp_negative(np.asarray(p)[keep]) for name, p in spectra.items()}


def zero_below_cutoff(freqs: np.ndarray, power: np.ndarray, cutoff_hz: float) -> np.ndarray:
    """Zero bins strictly below ``cutoff_hz``; clamp negatives to zero."""
    out = clamp_negative(power)
    out[np.asarray(freqs, dtype=float) < float(cutoff_hz)] = 0.0
    return out


def smooth_and_discard(
    freqs: np.ndarray,
    spectra: Dict[str, np.ndarray],
    order: int,
    fs: float,
    win_len: int,
    cycles: float = DEFAULT_LOW_CUTOFF_CYCLES,
) -> Tuple[np.ndarray, Dict[str, np.ndarray]]:
    """Smooth every spectrum independently, then discard the low-frequency bins.

    With ``order == 0`` the inputs are returned unchanged.
    """
    if int(order) == 0:
        return np.asarray(freqs, dtype=float), dict(spectra)
    smoothed = {name: octave_smooth(p, order) for name, p in spectra.items()}
    return discard_below_cutoff(freqs, smoothed, low_frequency_cutoff(fs, win_len, cycles))


def smooth_and_zero(
    freqs: np.ndarray,
    power: np.ndarray,
    order: int,
    fs: float,
    win_len: int,
    cycles: float = DEFAULT_LOW_CUTOFF_CYCLES,
) -> np.ndarray:
    """Smooth one spectrum and zero its low-frequency bins (no-op for order 0)."""
    if int(order) == 0:
        return power
    return zero_below_cutoff(freqs, octave_smooth(power, order), low_frequency_cutoff(fs, win_len, cycles))
