"""Windowed power-spectrum estimation.

Two estimators are used by the silence-sweep analysis:

welch_power
    Welch's method: overlapping Hann-windowed frames, squared-magnitude
    spectra averaged across frames.  Window length is half the MLS period and
    the hop is a third of the window.  Used for every SNR / SINAD spectrum.
windowed_power_spectrum
    Single-frame ``|FFT(x*w)|**2`` of impulse-response-like segments, using
    the asymmetric analysis window from :func:`asymmetric_window`.  Large
    multi-dimensional inputs are transformed in an explicit loop over
    channel x dim5 x dim6 instead of one bulk array operation to bound peak
    memory; both strategies return the same numbers.

All functions keep time (or frequency) on axis 0 and accept any number of
trailing axes.
"""

from __future__ import annotations

import itertools
import math
from typing import Literal, Tuple

import numpy as np
from scipy.signal import spectrogram
from scipy.signal.windows import blackmanharris, hann

from .layout import round_half_up


Strategy = Literal["auto", "bulk", "loop"]

DEFAULT_BULK_ELEMENT_LIMIT = 1_000_000


def welch_parameters(win_len: int) -> Tuple[np.ndarray, int, int]:
    """Return ``(window, hop, noverlap)`` for the Welch estimator."""
    W = int(win_len)
    if W < 2:
        raise ValueError(f"win_len must be >= 2, got {win_len}")
    hop = int(math.ceil(W / 3.0))
    return hann(W, sym=True), hop, W - hop


def welch_frequencies(fs: float, win_len: int) -> np.ndarray:
    """Frequency axis of :func:`welch_power` (the first ``W//2`` bins)."""
    W = int(win_len)
    return float(fs) * np.arange(W // 2, dtype=float) / float(W)


def segment_power_spectra(x: np.ndarray, fs: float, win_len: int) -> Tuple[np.ndarray, np.ndarray]:
    """Per-frame power spectral densities of a segment.

    Parameters
    ----------
    x:
        Segment with time on axis 0; shape ``(n, ...)``.
    fs:
        Sample rate in Hz.
    win_len:
        Frame (and FFT) length.

    Returns
    -------
    freqs, frames
        ``freqs`` has ``W//2`` entries; ``frames`` has shape
        ``(W//2, ..., n_frames)`` (frequency first, frames last).
    """
    W = int(win_len)
    a = np.asarray(x, dtype=float)
    if a.shape[0] < W:
        raise ValueError(f"Segment of {a.shape[0]} samples is shorter than the analysis window ({W})")

    window, _, noverlap = welch_parameters(W)
    _, _, sxx = spectrogram(
        np.moveaxis(a, 0, -1),
        fs=float(fs),
        window=window,
        nperseg=W,
        noverlap=noverlap,
        nfft=W,
        detrend=False,
        return_onesided=True,
        scaling="density",
        mode="psd",
        axis=-1,
    )
    # sxx: (..., freq, frame)
    n_keep = W // 2
    frames = np.moveaxis(sxx[..., :n_keep, :], -2, 0)
    return welch_frequencies(fs, W), frames


def welch_power(x: np.ndarray, fs: float, win_len: int) -> Tuple[np.ndarray, np.ndarray]:
    """Welch-averaged power spectrum of a segment.

    Returns
    -------
    freqs, power
        ``power`` has shape ``(W//2, ...)`` (the trailing axes of ``x``).
    """
    freqs, frames = segment_power_spectra(x, fs, win_len)
    return freqs, np.mean(frames, axis=-1)


def pooled_welch_power(segments, fs: float, win_len: int) -> Tuple[np.ndarray, np.ndarray]:
    """Welch average over the frames of several segments pooled together.

    Longer segments contribute proportionally more frames.
    """
    freqs = None
    all_frames = []
    for seg in segments:
        freqs, frames = segment_power_spectra(seg, fs, win_len)
        all_frames.append(frames)
    if not all_frames:
        raise ValueError("No segments to pool")
    return freqs, np.mean(np.concatenate(all_frames, axis=-1), axis=-1)


# ---------------------------------------------------------------------------
# Single-frame spectra of impulse-response segments
# ---------------------------------------------------------------------------


def asymmetric_window(win_len: int) -> np.ndarray:
    """Blackman-Harris window whose first half is raised to the 4th power.

    The part before the expected arrival is mostly noise and is attenuated much
    more strongly than the decay after it.
    """
    W = int(win_len)
    if W < 2:
        raise ValueError(f"win_len must be >= 2, got {win_len}")
    w = blackmanharris(W, sym=True)
    n_first = round_half_up(W / 2.0)
    w[:n_first] = w[:n_first] ** 4
    return w


def rfft_frequencies(fs: float, win_len: int) -> np.ndarray:
    """Frequency axis of :func:`windowed_power_spectrum` (``W//2 + 1`` bins)."""
    return np.fft.rfftfreq(int(win_len), d=1.0 / float(fs))


def choose_strategy(n_elements: int, bulk_element_limit: int = DEFAULT_BULK_ELEMENT_LIMIT) -> str:
    return "bulk" if int(n_elements) < int(bulk_element_limit) else "loop"


def _bulk_power(x: np.ndarray, window: np.ndarray) -> np.ndarray:
    w = window.reshape((-1,) + (1,) * (x.ndim - 1))
    return np.abs(np.fft.rfft(x * w, axis=0)) ** 2


def _looped_power(x: np.ndarray, window: np.ndarray) -> np.ndarray:
    out = np.empty((x.shape[0] // 2 + 1,) + x.shape[1:], dtype=float)
    for idx in itertools.product(*(range(n) for n in x.shape[1:])):
        col = (slice(None),) + idx
        out[col] = np.abs(np.fft.rfft(x[col] * window)) ** 2
    return out


def windowed_power_spectrum(
    x: np.ndarray,
    window: np.ndarray,
    *,
    strategy: Strategy = "auto",
    bulk_element_limit: int = DEFAULT_BULK_ELEMENT_LIMIT,
) -> np.ndarray:
    """Squared-magnitude spectrum of a windowed segment.

    Parameters
    ----------
    x:
        Segment of shape ``(W, ...)``.
    window:
        Window of length ``W``.
    strategy:
        ``"bulk"`` (one array FFT), ``"loop"`` (one FFT per trailing index)
        or ``"auto"``: bulk below ``bulk_element_limit`` total samples.

    Returns
    -------
    np.ndarray
        Power of shape ``(W//2 + 1, ...)``.
    """
    a = np.asarray(x, dtype=float)
    w = np.asarray(window, dtype=float)
    if w.ndim != 1 or w.size != a.shape[0]:
        raise ValueError(f"window length {w.size} does not match segment length {a.shape[0]}")

    if strategy == "auto":
        strategy = choose_strategy(a.size, bulk_element_limit)  # type: ignore[assignment]
    if strategy == "bulk":
        return _bulk_power(a, w)
    if strategy == "loop":
        return _looped_power(a, w)
    raise ValueError(f"Unknown strategy: {strategy!r}")
