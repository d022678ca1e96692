"""Ideal post-deconvolution stream of a perfect measurement system.

A distortion-free, noiseless system with a unit impulse response turns the
test signal, after convolution with the sweep's inverse filter, into:

- silence over the leading silence and both gaps
- the bipolar MLS, cycle-aligned from ``S+G``, with cycle 20 left silent
- a unit impulse at the sweep arrival ``2S+2G+32L``

Harmonic impulses ``harmonic_levels[k]`` can be added at
``sweep_arrival - offset_k`` and white dither over the whole stream.
"""

from __future__ import annotations

from typing import Mapping, Optional

import numpy as np

from silence_sweep_analyzer.analysis.deconvolution import required_length
from silence_sweep_analyzer.analysis.layout import (
    MLS_BLOCK_CYCLES,
    MLS_CYCLES_BEFORE_GAP,
    TestSignalLayout,
)
from silence_sweep_analyzer.analysis.mls import mls_sequence


def reference_length(layout: TestSignalLayout) -> int:
    """Length of the reference stream: every segment plus one MLS period of tail."""
    return required_length(layout) + layout.mls_len


def ideal_deconvolved_response(
    layout: TestSignalLayout,
    *,
    n_channels: int = 1,
    harmonic_levels: Optional[Mapping[int, float]] = None,
    dither: float = 0.0,
    seed: int = 0,
) -> np.ndarray:
    """Build the ideal stream.

    Parameters
    ----------
    layout:
        Layout of the test signal.
    n_channels:
        Number of identical channels (dither is independent per channel).
    harmonic_levels:
        Optional amplitude per harmonic order 2..5.
    dither:
        Standard deviation of additive white noise.
    seed:
        Seed of the dither generator.

    Returns
    -------
    np.ndarray
        Shape ``(n_samples, n_channels)``.
    """
    L = layout.mls_len
    x = np.zeros(reference_length(layout), dtype=float)

    seq = mls_sequence(layout.mls_order)
    for c in range(MLS_BLOCK_CYCLES):
        if c == MLS_CYCLES_BEFORE_GAP:
            continue
        start = layout.mls_start + c * L
        x[start : start + L] = seq

    x[layout.sweep_arrival] = 1.0
    for k, level in (harmonic_levels or {}).items():
        x[layout.sweep_arrival - layout.harmonic_offset(int(k))] += float(level)

    out = np.repeat(x[:, None], int(n_channels), axis=1)
    if dither > 0:
        rng = np.random.default_rng(seed)
        out = out + rng.normal(0.0, float(dither), size=out.shape)
    return out
