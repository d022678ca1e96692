"""Impulse responses of the MLS block and of the sweep (fundamental + harmonics).

Window placement
----------------
Every impulse-response window is ``W`` samples long and starts ``half_win``
samples before the expected arrival, so the arrival sits at index
``half_win``.  Harmonic ``k`` of the sweep arrives ``offset_k`` samples before
the linear response; the matching noise-floor window is cut from the leading
silence at the same distance from ``sweep_len``.

The combined MLS response is rolled by ``half_win`` and truncated to ``W`` so
that it lines up with the sweep windows, then rescaled so that its peak
magnitude equals the peak of the sweep fundamental.
"""

from __future__ import annotations

from typing import Dict, Optional

import numpy as np

from silence_sweep_analyzer.models.profile import AnalysisProfile
from silence_sweep_analyzer.models.results import ImpulseResponseSet

from .layout import (
    MLS_REPEAT_1_CYCLES,
    MLS_REPEAT_2_CYCLES,
    N_HARMONICS,
    SILENCE_ROLES,
    SWEEP_ROLES,
    SegmentRole,
    TestSignalLayout,
    extract_segment,
)
from .mls import mls_impulse_response
from .smoothing import smooth_and_zero
from .spectral import asymmetric_window, choose_strategy, rfft_frequencies, windowed_power_spectrum


def combined_mls_impulse_response(audio: np.ndarray, layout: TestSignalLayout) -> np.ndarray:
    """``(8*IR1 + 7*IR2) / 15`` of the two MLS repetitions, aligned to the sweep windows."""
    ir1 = mls_impulse_response(
        extract_segment(audio, layout, SegmentRole.MLS_REPEAT_1), layout.mls_order, MLS_REPEAT_1_CYCLES
    )
    ir2 = mls_impulse_response(
        extract_segment(audio, layout, SegmentRole.MLS_REPEAT_2), layout.mls_order, MLS_REPEAT_2_CYCLES
    )
    combined = (MLS_REPEAT_1_CYCLES * ir1 + MLS_REPEAT_2_CYCLES * ir2) / float(
        MLS_REPEAT_1_CYCLES + MLS_REPEAT_2_CYCLES
    )
    return np.roll(combined, layout.half_win, axis=0)[: layout.win_len]


def scale_to_reference_peak(ir: np.ndarray, reference: np.ndarray) -> np.ndarray:
    """Rescale each column of ``ir`` so its peak magnitude matches ``reference``.

    Columns with an all-zero ``ir`` are returned unchanged.
    """
    peak = np.max(np.abs(ir), axis=0, keepdims=True)
    ref_peak = np.max(np.abs(reference), axis=0, keepdims=True)
    gain = np.divide(ref_peak, peak, out=np.ones_like(peak), where=peak > 0)
    return ir * gain


def extract_impulse_responses(
    audio: np.ndarray,
    layout: TestSignalLayout,
    profile: Optional[AnalysisProfile] = None,
) -> ImpulseResponseSet:
    """Cut, window and transform every impulse-response-like segment.

    Parameters
    ----------
    audio:
        Aligned, deconvolved recording, shape ``(time, chan, dim5, dim6)``.
    layout:
        Test-signal layout.
    profile:
        Smoothing and spectra-strategy configuration.

    Returns
    -------
    ImpulseResponseSet
        Time-domain segments are returned unwindowed; spectra are
        ``|FFT(x * w)|**2`` with the asymmetric analysis window.
    """
    prof = profile if profile is not None else AnalysisProfile()
    fs, W = layout.fs, layout.win_len

    sweep_irs: Dict[int, np.ndarray] = {}
    silence_irs: Dict[int, np.ndarray] = {}
    for k, (sweep_role, silence_role) in enumerate(zip(SWEEP_ROLES, SILENCE_ROLES), start=1):
        sweep_irs[k] = np.array(extract_segment(audio, layout, sweep_role), dtype=float)
        silence_irs[k] = np.array(extract_segment(audio, layout, silence_role), dtype=float)

    mls_ir = scale_to_reference_peak(combined_mls_impulse_response(audio, layout), sweep_irs[1])

    window = asymmetric_window(W)
    strategy = choose_strategy(sweep_irs[1].size, prof.bulk_element_limit)
    freqs = rfft_frequencies(fs, W)

    def spectrum(x: np.ndarray) -> np.ndarray:
        p = windowed_power_spectrum(x, window, strategy=strategy)  # type: ignore[arg-type]
        return smooth_and_zero(freqs, p, prof.octave_smoothing, fs, W, prof.low_cutoff_cycles)

    return ImpulseResponseSet(
        t=(np.arange(W, dtype=float) - layout.half_win) / fs,
        freqs=freqs,
        mls_ir=mls_ir,
        mls_spectrum=spectrum(mls_ir),
        sweep_irs=sweep_irs,
        sweep_spectra={k: spectrum(sweep_irs[k]) for k in range(1, N_HARMONICS + 1)},
        silence_irs=silence_irs,
        silence_spectra={k: spectrum(silence_irs[k]) for k in range(1, N_HARMONICS + 1)},
        smoothed=prof.smoothing_enabled,
        strategy=strategy,
    )
