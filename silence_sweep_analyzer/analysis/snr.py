"""SNR and SINAD spectra before and after deconvolution.

Both stages follow the same order of operations:

1. Welch power spectra of the relevant segments.
2. Bin-wise ratios from the *raw* spectra.
3. Every spectrum (powers and ratios) smoothed independently, then the bins
   below the low-frequency cutoff discarded.

Smoothing the ratio is not the same as dividing smoothed powers, so the
ratios are never recomputed from smoothed data.
"""

from __future__ import annotations

from typing import Dict, Optional, Sequence

import numpy as np

from silence_sweep_analyzer.errors import InsufficientLengthError
from silence_sweep_analyzer.models.profile import AnalysisProfile
from silence_sweep_analyzer.models.results import PowerSpectrum, SnrResult, SnrSinadResult

from .layout import SegmentRole, TestSignalLayout, extract_segment, segment_bounds
from .smoothing import smooth_and_discard
from .spectral import pooled_welch_power, welch_power


PRE_DECONVOLUTION_ROLES = (SegmentRole.PRE_SIGNAL_NOISE, SegmentRole.PRE_DECONV_MLS)
POST_DECONVOLUTION_ROLES = (
    SegmentRole.NOISE_BEFORE_MLS,
    SegmentRole.MLS_GAP,
    SegmentRole.MLS_REPEAT_1,
    SegmentRole.MLS_REPEAT_2,
)


def require_segments(audio: np.ndarray, layout: TestSignalLayout, roles: Sequence[SegmentRole]) -> None:
    """Raise InsufficientLengthError if any segment ends past the recording."""
    n = int(np.shape(audio)[0])
    need = max(segment_bounds(layout, r)[1] for r in roles)
    if n < need:
        raise InsufficientLengthError(n, need)


def power_ratio(num: np.ndarray, den: np.ndarray) -> np.ndarray:
    """Bin-wise ``num / den``; a zero denominator gives ``inf`` (or NaN for 0/0)."""
    with np.errstate(divide="ignore", invalid="ignore"):
        return np.asarray(num, dtype=float) / np.asarray(den, dtype=float)


def _finish(
    freqs: np.ndarray,
    spectra: Dict[str, np.ndarray],
    layout: TestSignalLayout,
    profile: AnalysisProfile,
) -> Dict[str, PowerSpectrum]:
    f, out = smooth_and_discard(
        freqs,
        spectra,
        profile.octave_smoothing,
        layout.fs,
        layout.win_len,
        profile.low_cutoff_cycles,
    )
    return {name: PowerSpectrum(freqs=f, power=p, smoothed=profile.smoothing_enabled) for name, p in out.items()}


def pre_deconvolution_snr(
    audio: np.ndarray,
    layout: TestSignalLayout,
    profile: Optional[AnalysisProfile] = None,
) -> SnrResult:
    """SNR of the raw (not yet deconvolved) recording.

    Noise is the leading silence, signal six MLS periods well inside the MLS
    block.

    Parameters
    ----------
    audio:
        Reduced raw recording, shape ``(time, chan, dim5, dim6)``.
    layout:
        Test-signal layout.
    profile:
        Smoothing configuration.
    """
    prof = profile if profile is not None else AnalysisProfile()
    require_segments(audio, layout, PRE_DECONVOLUTION_ROLES)

    fs, W = layout.fs, layout.win_len
    freqs, noise = welch_power(extract_segment(audio, layout, SegmentRole.PRE_SIGNAL_NOISE), fs, W)
    _, signal = welch_power(extract_segment(audio, layout, SegmentRole.PRE_DECONV_MLS), fs, W)

    curves = _finish(
        freqs,
        {"noise": noise, "signal": signal, "snr": power_ratio(signal, noise)},
        layout,
        prof,
    )
    return SnrResult(noise_power=curves["noise"], signal_power=curves["signal"], snr=curves["snr"])


def post_deconvolution_snr(
    audio: np.ndarray,
    layout: TestSignalLayout,
    profile: Optional[AnalysisProfile] = None,
) -> SnrSinadResult:
    """SNR and SINAD of the aligned, deconvolved recording.

    - NoisebeforeMLSPower: the gap before the MLS block (background noise)
    - NoiseDistPower: the 1-period MLS interruption (noise + distortion tail)
    - SigPow2: Welch frames of both MLS repetitions pooled (8 + 7 periods)
    """
    prof = profile if profile is not None else AnalysisProfile()
    require_segments(audio, layout, POST_DECONVOLUTION_ROLES)

    fs, W = layout.fs, layout.win_len
    freqs, noise_before = welch_power(extract_segment(audio, layout, SegmentRole.NOISE_BEFORE_MLS), fs, W)
    _, noise_dist = welch_power(extract_segment(audio, layout, SegmentRole.MLS_GAP), fs, W)
    _, signal = pooled_welch_power(
        [
            extract_segment(audio, layout, SegmentRole.MLS_REPEAT_1),
            extract_segment(audio, layout, SegmentRole.MLS_REPEAT_2),
        ],
        fs,
        W,
    )

    curves = _finish(
        freqs,
        {
            "noise_before": noise_before,
            "noise_dist": noise_dist,
            "signal": signal,
            "snr": power_ratio(signal, noise_before),
            "sinad": power_ratio(signal, noise_dist),
        },
        layout,
        prof,
    )
    return SnrSinadResult(
        noise_before_mls_power=curves["noise_before"],
        noise_dist_power=curves["noise_dist"],
        signal_power=curves["signal"],
        snr=curves["snr"],
        sinad=curves["sinad"],
    )
