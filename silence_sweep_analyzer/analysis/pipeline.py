"""End-to-end silence-sweep analysis of one recording.

Run flow:

1) Check the recording carries test-signal parameters.
2) Reduce bands and cycles; resolve the sample-domain layout.
3) If an inverse filter is present: SNR of the raw recording, then deconvolve.
   Otherwise: check the length of the already deconvolved recording.
4) Align on the MLS interruption.
5) SNR / SINAD after deconvolution, impulse responses, distortion curves.

The two precondition failures (missing metadata, recording too short) are
returned as an empty :class:`SilenceSweepResult` carrying a diagnostic.
Everything else propagates.
"""

from __future__ import annotations

from typing import List, Optional

from silence_sweep_analyzer.errors import InsufficientLengthError
from silence_sweep_analyzer.models.profile import AnalysisProfile
from silence_sweep_analyzer.models.recording import Recording
from silence_sweep_analyzer.models.results import SilenceSweepResult

from .align import align_recording
from .deconvolution import Deconvolver, apply_deconvolution
from .distortion import harmonic_distortion_profile
from .impulse import extract_impulse_responses
from .layout import layout_from_params
from .reduce import reduce_recording
from .snr import post_deconvolution_snr, pre_deconvolution_snr


MISSING_METADATA_MESSAGE = (
    "The recording does not carry silence-sweep test-signal parameters "
    "(MLS order, sweep duration, gap duration, sweep start and end frequency)."
)


def analyze_silence_sweep(
    recording: Recording,
    profile: Optional[AnalysisProfile] = None,
    *,
    deconvolve: Optional[Deconvolver] = None,
) -> SilenceSweepResult:
    """Analyse a recording of the silence + MLS + log-sweep test signal.

    Parameters
    ----------
    recording:
        The measurement. ``inverse_filter`` present means it still has to be
        deconvolved.
    profile:
        Analysis configuration (defaults: no smoothing, 0 dB threshold).
    deconvolve:
        Optional replacement for the convolution with the inverse filter.

    Returns
    -------
    SilenceSweepResult
        Populated result, or an empty one with ``diagnostic`` set.
    """
    prof = (profile if profile is not None else AnalysisProfile()).validate()
    warnings: List[str] = list(recording.warnings)

    if recording.params is None:
        return SilenceSweepResult.empty(MISSING_METADATA_MESSAGE, profile=prof, warnings=tuple(warnings))

    reduced = reduce_recording(recording)
    warnings = list(reduced.warnings)
    layout = layout_from_params(reduced.params, reduced.fs, gap_margin_frac=prof.gap_margin_frac)

    try:
        pre = None
        if reduced.inverse_filter is not None:
            pre = pre_deconvolution_snr(reduced.audio, layout, prof)
        else:
            warnings.append("No inverse filter: recording assumed to be deconvolved already.")
        audio = apply_deconvolution(reduced, layout, deconvolve)
    except InsufficientLengthError as exc:
        return SilenceSweepResult.empty(str(exc), profile=prof, warnings=tuple(warnings))

    aligned, shift = align_recording(audio, layout)
    if shift:
        warnings.append(f"Applied an alignment shift of {shift} samples.")

    post = post_deconvolution_snr(aligned, layout, prof)
    irs = extract_impulse_responses(aligned, layout, prof)
    if irs.strategy == "loop":
        warnings.append(
            f"Impulse-response segments hold {irs.sweep_irs[1].size} samples "
            f"(limit {prof.bulk_element_limit}); spectra computed per channel."
        )
    distortion = harmonic_distortion_profile(irs, prof.threshold_db)

    return SilenceSweepResult(
        layout=layout,
        chan_ids=reduced.chan_ids,
        dim5_ids=reduced.dim5_ids,
        dim6_ids=reduced.dim6_ids,
        alignment_shift=shift,
        pre_deconvolution=pre,
        post_deconvolution=post,
        impulse_responses=irs,
        distortion=distortion,
        profile=prof,
        warnings=tuple(warnings),
    )
