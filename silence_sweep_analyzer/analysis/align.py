"""Time alignment of a deconvolved recording to the expected MLS interruption.

The recording and the test signal can be offset by an unknown latency.  The
1-cycle interruption of the MLS block gives a sharp energy envelope
(signal / silence / signal) which is matched against an indicator model by
circular cross-correlation.

Known limitation
----------------
The search covers an excerpt of four MLS periods.  Offsets of more than about
one MLS period are not recovered and are not reported either: the recording is
then shifted by whatever the correlation peak suggests, and downstream results
degrade silently.
"""

from __future__ import annotations

from typing import Tuple

import numpy as np

from .layout import TestSignalLayout


def gap_model(mls_len: int) -> np.ndarray:
    """Energy indicator of ``signal (L) / gap (L) / signal (2L)``."""
    L = int(mls_len)
    if L <= 0:
        raise ValueError(f"mls_len must be > 0, got {mls_len}")
    return np.concatenate([np.ones(L), np.zeros(L), np.ones(2 * L)])


def alignment_excerpt_bounds(layout: TestSignalLayout) -> Tuple[int, int]:
    """Sample range ``[start, stop)`` that the indicator model describes."""
    start = layout.mls_gap_start - layout.mls_len
    return start, start + 4 * layout.mls_len


def estimate_alignment_shift(audio: np.ndarray, layout: TestSignalLayout) -> int:
    """Signed number of samples by which ``audio`` must be rolled to align it.

    Only the first channel (and first dim5/dim6 entry) is used.

    Parameters
    ----------
    audio:
        Deconvolved recording, time on axis 0.
    layout:
        Test-signal layout.

    Returns
    -------
    int
        Shift for ``np.roll(audio, shift, axis=0)``; 0 for a perfectly
        aligned recording.
    """
    x = np.asarray(audio, dtype=float)
    ref = x.reshape(x.shape[0], -1)[:, 0]

    start, stop = alignment_excerpt_bounds(layout)
    if start < 0 or stop > ref.size:
        raise IndexError(
            f"Alignment excerpt [{start}, {stop}) outside recording of {ref.size} samples"
        )

    energy = ref[start:stop] ** 2
    model = gap_model(layout.mls_len)

    xc = np.fft.ifft(np.conj(np.fft.fft(energy)) * np.fft.fft(model))
    xc = np.fft.fftshift(xc)
    peak = int(np.argmax(np.abs(xc)))
    return peak - xc.size // 2


def align_recording(audio: np.ndarray, layout: TestSignalLayout) -> Tuple[np.ndarray, int]:
    """Circularly shift the whole recording so that the MLS interruption lands at its expected index.

    Returns
    -------
    aligned, shift
        The rolled copy and the shift that was applied.
    """
    shift = estimate_alignment_shift(audio, layout)
    if shift == 0:
        return np.asarray(audio), 0
    return np.roll(audio, shift, axis=0), shift
