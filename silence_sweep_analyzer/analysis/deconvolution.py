from __future__ import annotations

from typing import Callable, Optional

import numpy as np
from scipy.signal import fftconvolve

from silence_sweep_analyzer.errors import InsufficientLengthError, MissingMetadataError
from silence_sweep_analyzer.models.recording import ReducedRecording

from .align import alignment_excerpt_bounds
from .layout import SEGMENT_TABLE, TestSignalLayout, minimum_recording_length, segment_bounds


Deconvolver = Callable[[np.ndarray, np.ndarray], np.ndarray]


def convolve_with_inverse_filter(audio: np.ndarray, inverse_filter: np.ndarray) -> np.ndarray:
    """Full linear convolution of every column of ``audio`` with a 1-D inverse filter.

    Output length is ``n_samples + len(inverse_filter) - 1``.
    """
    a = np.asarray(audio, dtype=float)
    h = np.asarray(inverse_filter, dtype=float).ravel()
    if h.size == 0:
        raise ValueError("inverse_filter is empty")
    return fftconvolve(a, h.reshape((-1,) + (1,) * (a.ndim - 1)), mode="full", axes=0)


def required_length(layout: TestSignalLayout) -> int:
    """Number of samples every segment of the layout needs."""
    stops = [segment_bounds(layout, role)[1] for role in SEGMENT_TABLE]
    stops.append(alignment_excerpt_bounds(layout)[1])
    return max(stops)


def apply_deconvolution(
    reduced: ReducedRecording,
    layout: TestSignalLayout,
    deconvolve: Optional[Deconvolver] = None,
) -> np.ndarray:
    """Return the deconvolved audio of a reduced recording.

    When the recording carries an inverse filter it is convolved exactly once
    (``deconvolve`` defaults to :func:`convolve_with_inverse_filter`).
    Otherwise the audio is taken as already deconvolved.

    Raises
    ------
    MissingMetadataError
        No test-signal parameters on the recording.
    InsufficientLengthError
        The deconvolved audio is shorter than the test signal requires.
    """
    if reduced.params is None:
        raise MissingMetadataError("Recording carries no silence-sweep test-signal parameters")

    if reduced.inverse_filter is not None:
        fn = deconvolve if deconvolve is not None else convolve_with_inverse_filter
        audio = np.asarray(fn(reduced.audio, reduced.inverse_filter), dtype=float)
        n_required = required_length(layout)
    else:
        audio = np.asarray(reduced.audio, dtype=float)
        p = reduced.params
        n_required = max(
            minimum_recording_length(p.mls_order, p.sweep_dur_s, p.gap_dur_s, reduced.fs),
            required_length(layout),
        )

    if audio.shape[0] < n_required:
        raise InsufficientLengthError(audio.shape[0], n_required)
    return audio
