"""Alignment round-trip on the ideal reference stream."""

from __future__ import annotations

import numpy as np
import pytest

from silence_sweep_analyzer.analysis.align import (
    align_recording,
    alignment_excerpt_bounds,
    estimate_alignment_shift,
    gap_model,
)
from silence_sweep_analyzer.analysis.layout import resolve_layout
from silence_sweep_analyzer.validation.reference import ideal_deconvolved_response


@pytest.fixture(scope="module")
def layout():
    return resolve_layout(8, 0.25, 0.05, 8000.0)


@pytest.fixture(scope="module")
def stream(layout):
    return ideal_deconvolved_response(layout, n_channels=2)


def test_gap_model_shape() -> None:
    m = gap_model(5)
    assert m.shape == (20,)
    np.testing.assert_array_equal(m, [1] * 5 + [0] * 5 + [1] * 10)


def test_excerpt_is_centred_on_the_interruption(layout) -> None:
    start, stop = alignment_excerpt_bounds(layout)
    assert start == layout.mls_gap_start - layout.mls_len
    assert stop - start == 4 * layout.mls_len


def test_aligned_stream_needs_no_shift(layout, stream) -> None:
    assert estimate_alignment_shift(stream, layout) == 0
    aligned, shift = align_recording(stream, layout)
    assert shift == 0
    np.testing.assert_array_equal(aligned, stream)


@pytest.mark.parametrize("delay", [1, 7, -13, 100, -200, 254, -254])
def test_injected_delay_is_cancelled(layout, stream, delay: int) -> None:
    delayed = np.roll(stream, delay, axis=0)
    aligned, shift = align_recording(delayed, layout)
    assert shift == -delay
    np.testing.assert_array_equal(aligned, stream)


def test_only_first_channel_is_used(layout, stream) -> None:
    x = stream.copy()
    x[:, 1] = np.roll(x[:, 1], 50)
    assert estimate_alignment_shift(x, layout) == 0


def test_excerpt_outside_recording(layout) -> None:
    with pytest.raises(IndexError):
        estimate_alignment_shift(np.zeros(layout.mls_gap_start), layout)
