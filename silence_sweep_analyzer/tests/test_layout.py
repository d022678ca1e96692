"""Tests for the test-signal layout and the segment table."""

from __future__ import annotations

import numpy as np
import pytest

from silence_sweep_analyzer.analysis.layout import (
    N_HARMONICS,
    SEGMENT_TABLE,
    SILENCE_ROLES,
    SWEEP_ROLES,
    SegmentRole,
    extract_segment,
    layout_from_params,
    minimum_recording_length,
    resolve_layout,
    round_half_up,
    segment_bounds,
)
from silence_sweep_analyzer.models.recording import TestSignalParams


def test_concrete_scenario_lengths() -> None:
    lo = resolve_layout(8, 1.0, 0.1, 48000.0)
    assert lo.mls_len == 255
    assert lo.sweep_len == 48000
    assert lo.gap_len == 4800
    assert lo.win_len == 127


def test_concrete_scenario_minimum_length() -> None:
    assert minimum_recording_length(8, 1.0, 0.1, 48000.0) == 41 * 255 + 57600 - 1


@pytest.mark.parametrize(
    "order, sweep, gap, fs",
    [(2, 0.01, 0.001, 8000.0), (8, 1.0, 0.1, 48000.0), (12, 3.3, 0.25, 44100.0), (16, 10.0, 1.0, 96000.0)],
)
def test_mls_length_and_offsets(order: int, sweep: float, gap: float, fs: float) -> None:
    lo = resolve_layout(order, sweep, gap, fs)
    assert lo.mls_len == 2 ** order - 1
    offs = np.array(lo.harmonic_offsets)
    assert offs.shape == (N_HARMONICS,)
    assert offs[0] == 0
    assert np.all(offs >= 0)
    assert np.all(np.diff(offs) > 0)
    assert all(isinstance(x, int) for x in lo.harmonic_offsets)


def test_harmonic_offset_formula() -> None:
    lo = resolve_layout(10, 2.0, 0.1, 8000.0, start_freq_hz=20.0, end_freq_hz=4000.0)
    # 16000 * log10(k) / log10(200)
    assert lo.harmonic_offsets == (0, 2093, 3318, 4186, 4860)
    assert lo.harmonic_offset(3) == 3318
    with pytest.raises(ValueError):
        lo.harmonic_offset(6)


def test_round_half_up() -> None:
    assert round_half_up(0.5) == 1
    assert round_half_up(1.5) == 2
    assert round_half_up(2.5) == 3
    assert round_half_up(2.49) == 2


@pytest.mark.parametrize(
    "args",
    [(0, 1.0, 0.1, 48000.0), (1, 1.0, 0.1, 48000.0), (8, 0.0, 0.1, 48000.0), (8, 1.0, -0.1, 48000.0), (8, 1.0, 0.1, 0.0)],
)
def test_invalid_inputs_raise(args) -> None:
    with pytest.raises(ValueError):
        resolve_layout(*args)


def test_falling_sweep_rejected() -> None:
    with pytest.raises(ValueError):
        resolve_layout(8, 1.0, 0.1, 48000.0, start_freq_hz=1000.0, end_freq_hz=100.0)


def test_layout_from_params_uses_sweep_range() -> None:
    p = TestSignalParams(mls_order=10, sweep_dur_s=2.0, gap_dur_s=0.1, start_freq_hz=20.0, end_freq_hz=4000.0)
    lo = layout_from_params(p, 8000.0)
    assert lo.harmonic_offsets[1] == 2093


# -----------------------------------------------------------------------
# Segment table
# -----------------------------------------------------------------------


def test_segment_table_bounds() -> None:
    lo = resolve_layout(8, 1.0, 0.1, 48000.0)
    S, G, L, W = 48000, 4800, 255, 127
    h = 64
    m = 13
    assert lo.half_win == h
    assert lo.gap_margin == m

    assert segment_bounds(lo, SegmentRole.PRE_SIGNAL_NOISE) == (0, S)
    assert segment_bounds(lo, SegmentRole.PRE_DECONV_MLS) == (S + G + 2 * L, S + G + 8 * L)
    assert segment_bounds(lo, SegmentRole.MLS_REPEAT_1) == (S + G + 11 * L, S + G + 19 * L)
    assert segment_bounds(lo, SegmentRole.MLS_REPEAT_2) == (S + G + 22 * L, S + G + 29 * L)
    assert segment_bounds(lo, SegmentRole.MLS_GAP) == (S + G + 20 * L + m, S + G + 21 * L - m)
    assert segment_bounds(lo, SegmentRole.NOISE_BEFORE_MLS) == (S + m, S + G - m)

    for k, (sw, si) in enumerate(zip(SWEEP_ROLES, SILENCE_ROLES), start=1):
        off = lo.harmonic_offset(k)
        assert segment_bounds(lo, sw) == (2 * S + 2 * G + 32 * L - h - off, 2 * S + 2 * G + 32 * L - h - off + W)
        assert segment_bounds(lo, si) == (S - h - off, S - h - off + W)


def test_every_role_has_table_entry() -> None:
    assert set(SEGMENT_TABLE) == set(SegmentRole)


def test_extract_segment_is_read_only_view() -> None:
    lo = resolve_layout(4, 0.01, 0.005, 8000.0)
    n = lo.sweep_arrival + lo.win_len
    audio = np.arange(n, dtype=float)
    seg = extract_segment(audio, lo, SegmentRole.MLS_REPEAT_1)
    start, stop = segment_bounds(lo, SegmentRole.MLS_REPEAT_1)
    np.testing.assert_array_equal(seg, audio[start:stop])
    assert np.shares_memory(seg, audio)
    with pytest.raises(ValueError):
        seg[0] = -1.0


def test_extract_segment_out_of_range() -> None:
    lo = resolve_layout(4, 0.01, 0.005, 8000.0)
    audio = np.zeros(lo.sweep_arrival)
    with pytest.raises(IndexError):
        extract_segment(audio, lo, SegmentRole.SWEEP_H1)
