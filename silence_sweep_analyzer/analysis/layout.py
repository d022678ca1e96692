"""Sample-domain layout of the silence + MLS + log-sweep test signal.

Every segment the analysis reads is an affine function of a handful of integer
lengths derived from the test-signal parameters and the sample rate.  This
module computes those lengths once (:class:`TestSignalLayout`) and describes
every segment in one table (:data:`SEGMENT_TABLE`), so that no stage computes
its own slice indices.

Test-signal timeline (after deconvolution)
------------------------------------------
With ``S`` the sweep length, ``G`` the gap length and ``L`` the MLS period::

    [0, S)                    leading silence (noise reference)
    [S, S+G)                  gap
    [S+G, S+G+20L)            20 MLS cycles
    [S+G+20L, S+G+21L)        1-cycle interruption (noise + distortion)
    [S+G+21L, S+G+32L)        11 MLS cycles
    [S+G+32L, S+2G+32L)       gap
    [S+2G+32L, 2S+2G+32L)     logarithmic sweep

The linear sweep response arrives at ``2S+2G+32L`` (the end of the sweep, as
produced by convolution with the inverse filter); harmonic ``k`` arrives
``offset_k`` samples earlier.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, Tuple

import numpy as np

from silence_sweep_analyzer.models.recording import TestSignalParams


N_HARMONICS = 5

# MLS cycle bookkeeping (cycle indices counted from the start of the MLS block)
MLS_CYCLES_BEFORE_GAP = 20
MLS_BLOCK_CYCLES = 32
MLS_REPEAT_1_FIRST_CYCLE = 11
MLS_REPEAT_1_CYCLES = 8
MLS_REPEAT_2_FIRST_CYCLE = 22
MLS_REPEAT_2_CYCLES = 7
PRE_DECONV_FIRST_CYCLE = 2
PRE_DECONV_CYCLES = 6


def round_half_up(x: float) -> int:
    """Round to the nearest integer, halves away from -inf (sample arithmetic convention)."""
    return int(math.floor(float(x) + 0.5))


@dataclass(frozen=True)
class TestSignalLayout:
    """Integer lengths of the test signal at a given sample rate.

    Attributes
    ----------
    mls_len:
        MLS period ``2**order - 1``.
    sweep_len, gap_len:
        Sweep (and leading silence) length and gap length in samples.
    win_len:
        Analysis window length, half the MLS period.
    half_win:
        Pre-arrival part of the impulse-response window.
    harmonic_offsets:
        Arrival advance of harmonics 1..5 relative to the linear response.
        ``harmonic_offsets[0] == 0``.
    gap_margin:
        Samples trimmed from each edge of the silent gaps.
    """
    __test__ = False  # not a pytest class

    mls_order: int
    fs: float
    mls_len: int
    sweep_len: int
    gap_len: int
    win_len: int
    half_win: int
    harmonic_offsets: Tuple[int, ...]
    gap_margin: int

    @property
    def mls_start(self) -> int:
        return self.sweep_len + self.gap_len

    @property
    def mls_gap_start(self) -> int:
        """First sample of the 1-cycle MLS interruption (alignment anchor)."""
        return self.mls_start + MLS_CYCLES_BEFORE_GAP * self.mls_len

    @property
    def sweep_start(self) -> int:
        return self.mls_start + MLS_BLOCK_CYCLES * self.mls_len + self.gap_len

    @property
    def sweep_arrival(self) -> int:
        """Expected arrival of the linear sweep response after deconvolution."""
        return self.sweep_start + self.sweep_len

    @property
    def silence_arrival(self) -> int:
        """Equivalent arrival time within the leading silence."""
        return self.sweep_len

    def harmonic_offset(self, order: int) -> int:
        k = int(order)
        if not (1 <= k <= N_HARMONICS):
            raise ValueError(f"harmonic order must be in [1, {N_HARMONICS}], got {order}")
        return self.harmonic_offsets[k - 1]


def resolve_layout(
    mls_order: int,
    sweep_dur_s: float,
    gap_dur_s: float,
    fs: float,
    *,
    start_freq_hz: float = 20.0,
    end_freq_hz: float = 20000.0,
    gap_margin_frac: float = 0.05,
) -> TestSignalLayout:
    """Derive the sample-domain layout from the test-signal parameters.

    Parameters
    ----------
    mls_order:
        MLS order n (>= 2).
    sweep_dur_s, gap_dur_s:
        Sweep and gap durations in seconds (> 0).
    fs:
        Sample rate in Hz (> 0).
    start_freq_hz, end_freq_hz:
        Sweep frequency range; only used for the harmonic offsets.

    Returns
    -------
    TestSignalLayout

    Notes
    -----
    For a logarithmic sweep the instantaneous frequency grows as
    ``f(t) = f0 * (f1/f0)**(t/T)``; the k-th harmonic of the tone emitted at
    time t equals the fundamental emitted ``T*log(k)/log(f1/f0)`` later, so
    after deconvolution it appears that many samples *before* the linear
    response.
    """
    order = int(mls_order)
    if order != mls_order or order < 2:
        raise ValueError(f"mls_order must be an integer >= 2, got {mls_order}")
    for name, v in (("sweep_dur_s", sweep_dur_s), ("gap_dur_s", gap_dur_s), ("fs", fs)):
        if not (np.isfinite(v) and v > 0):
            raise ValueError(f"{name} must be finite and > 0, got {v}")
    if not (0 < start_freq_hz < end_freq_hz):
        raise ValueError(
            f"sweep must rise: need 0 < start_freq_hz < end_freq_hz, got {start_freq_hz}, {end_freq_hz}"
        )

    mls_len = 2 ** order - 1
    sweep_len = round_half_up(sweep_dur_s * fs)
    gap_len = round_half_up(gap_dur_s * fs)
    win_len = mls_len // 2
    half_win = round_half_up(win_len / 2.0)

    decades = math.log10(float(end_freq_hz) / float(start_freq_hz))
    offsets = tuple(
        round_half_up(sweep_len * math.log10(k) / decades) for k in range(1, N_HARMONICS + 1)
    )

    return TestSignalLayout(
        mls_order=order,
        fs=float(fs),
        mls_len=mls_len,
        sweep_len=sweep_len,
        gap_len=gap_len,
        win_len=win_len,
        half_win=half_win,
        harmonic_offsets=offsets,
        gap_margin=round_half_up(mls_len * float(gap_margin_frac)),
    )


def layout_from_params(params: TestSignalParams, fs: float, *, gap_margin_frac: float = 0.05) -> TestSignalLayout:
    return resolve_layout(
        params.mls_order,
        params.sweep_dur_s,
        params.gap_dur_s,
        fs,
        start_freq_hz=params.start_freq_hz,
        end_freq_hz=params.end_freq_hz,
        gap_margin_frac=gap_margin_frac,
    )


def minimum_recording_length(mls_order: int, sweep_dur_s: float, gap_dur_s: float, fs: float) -> int:
    """Shortest deconvolved recording the analysis accepts (samples)."""
    mls_len = 2 ** int(mls_order) - 1
    return int(math.floor(41 * mls_len + fs * (2.0 * gap_dur_s + sweep_dur_s) - 1 + 1e-9))


# ---------------------------------------------------------------------------
# Segment table
# ---------------------------------------------------------------------------


class SegmentRole(Enum):
    PRE_SIGNAL_NOISE = "pre_signal_noise"
    PRE_DECONV_MLS = "pre_deconv_mls"
    MLS_REPEAT_1 = "mls_repeat_1"
    MLS_REPEAT_2 = "mls_repeat_2"
    MLS_GAP = "mls_gap"
    NOISE_BEFORE_MLS = "noise_before_mls"
    SWEEP_H1 = "sweep_h1"
    SWEEP_H2 = "sweep_h2"
    SWEEP_H3 = "sweep_h3"
    SWEEP_H4 = "sweep_h4"
    SWEEP_H5 = "sweep_h5"
    SILENCE_H1 = "silence_h1"
    SILENCE_H2 = "silence_h2"
    SILENCE_H3 = "silence_h3"
    SILENCE_H4 = "silence_h4"
    SILENCE_H5 = "silence_h5"


SWEEP_ROLES: Tuple[SegmentRole, ...] = (
    SegmentRole.SWEEP_H1,
    SegmentRole.SWEEP_H2,
    SegmentRole.SWEEP_H3,
    SegmentRole.SWEEP_H4,
    SegmentRole.SWEEP_H5,
)
SILENCE_ROLES: Tuple[SegmentRole, ...] = (
    SegmentRole.SILENCE_H1,
    SegmentRole.SILENCE_H2,
    SegmentRole.SILENCE_H3,
    SegmentRole.SILENCE_H4,
    SegmentRole.SILENCE_H5,
)

_Bound = Callable[[TestSignalLayout], int]


def _mls_cycles(first_cycle: int, n_cycles: int) -> Tuple[_Bound, _Bound]:
    return (
        lambda lo: lo.mls_start + first_cycle * lo.mls_len,
        lambda lo: n_cycles * lo.mls_len,
    )


def _ir_window(arrival: Callable[[TestSignalLayout], int], order: int) -> Tuple[_Bound, _Bound]:
    return (
        lambda lo: arrival(lo) - lo.half_win - lo.harmonic_offset(order),
        lambda lo: lo.win_len,
    )


SEGMENT_TABLE: Dict[SegmentRole, Tuple[_Bound, _Bound]] = {
    SegmentRole.PRE_SIGNAL_NOISE: (lambda lo: 0, lambda lo: lo.sweep_len),
    SegmentRole.PRE_DECONV_MLS: _mls_cycles(PRE_DECONV_FIRST_CYCLE, PRE_DECONV_CYCLES),
    SegmentRole.MLS_REPEAT_1: _mls_cycles(MLS_REPEAT_1_FIRST_CYCLE, MLS_REPEAT_1_CYCLES),
    SegmentRole.MLS_REPEAT_2: _mls_cycles(MLS_REPEAT_2_FIRST_CYCLE, MLS_REPEAT_2_CYCLES),
    SegmentRole.MLS_GAP: (
        lambda lo: lo.mls_gap_start + lo.gap_margin,
        lambda lo: lo.mls_len - 2 * lo.gap_margin,
    ),
    SegmentRole.NOISE_BEFORE_MLS: (
        lambda lo: lo.sweep_len + lo.gap_margin,
        lambda lo: lo.gap_len - 2 * lo.gap_margin,
    ),
}
for _k, (_sweep, _silence) in enumerate(zip(SWEEP_ROLES, SILENCE_ROLES), start=1):
    SEGMENT_TABLE[_sweep] = _ir_window(lambda lo: lo.sweep_arrival, _k)
    SEGMENT_TABLE[_silence] = _ir_window(lambda lo: lo.silence_arrival, _k)
del _k, _sweep, _silence


def segment_bounds(layout: TestSignalLayout, role: SegmentRole) -> Tuple[int, int]:
    """Return ``(start, stop)`` sample indices of a segment."""
    start_fn, length_fn = SEGMENT_TABLE[role]
    start = int(start_fn(layout))
    length = int(length_fn(layout))
    if length <= 0:
        raise ValueError(f"Segment {role.value} has non-positive length {length} for this layout")
    return start, start + length


def extract_segment(audio: np.ndarray, layout: TestSignalLayout, role: SegmentRole) -> np.ndarray:
    """Read-only view of one segment along the time axis (axis 0).

    Raises IndexError when the segment does not lie within the array.
    """
    start, stop = segment_bounds(layout, role)
    n = int(np.shape(audio)[0])
    if start < 0 or stop > n:
        raise IndexError(f"Segment {role.value} [{start}, {stop}) outside recording of {n} samples")
    view = np.asarray(audio)[start:stop]
    view.flags.writeable = False
    return view
