from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping, Optional, Sequence, Tuple

import numpy as np


# Metadata keys as written by the test-signal generator, with snake_case aliases.
_PARAM_KEYS = {
    "mls_order": ("MLSorder", "mls_order"),
    "sweep_dur_s": ("sweepdur", "sweep_dur_s", "sweep_dur"),
    "gap_dur_s": ("gapdur", "gap_dur_s", "gap_dur"),
    "start_freq_hz": ("start_freq", "start_freq_hz"),
    "end_freq_hz": ("end_freq", "end_freq_hz"),
}


@dataclass(frozen=True)
class TestSignalParams:
    """
    Parameters of the silence + MLS + log-sweep test signal.

    mls_order: MLS order n (period 2**n - 1 samples).
    sweep_dur_s: duration of the logarithmic sweep and of the leading silence.
    gap_dur_s: silent gap between silence/MLS and MLS/sweep.
    start_freq_hz, end_freq_hz: sweep start and end frequency.
    """
    __test__ = False  # not a pytest class

    mls_order: int
    sweep_dur_s: float
    gap_dur_s: float
    start_freq_hz: float
    end_freq_hz: float

    @classmethod
    def from_mapping(cls, d: Mapping[str, Any]) -> TestSignalParams:
        """Build from a metadata block; raises KeyError naming the missing keys."""
        vals: dict[str, Any] = {}
        missing: list[str] = []
        for field_name, aliases in _PARAM_KEYS.items():
            for key in aliases:
                if key in d:
                    vals[field_name] = d[key]
                    break
            else:
                missing.append(aliases[0])
        if missing:
            raise KeyError(f"Test-signal metadata is missing keys: {missing}")
        return cls(
            mls_order=int(vals["mls_order"]),
            sweep_dur_s=float(vals["sweep_dur_s"]),
            gap_dur_s=float(vals["gap_dur_s"]),
            start_freq_hz=float(vals["start_freq_hz"]),
            end_freq_hz=float(vals["end_freq_hz"]),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "MLSorder": self.mls_order,
            "sweepdur": self.sweep_dur_s,
            "gapdur": self.gap_dur_s,
            "start_freq": self.start_freq_hz,
            "end_freq": self.end_freq_hz,
        }


class CycleKind(Enum):
    """Role of one entry of the cycle dimension."""

    MEASUREMENT = "measurement"
    SILENT_CALIBRATION = "silent_calibration"


def cycle_kinds_from_relative_gain(relgain: Sequence[float]) -> Tuple[CycleKind, ...]:
    """Translate a per-cycle relative gain list (dB) into cycle kinds.

    A gain of ``-inf`` marks the silent calibration cycle.
    """
    g = np.asarray(relgain, dtype=float).ravel()
    return tuple(
        CycleKind.SILENT_CALIBRATION if (np.isinf(x) and x < 0) else CycleKind.MEASUREMENT
        for x in g
    )


@dataclass(frozen=True)
class Recording:
    """
    In-memory representation of one recorded response to the test signal.

    Notes
    - ``audio`` is always 6-D: (time, channel, band, cycle, dim5, dim6).
    - ``params`` is None when the recording carries no test-signal metadata;
      the analysis then returns an empty result.
    - ``inverse_filter`` present means the recording has not been deconvolved yet.
    """
    audio: np.ndarray
    fs: float
    params: Optional[TestSignalParams] = None
    inverse_filter: Optional[np.ndarray] = None
    cycle_kinds: Optional[Tuple[CycleKind, ...]] = None
    chan_ids: Optional[Tuple[str, ...]] = None
    dim5_ids: Optional[Tuple[str, ...]] = None
    dim6_ids: Optional[Tuple[str, ...]] = None
    units: Optional[Tuple[str, ...]] = None
    warnings: Tuple[str, ...] = ()

    def __post_init__(self) -> None:
        a = np.asarray(self.audio)
        if a.ndim != 6:
            raise ValueError(f"audio must be 6-D (time, chan, band, cycle, dim5, dim6), got shape {a.shape}")
        if not (np.isfinite(self.fs) and self.fs > 0):
            raise ValueError(f"fs must be finite and > 0, got {self.fs}")
        if self.cycle_kinds is not None and len(self.cycle_kinds) != a.shape[3]:
            raise ValueError(
                f"cycle_kinds has {len(self.cycle_kinds)} entries but audio has {a.shape[3]} cycles"
            )

    @classmethod
    def from_array(cls, audio: np.ndarray, fs: float, **kwargs: Any) -> Recording:
        """Promote a 1-D..6-D array to the 6-D layout by appending singleton axes."""
        a = np.asarray(audio, dtype=float)
        if a.ndim == 0 or a.ndim > 6:
            raise ValueError(f"audio must have 1..6 dimensions, got shape {a.shape}")
        a = a.reshape(a.shape + (1,) * (6 - a.ndim))
        inv = kwargs.pop("inverse_filter", None)
        if inv is not None:
            inv = np.asarray(inv, dtype=float)
        return cls(audio=a, fs=float(fs), inverse_filter=inv, **kwargs)

    @property
    def shape(self) -> Tuple[int, ...]:
        return tuple(int(x) for x in self.audio.shape)

    @property
    def n_samples(self) -> int:
        return int(self.audio.shape[0])

    @property
    def n_channels(self) -> int:
        return int(self.audio.shape[1])

    @property
    def is_deconvolved(self) -> bool:
        return self.inverse_filter is None


@dataclass(frozen=True)
class ReducedRecording:
    """Recording after band summation and cycle averaging.

    ``audio`` has shape ``(time, channel, dim5, dim6)``; label tuples always
    match the corresponding axis length.
    """

    audio: np.ndarray
    fs: float
    params: Optional[TestSignalParams]
    inverse_filter: Optional[np.ndarray]
    chan_ids: Tuple[str, ...]
    dim5_ids: Tuple[str, ...]
    dim6_ids: Tuple[str, ...]
    warnings: Tuple[str, ...] = ()

    @property
    def n_samples(self) -> int:
        return int(self.audio.shape[0])

    @property
    def combo_shape(self) -> Tuple[int, int, int]:
        """(channels, dim5, dim6)."""
        return tuple(int(x) for x in self.audio.shape[1:4])  # type: ignore[return-value]
