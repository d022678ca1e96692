from __future__ import annotations

from typing import Optional, Sequence, Tuple

import numpy as np

from silence_sweep_analyzer.models.recording import CycleKind, ReducedRecording, Recording


_LABEL_PREFIX = {"chan": "Chan", "dim5": "Dim5_", "dim6": "Dim6_"}


def make_labels(n: int, prefix: str) -> Tuple[str, ...]:
    """Deterministic labels ``prefix1..prefixN``; a single entry gets the empty label."""
    n = int(n)
    if n <= 1:
        return ("",)
    return tuple(f"{prefix}{i}" for i in range(1, n + 1))


def _labels_for_axis(given: Optional[Sequence[str]], n: int, prefix: str, name: str, warnings: list[str]) -> Tuple[str, ...]:
    if n <= 1:
        return ("",)
    if given is None:
        return make_labels(n, prefix)
    labels = tuple(str(x) for x in given)
    if len(labels) != n:
        warnings.append(f"{name} has {len(labels)} labels for {n} entries; using generated labels.")
        return make_labels(n, prefix)
    return labels


def _cycle_selection(kinds: Optional[Sequence[CycleKind]], n_cycles: int) -> np.ndarray:
    """Boolean mask of the cycles that enter the synchronous average."""
    if kinds is None:
        return np.ones(n_cycles, dtype=bool)
    keep = np.array([k is not CycleKind.SILENT_CALIBRATION for k in kinds], dtype=bool)
    if not np.any(keep):
        return np.ones(n_cycles, dtype=bool)
    return keep


def reduce_recording(rec: Recording) -> ReducedRecording:
    """Collapse the band and cycle axes of a recording.

    - bands are summed
    - cycles are averaged (synchronous average), excluding cycles marked
      :attr:`CycleKind.SILENT_CALIBRATION`

    Returns
    -------
    ReducedRecording
        Audio shaped ``(time, channel, dim5, dim6)`` with one label per entry.
    """
    audio = np.asarray(rec.audio, dtype=float)
    n_time, n_chan, n_band, n_cycle, n_d5, n_d6 = audio.shape

    warnings: list[str] = list(rec.warnings)

    if n_band > 1:
        audio = np.sum(audio, axis=2, keepdims=True)

    if n_cycle > 1:
        keep = _cycle_selection(rec.cycle_kinds, n_cycle)
        n_dropped = int(np.count_nonzero(~keep))
        if n_dropped:
            warnings.append(f"Discarded {n_dropped} silent calibration cycle(s) before averaging.")
        audio = np.mean(audio[:, :, :, keep, :, :], axis=3, keepdims=True)

    reduced = audio[:, :, 0, 0, :, :]

    return ReducedRecording(
        audio=reduced,
        fs=float(rec.fs),
        params=rec.params,
        inverse_filter=rec.inverse_filter,
        chan_ids=_labels_for_axis(rec.chan_ids, n_chan, _LABEL_PREFIX["chan"], "chan_ids", warnings),
        dim5_ids=_labels_for_axis(rec.dim5_ids, n_d5, _LABEL_PREFIX["dim5"], "dim5_ids", warnings),
        dim6_ids=_labels_for_axis(rec.dim6_ids, n_d6, _LABEL_PREFIX["dim6"], "dim6_ids", warnings),
        warnings=tuple(warnings),
    )
