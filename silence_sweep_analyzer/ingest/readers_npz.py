from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import numpy as np

from silence_sweep_analyzer.models.recording import (
    CycleKind,
    Recording,
    TestSignalParams,
    cycle_kinds_from_relative_gain,
)


class NpzRecordingReader:
    """
    Reader for recordings stored as NumPy ``.npz`` archives.

    Contract:
      - ``audio`` (1-D..6-D, time first) and ``fs`` MUST be present.
      - ``inverse_filter`` (alias ``audio2``) present means the recording is raw.
      - Test-signal parameters come from a JSON string under ``properties``,
        or from scalar keys ``MLSorder, sweepdur, gapdur, start_freq, end_freq``.
        Missing parameters are NOT a read error: ``params`` is None and a warning
        is attached (the analysis then returns an empty result).
      - Optional: ``relgain`` (per-cycle dB, ``-inf`` marks the silent
        calibration cycle), ``chanID``/``dim5ID``/``dim6ID`` label arrays, ``units``.
    """

    _INVERSE_FILTER_KEYS = ("inverse_filter", "audio2")
    _LABEL_KEYS = {
        "chan_ids": ("chanID", "chan_ids"),
        "dim5_ids": ("dim5ID", "dim5_ids"),
        "dim6_ids": ("dim6ID", "dim6_ids"),
        "units": ("units",),
    }

    def read(self, file_path: Path) -> Recording:
        fp = Path(file_path).expanduser().resolve()
        if not fp.is_file():
            raise FileNotFoundError(f"Recording file not found: {fp}")

        with np.load(fp, allow_pickle=False) as z:
            data: Dict[str, np.ndarray] = {k: z[k] for k in z.files}

        for key in ("audio", "fs"):
            if key not in data:
                raise KeyError(f"{fp.name}: required array '{key}' is missing (found: {sorted(data)})")

        warnings: list[str] = []
        audio = np.asarray(data["audio"], dtype=float)
        fs = float(np.asarray(data["fs"]).ravel()[0])

        params = self._read_params(data, warnings)

        inverse_filter = None
        for key in self._INVERSE_FILTER_KEYS:
            if key in data:
                inverse_filter = np.asarray(data[key], dtype=float).ravel()
                break

        cycle_kinds = None
        if "relgain" in data:
            n_cycles = audio.shape[3] if audio.ndim >= 4 else 1
            kinds = cycle_kinds_from_relative_gain(data["relgain"])
            if len(kinds) == n_cycles:
                cycle_kinds = kinds
            else:
                warnings.append(f"relgain has {len(kinds)} entries for {n_cycles} cycles; ignored.")

        labels = {name: self._read_labels(data, keys) for name, keys in self._LABEL_KEYS.items()}

        return Recording.from_array(
            audio,
            fs,
            params=params,
            inverse_filter=inverse_filter,
            cycle_kinds=cycle_kinds,
            warnings=tuple(warnings),
            **labels,
        )

    @staticmethod
    def _read_params(data: Dict[str, np.ndarray], warnings: list[str]) -> Optional[TestSignalParams]:
        meta: Dict[str, Any] = {}
        if "properties" in data:
            try:
                props = json.loads(str(np.asarray(data["properties"]).item()))
            except json.JSONDecodeError as e:
                warnings.append(f"'properties' is not valid JSON ({e}); ignored.")
            else:
                if isinstance(props, dict):
                    meta.update(props)
                else:
                    warnings.append("'properties' is not a JSON object; ignored.")
        for k, v in data.items():
            if k not in meta and np.asarray(v).size == 1:
                meta[k] = np.asarray(v).item()

        try:
            return TestSignalParams.from_mapping(meta)
        except KeyError as e:
            warnings.append(str(e.args[0]) if e.args else "Test-signal metadata is missing.")
            return None

    @staticmethod
    def _read_labels(data: Dict[str, np.ndarray], keys: Tuple[str, ...]) -> Optional[Tuple[str, ...]]:
        for key in keys:
            if key in data:
                return tuple(str(x) for x in np.asarray(data[key]).ravel())
        return None


def save_recording_npz(file_path: Path, recording: Recording) -> Path:
    """Write a recording in the layout :class:`NpzRecordingReader` reads."""
    fp = Path(file_path).expanduser()
    arrays: Dict[str, Any] = {"audio": np.asarray(recording.audio), "fs": np.float64(recording.fs)}
    if recording.params is not None:
        arrays["properties"] = np.array(json.dumps(recording.params.to_dict()))
    if recording.inverse_filter is not None:
        arrays["inverse_filter"] = np.asarray(recording.inverse_filter)
    for key, labels in (
        ("chanID", recording.chan_ids),
        ("dim5ID", recording.dim5_ids),
        ("dim6ID", recording.dim6_ids),
        ("units", recording.units),
    ):
        if labels is not None:
            arrays[key] = np.array(labels, dtype=str)
    if recording.cycle_kinds is not None:
        arrays["relgain"] = np.array(
            [-np.inf if k is CycleKind.SILENT_CALIBRATION else 0.0 for k in recording.cycle_kinds]
        )
    np.savez(fp, **arrays)
    return fp if fp.suffix == ".npz" else fp.with_name(fp.name + ".npz")
