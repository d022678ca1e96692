from __future__ import annotations

"""Analyse one silence-sweep recording from the command line.

Workflow:

1) Read the recording (``.npz``, see :class:`NpzRecordingReader`).
2) Run the silence-sweep analysis with the profile given by the flags.
3) Export ``curves.csv``, ``distortion.csv`` and ``profile.json`` to the output folder.
"""

import json
from pathlib import Path
from typing import Optional, Sequence

import numpy as np

from silence_sweep_analyzer.analysis.pipeline import analyze_silence_sweep
from silence_sweep_analyzer.ingest.readers_npz import NpzRecordingReader
from silence_sweep_analyzer.models.profile import AnalysisProfile
from silence_sweep_analyzer.models.results import SilenceSweepResult


def export_result(result: SilenceSweepResult, out_dir: Path) -> dict[str, Path]:
    """Write the result tables and the profile next to each other."""
    out = Path(out_dir)
    out.mkdir(parents=True, exist_ok=True)
    paths = {
        "curves": out / "curves.csv",
        "distortion": out / "distortion.csv",
        "profile": out / "profile.json",
    }
    result.curves_frame().to_csv(paths["curves"], index=False)
    result.distortion_frame().to_csv(paths["distortion"], index=False)
    paths["profile"].write_text(json.dumps(result.profile.to_dict(), indent=2), encoding="utf-8")
    return paths


def _summary_lines(result: SilenceSweepResult) -> list[str]:
    lines: list[str] = []
    post = result.post_deconvolution
    if post is not None:
        for name, ps in (("SNR2", post.snr), ("SINAD", post.sinad)):
            db = ps.level_db()
            db = db[np.isfinite(db)]
            if db.size:
                lines.append(f"{name}: median {np.median(db):.1f} dB, min {np.min(db):.1f} dB")
    for order, curve in sorted(result.distortion.items()):
        lines.append(f"H{order}: {curve.n_valid} point(s) above the noise threshold")
    return lines


def main(argv: Optional[Sequence[str]] = None) -> int:
    import argparse
    import textwrap

    p = argparse.ArgumentParser(
        prog="python -m silence_sweep_analyzer.scripts.analyze_recording",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        description=textwrap.dedent(
            """\
            Run the silence-sweep analysis on a recording saved as .npz.

            The archive must contain 'audio' and 'fs'. Test-signal parameters are read
            from a JSON 'properties' string or from scalar keys (MLSorder, sweepdur,
            gapdur, start_freq, end_freq). An 'inverse_filter' array marks a raw recording.
            """
        ),
    )
    p.add_argument("recording", help="Recording file (.npz)")
    p.add_argument("--octave-smoothing", type=int, default=0, help="Fractional-octave smoothing order (0 = off, 3 = 1/3 octave)")
    p.add_argument("--threshold-db", type=float, default=0.0, help="Distortion threshold above the noise floor (dB)")
    p.add_argument(
        "--bulk-element-limit",
        type=int,
        default=AnalysisProfile.bulk_element_limit,
        help="Recordings with at least this many samples get per-channel spectra",
    )
    p.add_argument("--out-dir", default=None, help="Output directory (default: <recording>_analysis)")

    ns = p.parse_args(list(argv) if argv is not None else None)

    rec_path = Path(ns.recording).expanduser()
    profile = AnalysisProfile(
        octave_smoothing=int(ns.octave_smoothing),
        threshold_db=float(ns.threshold_db),
        bulk_element_limit=int(ns.bulk_element_limit),
    )
    try:
        profile.validate()
    except ValueError as e:
        print(f"[error] {e}")
        return 2

    recording = NpzRecordingReader().read(rec_path)
    result = analyze_silence_sweep(recording, profile)

    for w in result.warnings:
        print(f"[warn] {w}")
    if result.is_empty:
        print(f"[error] {result.diagnostic}")
        return 1

    out_dir = Path(ns.out_dir) if ns.out_dir else rec_path.with_name(rec_path.stem + "_analysis")
    paths = export_result(result, out_dir)
    for line in _summary_lines(result):
        print(f"[info] {line}")
    print(f"[info] wrote: {paths['curves']}, {paths['distortion']}, {paths['profile']}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
