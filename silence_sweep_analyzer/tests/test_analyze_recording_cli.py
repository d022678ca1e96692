from __future__ import annotations

import json

import numpy as np
import pandas as pd

from silence_sweep_analyzer.errors import InsufficientLengthError, MissingMetadataError
from silence_sweep_analyzer.ingest.readers_npz import save_recording_npz
from silence_sweep_analyzer.models.recording import Recording, TestSignalParams
from silence_sweep_analyzer.scripts.analyze_recording import main
from silence_sweep_analyzer.validation.self_test import reference_recording


PARAMS = TestSignalParams(mls_order=10, sweep_dur_s=1.0, gap_dur_s=0.1, start_freq_hz=20.0, end_freq_hz=4000.0)


def test_cli_writes_tables(tmp_path, capsys) -> None:
    fp = save_recording_npz(tmp_path / "rec.npz", reference_recording(PARAMS, 8000.0, dither=1e-7))
    out_dir = tmp_path / "out"

    rc = main([str(fp), "--octave-smoothing", "3", "--out-dir", str(out_dir)])

    assert rc == 0
    curves = pd.read_csv(out_dir / "curves.csv")
    assert set(curves["stage"]) == {"post_deconvolution"}
    assert (out_dir / "distortion.csv").is_file()
    profile = json.loads((out_dir / "profile.json").read_text(encoding="utf-8"))
    assert profile["octave_smoothing"] == 3
    out = capsys.readouterr().out
    assert "[info] SNR2" in out
    assert "[warn] No inverse filter" in out


def test_cli_reports_missing_metadata(tmp_path, capsys) -> None:
    fp = save_recording_npz(tmp_path / "bare.npz", Recording.from_array(np.zeros(100), 8000.0))
    rc = main([str(fp)])
    assert rc == 1
    assert "[error]" in capsys.readouterr().out
    assert not (tmp_path / "bare_analysis").exists()


def test_cli_rejects_bad_profile(tmp_path, capsys) -> None:
    fp = save_recording_npz(tmp_path / "rec.npz", Recording.from_array(np.zeros(100), 8000.0))
    assert main([str(fp), "--octave-smoothing", "-2"]) == 2


def test_error_types() -> None:
    e = InsufficientLengthError(10, 20)
    assert isinstance(e, ValueError)
    assert e.n_required == 20
    assert "10 samples" in str(e)
    m = MissingMetadataError("no parameters")
    assert isinstance(m, KeyError)
    assert str(m) == "no parameters"
