"""Tests for AnalysisProfile."""

from __future__ import annotations

import dataclasses
import json

import pytest

from silence_sweep_analyzer.models.profile import AnalysisProfile


def test_profile_defaults() -> None:
    p = AnalysisProfile()
    assert p.octave_smoothing == 0
    assert p.threshold_db == 0.0
    assert p.bulk_element_limit == 1_000_000
    assert p.low_cutoff_cycles == 128.0
    assert p.gap_margin_frac == 0.05
    assert not p.smoothing_enabled


def test_profile_frozen() -> None:
    p = AnalysisProfile()
    with pytest.raises(dataclasses.FrozenInstanceError):
        p.octave_smoothing = 3  # type: ignore[misc]


def test_profile_replace() -> None:
    p = dataclasses.replace(AnalysisProfile(), octave_smoothing=3, threshold_db=10.0)
    assert p.smoothing_enabled
    assert p.threshold_db == 10.0
    assert p.bulk_element_limit == 1_000_000  # unchanged


@pytest.mark.parametrize(
    "kwargs",
    [
        {"octave_smoothing": -1},
        {"octave_smoothing": 1.5},
        {"threshold_db": float("nan")},
        {"bulk_element_limit": 0},
        {"low_cutoff_cycles": -1.0},
        {"gap_margin_frac": 0.5},
    ],
)
def test_validate_rejects(kwargs) -> None:
    with pytest.raises(ValueError):
        AnalysisProfile(**kwargs).validate()


def test_validate_returns_self() -> None:
    p = AnalysisProfile(octave_smoothing=6)
    assert p.validate() is p


def test_dict_roundtrip_through_json() -> None:
    p = AnalysisProfile(octave_smoothing=3, threshold_db=-3.0, bulk_element_limit=5000)
    d = json.loads(json.dumps(p.to_dict()))
    assert AnalysisProfile.from_dict(d) == p


def test_from_dict_rejects_unknown_keys() -> None:
    with pytest.raises(TypeError):
        AnalysisProfile.from_dict({"smoothing": 3})
