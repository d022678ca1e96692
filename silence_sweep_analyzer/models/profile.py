"""Analysis profile -- bundles all configuration that affects the analysis output.

An AnalysisProfile groups every user-selectable parameter into one frozen
dataclass.  It can be:

- Constructed with defaults (no smoothing, 0 dB distortion threshold)
- Overridden field-by-field via ``dataclasses.replace()``
- Serialized to/from a dict for JSON provenance next to exported results
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict

import numpy as np


@dataclass(frozen=True)
class AnalysisProfile:
    """Frozen configuration for the silence-sweep analysis.

    Fields
    ------
    octave_smoothing : int
        Fractional-octave smoothing order applied to every power spectrum.
        0 disables smoothing, 1 is octave, 3 is 1/3-octave smoothing.
    threshold_db : float
        Level above the effective noise floor that a harmonic must exceed to
        be reported as distortion.
    bulk_element_limit : int
        Segments with at least this many samples in total are transformed in
        an explicit per-channel loop instead of one bulk array operation.
    low_cutoff_cycles : float
        Low-frequency cutoff applied after smoothing, in cycles per analysis
        window duration.
    gap_margin_frac : float
        Fraction of the MLS length trimmed from each edge of the silent gaps.
    """

    octave_smoothing: int = 0
    threshold_db: float = 0.0
    bulk_element_limit: int = 1_000_000
    low_cutoff_cycles: float = 128.0
    gap_margin_frac: float = 0.05

    def validate(self) -> AnalysisProfile:
        """Raise ValueError for out-of-range fields; return self for chaining."""
        if int(self.octave_smoothing) != self.octave_smoothing or self.octave_smoothing < 0:
            raise ValueError(f"octave_smoothing must be a non-negative integer, got {self.octave_smoothing}")
        if not np.isfinite(self.threshold_db):
            raise ValueError(f"threshold_db must be finite, got {self.threshold_db}")
        if self.bulk_element_limit <= 0:
            raise ValueError(f"bulk_element_limit must be > 0, got {self.bulk_element_limit}")
        if not (np.isfinite(self.low_cutoff_cycles) and self.low_cutoff_cycles >= 0):
            raise ValueError(f"low_cutoff_cycles must be finite and >= 0, got {self.low_cutoff_cycles}")
        if not (0.0 <= self.gap_margin_frac < 0.5):
            raise ValueError(f"gap_margin_frac must be in [0, 0.5), got {self.gap_margin_frac}")
        return self

    @property
    def smoothing_enabled(self) -> bool:
        return int(self.octave_smoothing) > 0

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        """Return a JSON-friendly dict."""
        return asdict(self)

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> AnalysisProfile:
        """Reconstruct from a dict (e.g. loaded from JSON). Unknown keys are rejected."""
        d = dict(d)  # shallow copy
        if "octave_smoothing" in d:
            d["octave_smoothing"] = int(d["octave_smoothing"])
        if "bulk_element_limit" in d:
            d["bulk_element_limit"] = int(d["bulk_element_limit"])
        return cls(**d)
