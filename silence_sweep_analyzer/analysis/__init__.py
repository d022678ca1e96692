"""Analysis package.

Design principle:
  - Ingest produces validated :class:`~silence_sweep_analyzer.models.recording.Recording` objects.
  - Analysis consumes a Recording and produces a
    :class:`~silence_sweep_analyzer.models.results.SilenceSweepResult`.

All functions keep time (or frequency) on axis 0 of their arrays and treat the
trailing (channel, dim5, dim6) axes as independent columns.
"""

from .layout import SegmentRole, TestSignalLayout, extract_segment, resolve_layout
from .pipeline import analyze_silence_sweep

__all__ = [
    "SegmentRole",
    "TestSignalLayout",
    "extract_segment",
    "resolve_layout",
    "analyze_silence_sweep",
]
