from .profile import AnalysisProfile
from .recording import CycleKind, Recording, ReducedRecording, TestSignalParams
from .results import (
    HarmonicDistortionCurve,
    ImpulseResponseSet,
    PowerSpectrum,
    SilenceSweepResult,
    SnrResult,
    SnrSinadResult,
)

__all__ = [
    "AnalysisProfile",
    "CycleKind",
    "Recording",
    "ReducedRecording",
    "TestSignalParams",
    "HarmonicDistortionCurve",
    "ImpulseResponseSet",
    "PowerSpectrum",
    "SilenceSweepResult",
    "SnrResult",
    "SnrSinadResult",
]
