from __future__ import annotations

import itertools
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Dict, Iterator, List, Optional, Tuple

import numpy as np
import pandas as pd

from silence_sweep_analyzer.models.profile import AnalysisProfile

if TYPE_CHECKING:
    from silence_sweep_analyzer.analysis.layout import TestSignalLayout


def _combos(shape: Tuple[int, ...]) -> Iterator[Tuple[int, ...]]:
    return itertools.product(*(range(int(n)) for n in shape))


@dataclass(frozen=True)
class PowerSpectrum:
    """Non-negative power values on a frequency axis.

    Attributes
    ----------
    freqs:
        Frequency axis in Hz, shape ``(n_bins,)``.
    power:
        Shape ``(n_bins, n_chan, n_dim5, n_dim6)``.
    smoothed:
        True when fractional-octave smoothing has been applied.
    """

    freqs: np.ndarray
    power: np.ndarray
    smoothed: bool = False

    def __post_init__(self) -> None:
        if np.shape(self.power)[0] != np.size(self.freqs):
            raise ValueError(
                f"power has {np.shape(self.power)[0]} bins but freqs has {np.size(self.freqs)}"
            )

    @property
    def n_bins(self) -> int:
        return int(np.size(self.freqs))

    def level_db(self) -> np.ndarray:
        """``10*log10(power)``; zero power maps to ``-inf``."""
        with np.errstate(divide="ignore"):
            return 10.0 * np.log10(np.asarray(self.power, dtype=float))


@dataclass(frozen=True)
class SnrResult:
    """Pre-deconvolution spectra (raw recording)."""

    noise_power: PowerSpectrum
    signal_power: PowerSpectrum
    snr: PowerSpectrum

    def curves(self) -> Dict[str, PowerSpectrum]:
        return {"NoisePower": self.noise_power, "SigPower": self.signal_power, "SNR": self.snr}


@dataclass(frozen=True)
class SnrSinadResult:
    """Post-deconvolution spectra (aligned, deconvolved recording)."""

    noise_before_mls_power: PowerSpectrum
    noise_dist_power: PowerSpectrum
    signal_power: PowerSpectrum
    snr: PowerSpectrum
    sinad: PowerSpectrum

    def curves(self) -> Dict[str, PowerSpectrum]:
        return {
            "NoisebeforeMLSPower": self.noise_before_mls_power,
            "NoiseDistPower": self.noise_dist_power,
            "SigPow2": self.signal_power,
            "SNR2": self.snr,
            "SINAD": self.sinad,
        }


@dataclass(frozen=True)
class ImpulseResponseSet:
    """Windowed impulse responses and their power spectra.

    Attributes
    ----------
    t:
        Time axis of every response in seconds, 0 at the expected arrival.
    freqs:
        Frequency axis of every spectrum in Hz.
    mls_ir, mls_spectrum:
        Combined MLS impulse response (scaled to the sweep fundamental) and its spectrum.
    sweep_irs, sweep_spectra:
        Sweep pseudo impulse responses keyed by harmonic order 1..5.
    silence_irs, silence_spectra:
        Equivalent-time segments of the leading silence (noise floors), same keys.
    """

    t: np.ndarray
    freqs: np.ndarray
    mls_ir: np.ndarray
    mls_spectrum: np.ndarray
    sweep_irs: Dict[int, np.ndarray]
    sweep_spectra: Dict[int, np.ndarray]
    silence_irs: Dict[int, np.ndarray]
    silence_spectra: Dict[int, np.ndarray]
    smoothed: bool = False
    strategy: str = "bulk"

    @property
    def orders(self) -> Tuple[int, ...]:
        return tuple(sorted(self.sweep_irs))


@dataclass(frozen=True)
class HarmonicDistortionCurve:
    """Relative level of harmonic ``order`` versus excitation frequency.

    ``level_db`` has shape ``(n_points, n_chan, n_dim5, n_dim6)``; points that
    were below the noise threshold or numerically invalid are NaN (absent).
    """

    order: int
    excitation_freqs: np.ndarray
    level_db: np.ndarray

    @property
    def valid(self) -> np.ndarray:
        return np.isfinite(self.level_db)

    @property
    def n_valid(self) -> int:
        return int(np.count_nonzero(self.valid))

    def points(self, chan: int = 0, dim5: int = 0, dim6: int = 0) -> List[Tuple[float, float]]:
        """Present ``(excitation_freq_hz, level_db)`` pairs of one channel combination."""
        col = self.level_db[:, chan, dim5, dim6]
        ok = np.isfinite(col)
        return [(float(f), float(v)) for f, v in zip(self.excitation_freqs[ok], col[ok])]


@dataclass(frozen=True)
class SilenceSweepResult:
    """Everything the silence-sweep analysis produces for one recording.

    An *empty* result (``diagnostic`` set, all curves None) is returned when a
    precondition fails; the diagnostic is meant to be shown to the user.
    """

    layout: Optional[TestSignalLayout] = None
    chan_ids: Tuple[str, ...] = ("",)
    dim5_ids: Tuple[str, ...] = ("",)
    dim6_ids: Tuple[str, ...] = ("",)
    alignment_shift: int = 0
    pre_deconvolution: Optional[SnrResult] = None
    post_deconvolution: Optional[SnrSinadResult] = None
    impulse_responses: Optional[ImpulseResponseSet] = None
    distortion: Dict[int, HarmonicDistortionCurve] = field(default_factory=dict)
    profile: AnalysisProfile = field(default_factory=AnalysisProfile)
    warnings: Tuple[str, ...] = ()
    diagnostic: Optional[str] = None

    @classmethod
    def empty(
        cls,
        message: str,
        *,
        profile: Optional[AnalysisProfile] = None,
        warnings: Tuple[str, ...] = (),
    ) -> SilenceSweepResult:
        return cls(
            profile=profile if profile is not None else AnalysisProfile(),
            warnings=tuple(warnings),
            diagnostic=str(message),
        )

    @property
    def is_empty(self) -> bool:
        return self.diagnostic is not None

    # ------------------------------------------------------------------
    # Export
    # ------------------------------------------------------------------

    def _label(self, idx: Tuple[int, int, int]) -> Tuple[str, str, str]:
        c, d5, d6 = idx
        return self.chan_ids[c], self.dim5_ids[d5], self.dim6_ids[d6]

    def curves_frame(self) -> pd.DataFrame:
        """Tidy table of every SNR / SINAD curve.

        Columns: ``stage, curve, chan, dim5, dim6, freq_hz, power, level_db``.
        """
        stages = []
        if self.pre_deconvolution is not None:
            stages.append(("pre_deconvolution", self.pre_deconvolution.curves()))
        if self.post_deconvolution is not None:
            stages.append(("post_deconvolution", self.post_deconvolution.curves()))

        frames = []
        for stage, curves in stages:
            for name, ps in curves.items():
                db = ps.level_db()
                for idx in _combos(ps.power.shape[1:]):
                    chan, d5, d6 = self._label(idx)
                    col = (slice(None),) + idx
                    frames.append(
                        pd.DataFrame(
                            {
                                "stage": stage,
                                "curve": name,
                                "chan": chan,
                                "dim5": d5,
                                "dim6": d6,
                                "freq_hz": ps.freqs,
                                "power": ps.power[col],
                                "level_db": db[col],
                            }
                        )
                    )
        if not frames:
            return pd.DataFrame(
                columns=["stage", "curve", "chan", "dim5", "dim6", "freq_hz", "power", "level_db"]
            )
        return pd.concat(frames, ignore_index=True)

    def distortion_frame(self) -> pd.DataFrame:
        """Tidy table of the present harmonic-distortion points.

        Columns: ``order, chan, dim5, dim6, excitation_freq_hz, level_db``.
        """
        rows = []
        for order in sorted(self.distortion):
            curve = self.distortion[order]
            for idx in _combos(curve.level_db.shape[1:]):
                chan, d5, d6 = self._label(idx)
                for f, v in curve.points(*idx):
                    rows.append(
                        {
                            "order": order,
                            "chan": chan,
                            "dim5": d5,
                            "dim6": d6,
                            "excitation_freq_hz": f,
                            "level_db": v,
                        }
                    )
        return pd.DataFrame(rows, columns=["order", "chan", "dim5", "dim6", "excitation_freq_hz", "level_db"])
