"""Exception types for precondition failures of the silence-sweep analysis.

Both failures are reported to the caller as an *empty* result carrying a
diagnostic message (see :func:`silence_sweep_analyzer.analysis.pipeline.analyze_silence_sweep`).
The stage functions raise them so that they can also be used on their own.
"""

from __future__ import annotations


class SilenceSweepError(ValueError):
    """Base class for analysis precondition failures."""


class MissingMetadataError(SilenceSweepError, KeyError):
    """The recording does not carry the silence-sweep test-signal parameters."""

    def __str__(self) -> str:
        # KeyError would otherwise repr() the message.
        return str(self.args[0]) if self.args else ""


class InsufficientLengthError(SilenceSweepError):
    """The (already deconvolved) recording is shorter than the test signal requires."""

    def __init__(self, n_samples: int, n_required: int) -> None:
        self.n_samples = int(n_samples)
        self.n_required = int(n_required)
        super().__init__(
            f"Input audio is too short to analyse: {self.n_samples} samples, "
            f"need at least {self.n_required}. It looks like it has been truncated; "
            f"try the raw recording instead of the convolved one."
        )
