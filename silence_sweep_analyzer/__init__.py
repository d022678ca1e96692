"""Silence Sweep Analyzer -- Python tooling for silence + MLS + log-sweep measurements.

This package turns a recording of the composite test signal (leading silence,
32 MLS periods with a one-period interruption, logarithmic sweep) into:
- SNR spectra of the raw recording
- SNR and SINAD spectra after deconvolution with the sweep's inverse filter
- The combined MLS impulse response and sweep pseudo impulse responses of the
  fundamental and harmonics 2..5, with matched noise floors
- Harmonic distortion versus excitation frequency

Key principles:
- Every segment boundary comes from one layout table derived from the
  test-signal parameters and the sample rate
- Precondition failures are returned as empty results with a diagnostic
- Non-fatal notes travel with the results as ``warnings``

Main subpackages:
- analysis: Layout, reduction, alignment, spectra, SNR/SINAD, impulse responses, distortion
- ingest: Recording readers
- models: Data models (Recording, AnalysisProfile, SilenceSweepResult)
- validation: Ideal reference stream and self-test
"""

__all__ = []
