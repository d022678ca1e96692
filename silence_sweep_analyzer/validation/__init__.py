"""Validation utilities.

This package contains *non-interactive* tooling that checks the analysis
against the ideal response of a perfect, noiseless measurement system.

Design goals
------------
1) Build the reference stream from the same layout the analysis uses.
2) Make the check reproducible and scriptable (CLI-style entry point).
"""
