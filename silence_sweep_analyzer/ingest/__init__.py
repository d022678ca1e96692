"""Ingest package - recording readers.

Key classes:
- NpzRecordingReader: Reads a recording saved as a NumPy ``.npz`` archive

Design principle:
- Readers produce validated Recording objects
- Missing test-signal metadata is not a read error; the analysis reports it
"""
