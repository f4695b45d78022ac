"""Transcript normalization, chunking and validation."""
