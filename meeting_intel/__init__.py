"""Transcript chunking and multi-stage consolidation into meeting intelligence."""

__version__ = "0.1.0"
