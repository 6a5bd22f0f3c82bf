"""Bulk client roster import pipeline."""

__version__ = "0.1.0"
