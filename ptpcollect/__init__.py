"""Fetch, parse and write PTP synchronisation metrics through a caller-supplied exec context."""

__version__ = "0.1.0"