"""Duplicate media detection, quality ranking and metadata merging."""

__version__ = "0.1.0"
