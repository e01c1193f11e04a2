"""Command line interface for smart duplicate manager."""
