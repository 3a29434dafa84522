"""Structured repository state reconstructed from the git CLI."""

__version__ = "0.1.0"
