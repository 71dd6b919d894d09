"""Fetch GitHub Actions runner registration and removal tokens."""

__version__ = "0.1.0"
