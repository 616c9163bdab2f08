"""Quark: extension discovery, state tracking and loading."""

__version__ = "0.1.0"
