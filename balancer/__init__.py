"""Stepped load-balancing simulator with reversible history."""

__version__ = "0.1.0"
