"""Fret Coach: a guitar tuner and play-along practice scorer."""

__version__ = "0.1.0"
