"""Exceptions raised by Fret Coach components."""


class FretCoachError(Exception):
    """Base class for Fret Coach errors."""


class AudioUnavailable(FretCoachError):
    """No audio input device could be opened."""
