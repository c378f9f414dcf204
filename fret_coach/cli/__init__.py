"""Command line interface for Fret Coach."""
