"""Surgical case explorer with windowed vitals/intervention playback."""

__version__ = "0.1.0"
