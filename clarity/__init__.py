"""Clarity: an executive-coaching assistant with per-conversation document retrieval."""

__version__ = "0.1.0"
