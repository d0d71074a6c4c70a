"""Configuration module -- exports Settings and load_config."""

from clarity.config.loader import load_config
from clarity.config.settings import Settings

__all__ = ["Settings", "load_config"]
