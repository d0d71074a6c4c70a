"""YAML configuration loader with environment variable overrides.

Configuration is loaded in layers (later layers override earlier):

  1. config/config.yaml  -- static defaults checked into the repo (the
                            coaching system prompt, search tool wording and
                            allowed domains)
  2. .env file           -- local developer overrides (not committed)
  3. Environment vars    -- set at deploy time

``_deep_merge`` does recursive dict merging::

    base = {"search": {"max_results": 3}}
    overrides = {"search": {"enabled": False}}
    result = {"search": {"max_results": 3, "enabled": False}}
"""

from pathlib import Path

import yaml

from clarity.config.settings import Settings
from clarity.utils.errors import ConfigurationError


def load_config(path: str | None = None, settings: Settings | None = None) -> dict:
    """Load YAML config and merge with environment-based Settings.

    Environment variables (via Settings) override YAML values where keys overlap.

    Args:
        path: Path to the YAML configuration file.  Defaults to
              ``settings.config_path``.
        settings: Pre-built settings; a fresh :class:`Settings` is read
                  from the environment when omitted.

    Returns:
        Fully resolved configuration dictionary.

    Raises:
        ConfigurationError: If the YAML file exists but is not a mapping.
    """
    settings = settings or Settings()
    config_path = Path(path or settings.config_path)
    if config_path.exists():
        with open(config_path, encoding="utf-8") as f:
            yaml_config = yaml.safe_load(f) or {}
    else:
        yaml_config = {}

    if not isinstance(yaml_config, dict):
        raise ConfigurationError(
            message=f"{config_path} must contain a YAML mapping at the top level"
        )

    env_overrides = {
        "app": {
            "host": settings.app_host,
            "port": settings.app_port,
            "env": settings.app_env,
        },
        "llm": {
            "chat_model": settings.openai_chat_model,
            "embedding_model": settings.openai_embedding_model,
            "available_providers": settings.get_available_providers(),
        },
        "search": {
            "enabled": settings.search_enabled,
            "max_results": settings.search_max_results,
        },
        "logging": {
            "level": settings.log_level,
        },
    }

    _deep_merge(yaml_config, env_overrides)
    return yaml_config


def _deep_merge(base: dict, overrides: dict) -> None:
    """Recursively merge overrides into base dict, mutating base in place."""
    for key, value in overrides.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            _deep_merge(base[key], value)
        else:
            base[key] = value
