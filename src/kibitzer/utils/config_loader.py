import os
from typing import Optional

import yaml
from pydantic import ValidationError

from .config_schema import ConfigModel

DEFAULT_CONFIG_PATH = "configs/config.yaml"
CONFIG_ENV_VAR = "KIBITZER_CONFIG"

_SECTIONS = ("reasoning", "retry", "stockfish", "orchestrator", "book", "logging")


def load_config(config_path: Optional[str] = None) -> ConfigModel:
    """Load and validate the YAML configuration file.

    Args:
        config_path: Path to the configuration file.  Falls back to the
            ``KIBITZER_CONFIG`` environment variable, then to
            ``configs/config.yaml``.

    Returns:
        ConfigModel: The validated configuration with defaults applied.

    Raises:
        FileNotFoundError: If the resolved path does not exist.
        ValueError: If the configuration fails schema validation.
    """
    path = config_path or os.getenv(CONFIG_ENV_VAR) or DEFAULT_CONFIG_PATH

    if not os.path.exists(path):
        raise FileNotFoundError(f"Configuration file not found at: {path}")

    with open(path, "r") as f:
        raw_config = yaml.safe_load(f) or {}

    if not isinstance(raw_config, dict):
        raise ValueError(f"Invalid configuration: expected a mapping in {path}")

    try:
        return ConfigModel(**raw_config)
    except ValidationError as e:
        raise ValueError(f"Invalid configuration: {e}") from e


def default_config() -> ConfigModel:
    """Return a configuration made only of defaults (no file needed)."""
    return ConfigModel(**{section: {} for section in _SECTIONS})
