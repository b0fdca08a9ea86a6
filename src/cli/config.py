"""Configuration loading and management."""

from pathlib import Path
from typing import Optional

import yaml
from pydantic import ValidationError

from .config_models import SkillpathConfig

# Default config dict
DEFAULT_CONFIG = SkillpathConfig().to_dict()


def find_config() -> Optional[Path]:
    """Find config file in standard locations."""
    locations = [
        Path.cwd() / "skillpath.yaml",
        Path.home() / ".skillpath" / "config.yaml",
    ]
    for loc in locations:
        if loc.exists():
            return loc
    return None


def load_yaml(path: Path) -> dict:
    """Read a YAML mapping; empty files load as {}."""
    try:
        with open(path) as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in {path}: {e}")
    if not isinstance(data, dict):
        raise ValueError(f"Expected a mapping at the top of {path}, got {type(data).__name__}")
    return data


def load_config_model(config_path: Optional[Path] = None) -> SkillpathConfig:
    """Load configuration as Pydantic model with validation."""
    base_config = {}

    path = config_path or find_config()
    if path and path.exists():
        base_config = load_yaml(path)

    try:
        return SkillpathConfig.from_dict(base_config)
    except ValidationError as e:
        raise ValueError(f"Config validation failed: {e}")


def load_config(config_path: Optional[Path] = None) -> dict:
    """Load configuration as a plain dict."""
    return load_config_model(config_path).to_dict()
