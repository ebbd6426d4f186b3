"""Configuration file loading."""

from pathlib import Path

import yaml
from pydantic import ValidationError

from reviewgate.config.settings import Settings
from reviewgate.errors import ConfigError

CONFIG_FILENAMES = [".reviewgate.yaml", ".reviewgate.yml", "reviewgate.yaml", "reviewgate.yml"]


def _find_config_file(config_path: Path | None = None) -> Path | None:
  """Find config file path, or None if no config exists."""
  if config_path:
    return config_path

  for filename in CONFIG_FILENAMES:
    path = Path.cwd() / filename
    if path.exists():
      return path

  return None


def load_config(config_path: Path | None = None) -> Settings:
  """Load configuration from file or defaults."""
  path = _find_config_file(config_path)
  if path:
    return _load_from_file(path)
  return Settings()


def _load_from_file(path: Path) -> Settings:
  """Load settings from a YAML file."""
  if not path.exists():
    raise FileNotFoundError(f"Config file not found: {path}")

  with open(path) as f:
    try:
      data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
      raise ConfigError(f"Invalid YAML in {path}: {e}") from e

  if not isinstance(data, dict):
    raise ConfigError(f"Config file {path} must contain a mapping at the top level")

  return parse_config(data)


def parse_config(data: dict) -> Settings:
  """Parse and validate a config dict into Settings."""
  try:
    return Settings.model_validate(data)
  except ValidationError as e:
    raise ConfigError(f"Invalid configuration: {e}") from e
