"""Configuration file I/O (YAML/JSON load as dict)."""

import json
import os
from typing import Any

import yaml

from nvml_exporter.utils.errors import ConfigError

YAML_SUFFIXES = (".yaml", ".yml")
JSON_SUFFIXES = (".json",)


def load_yaml_file(filepath: str) -> dict[str, Any]:
    """Load a YAML file into a dictionary.

    Args:
        filepath: Path to YAML file

    Returns:
        Loaded config as dict; empty dict if the file is empty
    """
    with open(filepath, encoding="utf-8") as f:
        data = yaml.safe_load(f)
    return _as_mapping(data, filepath)


def load_json_file(filepath: str) -> dict[str, Any]:
    """Load a JSON file into a dictionary."""
    with open(filepath, encoding="utf-8") as f:
        data = json.load(f)
    return _as_mapping(data, filepath)


def load_config_file(filepath: str) -> dict[str, Any]:
    """Load a YAML or JSON config file, chosen by extension.

    Raises:
        ConfigError: If the file is missing, unparsable or has an unknown extension
    """
    if not os.path.exists(filepath):
        raise ConfigError(f"Config file not found: {filepath}")
    lower = filepath.lower()
    try:
        if lower.endswith(YAML_SUFFIXES):
            return load_yaml_file(filepath)
        if lower.endswith(JSON_SUFFIXES):
            return load_json_file(filepath)
    except (yaml.YAMLError, json.JSONDecodeError) as e:
        raise ConfigError(f"Could not parse config file {filepath}: {e}") from e
    raise ConfigError(f"Unsupported config file type (expected .yaml, .yml or .json): {filepath}")


def _as_mapping(data: Any, filepath: str) -> dict[str, Any]:
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Config file must contain a mapping at the top level: {filepath}")
    return data
