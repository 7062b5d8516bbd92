"""Exporter configuration."""

from nvml_exporter.configs.config import (
    CONFIG_ENV_VAR,
    DEFAULT_CONFIG,
    DEFAULT_LISTEN_ADDRESS,
    DEFAULT_METRICS_PATH,
    Config,
    ExporterConfig,
    load_config,
    parse_listen_address,
)
from nvml_exporter.configs.config_io import load_config_file, load_json_file, load_yaml_file

__all__ = [
    "CONFIG_ENV_VAR",
    "DEFAULT_CONFIG",
    "DEFAULT_LISTEN_ADDRESS",
    "DEFAULT_METRICS_PATH",
    "Config",
    "ExporterConfig",
    "load_config",
    "load_config_file",
    "load_json_file",
    "load_yaml_file",
    "parse_listen_address",
]
