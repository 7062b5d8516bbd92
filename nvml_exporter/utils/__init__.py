"""Shared helpers for the NVML exporter."""

from nvml_exporter.utils.errors import (
    CatalogError,
    ConfigError,
    DependencyError,
    DeviceQueryError,
    ExporterError,
    HardwareNotFoundError,
    InitializationError,
    LabelSchemaError,
)

__all__ = [
    "ExporterError",
    "InitializationError",
    "HardwareNotFoundError",
    "DependencyError",
    "ConfigError",
    "CatalogError",
    "LabelSchemaError",
    "DeviceQueryError",
]
