"""Custom exceptions for the NVML exporter.

This module defines application-specific errors so callers can tell fatal
startup problems (runtime unavailable, bad catalog, bad config) apart from
per-scrape device query failures, which are recovered locally.
"""


class ExporterError(Exception):
    """Base exception for all exporter errors."""

    pass


class InitializationError(ExporterError):
    """Raised when the management runtime cannot start or devices cannot be enumerated."""

    pass


class HardwareNotFoundError(InitializationError):
    """Raised when the management runtime started but reported no devices."""

    pass


class DependencyError(InitializationError):
    """Raised when the NVML shared library cannot be loaded."""

    pass


class ConfigError(ExporterError):
    """Raised when configuration is invalid (listen address, metrics path, backend...)."""

    pass


class CatalogError(ExporterError):
    """Raised when the metric catalog is malformed or registered twice."""

    pass


class LabelSchemaError(ExporterError):
    """Raised when a series write does not match the metric's label schema."""

    pass


class DeviceQueryError(ExporterError):
    """Raised by a device handle when one telemetry query fails.

    Attributes:
        query_class: Query that failed (e.g. "utilization", "temperature")
        cause: Underlying library error, if any
    """

    def __init__(self, query_class: str, cause: BaseException | None = None, message: str | None = None):
        self.query_class = query_class
        self.cause = cause
        super().__init__(message or f"{query_class} query failed: {cause}")
