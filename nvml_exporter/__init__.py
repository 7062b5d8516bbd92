"""Prometheus exporter for NVIDIA GPU telemetry via NVML.

Provides:
- devices (DeviceHandle, DeviceBackend, NVMLBackend, SyntheticBackend)
- metrics (MetricRegistry, SnapshotCollector, FailurePolicy)
- configs (ExporterConfig, load_config)
- server (create_app, run_server)
- cli (nvml-exporter entry point)
"""

__version__ = "1.0.0"

from nvml_exporter.configs import ExporterConfig, load_config
from nvml_exporter.devices import (
    DeviceBackend,
    DeviceHandle,
    DeviceIdentity,
    MemoryInfo,
    QueryClass,
    SyntheticBackend,
    Temperature,
    Utilization,
    create_backend,
)
from nvml_exporter.metrics import (
    DEFAULT_CATALOG,
    CycleFailed,
    CycleResult,
    CycleSucceeded,
    FailurePolicy,
    MetricDefinition,
    MetricRegistry,
    SnapshotCollector,
)
from nvml_exporter.utils.errors import (
    ConfigError,
    DeviceQueryError,
    ExporterError,
    HardwareNotFoundError,
    InitializationError,
)

__all__ = [
    "__version__",
    # Config
    "ExporterConfig",
    "load_config",
    # Devices
    "DeviceBackend",
    "DeviceHandle",
    "DeviceIdentity",
    "MemoryInfo",
    "QueryClass",
    "SyntheticBackend",
    "Temperature",
    "Utilization",
    "create_backend",
    # Metrics
    "DEFAULT_CATALOG",
    "CycleFailed",
    "CycleResult",
    "CycleSucceeded",
    "FailurePolicy",
    "MetricDefinition",
    "MetricRegistry",
    "SnapshotCollector",
    # Errors
    "ConfigError",
    "DeviceQueryError",
    "ExporterError",
    "HardwareNotFoundError",
    "InitializationError",
]
