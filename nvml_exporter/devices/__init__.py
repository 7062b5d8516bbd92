"""Device backends for the NVML exporter."""

from typing import Any, Optional

from .base import (
    DeviceBackend,
    DeviceHandle,
    DeviceIdentity,
    MemoryInfo,
    QueryClass,
    Temperature,
    Utilization,
)
from .synthetic import SyntheticBackend, SyntheticDevice

BACKEND_NVML = "nvml"
BACKEND_SYNTHETIC = "synthetic"
BACKENDS = (BACKEND_NVML, BACKEND_SYNTHETIC)


def create_backend(name: str, synthetic_devices: int = 2, synthetic_config: Optional[dict[str, Any]] = None) -> DeviceBackend:
    """Build a device backend by name.

    Raises:
        ValueError: If the backend name is unknown
    """
    if name == BACKEND_NVML:
        from .nvml import NVMLBackend

        return NVMLBackend()
    if name == BACKEND_SYNTHETIC:
        return SyntheticBackend(device_count=synthetic_devices, config=synthetic_config)
    raise ValueError(f"Unknown backend {name!r}. Expected one of: {', '.join(BACKENDS)}")


__all__ = [
    "BACKENDS",
    "BACKEND_NVML",
    "BACKEND_SYNTHETIC",
    "DeviceBackend",
    "DeviceHandle",
    "DeviceIdentity",
    "MemoryInfo",
    "QueryClass",
    "SyntheticBackend",
    "SyntheticDevice",
    "Temperature",
    "Utilization",
    "create_backend",
]
