"""Base device interfaces for the NVML exporter.

This module defines the boundary between the exporter core and a hardware
management library. A backend enumerates devices once at startup; each device
handle exposes a fixed set of read-only telemetry queries plus a stable
identity used as the label set for every metric series.

Example usage:
    class MyDevice(DeviceHandle):
        def get_utilization(self):
            return Utilization(gpu=50, memory=20)

        def get_temperature(self):
            return Temperature.from_celsius(60)

        def get_power_usage(self):
            return 90

        def get_memory_info(self):
            return MemoryInfo(free=1024, total=4096, used=3072)
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import NamedTuple


class QueryClass(str, Enum):
    """Telemetry query classes, in the order they are issued per device."""

    UTILIZATION = "utilization"
    TEMPERATURE = "temperature"
    POWER_USAGE = "power_usage"
    MEMORY_INFO = "memory_info"

    @property
    def description(self) -> str:
        """Human-readable name used in log messages."""
        return _QUERY_DESCRIPTIONS[self]


_QUERY_DESCRIPTIONS = {
    QueryClass.UTILIZATION: "Device Utilization",
    QueryClass.TEMPERATURE: "Device Temperature",
    QueryClass.POWER_USAGE: "Device Power Usage",
    QueryClass.MEMORY_INFO: "Memory Info",
}


@dataclass(frozen=True)
class DeviceIdentity:
    """Stable identity of one accelerator.

    Attributes:
        index: Enumeration index (0-based)
        uuid: Globally unique device UUID
        name: Product name reported by the driver
    """

    index: int
    uuid: str
    name: str

    def __post_init__(self) -> None:
        if self.index < 0:
            raise ValueError(f"Device index must be >= 0, got {self.index}")

    def label_values(self) -> tuple[str, str, str]:
        """Label values in catalog order: (device_id, device_uuid, device_name)."""
        return (str(self.index), self.uuid, self.name)

    def to_dict(self) -> dict[str, object]:
        return {"index": self.index, "uuid": self.uuid, "name": self.name}


class Utilization(NamedTuple):
    """GPU and memory controller utilization in percent."""

    gpu: int
    memory: int


class Temperature(NamedTuple):
    """Core temperature in both scales."""

    fahrenheit: int
    celsius: int

    @classmethod
    def from_celsius(cls, celsius: int) -> "Temperature":
        return cls(fahrenheit=int(celsius * 9 / 5 + 32), celsius=int(celsius))


class MemoryInfo(NamedTuple):
    """Framebuffer memory in bytes."""

    free: int
    total: int
    used: int


class DeviceHandle(ABC):
    """Read-only telemetry capability set for one device.

    Every query either returns integer values or raises
    ``DeviceQueryError`` carrying the failing ``QueryClass``.
    """

    def __init__(self, identity: DeviceIdentity):
        self._identity = identity

    @property
    def identity(self) -> DeviceIdentity:
        return self._identity

    @abstractmethod
    def get_utilization(self) -> Utilization:
        """Return (gpu percent, memory percent)."""
        pass

    @abstractmethod
    def get_temperature(self) -> Temperature:
        """Return (fahrenheit, celsius)."""
        pass

    @abstractmethod
    def get_power_usage(self) -> int:
        """Return current power draw in watts."""
        pass

    @abstractmethod
    def get_memory_info(self) -> MemoryInfo:
        """Return (free, total, used) bytes."""
        pass

    def __repr__(self) -> str:
        ident = self._identity
        return f"{self.__class__.__name__}(index={ident.index}, uuid={ident.uuid!r}, name={ident.name!r})"


class DeviceBackend(ABC):
    """Management runtime that owns device enumeration.

    Backends follow a lifecycle pattern:
    1. start() - initialize the runtime (fatal on failure)
    2. enumerate_devices() - list handles once; held for the process lifetime
    3. stop() - release the runtime; safe to call multiple times
    """

    name = "backend"

    def __init__(self) -> None:
        self._started = False

    @abstractmethod
    def start(self) -> None:
        """Initialize the management runtime."""
        pass

    @abstractmethod
    def enumerate_devices(self) -> list[DeviceHandle]:
        """Return device handles in enumeration order."""
        pass

    @abstractmethod
    def stop(self) -> None:
        """Shut down the management runtime."""
        pass

    def is_started(self) -> bool:
        return self._started

    def __enter__(self) -> "DeviceBackend":
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop()


__all__ = [
    "QueryClass",
    "DeviceIdentity",
    "Utilization",
    "Temperature",
    "MemoryInfo",
    "DeviceHandle",
    "DeviceBackend",
]
