"""Pytest configuration and fixtures."""

from typing import Optional

import pytest

from nvml_exporter.devices.base import (
    DeviceHandle,
    DeviceIdentity,
    MemoryInfo,
    QueryClass,
    Temperature,
    Utilization,
)
from nvml_exporter.metrics.registry import MetricRegistry
from nvml_exporter.utils.errors import DeviceQueryError


class FakeDevice(DeviceHandle):
    """Scripted device: fixed readings, optional failure on one query class."""

    def __init__(
        self,
        index: int,
        uuid: Optional[str] = None,
        name: str = "Tesla T4",
        gpu: int = 45,
        memory_util: int = 60,
        celsius: int = 75,
        watts: int = 120,
        free: int = 1_000_000,
        total: int = 4_000_000,
        used: int = 3_000_000,
        fail_on: Optional[QueryClass] = None,
    ):
        super().__init__(DeviceIdentity(index=index, uuid=uuid or f"GPU-{index:04d}", name=name))
        self.gpu = gpu
        self.memory_util = memory_util
        self.celsius = celsius
        self.watts = watts
        self.free = free
        self.total = total
        self.used = used
        self.fail_on = fail_on
        self.calls: list[QueryClass] = []

    def _record(self, query: QueryClass) -> None:
        self.calls.append(query)
        if self.fail_on == query:
            raise DeviceQueryError(query.value, RuntimeError(f"injected {query.value} failure"))

    def get_utilization(self) -> Utilization:
        self._record(QueryClass.UTILIZATION)
        return Utilization(gpu=self.gpu, memory=self.memory_util)

    def get_temperature(self) -> Temperature:
        self._record(QueryClass.TEMPERATURE)
        return Temperature.from_celsius(self.celsius)

    def get_power_usage(self) -> int:
        self._record(QueryClass.POWER_USAGE)
        return self.watts

    def get_memory_info(self) -> MemoryInfo:
        self._record(QueryClass.MEMORY_INFO)
        return MemoryInfo(free=self.free, total=self.total, used=self.used)


@pytest.fixture
def make_device():
    """Factory for scripted fake devices."""
    return FakeDevice


@pytest.fixture
def registry():
    """Registry with the default catalog registered."""
    return MetricRegistry.from_catalog()


@pytest.fixture
def three_devices():
    """Three healthy devices with distinct readings."""
    return [
        FakeDevice(0, gpu=10, celsius=40),
        FakeDevice(1, gpu=20, celsius=50, name="A100-SXM4-40GB"),
        FakeDevice(2, gpu=30, celsius=60),
    ]
