"""Snapshot collector: one locked refresh cycle per scrape.

Each cycle resets the registry, marks the exporter healthy, then polls every
device in enumeration order (utilization, temperature, power usage, memory
info). A device's values are committed to the registry only after all four of
its queries succeed, so a device is either fully present or absent.

Failure policies:
    fail_fast (default): the first failing query marks the exporter unhealthy
        and ends the cycle. Devices before it keep their data; the failing
        device and everything after it are absent.
    per_device: a failing device is skipped and marked unhealthy, later
        devices are still polled.

There is no timeout on device queries: a hung query holds the lock and blocks
every later scrape.

Example usage:
    registry = MetricRegistry.from_catalog()
    collector = SnapshotCollector(registry, backend.enumerate_devices())
    body = collector.collect_and_render()
"""

import logging
import threading
import time
from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

from nvml_exporter.devices.base import DeviceHandle, DeviceIdentity, QueryClass
from nvml_exporter.metrics.registry import MetricRegistry
from nvml_exporter.utils.errors import DeviceQueryError

LOGGER = logging.getLogger(__name__)


class FailurePolicy(str, Enum):
    """How a failing device query affects the rest of the cycle."""

    FAIL_FAST = "fail_fast"
    PER_DEVICE = "per_device"


@dataclass(frozen=True)
class QueryFailure:
    """One failed device query."""

    device: DeviceIdentity
    query_class: QueryClass
    cause: BaseException

    @property
    def device_index(self) -> int:
        return self.device.index


@dataclass(frozen=True)
class CycleSucceeded:
    """Every device query in the cycle succeeded."""

    devices_collected: int
    duration_seconds: float = 0.0

    ok = True


@dataclass(frozen=True)
class CycleFailed:
    """At least one device query failed.

    Under fail_fast there is exactly one failure and it is where the cycle
    stopped; under per_device there is one failure per skipped device.
    """

    failures: tuple[QueryFailure, ...]
    devices_collected: int
    duration_seconds: float = 0.0

    ok = False

    @property
    def failure(self) -> QueryFailure:
        """First failure, in enumeration order."""
        return self.failures[0]

    @property
    def device_index(self) -> int:
        return self.failure.device_index

    @property
    def query_class(self) -> QueryClass:
        return self.failure.query_class

    @property
    def cause(self) -> BaseException:
        return self.failure.cause


CycleResult = Union[CycleSucceeded, CycleFailed]


class SnapshotCollector:
    """Runs collection cycles against a fixed device list.

    Attributes:
        registry: Registry populated by every cycle
        policy: Failure policy applied to query errors
    """

    def __init__(
        self,
        registry: MetricRegistry,
        devices: Sequence[DeviceHandle],
        policy: Union[FailurePolicy, str] = FailurePolicy.FAIL_FAST,
    ):
        self.registry = registry
        self.policy = FailurePolicy(policy)
        self._devices: tuple[DeviceHandle, ...] = tuple(devices)
        self._lock = threading.Lock()
        self._last_result: Optional[CycleResult] = None

    @property
    def devices(self) -> tuple[DeviceHandle, ...]:
        return self._devices

    @property
    def last_result(self) -> Optional[CycleResult]:
        """Outcome of the most recent cycle, None before the first scrape."""
        return self._last_result

    def collect(self) -> CycleResult:
        """Run one cycle under the lock and return its outcome."""
        with self._lock:
            return self._run_cycle()

    def collect_and_render(self) -> bytes:
        """Run one cycle and render the registry without releasing the lock."""
        with self._lock:
            self._run_cycle()
            return self.registry.render()

    def _run_cycle(self) -> CycleResult:
        start = time.perf_counter()
        self.registry.reset()
        self.registry.set_health(True)

        failures: list[QueryFailure] = []
        collected = 0
        for device in self._devices:
            reading, failure = self._read_device(device)
            if failure is not None:
                failures.append(failure)
                self.registry.set_health(False)
                LOGGER.warning(
                    "Failed to get %s for %s: %s",
                    failure.query_class.description,
                    device.identity.uuid,
                    failure.cause,
                )
                if self.policy is FailurePolicy.FAIL_FAST:
                    break
                continue
            self._commit(device.identity, reading)
            collected += 1

        duration = time.perf_counter() - start
        result: CycleResult
        if failures:
            result = CycleFailed(failures=tuple(failures), devices_collected=collected, duration_seconds=duration)
        else:
            result = CycleSucceeded(devices_collected=collected, duration_seconds=duration)
        LOGGER.debug(
            "Collection cycle finished: ok=%s devices=%d/%d duration=%.3fs",
            result.ok,
            collected,
            len(self._devices),
            duration,
        )
        self._last_result = result
        return result

    def _read_device(self, device: DeviceHandle) -> tuple[dict[str, float], Optional[QueryFailure]]:
        """Issue the four queries in order, stopping at the first failure."""
        reading: dict[str, float] = {}
        query = QueryClass.UTILIZATION
        try:
            util = device.get_utilization()
            reading["gpu_percent"] = util.gpu
            reading["memory_percent"] = util.memory

            query = QueryClass.TEMPERATURE
            temp = device.get_temperature()
            reading["temperature_celsius"] = temp.celsius
            reading["temperature_fahrenheit"] = temp.fahrenheit

            query = QueryClass.POWER_USAGE
            reading["power_watts"] = device.get_power_usage()

            query = QueryClass.MEMORY_INFO
            mem = device.get_memory_info()
            reading["memory_free"] = mem.free
            reading["memory_total"] = mem.total
            reading["memory_used"] = mem.used
        except DeviceQueryError as e:
            return reading, QueryFailure(device=device.identity, query_class=query, cause=e)
        return reading, None

    def _commit(self, identity: DeviceIdentity, reading: dict[str, float]) -> None:
        labels = identity.label_values()
        for metric_name, value in reading.items():
            self.registry.set_value(metric_name, labels, float(value))


__all__ = [
    "CycleFailed",
    "CycleResult",
    "CycleSucceeded",
    "FailurePolicy",
    "QueryFailure",
    "SnapshotCollector",
]
