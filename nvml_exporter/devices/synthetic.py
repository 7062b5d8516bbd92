"""Synthetic device backend.

Generates plausible GPU telemetry without hardware so the exporter can be
run for demos, dashboards and CI smoke tests.

The SyntheticDevice simulates:
- GPU utilization with noise around a base load
- Memory controller utilization correlated with GPU load
- Temperature and power that follow utilization
- Memory usage with a slow random walk

Example usage:
    backend = SyntheticBackend(device_count=4, config={"seed": 7})
    backend.start()
    devices = backend.enumerate_devices()
"""

import random
import uuid
from typing import Any, Optional

from nvml_exporter.devices.base import (
    DeviceBackend,
    DeviceHandle,
    DeviceIdentity,
    MemoryInfo,
    QueryClass,
    Temperature,
    Utilization,
)
from nvml_exporter.utils.errors import DeviceQueryError, InitializationError


class SyntheticDevice(DeviceHandle):
    """Fake GPU producing bounded random telemetry."""

    DEFAULT_CONFIG = {
        "base_gpu_percent": 60.0,       # Mean GPU utilization
        "gpu_noise_std": 10.0,          # Standard deviation of GPU noise
        "memory_util_ratio": 0.6,       # Memory controller load vs GPU load
        "idle_power_w": 25.0,           # Power at 0% utilization
        "max_power_w": 250.0,           # Power at 100% utilization
        "idle_temperature_c": 35.0,     # Temperature at 0% utilization
        "max_temperature_c": 85.0,      # Temperature at 100% utilization
        "total_memory_bytes": 16 * 1024**3,
        "base_memory_fraction": 0.4,    # Initial fraction of memory used
        "memory_drift_bytes": 64 * 1024**2,
        "fail_probability": 0.0,        # Chance that any query raises
    }

    def __init__(self, identity: DeviceIdentity, config: Optional[dict[str, Any]] = None, rng: Optional[random.Random] = None):
        super().__init__(identity)
        self._cfg = {**self.DEFAULT_CONFIG, **(config or {})}
        self._rng = rng or random.Random()
        self._last_gpu = float(self._cfg["base_gpu_percent"])
        total = int(self._cfg["total_memory_bytes"])
        self._memory_used = int(total * float(self._cfg["base_memory_fraction"]))

    def _maybe_fail(self, query: QueryClass) -> None:
        if self._rng.random() < float(self._cfg["fail_probability"]):
            raise DeviceQueryError(query.value, message=f"simulated {query.value} failure")

    def _load(self) -> float:
        return self._last_gpu / 100.0

    def get_utilization(self) -> Utilization:
        self._maybe_fail(QueryClass.UTILIZATION)
        gpu = self._rng.gauss(self._cfg["base_gpu_percent"], self._cfg["gpu_noise_std"])
        self._last_gpu = min(100.0, max(0.0, gpu))
        memory = self._last_gpu * float(self._cfg["memory_util_ratio"])
        return Utilization(gpu=int(round(self._last_gpu)), memory=int(round(memory)))

    def get_temperature(self) -> Temperature:
        self._maybe_fail(QueryClass.TEMPERATURE)
        idle = float(self._cfg["idle_temperature_c"])
        peak = float(self._cfg["max_temperature_c"])
        celsius = idle + (peak - idle) * self._load() + self._rng.uniform(-1.0, 1.0)
        return Temperature.from_celsius(int(round(celsius)))

    def get_power_usage(self) -> int:
        self._maybe_fail(QueryClass.POWER_USAGE)
        idle = float(self._cfg["idle_power_w"])
        peak = float(self._cfg["max_power_w"])
        return int(round(idle + (peak - idle) * self._load()))

    def get_memory_info(self) -> MemoryInfo:
        self._maybe_fail(QueryClass.MEMORY_INFO)
        total = int(self._cfg["total_memory_bytes"])
        drift = int(self._cfg["memory_drift_bytes"])
        self._memory_used = min(total, max(0, self._memory_used + self._rng.randint(-drift, drift)))
        return MemoryInfo(free=total - self._memory_used, total=total, used=self._memory_used)


class SyntheticBackend(DeviceBackend):
    """Backend that enumerates ``device_count`` synthetic GPUs.

    UUIDs are derived from the seed so repeated runs with the same seed
    expose the same label sets.
    """

    name = "synthetic"

    def __init__(self, device_count: int = 2, config: Optional[dict[str, Any]] = None):
        super().__init__()
        if device_count < 0:
            raise ValueError(f"device_count must be >= 0, got {device_count}")
        self.device_count = device_count
        self._cfg = dict(config or {})
        self._rng = random.Random(self._cfg.pop("seed", None))
        self._model_name = self._cfg.pop("device_name", "Synthetic GPU")

    def start(self) -> None:
        self._started = True

    def enumerate_devices(self) -> list[DeviceHandle]:
        if not self._started:
            raise InitializationError("Synthetic backend is not started. Call start() first.")
        devices: list[DeviceHandle] = []
        for i in range(self.device_count):
            device_uuid = f"GPU-{uuid.UUID(int=self._rng.getrandbits(128))}"
            identity = DeviceIdentity(index=i, uuid=device_uuid, name=self._model_name)
            devices.append(SyntheticDevice(identity, self._cfg, random.Random(self._rng.random())))
        return devices

    def stop(self) -> None:
        self._started = False


__all__ = ["SyntheticBackend", "SyntheticDevice"]
