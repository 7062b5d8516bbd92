"""NVML device backend for NVIDIA GPUs.

This module wraps pynvml (NVIDIA Management Library bindings, provided by the
nvidia-ml-py distribution) behind the ``DeviceBackend``/``DeviceHandle``
interfaces so the exporter core never touches the library directly.

Example usage:
    from nvml_exporter.devices.nvml import NVMLBackend

    with NVMLBackend() as backend:
        for device in backend.enumerate_devices():
            print(device.identity, device.get_utilization())

Requires: nvidia-ml-py (pip install nvidia-ml-py)
"""

import logging
from typing import Any

import pynvml  # provided by nvidia-ml-py

from nvml_exporter.devices.base import (
    DeviceBackend,
    DeviceHandle,
    DeviceIdentity,
    MemoryInfo,
    QueryClass,
    Temperature,
    Utilization,
)
from nvml_exporter.utils.errors import (
    DependencyError,
    DeviceQueryError,
    HardwareNotFoundError,
    InitializationError,
)

LOGGER = logging.getLogger(__name__)


def _decode(value: Any) -> str:
    """Older pynvml releases return bytes for strings."""
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    return str(value)


class NVMLDevice(DeviceHandle):
    """One NVIDIA GPU addressed through an NVML device handle."""

    def __init__(self, identity: DeviceIdentity, handle: Any):
        super().__init__(identity)
        self._handle = handle

    def get_utilization(self) -> Utilization:
        try:
            rates = pynvml.nvmlDeviceGetUtilizationRates(self._handle)
        except pynvml.NVMLError as e:
            raise DeviceQueryError(QueryClass.UTILIZATION.value, e) from e
        return Utilization(gpu=int(rates.gpu), memory=int(rates.memory))

    def get_temperature(self) -> Temperature:
        try:
            celsius = pynvml.nvmlDeviceGetTemperature(self._handle, pynvml.NVML_TEMPERATURE_GPU)
        except pynvml.NVMLError as e:
            raise DeviceQueryError(QueryClass.TEMPERATURE.value, e) from e
        return Temperature.from_celsius(int(celsius))

    def get_power_usage(self) -> int:
        try:
            milliwatts = pynvml.nvmlDeviceGetPowerUsage(self._handle)
        except pynvml.NVMLError as e:
            raise DeviceQueryError(QueryClass.POWER_USAGE.value, e) from e
        return int(milliwatts) // 1000

    def get_memory_info(self) -> MemoryInfo:
        try:
            mem = pynvml.nvmlDeviceGetMemoryInfo(self._handle)
        except pynvml.NVMLError as e:
            raise DeviceQueryError(QueryClass.MEMORY_INFO.value, e) from e
        return MemoryInfo(free=int(mem.free), total=int(mem.total), used=int(mem.used))


class NVMLBackend(DeviceBackend):
    """Backend that initializes NVML and enumerates every visible GPU.

    Raises:
        DependencyError: If the NVML shared library is not installed
        InitializationError: If NVML fails to initialize or enumerate
        HardwareNotFoundError: If NVML reports zero devices
    """

    name = "nvml"

    def start(self) -> None:
        if self._started:
            return
        try:
            pynvml.nvmlInit()
        except pynvml.NVMLError as e:
            if getattr(e, "value", None) == getattr(pynvml, "NVML_ERROR_LIBRARY_NOT_FOUND", None):
                raise DependencyError(
                    "NVML shared library not found. Is the NVIDIA driver installed?"
                ) from e
            raise InitializationError(f"Failed to initialize NVML: {e}") from e
        self._started = True

        try:
            driver = _decode(pynvml.nvmlSystemGetDriverVersion())
            LOGGER.info("NVML initialized (driver %s)", driver)
        except pynvml.NVMLError:
            LOGGER.info("NVML initialized")

    def enumerate_devices(self) -> list[DeviceHandle]:
        if not self._started:
            raise InitializationError("NVML is not initialized. Call start() first.")

        devices: list[DeviceHandle] = []
        try:
            count = pynvml.nvmlDeviceGetCount()
            for i in range(count):
                handle = pynvml.nvmlDeviceGetHandleByIndex(i)
                identity = DeviceIdentity(
                    index=i,
                    uuid=_decode(pynvml.nvmlDeviceGetUUID(handle)),
                    name=_decode(pynvml.nvmlDeviceGetName(handle)),
                )
                devices.append(NVMLDevice(identity, handle))
        except pynvml.NVMLError as e:
            raise InitializationError(f"Failed to enumerate NVML devices: {e}") from e

        if not devices:
            raise HardwareNotFoundError("NVML reported no devices")
        return devices

    def stop(self) -> None:
        """Shut down NVML. Safe to call multiple times."""
        if not self._started:
            return
        self._started = False
        try:
            pynvml.nvmlShutdown()
        except pynvml.NVMLError as e:
            LOGGER.warning("NVML shutdown failed: %s", e)


__all__ = ["NVMLBackend", "NVMLDevice"]
