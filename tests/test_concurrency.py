"""Concurrent scrapes against one collector."""

import threading
from concurrent.futures import ThreadPoolExecutor

import pytest
from prometheus_client.parser import text_string_to_metric_families

from nvml_exporter.devices.base import Utilization
from nvml_exporter.metrics.collector import SnapshotCollector


class Counter:
    def __init__(self):
        self.value = 0


@pytest.fixture
def blocking_device(make_device):
    """Device that parks inside its utilization query until released."""

    class BlockingDevice(make_device):
        def __init__(self, index, **kwargs):
            super().__init__(index, **kwargs)
            self.entered = threading.Event()
            self.release = threading.Event()

        def get_utilization(self) -> Utilization:
            self.entered.set()
            assert self.release.wait(timeout=5)
            return super().get_utilization()

    return BlockingDevice(0)


@pytest.fixture
def counting_devices(make_device):
    """Four devices reporting a shared cycle counter as GPU utilization."""

    class CountingDevice(make_device):
        def __init__(self, index, counter):
            super().__init__(index)
            self.counter = counter

        def get_utilization(self) -> Utilization:
            return Utilization(gpu=self.counter.value, memory=0)

    counter = Counter()
    return counter, [CountingDevice(i, counter) for i in range(4)]


def gpu_values(body: bytes) -> list[float]:
    for family in text_string_to_metric_families(body.decode()):
        if family.name == "nvml_gpu_percent":
            return [s.value for s in family.samples]
    return []


class TestConcurrentScrapes:
    """Cycles are serialized by the collector lock."""

    def test_second_scrape_waits_for_first(self, registry, blocking_device):
        blocker = blocking_device
        collector = SnapshotCollector(registry, [blocker])

        with ThreadPoolExecutor(max_workers=2) as pool:
            first = pool.submit(collector.collect_and_render)
            assert blocker.entered.wait(timeout=5)
            second = pool.submit(collector.collect_and_render)

            # Second cycle cannot start while the first holds the lock.
            assert not second.done()
            assert len(blocker.calls) == 0

            blocker.release.set()
            bodies = [first.result(timeout=5), second.result(timeout=5)]

        for body in bodies:
            assert gpu_values(body) == [45.0]

    def test_rendered_snapshots_are_never_mixed(self, registry, counting_devices):
        counter, devices = counting_devices
        collector = SnapshotCollector(registry, devices)

        def scrape():
            with collector._lock:
                counter.value += 1
            return collector.collect_and_render()

        with ThreadPoolExecutor(max_workers=8) as pool:
            bodies = list(pool.map(lambda _: scrape(), range(40)))

        for body in bodies:
            values = gpu_values(body)
            assert len(values) == 4
            assert len(set(values)) == 1
