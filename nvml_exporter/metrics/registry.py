"""Metric registry for the NVML exporter.

Holds one labeled ``prometheus_client.Gauge`` per catalog entry plus the
unlabeled ``up`` health gauge, all inside a private ``CollectorRegistry``
(nothing is registered on the process-global default registry).

The registry itself is not thread-safe as a whole: ``reset``/``set_value``
must not interleave with ``export_all``/``render``. ``SnapshotCollector``
serializes every access behind a single lock.
"""

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from typing import Optional

from prometheus_client import CollectorRegistry, Gauge, generate_latest

from nvml_exporter.utils.errors import CatalogError, LabelSchemaError

DEFAULT_NAMESPACE = "nvml"
HEALTH_METRIC = "up"
HEALTH_HELP = "Were the NVML queries successful?"
DEVICE_LABELS = ("device_id", "device_uuid", "device_name")


@dataclass(frozen=True)
class MetricDefinition:
    """One catalog entry: metric name, help text and label schema."""

    name: str
    help: str
    labels: tuple[str, ...] = DEVICE_LABELS


@dataclass(frozen=True)
class MetricDescriptor:
    """Shape of an exported metric family."""

    name: str
    help: str
    labels: tuple[str, ...]
    type: str = "gauge"


@dataclass(frozen=True)
class SeriesValue:
    """One exported series value."""

    name: str
    labels: dict[str, str] = field(default_factory=dict)
    value: float = 0.0


# Static contract of the exporter; order is the render order.
DEFAULT_CATALOG: tuple[MetricDefinition, ...] = (
    MetricDefinition("power_watts", "Power Usage of an NVIDIA GPU in Watts"),
    MetricDefinition("gpu_percent", "Percent of GPU Utilized"),
    MetricDefinition("memory_free", "Number of bytes free in the GPU Memory"),
    MetricDefinition("memory_total", "Total bytes of the GPU's memory"),
    MetricDefinition("memory_used", "Total number of bytes used in the GPU Memory"),
    MetricDefinition("memory_percent", "Percent of GPU Memory Utilized"),
    MetricDefinition("temperature_fahrenheit", "GPU Temperature in Fahrenheit"),
    MetricDefinition("temperature_celsius", "GPU Temperature in Celsius"),
)


class MetricRegistry:
    """Mapping of metric name to labeled gauge vector, plus the health gauge.

    Attributes:
        namespace: Prefix joined to every metric name (``nvml_gpu_percent``)
    """

    def __init__(self, namespace: str = DEFAULT_NAMESPACE):
        self.namespace = namespace
        self._registry = CollectorRegistry()
        self._definitions: dict[str, MetricDefinition] = {}
        self._gauges: dict[str, Gauge] = {}
        self._registered = False
        self._health_value = 0.0
        self._health = Gauge(
            HEALTH_METRIC,
            HEALTH_HELP,
            namespace=namespace,
            registry=self._registry,
        )

    @classmethod
    def from_catalog(cls, catalog: Iterable[MetricDefinition] = DEFAULT_CATALOG, namespace: str = DEFAULT_NAMESPACE) -> "MetricRegistry":
        """Construct a registry and register ``catalog`` in one step."""
        registry = cls(namespace=namespace)
        registry.register(catalog)
        return registry

    def register(self, catalog: Iterable[MetricDefinition]) -> None:
        """Create one empty gauge vector per catalog entry.

        Raises:
            CatalogError: On a second call, duplicate metric names, a name
                clashing with the health gauge, duplicate label names or a
                name the exposition format rejects
        """
        if self._registered:
            raise CatalogError("Metric catalog is already registered")

        definitions: dict[str, MetricDefinition] = {}
        for definition in catalog:
            if definition.name == HEALTH_METRIC:
                raise CatalogError(f"Metric name {HEALTH_METRIC!r} is reserved for the health gauge")
            if definition.name in definitions:
                raise CatalogError(f"Duplicate metric name in catalog: {definition.name!r}")
            if len(set(definition.labels)) != len(definition.labels):
                raise CatalogError(f"Duplicate label names for metric {definition.name!r}: {definition.labels}")
            definitions[definition.name] = definition

        gauges: dict[str, Gauge] = {}
        for name, definition in definitions.items():
            try:
                gauges[name] = Gauge(
                    name,
                    definition.help,
                    labelnames=definition.labels,
                    namespace=self.namespace,
                    registry=self._registry,
                )
            except ValueError as e:
                for gauge in gauges.values():
                    self._registry.unregister(gauge)
                raise CatalogError(f"Invalid catalog entry {name!r}: {e}") from e

        self._definitions = definitions
        self._gauges = gauges
        self._registered = True

    @property
    def metric_names(self) -> list[str]:
        """Catalog metric names (without namespace), in catalog order."""
        return list(self._definitions)

    def full_name(self, metric_name: str) -> str:
        return f"{self.namespace}_{metric_name}" if self.namespace else metric_name

    def reset(self) -> None:
        """Drop every labeled series; the gauge vectors themselves remain."""
        for gauge in self._gauges.values():
            gauge.clear()

    def set_value(self, metric_name: str, label_values: Sequence[str], value: float) -> None:
        """Upsert one series of ``metric_name``.

        Raises:
            LabelSchemaError: If the metric is unknown or the label arity does
                not match its schema
        """
        definition = self._definitions.get(metric_name)
        if definition is None:
            raise LabelSchemaError(f"Unknown metric {metric_name!r}")
        if len(label_values) != len(definition.labels):
            raise LabelSchemaError(
                f"Metric {metric_name!r} expects {len(definition.labels)} label values "
                f"{definition.labels}, got {len(label_values)}"
            )
        self._gauges[metric_name].labels(*[str(v) for v in label_values]).set(float(value))

    def set_health(self, ok: bool) -> None:
        self._health_value = 1.0 if ok else 0.0
        self._health.set(self._health_value)

    @property
    def health(self) -> float:
        """Current value of the ``up`` gauge (1.0 or 0.0)."""
        return self._health_value

    def describe(self) -> list[MetricDescriptor]:
        """Descriptors for every catalog gauge followed by the health gauge."""
        descriptors = [
            MetricDescriptor(name=self.full_name(d.name), help=d.help, labels=tuple(d.labels))
            for d in self._definitions.values()
        ]
        descriptors.append(MetricDescriptor(name=self.full_name(HEALTH_METRIC), help=HEALTH_HELP, labels=()))
        return descriptors

    def export_all(self) -> list[SeriesValue]:
        """Current value of every present series, health gauge included."""
        values = []
        for family in self._registry.collect():
            for sample in family.samples:
                values.append(SeriesValue(name=sample.name, labels=dict(sample.labels), value=sample.value))
        return values

    def series(self, metric_name: str) -> list[SeriesValue]:
        """Present series of one catalog metric."""
        full = self.full_name(metric_name)
        return [s for s in self.export_all() if s.name == full]

    def get_value(self, metric_name: str, label_values: Sequence[str]) -> Optional[float]:
        """Value of one series, or None when it is absent."""
        definition = self._definitions.get(metric_name)
        if definition is None:
            raise LabelSchemaError(f"Unknown metric {metric_name!r}")
        wanted = dict(zip(definition.labels, (str(v) for v in label_values)))
        for series in self.series(metric_name):
            if series.labels == wanted:
                return series.value
        return None

    def is_empty(self) -> bool:
        """True when no catalog gauge holds any series."""
        health_name = self.full_name(HEALTH_METRIC)
        return not any(s.name != health_name for s in self.export_all())

    def render(self) -> bytes:
        """Render the registry in the Prometheus text exposition format."""
        return generate_latest(self._registry)


__all__ = [
    "DEFAULT_CATALOG",
    "DEFAULT_NAMESPACE",
    "DEVICE_LABELS",
    "HEALTH_METRIC",
    "MetricDefinition",
    "MetricDescriptor",
    "MetricRegistry",
    "SeriesValue",
]
