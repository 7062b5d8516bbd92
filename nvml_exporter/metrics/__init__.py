"""Metric registry and snapshot collection."""

from nvml_exporter.metrics.collector import (
    CycleFailed,
    CycleResult,
    CycleSucceeded,
    FailurePolicy,
    QueryFailure,
    SnapshotCollector,
)
from nvml_exporter.metrics.registry import (
    DEFAULT_CATALOG,
    DEFAULT_NAMESPACE,
    DEVICE_LABELS,
    HEALTH_METRIC,
    MetricDefinition,
    MetricDescriptor,
    MetricRegistry,
    SeriesValue,
)

__all__ = [
    "CycleFailed",
    "CycleResult",
    "CycleSucceeded",
    "DEFAULT_CATALOG",
    "DEFAULT_NAMESPACE",
    "DEVICE_LABELS",
    "FailurePolicy",
    "HEALTH_METRIC",
    "MetricDefinition",
    "MetricDescriptor",
    "MetricRegistry",
    "QueryFailure",
    "SeriesValue",
    "SnapshotCollector",
]
