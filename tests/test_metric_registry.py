"""Unit tests for the metric registry."""

import pytest
from prometheus_client.parser import text_string_to_metric_families

from nvml_exporter.metrics.registry import (
    DEFAULT_CATALOG,
    DEVICE_LABELS,
    MetricDefinition,
    MetricRegistry,
)
from nvml_exporter.utils.errors import CatalogError, LabelSchemaError

LABELS = ("0", "GPU-0000", "Tesla T4")


class TestRegister:
    """Catalog registration."""

    def test_default_catalog_creates_every_metric(self, registry):
        assert registry.metric_names == [
            "power_watts",
            "gpu_percent",
            "memory_free",
            "memory_total",
            "memory_used",
            "memory_percent",
            "temperature_fahrenheit",
            "temperature_celsius",
        ]

    def test_describe_lists_catalog_then_health(self, registry):
        descriptors = registry.describe()
        assert len(descriptors) == len(DEFAULT_CATALOG) + 1
        by_name = {d.name: d for d in descriptors}
        assert by_name["nvml_gpu_percent"].help == "Percent of GPU Utilized"
        assert by_name["nvml_gpu_percent"].labels == DEVICE_LABELS
        assert by_name["nvml_up"].labels == ()
        assert descriptors[-1].name == "nvml_up"
        assert all(d.type == "gauge" for d in descriptors)

    def test_duplicate_names_rejected(self):
        catalog = [MetricDefinition("gpu_percent", "a"), MetricDefinition("gpu_percent", "b")]
        with pytest.raises(CatalogError, match="Duplicate metric name"):
            MetricRegistry().register(catalog)

    def test_health_name_is_reserved(self):
        with pytest.raises(CatalogError, match="reserved"):
            MetricRegistry().register([MetricDefinition("up", "clash")])

    def test_duplicate_label_names_rejected(self):
        with pytest.raises(CatalogError, match="Duplicate label names"):
            MetricRegistry().register([MetricDefinition("x", "x", labels=("a", "a"))])

    def test_register_twice_rejected(self, registry):
        with pytest.raises(CatalogError, match="already registered"):
            registry.register(DEFAULT_CATALOG)

    def test_registries_are_independent(self):
        first = MetricRegistry.from_catalog()
        second = MetricRegistry.from_catalog()
        first.set_value("gpu_percent", LABELS, 99)
        assert second.get_value("gpu_percent", LABELS) is None

    def test_custom_namespace(self):
        reg = MetricRegistry.from_catalog(namespace="gpu")
        assert reg.full_name("power_watts") == "gpu_power_watts"
        assert b"gpu_up" in reg.render()


class TestSetValue:
    """Series writes."""

    def test_upsert_keeps_one_series_per_label_set(self, registry):
        registry.set_value("gpu_percent", LABELS, 10)
        registry.set_value("gpu_percent", LABELS, 55)
        series = registry.series("gpu_percent")
        assert len(series) == 1
        assert series[0].value == 55.0
        assert series[0].labels == {"device_id": "0", "device_uuid": "GPU-0000", "device_name": "Tesla T4"}

    def test_wrong_arity_is_rejected(self, registry):
        with pytest.raises(LabelSchemaError, match="expects 3 label values"):
            registry.set_value("gpu_percent", ("0", "GPU-0000"), 1)

    def test_unknown_metric_is_rejected(self, registry):
        with pytest.raises(LabelSchemaError, match="Unknown metric"):
            registry.set_value("fan_speed", LABELS, 1)

    def test_large_byte_counts_are_exact(self, registry):
        total = 80 * 1024**3
        registry.set_value("memory_total", LABELS, total)
        assert registry.get_value("memory_total", LABELS) == float(total)
        assert int(registry.get_value("memory_total", LABELS)) == total


class TestReset:
    """Reset semantics."""

    def test_reset_twice_leaves_registry_empty(self, registry):
        registry.set_value("gpu_percent", LABELS, 10)
        registry.set_value("power_watts", LABELS, 200)
        registry.reset()
        assert registry.is_empty()
        registry.reset()
        assert registry.is_empty()
        assert registry.series("gpu_percent") == []

    def test_reset_keeps_metric_families(self, registry):
        registry.set_value("gpu_percent", LABELS, 10)
        registry.reset()
        text = registry.render().decode()
        assert "# HELP nvml_gpu_percent Percent of GPU Utilized" in text
        assert 'nvml_gpu_percent{' not in text


class TestHealthAndRender:
    """Health gauge and exposition output."""

    def test_health_defaults_to_zero(self, registry):
        assert registry.health == 0.0

    def test_set_health(self, registry):
        registry.set_health(True)
        assert registry.health == 1.0
        registry.set_health(False)
        assert registry.health == 0.0

    def test_health_exported_even_when_empty(self, registry):
        registry.set_health(True)
        values = registry.export_all()
        assert [v.name for v in values] == ["nvml_up"]
        assert values[0].value == 1.0
        assert values[0].labels == {}

    def test_render_maps_values_to_label_names(self, registry):
        registry.set_value("gpu_percent", LABELS, 45)

        families = {f.name: f for f in text_string_to_metric_families(registry.render().decode())}

        family = families["nvml_gpu_percent"]
        assert family.type == "gauge"
        assert [(s.labels, s.value) for s in family.samples] == [
            ({"device_id": "0", "device_uuid": "GPU-0000", "device_name": "Tesla T4"}, 45.0)
        ]
