"""Tests for the HTTP scrape endpoint."""

from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient
from prometheus_client import CONTENT_TYPE_LATEST
from prometheus_client.parser import text_string_to_metric_families

from nvml_exporter.configs.config import ExporterConfig
from nvml_exporter.devices.base import QueryClass
from nvml_exporter.metrics.collector import SnapshotCollector
from nvml_exporter.server import create_app, render_landing_page, run_server


@pytest.fixture
def devices(make_device):
    return [make_device(0, gpu=45), make_device(1, gpu=80)]


@pytest.fixture
def client(registry, devices):
    collector = SnapshotCollector(registry, devices)
    return TestClient(create_app(collector))


class TestMetricsRoute:
    """GET on the telemetry path."""

    def test_returns_exposition_text(self, client):
        response = client.get("/metrics")

        assert response.status_code == 200
        assert response.headers["content-type"] == CONTENT_TYPE_LATEST
        assert "nvml_up 1.0" in response.text
        gpu = {
            s.labels["device_id"]: (s.labels, s.value)
            for f in text_string_to_metric_families(response.text)
            for s in f.samples
            if s.name == "nvml_gpu_percent"
        }
        assert gpu["1"] == ({"device_id": "1", "device_uuid": "GPU-0001", "device_name": "Tesla T4"}, 80.0)

    def test_each_request_runs_a_cycle(self, client, devices):
        client.get("/metrics")
        client.get("/metrics")
        assert len(devices[0].calls) == 8

    def test_failed_cycle_still_returns_200(self, client, devices):
        devices[1].fail_on = QueryClass.UTILIZATION

        response = client.get("/metrics")

        assert response.status_code == 200
        assert "nvml_up 0.0" in response.text
        assert 'device_id="1"' not in response.text
        assert 'device_id="0"' in response.text

    def test_head_runs_a_cycle(self, client, devices):
        response = client.head("/metrics")

        assert response.status_code == 200
        assert response.headers["content-type"] == CONTENT_TYPE_LATEST
        assert devices[0].calls != []

    def test_custom_metrics_path(self, registry, devices):
        client = TestClient(create_app(SnapshotCollector(registry, devices), metrics_path="/gpu"))

        response = client.get("/gpu")

        assert response.status_code == 200
        assert "nvml_gpu_percent" in response.text


class TestLandingPage:
    """Every other path serves the landing page."""

    @pytest.mark.parametrize("path", ["/", "/index.html", "/some/other/path"])
    def test_landing_page_links_to_metrics(self, client, path, devices):
        response = client.get(path)

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/html")
        assert "<title>NVML Exporter</title>" in response.text
        assert "<a href='/metrics'>Metrics</a>" in response.text
        assert devices[0].calls == []

    def test_head_on_landing_page(self, client, devices):
        response = client.head("/")

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/html")
        assert devices[0].calls == []

    def test_landing_page_uses_configured_path(self):
        assert "<a href='/gpu'>Metrics</a>" in render_landing_page("/gpu")


class TestRunServer:
    """uvicorn launch parameters."""

    @patch("nvml_exporter.server.uvicorn.run")
    def test_run_server_binds_listen_address(self, mock_run, registry):
        app = create_app(SnapshotCollector(registry, []))
        config = ExporterConfig(listen_address="127.0.0.1:9200", log_level="DEBUG")

        run_server(app, config)

        mock_run.assert_called_once_with(
            app, host="127.0.0.1", port=9200, log_level="debug", access_log=False
        )

    @patch("nvml_exporter.server.uvicorn.run")
    def test_empty_host_binds_all_interfaces(self, mock_run, registry):
        app = create_app(SnapshotCollector(registry, []))

        run_server(app, ExporterConfig())

        _, kwargs = mock_run.call_args
        assert kwargs["host"] == "0.0.0.0"
        assert kwargs["port"] == 9114
