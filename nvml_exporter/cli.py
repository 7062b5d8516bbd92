"""Command-line interface for the NVML exporter.

Parses flags, resolves configuration, initializes the device backend and
serves the scrape endpoint until interrupted.
"""

import argparse
import logging
import os
import sys
from typing import Optional

from nvml_exporter import __version__
from nvml_exporter.configs.config import (
    CONFIG_ENV_VAR,
    DEFAULT_LISTEN_ADDRESS,
    DEFAULT_METRICS_PATH,
    LOG_LEVELS,
    ExporterConfig,
    load_config,
)
from nvml_exporter.devices import BACKENDS, DeviceBackend, create_backend
from nvml_exporter.metrics.collector import FailurePolicy, SnapshotCollector
from nvml_exporter.metrics.registry import MetricRegistry
from nvml_exporter.server import create_app, run_server
from nvml_exporter.utils.errors import ConfigError, InitializationError

LOGGER = logging.getLogger("nvml_exporter")

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def setup_parser() -> argparse.ArgumentParser:
    """Setup command-line argument parser.

    Returns:
        ArgumentParser configured for the exporter
    """
    parser = argparse.ArgumentParser(
        prog="nvml-exporter",
        description="Prometheus exporter for NVIDIA GPU telemetry (NVML)",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=f"""
Examples:
  nvml-exporter
  nvml-exporter --web.listen-address 127.0.0.1:9114 --web.telemetry-path /gpu-metrics
  nvml-exporter --config exporter.yaml --log-level DEBUG
  nvml-exporter --backend synthetic --synthetic-devices 4

Environment Variables:
  {CONFIG_ENV_VAR}   Default config file path (YAML/JSON)
        """,
    )
    parser.add_argument(
        "--web.listen-address",
        dest="listen_address",
        metavar="ADDR",
        help=f"Address to listen on (default: {DEFAULT_LISTEN_ADDRESS})",
    )
    parser.add_argument(
        "--web.telemetry-path",
        dest="metrics_path",
        metavar="PATH",
        help=f"Path under which to expose metrics (default: {DEFAULT_METRICS_PATH})",
    )
    parser.add_argument("--config", help="Path to configuration file (YAML/JSON)")
    parser.add_argument(
        "--backend",
        choices=BACKENDS,
        help="Device backend (default: nvml). 'synthetic' serves fake devices for demos.",
    )
    parser.add_argument(
        "--synthetic-devices",
        type=int,
        metavar="N",
        help="Number of devices exposed by the synthetic backend (default: 2)",
    )
    parser.add_argument(
        "--failure-policy",
        choices=[p.value for p in FailurePolicy],
        help="fail_fast (default) aborts a scrape at the first failed query; "
        "per_device skips only the failing device",
    )
    parser.add_argument(
        "--log-level",
        type=str.upper,
        choices=LOG_LEVELS,
        help="Logging level (default: INFO)",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def resolve_config(args: argparse.Namespace) -> ExporterConfig:
    """Merge defaults, the config file and command-line flags (flags win)."""
    config_path = args.config or os.environ.get(CONFIG_ENV_VAR)
    overrides = {
        "web.listen_address": args.listen_address,
        "web.telemetry_path": args.metrics_path,
        "collector.backend": args.backend,
        "collector.failure_policy": args.failure_policy,
        "synthetic.device_count": args.synthetic_devices,
        "log_level": args.log_level,
    }
    return load_config(config_path, overrides)


def configure_logging(level: str) -> None:
    logging.basicConfig(level=getattr(logging, level.upper(), logging.INFO), format=LOG_FORMAT)


def build_backend(config: ExporterConfig) -> DeviceBackend:
    synthetic_config = {"seed": config.synthetic_seed} if config.synthetic_seed is not None else None
    return create_backend(config.backend, synthetic_devices=config.synthetic_devices, synthetic_config=synthetic_config)


def main(argv: Optional[list[str]] = None) -> int:
    """Main CLI entry point.

    Returns:
        0 on clean shutdown, 1 on initialization failure, 2 on bad configuration
    """
    parser = setup_parser()
    args = parser.parse_args(argv)

    try:
        config = resolve_config(args)
    except ConfigError as e:
        configure_logging("INFO")
        LOGGER.error("Invalid configuration: %s", e)
        return 2

    configure_logging(config.log_level)

    backend = build_backend(config)
    try:
        backend.start()
        devices = backend.enumerate_devices()
    except InitializationError as e:
        LOGGER.error("Failed initializing exporter: %s", e)
        backend.stop()
        return 1

    try:
        LOGGER.info("Found %d device(s) via %s backend", len(devices), backend.name)
        for device in devices:
            ident = device.identity
            LOGGER.info("Found device %d: %s (%s)", ident.index, ident.name, ident.uuid)

        registry = MetricRegistry.from_catalog()
        collector = SnapshotCollector(registry, devices, policy=config.failure_policy)
        app = create_app(collector, metrics_path=config.metrics_path)
        run_server(app, config)
    except KeyboardInterrupt:
        LOGGER.info("Interrupted, shutting down")
    finally:
        backend.stop()
    return 0


if __name__ == "__main__":
    sys.exit(main())
