"""Configuration management for the NVML exporter.

Settings are layered: built-in defaults, then an optional YAML/JSON file,
then command line overrides. The merged result is resolved into a frozen
``ExporterConfig``.
"""

import copy
from dataclasses import asdict, dataclass
from typing import Any, Optional

from nvml_exporter.configs.config_io import load_config_file
from nvml_exporter.devices import BACKENDS
from nvml_exporter.metrics.collector import FailurePolicy
from nvml_exporter.utils.errors import ConfigError

CONFIG_ENV_VAR = "NVML_EXPORTER_CONFIG"
DEFAULT_LISTEN_ADDRESS = ":9114"
DEFAULT_METRICS_PATH = "/metrics"
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

DEFAULT_CONFIG: dict[str, Any] = {
    "web": {
        "listen_address": DEFAULT_LISTEN_ADDRESS,
        "telemetry_path": DEFAULT_METRICS_PATH,
    },
    "collector": {
        "backend": "nvml",
        "failure_policy": FailurePolicy.FAIL_FAST.value,
    },
    "synthetic": {
        "device_count": 2,
        "seed": None,
    },
    "log_level": "INFO",
}


class Config:
    """Layered configuration container with dotted-key access."""

    def __init__(self, config_dict: Optional[dict[str, Any]] = None):
        self.config = copy.deepcopy(config_dict or {})

    def update(self, config_dict: dict[str, Any]) -> None:
        """Merge ``config_dict`` over the current values (nested dicts merge)."""
        _deep_merge(self.config, config_dict)

    def get(self, key: str, default: Any = None) -> Any:
        """Get a value by dotted key (e.g. 'web.listen_address')."""
        value: Any = self.config
        for k in key.split("."):
            if not isinstance(value, dict):
                return default
            value = value.get(k)
        return value if value is not None else default

    def set(self, key: str, value: Any) -> None:
        """Set a value by dotted key, creating intermediate sections."""
        *parents, leaf = key.split(".")
        node = self.config
        for k in parents:
            node = node.setdefault(k, {})
        node[leaf] = value

    def to_dict(self) -> dict[str, Any]:
        return copy.deepcopy(self.config)


def _deep_merge(base: dict[str, Any], overrides: dict[str, Any]) -> None:
    for key, value in overrides.items():
        if isinstance(base.get(key), dict) and isinstance(value, dict):
            _deep_merge(base[key], value)
        else:
            base[key] = value


def parse_listen_address(address: str) -> tuple[str, int]:
    """Split ``host:port`` into (host, port).

    An empty host (``:9114``) means all interfaces. IPv6 hosts must be
    bracketed (``[::1]:9114``).

    Raises:
        ConfigError: If the address has no port or the port is out of range
    """
    host, sep, port_text = address.rpartition(":")
    if not sep:
        raise ConfigError(f"Listen address must be host:port, got {address!r}")
    if host.startswith("[") and host.endswith("]"):
        host = host[1:-1]
    elif ":" in host:
        raise ConfigError(f"IPv6 listen hosts must be bracketed, got {address!r}")
    try:
        port = int(port_text)
    except ValueError:
        raise ConfigError(f"Invalid port in listen address {address!r}") from None
    if not 0 <= port <= 65535:
        raise ConfigError(f"Port out of range in listen address {address!r}")
    return (host or "0.0.0.0", port)


@dataclass(frozen=True)
class ExporterConfig:
    """Resolved exporter settings."""

    listen_address: str = DEFAULT_LISTEN_ADDRESS
    metrics_path: str = DEFAULT_METRICS_PATH
    backend: str = "nvml"
    failure_policy: FailurePolicy = FailurePolicy.FAIL_FAST
    synthetic_devices: int = 2
    synthetic_seed: Optional[int] = None
    log_level: str = "INFO"

    def __post_init__(self) -> None:
        parse_listen_address(self.listen_address)
        if not self.metrics_path.startswith("/"):
            raise ConfigError(f"Metrics path must start with '/', got {self.metrics_path!r}")
        if "{" in self.metrics_path or "}" in self.metrics_path:
            raise ConfigError(f"Metrics path must not contain braces, got {self.metrics_path!r}")
        if self.backend not in BACKENDS:
            raise ConfigError(f"Unknown backend {self.backend!r}. Expected one of: {', '.join(BACKENDS)}")
        if self.synthetic_devices < 0:
            raise ConfigError(f"synthetic.device_count must be >= 0, got {self.synthetic_devices}")
        if self.log_level.upper() not in LOG_LEVELS:
            raise ConfigError(f"Unknown log level {self.log_level!r}")

    @property
    def host(self) -> str:
        return parse_listen_address(self.listen_address)[0]

    @property
    def port(self) -> int:
        return parse_listen_address(self.listen_address)[1]

    @classmethod
    def from_config(cls, config: Config) -> "ExporterConfig":
        policy_text = str(config.get("collector.failure_policy", FailurePolicy.FAIL_FAST.value))
        try:
            policy = FailurePolicy(policy_text.replace("-", "_"))
        except ValueError:
            valid = ", ".join(p.value for p in FailurePolicy)
            raise ConfigError(f"Unknown failure policy {policy_text!r}. Expected one of: {valid}") from None

        seed = config.get("synthetic.seed")
        try:
            device_count = int(config.get("synthetic.device_count", 2))
            seed = int(seed) if seed is not None else None
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Invalid synthetic backend settings: {e}") from e

        return cls(
            listen_address=str(config.get("web.listen_address", DEFAULT_LISTEN_ADDRESS)),
            metrics_path=str(config.get("web.telemetry_path", DEFAULT_METRICS_PATH)),
            backend=str(config.get("collector.backend", "nvml")),
            failure_policy=policy,
            synthetic_devices=device_count,
            synthetic_seed=seed,
            log_level=str(config.get("log_level", "INFO")).upper(),
        )

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["failure_policy"] = self.failure_policy.value
        return data


def load_config(filepath: Optional[str] = None, overrides: Optional[dict[str, Any]] = None) -> ExporterConfig:
    """Resolve settings from defaults, an optional file and dotted-key overrides.

    Args:
        filepath: Optional YAML/JSON config file
        overrides: Dotted keys to values (None values are ignored)

    Raises:
        ConfigError: If the file cannot be loaded or a value is invalid
    """
    config = Config(DEFAULT_CONFIG)
    if filepath:
        config.update(load_config_file(filepath))
    for key, value in (overrides or {}).items():
        if value is not None:
            config.set(key, value)
    return ExporterConfig.from_config(config)
