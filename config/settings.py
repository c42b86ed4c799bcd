"""
config/settings.py - Gateway settings.

YAML file (config/gateway.yaml by default) with environment overrides.
Environment variables win over the file:
- RELAYGATE_CACHE_BACKEND: memory | null | redis
- REDIS_URL
- NETWORK_VERSION
- RELAYGATE_NODE_TIMEOUT: seconds
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

from core.constants import (
    DEFAULT_BLOCK_TTL_SECONDS,
    DEFAULT_BLOCKS_BY_TYPE_TTL_SECONDS,
    DEFAULT_LATEST_BLOCKS_TTL_SECONDS,
    DEFAULT_LIVENESS_INTERVAL_SECONDS,
    DEFAULT_LIVENESS_JITTER_FRACTION,
    DEFAULT_NETWORK_VERSION,
    DEFAULT_NODE_TIMEOUT_SECONDS,
    DEFAULT_PROBE_TIMEOUT_SECONDS,
    DEFAULT_REDIS_SOCKET_TIMEOUT_SECONDS,
    DEFAULT_REDIS_URL,
    DEFAULT_THROUGHPUT_WINDOW_SECONDS,
    DEFAULT_TRANSACTION_TTL_SECONDS,
    CacheBackend,
)
from core.exceptions import ConfigError
from core.models import Node

# Load environment variables
load_dotenv()

CONFIG_DIR = Path(__file__).parent
DEFAULT_SETTINGS_PATH = CONFIG_DIR / "gateway.yaml"


@dataclass
class CacheSettings:
    """Cache backend selection."""
    backend: CacheBackend = CacheBackend.MEMORY
    redis_url: str = DEFAULT_REDIS_URL
    socket_timeout_seconds: float = DEFAULT_REDIS_SOCKET_TIMEOUT_SECONDS


@dataclass
class CacheTTLSettings:
    """Per call-site cache TTLs (seconds)."""
    block: int = DEFAULT_BLOCK_TTL_SECONDS
    transaction: int = DEFAULT_TRANSACTION_TTL_SECONDS
    latest_blocks: int = DEFAULT_LATEST_BLOCKS_TTL_SECONDS
    blocks_by_type: int = DEFAULT_BLOCKS_BY_TYPE_TTL_SECONDS


@dataclass
class LivenessSettings:
    """Background liveness sweep."""
    enabled: bool = True
    interval_seconds: float = DEFAULT_LIVENESS_INTERVAL_SECONDS
    probe_timeout_seconds: float = DEFAULT_PROBE_TIMEOUT_SECONDS
    jitter_fraction: float = DEFAULT_LIVENESS_JITTER_FRACTION


@dataclass
class GatewaySettings:
    """Full gateway configuration."""
    nodes: list[Node] = field(default_factory=list)
    cache: CacheSettings = field(default_factory=CacheSettings)
    cache_ttl: CacheTTLSettings = field(default_factory=CacheTTLSettings)
    liveness: LivenessSettings = field(default_factory=LivenessSettings)
    node_timeout_seconds: float = DEFAULT_NODE_TIMEOUT_SECONDS
    throughput_window_seconds: float = DEFAULT_THROUGHPUT_WINDOW_SECONDS
    network_version: str = DEFAULT_NETWORK_VERSION


def load_yaml(filepath: Path | str) -> dict[str, Any]:
    """
    Load a YAML configuration file.

    Args:
        filepath: Path to the file (a bare name resolves in the config directory)

    Returns:
        Parsed YAML as dict

    Raises:
        FileNotFoundError: if the file does not exist
        ConfigError: on malformed YAML or a non-mapping document
    """
    path = Path(filepath)
    if not path.is_absolute() and not path.exists():
        path = CONFIG_DIR / path
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"Config root must be a mapping: {path}")
    return data


def _number(value: Any, name: str, cast: type = float, positive: bool = True) -> Any:
    try:
        number = cast(value)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"{name} must be a number, got {value!r}", details={"setting": name}) from e
    if positive and number <= 0:
        raise ConfigError(f"{name} must be positive", details={"setting": name})
    return number


def _parse_nodes(raw_nodes: list[dict[str, Any]]) -> list[Node]:
    nodes = []
    seen: set[str] = set()
    for idx, raw in enumerate(raw_nodes):
        try:
            node = Node.from_dict(raw)
        except KeyError as e:
            raise ConfigError(
                f"Node #{idx} missing required field '{e.args[0]}'",
                details={"index": idx},
            ) from e
        except ValueError as e:
            raise ConfigError(f"Node #{idx} is invalid: {e}", details={"index": idx}) from e

        if node.id in seen:
            raise ConfigError(f"Duplicate node id in config: {node.id}")
        seen.add(node.id)
        nodes.append(node)
    return nodes


def _parse_backend(value: str | None) -> CacheBackend:
    # YAML reads a bare `null` as None
    if value is None:
        return CacheBackend.NULL
    try:
        return CacheBackend(str(value).lower())
    except ValueError as e:
        choices = ", ".join(b.value for b in CacheBackend)
        raise ConfigError(f"Unknown cache backend '{value}' (expected one of: {choices})") from e


def load_settings(config_path: Path | str | None = None) -> GatewaySettings:
    """
    Load gateway settings from YAML, then apply environment overrides.

    Args:
        config_path: Path to the YAML file (default: config/gateway.yaml).
            A missing file yields defaults.

    Returns:
        GatewaySettings

    Raises:
        ConfigError: on invalid YAML, node definitions, cache backend or numbers
    """
    path = Path(config_path) if config_path else DEFAULT_SETTINGS_PATH
    data = load_yaml(path) if path.exists() else {}

    cache_data = data.get("cache", {}) or {}
    ttl_data = data.get("cache_ttl", {}) or {}
    liveness_data = data.get("liveness", {}) or {}
    timeouts_data = data.get("timeouts", {}) or {}
    throughput_data = data.get("throughput", {}) or {}

    cache = CacheSettings(
        backend=_parse_backend(os.getenv("RELAYGATE_CACHE_BACKEND", cache_data.get("backend", "memory"))),
        redis_url=os.getenv("REDIS_URL", cache_data.get("redis_url", DEFAULT_REDIS_URL)),
        socket_timeout_seconds=_number(
            cache_data.get("socket_timeout_seconds", DEFAULT_REDIS_SOCKET_TIMEOUT_SECONDS),
            "cache.socket_timeout_seconds",
        ),
    )

    ttl_defaults = CacheTTLSettings()
    cache_ttl = CacheTTLSettings(
        **{
            name: _number(ttl_data.get(name, getattr(ttl_defaults, name)), f"cache_ttl.{name}", cast=int)
            for name in ("block", "transaction", "latest_blocks", "blocks_by_type")
        }
    )

    liveness = LivenessSettings(
        enabled=bool(liveness_data.get("enabled", True)),
        interval_seconds=_number(
            liveness_data.get("interval_seconds", DEFAULT_LIVENESS_INTERVAL_SECONDS),
            "liveness.interval_seconds",
        ),
        probe_timeout_seconds=_number(
            liveness_data.get("probe_timeout_seconds", DEFAULT_PROBE_TIMEOUT_SECONDS),
            "liveness.probe_timeout_seconds",
        ),
        jitter_fraction=_number(
            liveness_data.get("jitter_fraction", DEFAULT_LIVENESS_JITTER_FRACTION),
            "liveness.jitter_fraction",
            positive=False,
        ),
    )
    if not 0 <= liveness.jitter_fraction < 1:
        raise ConfigError("liveness.jitter_fraction must be in [0, 1)")

    node_timeout = _number(
        os.getenv(
            "RELAYGATE_NODE_TIMEOUT",
            timeouts_data.get("node_request_seconds", DEFAULT_NODE_TIMEOUT_SECONDS),
        ),
        "timeouts.node_request_seconds",
    )

    return GatewaySettings(
        nodes=_parse_nodes(data.get("nodes", []) or []),
        cache=cache,
        cache_ttl=cache_ttl,
        liveness=liveness,
        node_timeout_seconds=node_timeout,
        throughput_window_seconds=_number(
            throughput_data.get("window_seconds", DEFAULT_THROUGHPUT_WINDOW_SECONDS),
            "throughput.window_seconds",
        ),
        network_version=os.getenv("NETWORK_VERSION", data.get("network_version", DEFAULT_NETWORK_VERSION)),
    )
