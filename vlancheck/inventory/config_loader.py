"""YAML configuration loading.

Reads ``config.yml`` and turns it into a typed ``CheckerConfig``::

    listenport: 9999
    networks:
      core: {subnet: 10.0.0.0/24, gateway: 10.0.0.1}
      iot: {subnet: 10.1.0.0/24}
    remoteNodes: [host-a, host-b]
    network_routes:
      - {src: "*", dest: core, unreachable: false}

Usage::

    config = load_config(Path("config.yml"))
    registry = NetworkRegistry(config.networks)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from ..core.exceptions import ConfigError
from ..core.models import NetworkConfig, RouteRule

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = Path("config.yml")


@dataclass
class CheckerConfig:
    """Parsed vlancheck configuration.

    Attributes:
        listen_port: Port of the responder and of every outbound URL.
        networks: Declared networks, keyed by configured name.
        remote_nodes: Hostnames or addresses queried during discovery.
        network_routes: Ordered expectation overrides.

    """

    listen_port: int
    networks: dict[str, NetworkConfig]
    remote_nodes: list[str] = field(default_factory=list)
    network_routes: list[RouteRule] = field(default_factory=list)


def load_config(path: str | Path = DEFAULT_CONFIG_FILE) -> CheckerConfig:
    """Load and validate a YAML configuration file.

    Args:
        path: Location of the configuration file.

    Returns:
        The parsed ``CheckerConfig``.

    Raises:
        ConfigError: If the file is missing, unreadable, or invalid.

    """
    config_path = Path(path)
    if not config_path.exists():
        raise ConfigError(f"Config file not found: {config_path}")
    try:
        with config_path.open("r", encoding="utf-8") as fh:
            raw = yaml.safe_load(fh) or {}
    except yaml.YAMLError as exc:
        raise ConfigError(
            f"Config file is not valid YAML: {config_path}",
            details={"error": str(exc)},
        ) from exc

    config = parse_config(raw)
    logger.info(
        "Loaded %s: %d networks, %d remote nodes, %d route rules",
        config_path,
        len(config.networks),
        len(config.remote_nodes),
        len(config.network_routes),
    )
    return config


def parse_config(raw: Any) -> CheckerConfig:
    """Validate an already-decoded configuration mapping.

    Raises:
        ConfigError: If a required key is missing or has the wrong type.

    """
    if not isinstance(raw, dict):
        raise ConfigError("Config root must be a mapping")

    port = raw.get("listenport")
    if port is None:
        raise ConfigError("Missing required key 'listenport'")
    try:
        listen_port = int(port)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"Invalid listenport: {port!r}") from exc
    if not 0 < listen_port < 65536:
        raise ConfigError(f"listenport out of range: {listen_port}")

    raw_networks = raw.get("networks")
    if not isinstance(raw_networks, dict) or not raw_networks:
        raise ConfigError("Missing or empty 'networks' mapping")
    networks = {str(name): _parse_network(str(name), conf) for name, conf in raw_networks.items()}

    remote_nodes = raw.get("remoteNodes") or []
    if not isinstance(remote_nodes, list):
        raise ConfigError("'remoteNodes' must be a list")

    raw_routes = raw.get("network_routes") or []
    if not isinstance(raw_routes, list):
        raise ConfigError("'network_routes' must be a list")
    routes: list[RouteRule] = []
    for index, entry in enumerate(raw_routes):
        if not isinstance(entry, dict):
            raise ConfigError(f"network_routes[{index}] must be a mapping")
        if not isinstance(entry.get("unreachable", False), bool):
            raise ConfigError(
                f"network_routes[{index}].unreachable must be true or false",
                details={"entry": entry},
            )
        try:
            routes.append(RouteRule.from_dict(entry))
        except KeyError as exc:
            raise ConfigError(
                f"network_routes[{index}] is missing {exc.args[0]!r}",
                details={"entry": entry},
            ) from exc

    return CheckerConfig(
        listen_port=listen_port,
        networks=networks,
        remote_nodes=[str(node) for node in remote_nodes],
        network_routes=routes,
    )


def _parse_network(name: str, conf: Any) -> NetworkConfig:
    if not isinstance(conf, dict) or not conf.get("subnet"):
        raise ConfigError("Network entry requires a 'subnet'", network=name)
    return NetworkConfig(
        subnet=str(conf["subnet"]),
        gateway=str(conf["gateway"]) if conf.get("gateway") else None,
        gateway6=str(conf["gateway6"]) if conf.get("gateway6") else None,
    )
