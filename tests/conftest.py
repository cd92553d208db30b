"""Shared pytest fixtures for the vlancheck test suite.

Provides network configurations, fake local interfaces, loaded
registries and httpx mock transports so that no test touches the real
host interfaces or the network.
"""

from __future__ import annotations

from collections.abc import Callable

import httpx
import pytest

from vlancheck.core.models import NetworkConfig
from vlancheck.inventory.network_registry import InterfaceInfo, NetworkRegistry

LISTEN_PORT = 9999

# ---------------------------------------------------------------------------
# Network fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def network_configs() -> dict[str, NetworkConfig]:
    """core and IoT VLANs, plus a guest VLAN absent from this host."""
    return {
        "Core": NetworkConfig(subnet="10.0.0.0/24", gateway="10.0.0.1", gateway6="fd00::1"),
        "iot": NetworkConfig(subnet="10.1.0.0/24", gateway="10.1.0.1"),
        "guest": NetworkConfig(subnet="10.2.0.0/24"),
    }


@pytest.fixture
def local_interfaces() -> list[InterfaceInfo]:
    """eth0 is dual stack on core; eth1 is IPv4 only on IoT."""
    return [
        InterfaceInfo(
            name="eth0",
            ipv4="10.0.0.5",
            ipv6="fd00::5",
            ipv4_cidr="10.0.0.5/24",
            ipv6_cidr="fd00::5/64",
        ),
        InterfaceInfo(name="eth1", ipv4="10.1.0.9", ipv4_cidr="10.1.0.9/24"),
        InterfaceInfo(name="eth9", ipv4="192.168.50.2", ipv4_cidr="192.168.50.2/24"),
    ]


@pytest.fixture
def registry(
    network_configs: dict[str, NetworkConfig],
    local_interfaces: list[InterfaceInfo],
) -> NetworkRegistry:
    """Registry with core (v4+v6), iot (v4) and guest (no interface)."""
    reg = NetworkRegistry(network_configs, hostname="checker-local")
    reg.load(interfaces=local_interfaces)
    return reg


@pytest.fixture
def ipv4_registry() -> NetworkRegistry:
    """Two IPv4-only networks: core 10.0.0.5/24 and iot 10.1.0.9/24."""
    reg = NetworkRegistry(
        {
            "core": NetworkConfig(subnet="10.0.0.0/24"),
            "iot": NetworkConfig(subnet="10.1.0.0/24"),
        },
        hostname="checker-local",
    )
    reg.load(
        interfaces=[
            InterfaceInfo(name="eth0", ipv4="10.0.0.5", ipv4_cidr="10.0.0.5/24"),
            InterfaceInfo(name="eth1", ipv4="10.1.0.9", ipv4_cidr="10.1.0.9/24"),
        ]
    )
    return reg


# ---------------------------------------------------------------------------
# HTTP fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def peer_documents() -> dict[str, dict[str, object]]:
    """``/info`` documents served by two remote peers."""
    return {
        "peer-a": {
            "hostname": "peer-a",
            "networks": {
                "Core": {"name": "Core", "iface": "eth0", "ipv4": "10.0.0.20", "ipv6": "fd00::20"},
                "iot": {"name": "iot", "iface": "eth1", "ipv4": "10.1.0.20"},
            },
        },
        "peer-b": {
            "hostname": "peer-b",
            "networks": {
                "core": {"name": "core", "iface": "ens3", "ipv4": "10.0.0.30"},
                "guest": {"name": "guest", "iface": "ens4", "ipv4": "10.2.0.30"},
            },
        },
    }


@pytest.fixture
def info_transport(
    peer_documents: dict[str, dict[str, object]],
) -> Callable[[], httpx.MockTransport]:
    """Factory of a mock transport answering ``/info`` for known peers.

    Unknown hosts raise ``ConnectError`` like an unreachable node.
    """

    def build() -> httpx.MockTransport:
        def handler(request: httpx.Request) -> httpx.Response:
            document = peer_documents.get(request.url.host)
            if document is None:
                raise httpx.ConnectError("connection refused", request=request)
            if request.url.path != "/info":
                return httpx.Response(404, text="404 - Not Found")
            return httpx.Response(200, json=document)

        return httpx.MockTransport(handler)

    return build


class ProbeRecorder:
    """Transport factory that records probes and answers from a host set."""

    def __init__(self, reachable_hosts: set[str]) -> None:
        self.reachable_hosts = reachable_hosts
        self.calls: list[tuple[str, str]] = []

    def __call__(self, local_address: str) -> httpx.MockTransport:
        def handler(request: httpx.Request) -> httpx.Response:
            self.calls.append((local_address, request.url.host))
            if request.url.host in self.reachable_hosts:
                return httpx.Response(200, text=local_address)
            raise httpx.ConnectTimeout("timed out", request=request)

        return httpx.MockTransport(handler)


@pytest.fixture
def probe_recorder() -> Callable[[set[str]], ProbeRecorder]:
    """Build a ``ProbeRecorder`` for a set of reachable checker hosts."""
    return ProbeRecorder


# ---------------------------------------------------------------------------
# Pytest configuration
# ---------------------------------------------------------------------------


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers."""
    config.addinivalue_line("markers", "integration: mark test as integration test")
