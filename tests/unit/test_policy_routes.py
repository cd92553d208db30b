"""Unit tests for policy routing command generation."""

from __future__ import annotations

from vlancheck.inventory.network_registry import NetworkRegistry
from vlancheck.routing.policy_routes import network_route_commands, route_commands


class TestRouteCommands:
    """Tests for route_commands."""

    def test_dual_stack_network_with_gateways(self, registry: NetworkRegistry) -> None:
        assert network_route_commands(registry.get("core")) == [
            'ip rule add from "10.0.0.0/24" table "eth0"',
            'ip route add "10.0.0.0/24" dev "eth0" table "eth0"',
            'ip route add default via "10.0.0.1" dev "eth0" table "eth0"',
            'ip -6 rule add from "fd00::5/64" table "eth0"',
            'ip -6 route add "fd00::5/64" dev "eth0" table "eth0"',
            'ip -6 route add default via "fd00::1" dev "eth0" table "eth0"',
        ]

    def test_ipv4_only_network(self, registry: NetworkRegistry) -> None:
        commands = network_route_commands(registry.get("iot"))
        assert len(commands) == 3
        assert not any(c.startswith("ip -6") for c in commands)

    def test_skips_network_without_interface(self, registry: NetworkRegistry) -> None:
        assert network_route_commands(registry.get("guest")) == []
        commands = route_commands(registry.networks)
        assert len(commands) == 9
        assert not any("10.2.0.0/24" in c for c in commands)
