"""Per-interface policy routing commands.

Each network with a local interface gets its own routing table, named
after the interface, so that replies leave through the interface the
request arrived on.  The commands are only generated; applying them is
left to the operator.
"""

from __future__ import annotations

import logging

from ..core.models import AddressFamily, Network

logger = logging.getLogger(__name__)


def network_route_commands(network: Network) -> list[str]:
    """Return the ``ip rule``/``ip route`` commands for one network."""
    iface = network.interface
    if not iface:
        return []

    commands: list[str] = []
    if network.cidr(AddressFamily.IPV4):
        subnet = network.config.subnet
        commands.append(f'ip rule add from "{subnet}" table "{iface}"')
        commands.append(f'ip route add "{subnet}" dev "{iface}" table "{iface}"')
        if network.config.gateway:
            commands.append(
                f'ip route add default via "{network.config.gateway}" '
                f'dev "{iface}" table "{iface}"'
            )

    ipv6_cidr = network.cidr(AddressFamily.IPV6)
    if ipv6_cidr:
        commands.append(f'ip -6 rule add from "{ipv6_cidr}" table "{iface}"')
        commands.append(f'ip -6 route add "{ipv6_cidr}" dev "{iface}" table "{iface}"')
        if network.config.gateway6:
            commands.append(
                f'ip -6 route add default via "{network.config.gateway6}" '
                f'dev "{iface}" table "{iface}"'
            )
    return commands


def route_commands(networks: list[Network]) -> list[str]:
    """Return the commands for every network, skipping interface-less ones."""
    commands: list[str] = []
    for network in networks:
        if not network.interface:
            logger.debug("Skipping %s: no local interface", network.name)
            continue
        commands.extend(network_route_commands(network))
    return commands
