"""Local network registry.

Maps each configured network onto the local interface whose IPv4 address
falls inside the network's ``subnet``.  Interfaces are enumerated with
psutil; loopback, link-local and unspecified addresses are ignored.

Networks whose subnet matches no local interface are still registered,
without an interface or addresses, so they show up as ``UNKNOWN`` in the
reachability matrices.

Usage::

    registry = NetworkRegistry(config.networks)
    registry.load()
    core = registry.get("core")
"""

from __future__ import annotations

import ipaddress
import logging
import socket
from dataclasses import dataclass

import psutil

from ..core.exceptions import RegistryError
from ..core.models import Network, NetworkConfig, normalize_name

logger = logging.getLogger(__name__)

DISCARDED_NETWORKS = tuple(
    ipaddress.ip_network(cidr)
    for cidr in (
        "fe80::/10",
        "::/128",
        "::1/128",
        "127.0.0.0/8",
        "0.0.0.0/32",
        "169.254.0.0/16",
    )
)


def is_discarded_address(address: str) -> bool:
    """Return ``True`` for loopback, link-local and unspecified addresses."""
    try:
        parsed = ipaddress.ip_address(address)
    except ValueError:
        return False
    return any(parsed.version == net.version and parsed in net for net in DISCARDED_NETWORKS)


def canonical_address(address: str) -> str:
    """Return the compressed lowercase form of an IP literal, without scope.

    Strings that are not IP literals are returned unchanged.
    """
    bare = address.split("%", 1)[0]
    try:
        return str(ipaddress.ip_address(bare))
    except ValueError:
        return bare


@dataclass(frozen=True)
class InterfaceInfo:
    """First usable IPv4 and IPv6 address of a local interface."""

    name: str
    ipv4: str | None = None
    ipv6: str | None = None
    ipv4_cidr: str | None = None
    ipv6_cidr: str | None = None


def _prefix_length(address: str, netmask: str | None) -> int:
    """Derive a prefix length from a psutil netmask string."""
    max_len = ipaddress.ip_address(address).max_prefixlen
    if not netmask:
        return max_len
    try:
        return bin(int(ipaddress.ip_address(netmask))).count("1")
    except ValueError:
        return max_len


def enumerate_interfaces() -> tuple[list[InterfaceInfo], set[str]]:
    """Enumerate local interfaces via psutil.

    Returns:
        A tuple of the usable interfaces and the set of every usable
        local address.

    """
    interfaces: list[InterfaceInfo] = []
    addresses: set[str] = set()
    for name, addrs in psutil.net_if_addrs().items():
        found: dict[str, str | None] = {
            "ipv4": None,
            "ipv6": None,
            "ipv4_cidr": None,
            "ipv6_cidr": None,
        }
        for addr in addrs:
            if addr.family not in (socket.AF_INET, socket.AF_INET6):
                continue
            address = addr.address.split("%", 1)[0]
            if is_discarded_address(address):
                continue
            addresses.add(address)
            prefix = _prefix_length(address, addr.netmask)
            family = "ipv4" if addr.family == socket.AF_INET else "ipv6"
            if found[family] is None:
                found[family] = address
                found[f"{family}_cidr"] = f"{address}/{prefix}"
        interfaces.append(InterfaceInfo(name=name, **found))
    return interfaces, addresses


class NetworkRegistry:
    """Registry of the networks under test.

    Args:
        network_configs: Declared networks keyed by configured name.
        hostname: Name reported to peers; defaults to the local hostname.

    """

    def __init__(
        self,
        network_configs: dict[str, NetworkConfig] | None = None,
        hostname: str | None = None,
    ) -> None:
        """Initialize the registry with the declared networks."""
        self._configs = dict(network_configs or {})
        self._hostname = hostname or socket.gethostname()
        self._networks: dict[str, Network] = {}
        self._local_addresses: set[str] = set()
        self._logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    def load(
        self,
        interfaces: list[InterfaceInfo] | None = None,
        local_addresses: set[str] | None = None,
    ) -> None:
        """Bind every declared network to a local interface.

        Args:
            interfaces: Interface list to use instead of enumerating the
                host with psutil.
            local_addresses: Every local address; derived from
                ``interfaces`` when omitted.

        Raises:
            RegistryError: If a subnet is invalid or two network names
                collide once case-folded.

        """
        if interfaces is None:
            interfaces, discovered = enumerate_interfaces()
            local_addresses = local_addresses or discovered
        if local_addresses is None:
            local_addresses = {
                addr for iface in interfaces for addr in (iface.ipv4, iface.ipv6) if addr
            }
        self._local_addresses = {canonical_address(addr) for addr in local_addresses}
        self._networks.clear()

        for name, conf in self._configs.items():
            iface = self._find_interface(name, conf.subnet, interfaces)
            if iface is None:
                self._logger.warning("Interface for network %s does not exist", name)
                self.add_network(Network(name=name, config=conf))
                continue
            self.add_network(
                Network(
                    name=name,
                    config=conf,
                    interface=iface.name,
                    ipv4=iface.ipv4,
                    ipv6=iface.ipv6,
                    ipv4_cidr=iface.ipv4_cidr,
                    ipv6_cidr=iface.ipv6_cidr,
                )
            )

        self._logger.info(
            "Registry loaded: %d networks, %d with a local interface",
            len(self._networks),
            sum(1 for n in self._networks.values() if n.interface),
        )

    @staticmethod
    def _find_interface(
        name: str,
        subnet: str,
        interfaces: list[InterfaceInfo],
    ) -> InterfaceInfo | None:
        try:
            network = ipaddress.ip_network(subnet, strict=False)
        except ValueError as exc:
            raise RegistryError(
                f"Invalid subnet {subnet!r}",
                network=name,
            ) from exc
        for iface in interfaces:
            if iface.ipv4 and ipaddress.ip_address(iface.ipv4) in network:
                return iface
        return None

    def add_network(self, network: Network) -> None:
        """Register a network.

        Raises:
            RegistryError: If a network with the same key is registered.

        """
        if network.key in self._networks:
            raise RegistryError(
                "Duplicate network name (names are case-insensitive)",
                network=network.name,
            )
        self._networks[network.key] = network
        self._logger.debug("Registered network %s (iface=%s)", network.name, network.interface)

    def get(self, name: str) -> Network:
        """Look up a network by case-insensitive name.

        Raises:
            RegistryError: If the network is not registered.

        """
        key = normalize_name(name)
        if key not in self._networks:
            raise RegistryError(
                f"Network '{name}' not found in registry",
                details={"available": sorted(self._networks)},
            )
        return self._networks[key]

    def owns_address(self, address: str) -> bool:
        """Return ``True`` if ``address`` is assigned to this host."""
        return canonical_address(address) in self._local_addresses

    def is_local_address(self, address: str) -> bool:
        """Return ``True`` for own addresses and discarded ranges."""
        return self.owns_address(address) or is_discarded_address(address)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and normalize_name(name) in self._networks

    def __len__(self) -> int:
        return len(self._networks)

    @property
    def networks(self) -> list[Network]:
        """Registered networks in declaration order."""
        return list(self._networks.values())

    @property
    def keys(self) -> list[str]:
        """Normalized network names in declaration order."""
        return list(self._networks)

    @property
    def hostname(self) -> str:
        return self._hostname
