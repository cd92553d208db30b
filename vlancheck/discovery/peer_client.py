"""Peer discovery through the responder's ``/info`` endpoint.

Every remote node is asked concurrently which networks it sits on.  The
answers are merged into a checker directory that holds, per lowercase
network name, at most one IPv4 and one IPv6 probe target.

A node that cannot be reached, or that returns something other than a
valid info document, is logged and skipped.  Discovery never fails the
run.

Usage::

    client = PeerInfoClient(registry, listen_port=9999)
    checkers = await client.discover(["host-a", "host-b"])
"""

from __future__ import annotations

import asyncio
import ipaddress
import logging
from dataclasses import dataclass, field
from typing import Any

import httpx

from ..core.exceptions import DiscoveryError
from ..core.models import (
    AddressFamily,
    CheckerDirectory,
    CheckerInfo,
    NodeInfo,
    http_url,
    normalize_name,
)
from ..inventory.network_registry import NetworkRegistry

logger = logging.getLogger(__name__)

DEFAULT_INFO_TIMEOUT = 5.0


@dataclass(frozen=True)
class RemoteNetwork:
    """One network entry of a peer's info document."""

    name: str
    ipv4: str | None = None
    ipv6: str | None = None

    def address(self, family: AddressFamily) -> str | None:
        return self.ipv4 if family is AddressFamily.IPV4 else self.ipv6


@dataclass
class PeerInfo:
    """Decoded ``/info`` document of a remote node.

    Attributes:
        node: Identifier the node was queried with.
        hostname: Hostname the node reports for itself.
        networks: Reported networks in document order.

    """

    node: str
    hostname: str
    networks: list[RemoteNetwork] = field(default_factory=list)

    @property
    def addresses(self) -> list[str]:
        return [addr for net in self.networks for addr in (net.ipv4, net.ipv6) if addr]

    @classmethod
    def from_payload(cls, node: str, payload: Any) -> PeerInfo:
        """Validate and decode an info document.

        Raises:
            DiscoveryError: If the document does not follow the
                ``{"networks": {...}, "hostname": str}`` contract, or an
                advertised address is not an IP literal of its family.

        """
        if not isinstance(payload, dict):
            raise DiscoveryError("Info document is not a JSON object", details={"node": node})
        hostname = payload.get("hostname")
        if not isinstance(hostname, str) or not hostname:
            raise DiscoveryError("Info document has no hostname", details={"node": node})
        raw_networks = payload.get("networks")
        if not isinstance(raw_networks, dict):
            raise DiscoveryError("Info document has no networks mapping", details={"node": node})

        networks: list[RemoteNetwork] = []
        for name, entry in raw_networks.items():
            if not isinstance(entry, dict):
                raise DiscoveryError(
                    "Network entry is not an object",
                    network=str(name),
                    details={"node": node},
                )
            networks.append(
                RemoteNetwork(
                    name=str(name),
                    ipv4=_address(node, str(name), entry.get("ipv4"), AddressFamily.IPV4),
                    ipv6=_address(node, str(name), entry.get("ipv6"), AddressFamily.IPV6),
                )
            )
        return cls(node=node, hostname=hostname, networks=networks)


def _address(node: str, network: str, value: Any, family: AddressFamily) -> str | None:
    """Return the canonical form of an advertised address, or ``None``.

    Raises:
        DiscoveryError: If ``value`` is not an unscoped IP literal of
            ``family``.

    """
    if value is None or value == "":
        return None
    version = 4 if family is AddressFamily.IPV4 else 6
    try:
        parsed = ipaddress.ip_address(value) if isinstance(value, str) else None
    except ValueError:
        parsed = None
    if parsed is None or parsed.version != version or getattr(parsed, "scope_id", None):
        raise DiscoveryError(
            f"Invalid {family} address {value!r}",
            network=network,
            details={"node": node},
        )
    return str(parsed)


class PeerInfoClient:
    """Build the checker directory from remote nodes' info documents.

    Args:
        registry: Local registry, used to recognise this host's own
            addresses.
        listen_port: Port of every remote responder.
        timeout: Per-request timeout in seconds.
        transport: Optional httpx transport, mainly for tests.

    """

    def __init__(
        self,
        registry: NetworkRegistry,
        listen_port: int,
        timeout: float = DEFAULT_INFO_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the client with the responder port and timeout."""
        self._registry = registry
        self._port = listen_port
        self._timeout = timeout
        self._transport = transport
        self._logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    async def discover(self, nodes: list[str]) -> CheckerDirectory:
        """Query every node concurrently and merge the results.

        Fetches run in parallel; merging happens afterwards in the order
        of ``nodes`` so the first node to advertise a network and family
        owns that slot.

        Args:
            nodes: Hostnames or addresses of remote nodes.

        Returns:
            Checker directory keyed by lowercase network name.

        """
        async with httpx.AsyncClient(
            timeout=self._timeout,
            transport=self._transport,
            trust_env=False,
        ) as client:
            results = await asyncio.gather(*(self._fetch_node(client, node) for node in nodes))

        directory: CheckerDirectory = {}
        for info in results:
            if info is None:
                continue
            self._merge(directory, info)

        self._logger.info(
            "Discovery complete: %d/%d nodes answered, checkers for %d networks",
            sum(1 for r in results if r is not None),
            len(nodes),
            len(directory),
        )
        return directory

    async def fetch_info(self, client: httpx.AsyncClient, node: str) -> PeerInfo:
        """Fetch and decode one node's info document.

        Raises:
            httpx.HTTPError: On transport failure or non-2xx status.
            httpx.InvalidURL: If ``node`` cannot form a URL.
            DiscoveryError: If the document is malformed.

        """
        response = await client.get(http_url(node, self._port, "/info"))
        response.raise_for_status()
        try:
            payload = response.json()
        except ValueError as exc:
            raise DiscoveryError("Info document is not valid JSON", details={"node": node}) from exc
        return PeerInfo.from_payload(node, payload)

    async def _fetch_node(self, client: httpx.AsyncClient, node: str) -> PeerInfo | None:
        try:
            info = await self.fetch_info(client, node)
        except (httpx.HTTPError, httpx.InvalidURL, DiscoveryError) as exc:
            self._logger.warning("Error contacting node %s: %s", node, exc)
            return None

        own = [addr for addr in info.addresses if self._registry.owns_address(addr)]
        if own:
            self._logger.info(
                "Skipping node %s (%s): it advertises local address %s",
                node,
                info.hostname,
                own[0],
            )
            return None
        self._logger.debug("Node %s answered as %s", node, info.hostname)
        return info

    def _merge(self, directory: CheckerDirectory, info: PeerInfo) -> None:
        for net in info.networks:
            checker = directory.setdefault(normalize_name(net.name), CheckerInfo())
            for family in AddressFamily:
                address = net.address(family)
                if address is None:
                    continue
                if self._registry.is_local_address(address):
                    self._logger.debug(
                        "Ignoring local address %s advertised by %s", address, info.hostname
                    )
                    continue
                node = NodeInfo(
                    hostname=info.hostname,
                    url=http_url(address, self._port, "/ip"),
                )
                if checker.register(family, node):
                    self._logger.debug(
                        "Checker %s/%s -> %s (%s)", net.name, family, node.url, info.hostname
                    )
