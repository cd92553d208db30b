"""Concurrent cross-network reachability probing.

For every ordered pair of networks and every address family, the engine
issues one HTTP GET to the destination network's checker with the
outbound socket bound to the source network's local address.  Binding
the source address is what makes the probe leave through the source
network's interface instead of whatever the default route picks.

Any HTTP response counts as ``REACHABLE``; any transport error
(timeout, refused, unreachable) counts as ``UNREACHABLE``.  Probes are
never retried.

Usage::

    engine = ProbeEngine(timeout=1.0)
    actual = await engine.run(registry.networks, checkers)
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass

import httpx

from ..core.exceptions import ProbeError
from ..core.models import (
    AddressFamily,
    CheckerDirectory,
    CheckerInfo,
    NetReachability,
    Network,
    NodeInfo,
    Reachability,
    ReachabilityMatrix,
)

logger = logging.getLogger(__name__)

DEFAULT_PROBE_TIMEOUT = 1.0

TransportFactory = Callable[[str], httpx.AsyncBaseTransport]


def bound_transport(local_address: str) -> httpx.AsyncBaseTransport:
    """Return a transport whose connections originate from ``local_address``."""
    return httpx.AsyncHTTPTransport(local_address=local_address, retries=0)


@dataclass(frozen=True)
class ProbeTarget:
    """A single applicable probe."""

    src: Network
    dest: Network
    family: AddressFamily
    local_address: str
    node: NodeInfo


def plan_probe(
    src: Network,
    dest: Network,
    checker: CheckerInfo | None,
    family: AddressFamily,
) -> ProbeTarget | None:
    """Return the probe for one cell, or ``None`` if it does not apply.

    A probe applies when both networks have a local address in
    ``family`` and a checker for ``dest`` exists in that family.
    """
    local_address = src.address(family)
    if local_address is None or dest.address(family) is None or checker is None:
        return None
    node = checker.get(family)
    if node is None:
        return None
    return ProbeTarget(src=src, dest=dest, family=family, local_address=local_address, node=node)


class ProbeEngine:
    """Fill the actual reachability matrix with live probes.

    Args:
        timeout: Per-probe timeout in seconds.
        transport_factory: Builds the httpx transport for a given local
            address.  Defaults to ``bound_transport``.

    """

    def __init__(
        self,
        timeout: float = DEFAULT_PROBE_TIMEOUT,
        transport_factory: TransportFactory = bound_transport,
    ) -> None:
        """Initialize the engine with a timeout and transport factory."""
        self._timeout = timeout
        self._transport_factory = transport_factory
        self._logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    def plan(
        self,
        networks: list[Network],
        checkers: CheckerDirectory,
    ) -> list[ProbeTarget]:
        """List every applicable probe, one per matrix cell and family."""
        targets: list[ProbeTarget] = []
        for dest in networks:
            checker = checkers.get(dest.key)
            for src in networks:
                for family in AddressFamily:
                    target = plan_probe(src, dest, checker, family)
                    if target is not None:
                        targets.append(target)
        return targets

    async def run(
        self,
        networks: list[Network],
        checkers: CheckerDirectory,
    ) -> ReachabilityMatrix:
        """Probe every applicable cell concurrently.

        Cells without an applicable probe stay ``UNKNOWN``.  Returns only
        once every probe has settled.

        Args:
            networks: Registered networks.
            checkers: Checker directory from discovery.

        Returns:
            The actual reachability matrix.

        """
        matrix = ReachabilityMatrix.for_networks(net.key for net in networks)
        targets = self.plan(networks, checkers)
        self._logger.info("Running %d probes across %d networks", len(targets), len(networks))

        await asyncio.gather(
            *(self._probe_cell(matrix.cell(t.src.key, t.dest.key), t) for t in targets)
        )
        return matrix

    async def _probe_cell(self, cell: NetReachability, target: ProbeTarget) -> None:
        result = await self.probe(target.local_address, target.node.url)
        cell.set(target.family, result)
        self._logger.debug(
            "%s -> %s %s via %s: %s",
            target.src.name,
            target.dest.name,
            target.family,
            target.node.hostname,
            result,
        )

    async def probe(self, local_address: str, url: str) -> Reachability:
        """Issue a single probe from ``local_address`` to ``url``.

        Raises:
            ProbeError: If ``local_address`` is empty.

        """
        if not local_address:
            raise ProbeError("Probe requires a local source address", details={"url": url})
        transport = self._transport_factory(local_address)
        try:
            async with httpx.AsyncClient(
                transport=transport,
                timeout=self._timeout,
                trust_env=False,
            ) as client:
                await client.get(url)
        except (httpx.HTTPError, httpx.InvalidURL, OSError) as exc:
            self._logger.debug("Probe %s from %s failed: %r", url, local_address, exc)
            return Reachability.UNREACHABLE
        return Reachability.REACHABLE
