"""Data models shared by every phase of a verification run.

Networks come from the registry and never change during a run.  Checker
directories and reachability matrices are created fresh for each run and
are keyed by the lowercase network name, which is computed once when a
``Network`` is built.
"""

from __future__ import annotations

import copy
import ipaddress
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

WILDCARD = "*"


class Reachability(StrEnum):
    """Tri-state outcome of a probe or an expectation."""

    UNKNOWN = "unknown"
    REACHABLE = "reachable"
    UNREACHABLE = "unreachable"


class AddressFamily(StrEnum):
    """IP address family of a probe or matrix cell."""

    IPV4 = "ipv4"
    IPV6 = "ipv6"


def normalize_name(name: str) -> str:
    """Return the case-folded key used for every network lookup."""
    return name.strip().lower()


def format_host(address: str) -> str:
    """Bracket IPv6 literals so they can be used in a URL authority."""
    try:
        parsed = ipaddress.ip_address(address)
    except ValueError:
        return address
    if parsed.version == 6:
        return f"[{address}]"
    return address


def http_url(host: str, port: int, path: str) -> str:
    """Build ``http://host:port/path`` with IPv6 hosts bracketed."""
    return f"http://{format_host(host)}:{port}/{path.lstrip('/')}"


# ---------------------------------------------------------------------------
# Networks
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class NetworkConfig:
    """Declared configuration of one logical network.

    Attributes:
        subnet: IPv4 CIDR used to locate the local interface.
        gateway: Optional IPv4 default gateway for policy routing.
        gateway6: Optional IPv6 default gateway for policy routing.

    """

    subnet: str
    gateway: str | None = None
    gateway6: str | None = None


@dataclass(frozen=True)
class Network:
    """A logical segment (VLAN/subnet) as seen from the local host.

    A network whose ``interface`` is ``None`` still takes part in the
    matrices but reports no address in either family, so it is never
    probed and its expectations stay ``UNKNOWN``.

    Attributes:
        name: Name as written in the configuration.
        config: Declared subnet and gateways.
        interface: Local interface carrying the network, if any.
        ipv4: Local IPv4 address on that interface.
        ipv6: Local IPv6 address on that interface.
        ipv4_cidr: IPv4 address with prefix length.
        ipv6_cidr: IPv6 address with prefix length.

    """

    name: str
    config: NetworkConfig
    interface: str | None = None
    ipv4: str | None = None
    ipv6: str | None = None
    ipv4_cidr: str | None = None
    ipv6_cidr: str | None = None
    key: str = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "key", normalize_name(self.name))

    def address(self, family: AddressFamily) -> str | None:
        """Return the local address for ``family`` or ``None``."""
        if self.interface is None:
            return None
        return self.ipv4 if family is AddressFamily.IPV4 else self.ipv6

    def cidr(self, family: AddressFamily) -> str | None:
        """Return the local CIDR for ``family`` or ``None``."""
        if self.interface is None:
            return None
        return self.ipv4_cidr if family is AddressFamily.IPV4 else self.ipv6_cidr

    def to_info(self) -> dict[str, str]:
        """Serialize for the responder's ``/info`` document."""
        info = {"name": self.name}
        if self.interface:
            info["iface"] = self.interface
        if self.ipv4:
            info["ipv4"] = self.ipv4
        if self.ipv6:
            info["ipv6"] = self.ipv6
        return info


# ---------------------------------------------------------------------------
# Checker directory
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class NodeInfo:
    """A remote probe target for one network and family."""

    hostname: str
    url: str


@dataclass
class CheckerInfo:
    """Probe targets discovered for one remote network.

    Holds at most one target per address family.  The first target
    registered for a family is kept; later ones are ignored.
    """

    ipv4: NodeInfo | None = None
    ipv6: NodeInfo | None = None

    def get(self, family: AddressFamily) -> NodeInfo | None:
        return self.ipv4 if family is AddressFamily.IPV4 else self.ipv6

    def register(self, family: AddressFamily, node: NodeInfo) -> bool:
        """Store ``node`` unless the family slot is taken.

        Returns:
            ``True`` if the node was stored.

        """
        if self.get(family) is not None:
            return False
        if family is AddressFamily.IPV4:
            self.ipv4 = node
        else:
            self.ipv6 = node
        return True


CheckerDirectory = dict[str, CheckerInfo]


# ---------------------------------------------------------------------------
# Reachability matrices
# ---------------------------------------------------------------------------


@dataclass(frozen=True, order=True)
class PairKey:
    """Directional ``(src, dest)`` key of a matrix cell.

    Both names must already be normalized with ``normalize_name``.
    """

    src: str
    dest: str

    def __str__(self) -> str:
        return f"{self.src} -> {self.dest}"


@dataclass
class NetReachability:
    """Reachability of one network pair, per address family."""

    ipv4: Reachability = Reachability.UNKNOWN
    ipv6: Reachability = Reachability.UNKNOWN

    def get(self, family: AddressFamily) -> Reachability:
        return self.ipv4 if family is AddressFamily.IPV4 else self.ipv6

    def set(self, family: AddressFamily, value: Reachability) -> None:
        if family is AddressFamily.IPV4:
            self.ipv4 = value
        else:
            self.ipv6 = value


@dataclass
class ReachabilityMatrix:
    """Mapping of every ordered network pair to its ``NetReachability``."""

    cells: dict[PairKey, NetReachability] = field(default_factory=dict)

    @classmethod
    def for_networks(cls, names: Iterable[str]) -> ReachabilityMatrix:
        """Create a matrix with an ``UNKNOWN`` cell for every ordered pair."""
        keys = list(names)
        return cls(
            cells={PairKey(src, dest): NetReachability() for dest in keys for src in keys}
        )

    def cell(self, src: str, dest: str) -> NetReachability:
        """Return the cell for ``src -> dest``.

        Raises:
            KeyError: If the pair is not part of the matrix.

        """
        return self.cells[PairKey(normalize_name(src), normalize_name(dest))]

    def get(self, key: PairKey) -> NetReachability | None:
        return self.cells.get(key)

    def copy(self) -> ReachabilityMatrix:
        return copy.deepcopy(self)

    def to_dict(self) -> dict[str, dict[str, str]]:
        """Serialize with ``"src -> dest"`` keys, for logging and reports."""
        return {
            str(key): {"ipv4": cell.ipv4.value, "ipv6": cell.ipv6.value}
            for key, cell in sorted(self.cells.items())
        }

    def __iter__(self) -> Iterator[PairKey]:
        return iter(self.cells)

    def __len__(self) -> int:
        return len(self.cells)

    def __contains__(self, key: object) -> bool:
        return key in self.cells


# ---------------------------------------------------------------------------
# Route rules
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RouteRule:
    """Ordered override of the baseline expectation.

    Attributes:
        src: Source network name or ``*`` for every network.
        dest: Destination network name or ``*`` for every network.
        unreachable: ``True`` to expect the pair blocked, ``False`` to
            expect it reachable.

    """

    src: str
    dest: str
    unreachable: bool = False

    @property
    def target(self) -> Reachability:
        return Reachability.UNREACHABLE if self.unreachable else Reachability.REACHABLE

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> RouteRule:
        """Build a rule from a ``network_routes`` entry.

        Raises:
            KeyError: If ``src`` or ``dest`` is missing.

        """
        return cls(
            src=str(data["src"]),
            dest=str(data["dest"]),
            unreachable=bool(data.get("unreachable", False)),
        )

    def __str__(self) -> str:
        verb = "unreachable" if self.unreachable else "reachable"
        return f"{self.src} -> {self.dest} ({verb})"
