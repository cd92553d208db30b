"""Custom exception hierarchy for vlancheck.

All vlancheck exceptions inherit from ``VlanCheckError`` so the CLI can
report any expected failure with a single top-level handler.

Exception tree::

    VlanCheckError
    ├── ConfigError
    ├── RegistryError
    ├── RuleError
    ├── DiscoveryError
    └── ProbeError

Only ``ConfigError``, ``RegistryError`` and ``RuleError`` terminate a run.
``DiscoveryError`` and ``ProbeError`` are raised internally and folded into
the data model (absent checker, ``UNREACHABLE`` cell).
"""

from __future__ import annotations


class VlanCheckError(Exception):
    """Base exception for all vlancheck errors.

    Attributes:
        message: Human-readable error description.
        network: Optional network name that triggered the error.
        details: Optional mapping of additional contextual data.

    """

    def __init__(
        self,
        message: str,
        network: str | None = None,
        details: dict[str, object] | None = None,
    ) -> None:
        """Initialize with a message, optional network context, and details."""
        self.message = message
        self.network = network
        self.details = details or {}
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format the exception message with optional network context."""
        parts: list[str] = []
        if self.network:
            parts.append(f"[{self.network}]")
        parts.append(self.message)
        if self.details:
            detail_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            parts.append(f"({detail_str})")
        return " ".join(parts)


class ConfigError(VlanCheckError):
    """Raised when the configuration file is missing or malformed.

    Examples:
        - ``config.yml`` not found or not valid YAML
        - Missing ``networks`` or ``listenport`` key
        - A network entry without a ``subnet``

    """


class RegistryError(VlanCheckError):
    """Raised when the network registry cannot be built or queried.

    Examples:
        - Two configured networks differ only by case
        - A configured subnet is not a valid CIDR
        - Lookup of a network name that is not registered

    """


class RuleError(VlanCheckError):
    """Raised when a route rule references an unknown network.

    Raised before any probe is issued so that a typo in
    ``network_routes`` never silently turns into a no-op.
    """


class DiscoveryError(VlanCheckError):
    """Raised when a peer's ``/info`` document is unusable.

    Examples:
        - Response body is not JSON
        - ``networks`` is missing or not a mapping
        - ``hostname`` is missing

    """


class ProbeError(VlanCheckError):
    """Raised when a probe cannot be set up.

    Examples:
        - Source network has no local address for the requested family
        - Destination network has no checker for the requested family

    """
