"""Core data models and the custom exception hierarchy.

Every other subpackage builds on the types defined here: networks,
checker directories, reachability matrices and route rules.
"""

from .exceptions import (
    ConfigError,
    DiscoveryError,
    ProbeError,
    RegistryError,
    RuleError,
    VlanCheckError,
)
from .models import (
    AddressFamily,
    CheckerInfo,
    Network,
    NetworkConfig,
    NodeInfo,
    PairKey,
    Reachability,
    ReachabilityMatrix,
    RouteRule,
)

__all__ = [
    "AddressFamily",
    "CheckerInfo",
    "ConfigError",
    "DiscoveryError",
    "Network",
    "NetworkConfig",
    "NodeInfo",
    "PairKey",
    "ProbeError",
    "Reachability",
    "ReachabilityMatrix",
    "RegistryError",
    "RouteRule",
    "RuleError",
    "VlanCheckError",
]
