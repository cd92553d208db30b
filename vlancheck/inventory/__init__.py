"""Configuration loading and the local network registry.

Provides the typed configuration and the mapping of configured networks
onto local interfaces that every verification run starts from.
"""

from .config_loader import CheckerConfig, load_config
from .network_registry import NetworkRegistry

__all__ = ["CheckerConfig", "NetworkRegistry", "load_config"]
