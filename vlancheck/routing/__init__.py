"""Generation of per-interface policy routing commands."""

from .policy_routes import route_commands

__all__ = ["route_commands"]
