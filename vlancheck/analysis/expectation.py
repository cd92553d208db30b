"""Expected reachability derived from static configuration.

The baseline says a network reaches itself and nothing else.  Cells
where either side lacks an address in the family are ``UNKNOWN`` and are
excluded from pass/fail.  Route rules are then applied in declaration
order; each rule flips the polarity of the cells it matches, last write
wins, and ``UNKNOWN`` cells are never touched.

``src`` and ``dest`` of a rule expand independently, so a literal on one
side may be combined with ``*`` on the other.

Usage::

    engine = ExpectationEngine(registry.networks)
    expected = engine.build(config.network_routes)
"""

from __future__ import annotations

import logging

from ..core.exceptions import RuleError
from ..core.models import (
    WILDCARD,
    AddressFamily,
    Network,
    Reachability,
    ReachabilityMatrix,
    RouteRule,
    normalize_name,
)

logger = logging.getLogger(__name__)


class ExpectationEngine:
    """Compute the expected reachability matrix.

    The engine holds no state besides the network list, so calling
    ``build`` repeatedly with the same rules yields equal matrices.

    Args:
        networks: Registered networks in declaration order.

    """

    def __init__(self, networks: list[Network]) -> None:
        """Initialize the engine with the registered networks."""
        self._networks = {net.key: net for net in networks}
        self._logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    def build(self, rules: list[RouteRule]) -> ReachabilityMatrix:
        """Validate ``rules``, then return the baseline with rules applied.

        Raises:
            RuleError: If a rule names an unknown network.

        """
        self.validate_rules(rules)
        return self.apply_rules(self.baseline(), rules)

    def validate_rules(self, rules: list[RouteRule]) -> None:
        """Ensure every literal network name in ``rules`` is registered.

        Raises:
            RuleError: On the first rule naming an unknown network.

        """
        for index, rule in enumerate(rules):
            for side, name in (("src", rule.src), ("dest", rule.dest)):
                if name == WILDCARD or normalize_name(name) in self._networks:
                    continue
                raise RuleError(
                    f"Route rule #{index} references unknown {side} network '{name}'",
                    network=name,
                    details={"rule": str(rule), "available": sorted(self._networks)},
                )

    def baseline(self) -> ReachabilityMatrix:
        """Return the expectation before any rule is applied."""
        matrix = ReachabilityMatrix.for_networks(self._networks)
        for key, cell in matrix.cells.items():
            src = self._networks[key.src]
            dest = self._networks[key.dest]
            default = Reachability.REACHABLE if src.key == dest.key else Reachability.UNREACHABLE
            for family in AddressFamily:
                if src.address(family) and dest.address(family):
                    cell.set(family, default)
        return matrix

    def apply_rules(
        self,
        matrix: ReachabilityMatrix,
        rules: list[RouteRule],
    ) -> ReachabilityMatrix:
        """Return a copy of ``matrix`` with ``rules`` applied in order.

        Args:
            matrix: Expected matrix to start from; left unmodified.
            rules: Rules in declaration order.

        Raises:
            RuleError: If a rule names an unknown network.

        """
        self.validate_rules(rules)
        result = matrix.copy()
        for rule in rules:
            touched = 0
            for src in self._expand(rule.src):
                for dest in self._expand(rule.dest):
                    cell = result.cell(src, dest)
                    for family in AddressFamily:
                        if cell.get(family) is Reachability.UNKNOWN:
                            continue
                        cell.set(family, rule.target)
                        touched += 1
            self._logger.debug("Rule %s set %d cells", rule, touched)
        return result

    def _expand(self, name: str) -> list[str]:
        if name == WILDCARD:
            return list(self._networks)
        return [normalize_name(name)]
