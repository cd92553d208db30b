"""Single-shot verification run.

A ``VerificationRun`` owns every piece of per-run state: the registry,
the checker directory and the expected and actual matrices.  Phases run
as strict barriers::

    rules validated + expected matrix   (fails fast on bad rules)
    discovery                           (all /info fetches settled)
    probing                             (all probes settled)
    comparison                          (report)

Usage::

    run = VerificationRun(config, registry)
    report = await run.execute()
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from .analysis.expectation import ExpectationEngine
from .analysis.probe_engine import DEFAULT_PROBE_TIMEOUT, ProbeEngine
from .core.models import CheckerDirectory, ReachabilityMatrix
from .discovery.peer_client import DEFAULT_INFO_TIMEOUT, PeerInfoClient
from .inventory.config_loader import CheckerConfig
from .inventory.network_registry import NetworkRegistry
from .reporting.reporter import ReachabilityReport, Reporter

logger = logging.getLogger(__name__)


@dataclass
class VerificationRun:
    """State and phase sequencing of one verification run.

    Attributes:
        config: Parsed configuration.
        registry: Loaded network registry.
        peer_client: Discovery client; built from ``config`` if omitted.
        probe_engine: Probe engine; built with defaults if omitted.
        reporter: Reporter; built for the registry's hostname if omitted.
        checkers: Checker directory, filled by discovery.
        expected: Expected matrix, filled before discovery.
        actual: Actual matrix, filled by probing.

    """

    config: CheckerConfig
    registry: NetworkRegistry
    peer_client: PeerInfoClient | None = None
    probe_engine: ProbeEngine | None = None
    reporter: Reporter | None = None
    info_timeout: float = DEFAULT_INFO_TIMEOUT
    probe_timeout: float = DEFAULT_PROBE_TIMEOUT
    checkers: CheckerDirectory = field(default_factory=dict)
    expected: ReachabilityMatrix | None = None
    actual: ReachabilityMatrix | None = None

    def __post_init__(self) -> None:
        if self.peer_client is None:
            self.peer_client = PeerInfoClient(
                self.registry,
                listen_port=self.config.listen_port,
                timeout=self.info_timeout,
            )
        if self.probe_engine is None:
            self.probe_engine = ProbeEngine(timeout=self.probe_timeout)
        if self.reporter is None:
            self.reporter = Reporter(hostname=self.registry.hostname)

    async def execute(self) -> ReachabilityReport:
        """Run every phase and return the comparison report.

        Raises:
            RuleError: If a route rule names an unknown network.  Raised
                before any network request is made.

        """
        networks = self.registry.networks
        self.expected = ExpectationEngine(networks).build(self.config.network_routes)
        logger.debug("Expected matrix: %s", self.expected.to_dict())

        self.checkers = await self.peer_client.discover(self.config.remote_nodes)
        self.actual = await self.probe_engine.run(networks, self.checkers)
        logger.debug("Actual matrix: %s", self.actual.to_dict())

        return self.reporter.compare(self.actual, self.expected)
