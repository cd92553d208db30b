"""Actual-vs-expected comparison and report rendering.

The ``Reporter`` walks every pair of the actual matrix, compares it with
the expected matrix field by field, logs one line per pair and one
warning per mismatching family.  The resulting ``ReachabilityReport``
decides the exit status of a run.

Usage::

    reporter = Reporter()
    report = reporter.compare(actual, expected)
    reporter.render_html(report, "output/report.html")
    sys.exit(0 if report.passed else 1)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path

from ..core.models import (
    AddressFamily,
    NetReachability,
    PairKey,
    Reachability,
    ReachabilityMatrix,
)

logger = logging.getLogger(__name__)

TEMPLATE_DIR = Path(__file__).parent / "templates"
DEFAULT_TEMPLATE = "report_template.html"


@dataclass(frozen=True)
class Mismatch:
    """A family where the observed reachability differs from policy."""

    key: PairKey
    family: AddressFamily
    expected: Reachability
    actual: Reachability

    @property
    def message(self) -> str:
        return (
            f"{self.key} {self.family}: expected {self.expected.value}, "
            f"got {self.actual.value}"
        )


@dataclass
class PairComparison:
    """Actual and expected reachability of one network pair."""

    key: PairKey
    actual: NetReachability
    expected: NetReachability
    mismatches: list[Mismatch] = field(default_factory=list)

    @property
    def passed(self) -> bool:
        return not self.mismatches


@dataclass
class ReachabilityReport:
    """Aggregated comparison of a verification run.

    Attributes:
        hostname: Host the run was executed on.
        timestamp: ISO-8601 time the comparison was made.
        comparisons: One entry per pair of the actual matrix.

    """

    hostname: str = ""
    timestamp: str = field(default_factory=lambda: datetime.now(UTC).isoformat())
    comparisons: list[PairComparison] = field(default_factory=list)

    @property
    def mismatches(self) -> list[Mismatch]:
        return [m for c in self.comparisons for m in c.mismatches]

    @property
    def passed(self) -> bool:
        """Return ``True`` only if no family of any pair mismatched."""
        return all(c.passed for c in self.comparisons)

    @property
    def mismatch_count(self) -> int:
        return len(self.mismatches)

    def summary(self) -> str:
        """Return a one-line summary string."""
        total = len(self.comparisons)
        failed = sum(1 for c in self.comparisons if not c.passed)
        return (
            f"[{self.hostname}] {total - failed}/{total} pairs as expected, "
            f"{self.mismatch_count} mismatches"
        )


class Reporter:
    """Compare matrices and render the outcome.

    Args:
        hostname: Host name attached to reports.
        template_dir: Directory containing Jinja2 templates.
        template_name: Name of the HTML report template.

    """

    def __init__(
        self,
        hostname: str = "",
        template_dir: Path = TEMPLATE_DIR,
        template_name: str = DEFAULT_TEMPLATE,
    ) -> None:
        """Initialize the reporter with template settings."""
        self._hostname = hostname
        self._template_dir = template_dir
        self._template_name = template_name
        self._logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    def compare(
        self,
        actual: ReachabilityMatrix,
        expected: ReachabilityMatrix,
    ) -> ReachabilityReport:
        """Compare every pair of ``actual`` with ``expected``.

        A pair missing from ``expected`` is compared against ``UNKNOWN``
        in both families.

        Returns:
            The ``ReachabilityReport`` with one comparison per pair.

        """
        report = ReachabilityReport(hostname=self._hostname)
        for key in actual:
            actual_cell = actual.cells[key]
            expected_cell = expected.get(key) or NetReachability()
            comparison = PairComparison(key=key, actual=actual_cell, expected=expected_cell)

            self._logger.info(
                "%s: ipv4=%s ipv6=%s",
                key,
                actual_cell.ipv4.value,
                actual_cell.ipv6.value,
            )
            for family in AddressFamily:
                if actual_cell.get(family) == expected_cell.get(family):
                    continue
                mismatch = Mismatch(
                    key=key,
                    family=family,
                    expected=expected_cell.get(family),
                    actual=actual_cell.get(family),
                )
                comparison.mismatches.append(mismatch)
                self._logger.warning("Mismatch %s", mismatch.message)
            report.comparisons.append(comparison)

        if report.passed:
            self._logger.info("Verification passed: %s", report.summary())
        else:
            self._logger.warning("Verification failed: %s", report.summary())
        return report

    def render_html(self, report: ReachabilityReport, output_path: str | Path) -> Path:
        """Render ``report`` as HTML and write it to ``output_path``.

        Returns:
            Path to the generated report file.

        """
        output = Path(output_path)
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(self._render(report), encoding="utf-8")
        self._logger.info("Report generated: %s", output)
        return output

    def _render(self, report: ReachabilityReport) -> str:
        """Render the Jinja2 template with report data."""
        from jinja2 import Environment, FileSystemLoader

        env = Environment(
            loader=FileSystemLoader(str(self._template_dir)),
            autoescape=True,
        )
        template = env.get_template(self._template_name)
        return template.render(
            report=report,
            title=f"Reachability report for {report.hostname or 'local host'}",
            families=list(AddressFamily),
        )
