"""Comparison of actual and expected reachability.

Logs per-pair status, flags mismatches and optionally renders the result
as an HTML report through Jinja2.
"""

from .reporter import ReachabilityReport, Reporter

__all__ = ["ReachabilityReport", "Reporter"]
