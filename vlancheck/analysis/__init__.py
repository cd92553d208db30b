"""Reachability analysis.

Provides live probing of the actual matrix and the rule-based
computation of the expected matrix.
"""

from .expectation import ExpectationEngine
from .probe_engine import ProbeEngine

__all__ = ["ExpectationEngine", "ProbeEngine"]
