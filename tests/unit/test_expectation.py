"""Unit tests for the ExpectationEngine baseline and rule overlay."""

from __future__ import annotations

import pytest

from vlancheck.analysis.expectation import ExpectationEngine
from vlancheck.core.exceptions import RuleError
from vlancheck.core.models import Reachability, RouteRule
from vlancheck.inventory.network_registry import NetworkRegistry

R = Reachability.REACHABLE
U = Reachability.UNREACHABLE
UNK = Reachability.UNKNOWN


class TestBaseline:
    """Tests for the expectation before any rule."""

    def test_two_network_scenario(self, ipv4_registry: NetworkRegistry) -> None:
        expected = ExpectationEngine(ipv4_registry.networks).baseline()
        assert expected.cell("core", "core").ipv4 is R
        assert expected.cell("iot", "iot").ipv4 is R
        assert expected.cell("core", "iot").ipv4 is U
        assert expected.cell("iot", "core").ipv4 is U

    def test_ipv6_unknown_without_addresses(self, ipv4_registry: NetworkRegistry) -> None:
        expected = ExpectationEngine(ipv4_registry.networks).baseline()
        assert all(expected.cells[key].ipv6 is UNK for key in expected)

    def test_self_pair_follows_address_presence(self, registry: NetworkRegistry) -> None:
        expected = ExpectationEngine(registry.networks).baseline()
        assert expected.cell("core", "core").ipv4 is R
        assert expected.cell("core", "core").ipv6 is R
        assert expected.cell("iot", "iot").ipv4 is R
        assert expected.cell("iot", "iot").ipv6 is UNK

    def test_mixed_family_pair(self, registry: NetworkRegistry) -> None:
        expected = ExpectationEngine(registry.networks).baseline()
        cell = expected.cell("core", "iot")
        assert cell.ipv4 is U
        assert cell.ipv6 is UNK

    def test_network_without_interface_is_all_unknown(self, registry: NetworkRegistry) -> None:
        expected = ExpectationEngine(registry.networks).baseline()
        for key in expected:
            if "guest" in (key.src, key.dest):
                assert expected.cells[key].ipv4 is UNK
                assert expected.cells[key].ipv6 is UNK

    def test_covers_every_ordered_pair(self, registry: NetworkRegistry) -> None:
        expected = ExpectationEngine(registry.networks).baseline()
        assert len(expected) == len(registry) ** 2


class TestRuleOverlay:
    """Tests for applying route rules on top of the baseline."""

    def test_asymmetric_override(self, ipv4_registry: NetworkRegistry) -> None:
        engine = ExpectationEngine(ipv4_registry.networks)
        expected = engine.build([RouteRule(src="iot", dest="core", unreachable=False)])
        assert expected.cell("iot", "core").ipv4 is R
        assert expected.cell("core", "iot").ipv4 is U

    def test_last_rule_wins(self, ipv4_registry: NetworkRegistry) -> None:
        engine = ExpectationEngine(ipv4_registry.networks)
        expected = engine.build(
            [
                RouteRule(src="core", dest="iot", unreachable=True),
                RouteRule(src="core", dest="iot", unreachable=False),
            ]
        )
        assert expected.cell("core", "iot").ipv4 is R

    def test_wildcard_src_blocks_destination(self, registry: NetworkRegistry) -> None:
        engine = ExpectationEngine(registry.networks)
        expected = engine.build([RouteRule(src="*", dest="core", unreachable=True)])
        assert expected.cell("core", "core").ipv4 is U
        assert expected.cell("core", "core").ipv6 is U
        assert expected.cell("iot", "core").ipv4 is U
        # iot has no IPv6 and guest has no interface: left untouched
        assert expected.cell("iot", "core").ipv6 is UNK
        assert expected.cell("guest", "core").ipv4 is UNK

    def test_wildcard_dest_with_literal_src(self, registry: NetworkRegistry) -> None:
        engine = ExpectationEngine(registry.networks)
        expected = engine.build([RouteRule(src="core", dest="*", unreachable=False)])
        assert expected.cell("core", "iot").ipv4 is R
        assert expected.cell("core", "guest").ipv4 is UNK
        assert expected.cell("iot", "core").ipv4 is U

    def test_double_wildcard(self, ipv4_registry: NetworkRegistry) -> None:
        engine = ExpectationEngine(ipv4_registry.networks)
        expected = engine.build([RouteRule(src="*", dest="*", unreachable=False)])
        assert all(expected.cells[key].ipv4 is R for key in expected)
        assert all(expected.cells[key].ipv6 is UNK for key in expected)

    def test_rule_names_are_case_insensitive(self, registry: NetworkRegistry) -> None:
        engine = ExpectationEngine(registry.networks)
        expected = engine.build([RouteRule(src="IOT", dest="CORE", unreachable=False)])
        assert expected.cell("iot", "core").ipv4 is R

    def test_apply_rules_does_not_mutate_input(self, ipv4_registry: NetworkRegistry) -> None:
        engine = ExpectationEngine(ipv4_registry.networks)
        baseline = engine.baseline()
        engine.apply_rules(baseline, [RouteRule(src="*", dest="*", unreachable=False)])
        assert baseline.cell("core", "iot").ipv4 is U

    def test_build_is_idempotent(self, registry: NetworkRegistry) -> None:
        rules = [
            RouteRule(src="*", dest="core", unreachable=False),
            RouteRule(src="iot", dest="core", unreachable=True),
        ]
        engine = ExpectationEngine(registry.networks)
        assert engine.build(rules) == engine.build(rules)


class TestRuleValidation:
    """Tests for fail-fast rule validation."""

    def test_unknown_src_raises(self, registry: NetworkRegistry) -> None:
        engine = ExpectationEngine(registry.networks)
        with pytest.raises(RuleError, match="unknown src network 'dmz'"):
            engine.build([RouteRule(src="dmz", dest="core")])

    def test_unknown_dest_raises(self, registry: NetworkRegistry) -> None:
        engine = ExpectationEngine(registry.networks)
        with pytest.raises(RuleError, match="unknown dest network"):
            engine.validate_rules([RouteRule(src="*", dest="nowhere")])

    def test_known_networks_pass(self, registry: NetworkRegistry) -> None:
        engine = ExpectationEngine(registry.networks)
        engine.validate_rules([RouteRule(src="guest", dest="*"), RouteRule(src="Core", dest="iot")])
