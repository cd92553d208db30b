"""Command-line interface.

Usage::

    vlancheck check  [--config config.yml] [--html report.html]
    vlancheck serve  [--config config.yml] [--host ::]
    vlancheck routes [--config config.yml]

Exit status of ``check``: 0 when every pair matched its expectation,
1 on any mismatch, 2 when the run could not be carried out.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from collections.abc import Sequence
from pathlib import Path

from .analysis.probe_engine import DEFAULT_PROBE_TIMEOUT
from .core.exceptions import VlanCheckError
from .discovery.peer_client import DEFAULT_INFO_TIMEOUT
from .inventory.config_loader import DEFAULT_CONFIG_FILE, CheckerConfig, load_config
from .inventory.network_registry import NetworkRegistry
from .responder.app import DEFAULT_BIND_HOST, serve
from .routing.policy_routes import route_commands
from .runner import VerificationRun

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_MISMATCH = 1
EXIT_ERROR = 2


def _load(args: argparse.Namespace) -> tuple[CheckerConfig, NetworkRegistry]:
    config = load_config(args.config)
    registry = NetworkRegistry(config.networks)
    registry.load()
    return config, registry


def check_command(args: argparse.Namespace) -> int:
    """Run a verification and report mismatches."""
    config, registry = _load(args)
    run = VerificationRun(
        config,
        registry,
        info_timeout=args.info_timeout,
        probe_timeout=args.probe_timeout,
    )
    report = asyncio.run(run.execute())
    if args.html:
        run.reporter.render_html(report, args.html)
    return EXIT_OK if report.passed else EXIT_MISMATCH


def serve_command(args: argparse.Namespace) -> int:
    """Serve the /ip and /info responder."""
    config, registry = _load(args)
    serve(registry, port=args.port or config.listen_port, host=args.host)
    return EXIT_OK


def routes_command(args: argparse.Namespace) -> int:
    """Print policy routing commands."""
    _, registry = _load(args)
    for command in route_commands(registry.networks):
        print(command)
    return EXIT_OK


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="vlancheck",
        description="Verify VLAN/subnet segmentation across a multi-homed fleet",
    )
    parser.add_argument(
        "-c",
        "--config",
        type=Path,
        default=DEFAULT_CONFIG_FILE,
        help="Path to config.yml (default: %(default)s)",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    check = subparsers.add_parser("check", help="Probe reachability and compare with policy")
    check.add_argument("--html", type=Path, help="Also write an HTML report to this path")
    check.add_argument(
        "--probe-timeout",
        type=float,
        default=DEFAULT_PROBE_TIMEOUT,
        help="Per-probe timeout in seconds (default: %(default)s)",
    )
    check.add_argument(
        "--info-timeout",
        type=float,
        default=DEFAULT_INFO_TIMEOUT,
        help="Per-node /info timeout in seconds (default: %(default)s)",
    )
    check.set_defaults(func=check_command)

    srv = subparsers.add_parser("serve", help="Run the /ip and /info responder")
    srv.add_argument("--host", default=DEFAULT_BIND_HOST, help="Bind address (default: %(default)s)")
    srv.add_argument("--port", type=int, help="Override listenport from the config")
    srv.set_defaults(func=serve_command)

    routes = subparsers.add_parser("routes", help="Print policy routing commands")
    routes.set_defaults(func=routes_command)
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)-8s %(name)s: %(message)s",
    )
    try:
        return args.func(args)
    except VlanCheckError as exc:
        print(f"vlancheck: {exc}", file=sys.stderr)
        return EXIT_ERROR
    except Exception as exc:
        logger.debug("Unhandled error", exc_info=True)
        print(f"vlancheck: unexpected error: {exc!r}", file=sys.stderr)
        return EXIT_ERROR


if __name__ == "__main__":
    sys.exit(main())
