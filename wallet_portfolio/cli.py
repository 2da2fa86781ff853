"""Command-line interface for the wallet portfolio viewer."""
from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys

from .config import load_config
from .errors import PortfolioError
from .logging_setup import configure_logging
from .services import PortfolioViewer, format_report, result_to_dict

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse CLI parser."""
    parser = argparse.ArgumentParser(
        prog="wallet-portfolio",
        description="Solana wallet portfolio viewer",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to config.yaml (default: config.yaml in project root)",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: INFO)",
    )

    sub = parser.add_subparsers(dest="command")

    view_parser = sub.add_parser("view", help="Fetch and summarize wallet holdings")
    view_parser.add_argument(
        "addresses",
        nargs="*",
        help="Wallet addresses (default: wallets from config)",
    )
    view_parser.add_argument(
        "--json",
        action="store_true",
        help="Print the result as JSON instead of a text report",
    )

    serve_parser = sub.add_parser("serve", help="Run the caching price/token proxy")
    serve_parser.add_argument("--host", default=None, help="Bind address (overrides config)")
    serve_parser.add_argument("--port", type=int, default=None, help="Port (overrides config)")

    return parser


async def _view(args: argparse.Namespace) -> int:
    config = load_config(args.config)
    viewer = PortfolioViewer(config)

    addresses = args.addresses or None
    if addresses is None and not config.wallets:
        logger.error("No wallet addresses given and none configured")
        return 1

    try:
        result = await viewer.fetch(addresses)
    except PortfolioError as e:
        logger.error("Error fetching balances: %s", e)
        return 1

    if args.json:
        print(json.dumps(result_to_dict(result), indent=2))
    else:
        print(format_report(result, config))

    # Nothing to show when every wallet failed.
    if result.failures and not result.snapshots:
        return 1
    return 0


def main() -> None:
    """Entry point."""
    parser = build_parser()
    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    configure_logging(args.log_level)

    if args.command == "view":
        sys.exit(asyncio.run(_view(args)))
    elif args.command == "serve":
        from .server import run_server

        run_server(load_config(args.config), args.host, args.port, args.log_level)
