"""
CLI entry point for Eurus.

Provides argument parsing, logging setup and top-level error handling
for the `dns` and `proxy` commands.
"""

import argparse
import logging
import sys
from pathlib import Path

import coloredlogs
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel

from eurus.client import create_http_client
from eurus.config import load_or_default
from eurus.constants import CONFIG_FILE
from eurus.dns import run_dns
from eurus.exceptions import EurusError
from eurus.proxy import run_proxy

logger = logging.getLogger(__name__)

console = Console()


def setup_logging(verbose: bool = False) -> None:
    """
    Configure logging with coloredlogs.

    Parameters:
        verbose: If True, set log level to DEBUG; otherwise INFO
    """
    level = "DEBUG" if verbose else "INFO"
    coloredlogs.install(
        level=level,
        fmt="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        logger=logging.getLogger(),
    )
    logger.debug("Logging configured at %s level", level)


def print_header() -> None:
    """Display the application header."""
    console.print(Panel.fit(
        "[bold cyan]Eurus[/bold cyan]\n"
        "[dim]Cloudflare DNS records and reverse-proxy labels[/dim]",
        border_style="cyan"
    ))


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """
    Parse command-line arguments.

    Returns:
        Parsed arguments namespace
    """
    parser = argparse.ArgumentParser(
        prog="eurus",
        description="Eurus - Manage Cloudflare DNS records and reverse-proxy labels",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose (DEBUG) logging output",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)
    subparsers.add_parser("dns", help="Create or update a DNS record")
    proxy_parser = subparsers.add_parser(
        "proxy", help="Add reverse-proxy labels and network to a compose service",
    )
    proxy_parser.add_argument(
        "file",
        nargs="?",
        help="Compose file to patch (default: compose.yaml or docker-compose.yaml in the current directory)",
    )
    return parser.parse_args(argv)


def run(args: argparse.Namespace, config_path: Path = CONFIG_FILE) -> None:
    """
    Run one command.

    Raises:
        EurusError: On any fatal error
    """
    config = load_or_default(config_path)

    if args.command == "dns":
        with create_http_client() as http_client:
            run_dns(http_client, config, config_path)
    elif args.command == "proxy":
        run_proxy(config, config_path, args.file)


def main(argv: list[str] | None = None) -> None:
    """Main application entry point."""
    args = parse_args(argv)
    setup_logging(verbose=args.verbose)

    logger.debug("Application starting (command: %s)", args.command)
    print_header()

    try:
        run(args)
    except KeyboardInterrupt:
        console.print("\n\n[yellow]⚠[/yellow] Operation cancelled by user")
        logger.info("User exited via keyboard interrupt")
        sys.exit(130)
    except EurusError as e:
        console.print(f"\n[red]✗[/red] {escape(str(e))}")
        logger.error("%s: %s", type(e).__name__, e)
        sys.exit(1)

    console.print("\n[bold cyan]Done![/bold cyan]\n")
