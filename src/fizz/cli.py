"""
Fizz CLI

Command-line interface for the Fizz node, resource and lease registries.

Configuration is read from the environment and ~/.fizz/.env
(FIZZ_RPC_URL, FIZZ_REGISTRY_ADDRESS, ..., PRIVATE_KEY).

Commands:
  node      - Read, register and update Fizz nodes
  resource  - Look up CPU / GPU resources
  lease     - List compute leases of a node
  whoami    - Show current signer address
"""

from __future__ import annotations

import logging
import sys

import click

from . import __version__
from .chain.errors import FizzError
from .wallet import get_address, load_private_key


@click.group()
@click.version_option(version=__version__, prog_name="fizz")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
def cli(verbose: bool) -> None:
    """Fizz - compute node registry client."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )


# ============ Command Groups ============

from .commands.node import node
from .commands.resource import resource
from .commands.lease import lease

cli.add_command(node)
cli.add_command(resource)
cli.add_command(lease)


# ============ Identity ============


@cli.command()
def whoami() -> None:
    """Show current signer identity."""
    try:
        address = get_address(load_private_key())
    except FizzError as exc:
        click.echo(f"No signer configured: {exc}")
        sys.exit(exc.exit_code)
    click.echo(f"Address: {address}")


def main() -> None:
    """Fizz CLI entry point."""
    cli()


if __name__ == "__main__":
    main()
