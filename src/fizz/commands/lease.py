"""
Lease - List the compute leases running on a Fizz node.
"""

from __future__ import annotations

from typing import Optional

import click

from . import common


@click.group()
def lease() -> None:
    """Compute lease queries."""


@lease.command("list")
@click.option("--fizz-id", required=True, type=int, help="Fizz node ID")
@click.option("--provider-id", required=True, type=int, help="Owning provider ID")
@click.option(
    "--state",
    type=click.Choice(["ACTIVE", "ALL"], case_sensitive=False),
    default="ALL",
    show_default=True,
    help="Only active leases, or all of them",
)
@click.option("--json", "as_json", is_flag=True, help="Print JSON")
def list_leases(fizz_id: int, provider_id: int, state: Optional[str], as_json: bool) -> None:
    """List leases of a node."""
    try:
        leases = common.build_module().get_fizz_leases(fizz_id, provider_id, state.upper())
    except Exception as exc:
        common.fail(exc)

    if as_json:
        common.echo_record([item.to_dict() for item in leases], as_json=True)
        return

    if not leases:
        click.echo("No leases found.")
        return

    click.echo(f"Leases on Fizz #{fizz_id}: {len(leases)}")
    for item in leases:
        click.echo(
            f"  #{item.lease_id}  tenant={item.tenant_address}  "
            f"price={item.accepted_price}  state={item.state}"
        )
