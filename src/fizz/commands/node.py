"""
Node - Read, register and update Fizz nodes.

Writes are signed with PRIVATE_KEY and block until mined. With --wait,
the command then waits for the registry event that confirms the change
for this wallet.
"""

from __future__ import annotations

from typing import Callable, Optional

import click

from ..chain.errors import EventTimeoutError
from ..models import NodeParams
from . import common


@click.group()
def node() -> None:
    """Fizz node registry."""


@node.command("show")
@click.option("--id", "fizz_id", type=int, help="Fizz node ID")
@click.option("--address", help="Node wallet address (0x...)")
@click.option("--json", "as_json", is_flag=True, help="Print JSON")
def show(fizz_id: Optional[int], address: Optional[str], as_json: bool) -> None:
    """Show one node, by ID or by wallet address."""
    if (fizz_id is None) == (address is None):
        raise click.UsageError("Pass exactly one of --id or --address.")

    module = common.build_module()
    try:
        if fizz_id is not None:
            record = module.get_fizz_by_id(fizz_id)
        else:
            record = module.get_fizz_node_by_address(address)
    except Exception as exc:
        common.fail(exc)
    common.echo_record(record, as_json)


@node.command("list")
@click.option("--json", "as_json", is_flag=True, help="Print JSON")
def list_nodes(as_json: bool) -> None:
    """List every registered node."""
    try:
        nodes = common.build_module().get_all_fizz_nodes()
    except Exception as exc:
        common.fail(exc)

    if as_json:
        common.echo_record([n.to_dict() for n in nodes], as_json=True)
        return

    click.echo(f"Fizz nodes: {len(nodes)}")
    for item in nodes:
        region = item.region or "-"
        click.echo(
            f"  #{item.fizz_id}  provider={item.provider_id}  region={region}  "
            f"status={item.status}  wallet={item.wallet_address}"
        )


def _run_write(write: Callable, listen: Optional[Callable], wait: bool, timeout: float) -> None:
    """Send a write, then optionally wait for its confirming event."""
    try:
        result = write()
    except Exception as exc:
        common.fail(exc)
    common.report_tx(result)

    if not wait or listen is None:
        return

    click.echo("")
    click.echo(f"Waiting up to {timeout:g}s for confirmation event...")
    try:
        payload = listen(timeout=timeout, from_block=result.block_number)
    except EventTimeoutError as exc:
        click.secho(f"TIMEOUT: {exc.msg}", fg="yellow", err=True)
        raise SystemExit(exc.exit_code)
    except Exception as exc:
        common.fail(exc)
    click.secho("Event received:", fg="green")
    common.echo_record(payload)


@node.command("register")
@click.option("--provider-id", required=True, type=int, help="Owning provider ID")
@click.option("--spec", required=True, help="Comma-separated node spec")
@click.option("--payment", "payments", multiple=True, help="Accepted payment token (repeatable)")
@click.option("--reward-wallet", required=True, help="Reward wallet address")
@common.wait_option
def register(
    provider_id: int,
    spec: str,
    payments: tuple[str, ...],
    reward_wallet: str,
    wait: bool,
    timeout: float,
) -> None:
    """Register this wallet as a Fizz node."""
    module = common.build_module()
    params = NodeParams(
        provider_id=provider_id,
        spec=spec,
        payments_accepted=payments,
        reward_wallet=reward_wallet,
    )
    _run_write(lambda: module.add_fizz_node(params), module.listen_to_fizz_created, wait, timeout)


@node.group()
def update() -> None:
    """Update a field of this wallet's node."""


@update.command("name")
@click.argument("name")
@common.wait_option
def update_name(name: str, wait: bool, timeout: float) -> None:
    """Rename the node."""
    module = common.build_module()
    _run_write(lambda: module.update_fizz_name(name), module.listen_name_updated, wait, timeout)


@update.command("spec")
@click.argument("spec")
@common.wait_option
def update_spec(spec: str, wait: bool, timeout: float) -> None:
    """Replace the node spec string."""
    module = common.build_module()
    _run_write(lambda: module.update_fizz_spec(spec), module.listen_spec_updated, wait, timeout)


@update.command("region")
@click.argument("region")
@common.wait_option
def update_region(region: str, wait: bool, timeout: float) -> None:
    """Change the node region."""
    module = common.build_module()
    _run_write(
        lambda: module.update_fizz_region(region), module.listen_region_updated, wait, timeout
    )


@update.command("provider")
@click.argument("provider_id", type=int)
@common.wait_option
def update_provider(provider_id: int, wait: bool, timeout: float) -> None:
    """Move the node to another provider."""
    module = common.build_module()
    _run_write(
        lambda: module.update_fizz_provider(provider_id),
        module.listen_provider_updated,
        wait,
        timeout,
    )


@node.group()
def payment() -> None:
    """Manage accepted payment tokens."""


@payment.command("add")
@click.argument("token_address")
@common.wait_option
def payment_add(token_address: str, wait: bool, timeout: float) -> None:
    """Accept payments in TOKEN_ADDRESS."""
    module = common.build_module()
    _run_write(
        lambda: module.add_accepted_payment(token_address),
        module.listen_to_add_accepted_payment,
        wait,
        timeout,
    )


@payment.command("remove")
@click.argument("token_address")
@common.wait_option
def payment_remove(token_address: str, wait: bool, timeout: float) -> None:
    """Stop accepting payments in TOKEN_ADDRESS."""
    module = common.build_module()
    _run_write(
        lambda: module.remove_accepted_payment(token_address),
        module.listen_to_remove_accepted_payment,
        wait,
        timeout,
    )
