"""
Resource - Look up catalogued CPU / GPU resources.
"""

from __future__ import annotations

import click

from . import common


@click.group()
def resource() -> None:
    """Resource registry lookups."""


@resource.command("show")
@click.option("--id", "resource_id", required=True, type=int, help="Resource ID")
@click.option(
    "--category",
    required=True,
    type=click.Choice(["CPU", "GPU"], case_sensitive=False),
    help="Resource category",
)
@click.option("--json", "as_json", is_flag=True, help="Print JSON")
def show(resource_id: int, category: str, as_json: bool) -> None:
    """Show a resource's name, tier and multiplier."""
    try:
        record = common.build_module().get_resource(resource_id, category)
    except Exception as exc:
        common.fail(exc)
    common.echo_record(record, as_json)
