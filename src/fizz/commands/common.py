"""Helpers shared by the CLI commands."""

from __future__ import annotations

import json
import sys
from dataclasses import asdict, is_dataclass
from typing import Any, NoReturn

import click

from ..chain.errors import FizzError
from ..modules.fizz import FizzModule


def build_module() -> FizzModule:
    """FizzModule configured from ~/.fizz/.env and the environment."""
    try:
        return FizzModule.from_env()
    except FizzError as exc:
        fail(exc)


def fail(exc: BaseException) -> NoReturn:
    click.secho(f"ERROR: {exc}", fg="red", err=True)
    sys.exit(exc.exit_code if isinstance(exc, FizzError) else 1)


def _jsonable(value: Any) -> Any:
    if isinstance(value, bytes):
        return "0x" + value.hex()
    if isinstance(value, (list, tuple)):
        return [_jsonable(v) for v in value]
    if isinstance(value, dict):
        return {k: _jsonable(v) for k, v in value.items()}
    return value


def echo_record(record: Any, as_json: bool = False) -> None:
    """Print a record as aligned ``key: value`` lines, or as JSON."""
    data = _jsonable(asdict(record) if is_dataclass(record) else record)
    if as_json:
        click.echo(json.dumps(data, indent=2))
        return
    width = max((len(k) for k in data), default=0)
    for key, value in data.items():
        label = key.replace("_", " ").capitalize()
        click.echo(f"  {label + ':':<{width + 2}} {value}")


def report_tx(result: Any) -> None:
    click.secho("SUCCESS: Transaction confirmed!", fg="green")
    click.echo(f"  TX: {result.tx_hash}")
    if result.block_number is not None:
        click.echo(f"  Block: {result.block_number}")


def wait_option(func):
    func = click.option(
        "--timeout", default=60.0, show_default=True, type=float,
        help="Seconds to wait for the confirming event (with --wait)",
    )(func)
    func = click.option(
        "--wait", is_flag=True, help="Wait for the registry event confirming the change",
    )(func)
    return func
