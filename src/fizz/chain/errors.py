"""
Error translation for contract calls.

Every failure that leaves the SDK is a ``FizzError``. RPC faults and
reverts are turned into a ``ContractError`` whose ``reason`` is decoded
from the revert data using the ABI of the contract that was called.
"""

from __future__ import annotations

import re
from typing import Any, Optional

from eth_abi import decode
from eth_abi.exceptions import DecodingError

from .abi import hex_to_bytes, input_types, selector

ERROR_STRING_SELECTOR = bytes.fromhex("08c379a0")  # Error(string)
PANIC_SELECTOR = bytes.fromhex("4e487b71")  # Panic(uint256)

PANIC_REASONS = {
    0x00: "generic compiler panic",
    0x01: "assertion failed",
    0x11: "arithmetic overflow or underflow",
    0x12: "division or modulo by zero",
    0x21: "invalid enum conversion",
    0x22: "invalid storage byte array encoding",
    0x31: "pop on empty array",
    0x32: "array index out of bounds",
    0x41: "out of memory",
    0x51: "call to zero-initialized function pointer",
}

# selector + whole 32-byte words; a bare address (20 bytes) never matches
_REVERT_HEX = re.compile(r"0x[0-9a-fA-F]{8}(?:[0-9a-fA-F]{64})*(?![0-9a-fA-F])")


class FizzError(RuntimeError):
    exit_code: int = 1


class ConfigError(FizzError):
    exit_code = 2


class RpcError(FizzError):
    """JSON-RPC error object or transport failure."""

    exit_code = 3

    def __init__(self, message: str, code: Optional[int] = None, data: Any = None):
        super().__init__(message)
        self.message = message
        self.code = code
        self.data = data


class ContractError(FizzError):
    """A contract call failure with a human-readable reason."""

    exit_code = 4

    def __init__(
        self,
        reason: str,
        error_name: Optional[str] = None,
        error_args: tuple = (),
        cause: Optional[BaseException] = None,
    ):
        super().__init__(reason)
        self.reason = reason
        self.error_name = error_name
        self.error_args = error_args
        self.cause = cause


class TransactionFailedError(ContractError):
    """Transaction was mined but reverted (receipt status 0)."""

    exit_code = 5


class EventTimeoutError(FizzError):
    """No matching event arrived before the timeout."""

    exit_code = 6

    def __init__(self, msg: str, event_name: str, timeout: float):
        super().__init__(msg)
        self.error = True
        self.msg = msg
        self.event_name = event_name
        self.timeout = timeout


def extract_revert_data(exc: BaseException) -> Optional[str]:
    """Find 0x-prefixed revert data on an RPC error, if any."""
    if isinstance(exc, RpcError):
        data = exc.data
        # Nodes nest it differently: "0x..", {"data": "0x.."}, {"originalError": {...}}
        while isinstance(data, dict):
            data = data.get("data") or data.get("originalError")
        if isinstance(data, str) and data.startswith("0x") and len(data) >= 10:
            return data
        text = exc.message
    else:
        text = str(exc)
    match = _REVERT_HEX.search(text)
    return match.group(0) if match else None


def decode_revert(data: str, abi: Optional[list] = None) -> Optional[ContractError]:
    """
    Decode revert data into a ContractError.

    Handles ``Error(string)``, ``Panic(uint256)`` and custom errors declared
    in ``abi``. Returns None when the selector is unknown.
    """
    raw = hex_to_bytes(data)
    sel, payload = raw[:4], raw[4:]

    if sel == ERROR_STRING_SELECTOR:
        (reason,) = decode(["string"], payload)
        return ContractError(reason, error_name="Error", error_args=(reason,))

    if sel == PANIC_SELECTOR:
        (code,) = decode(["uint256"], payload)
        reason = PANIC_REASONS.get(code, f"Panic(0x{code:02x})")
        return ContractError(reason, error_name="Panic", error_args=(code,))

    for entry in abi or []:
        if entry.get("type") != "error" or selector(entry) != sel:
            continue
        args = tuple(decode(input_types(entry), payload)) if entry.get("inputs") else ()
        rendered = ", ".join(str(a) for a in args)
        return ContractError(
            f"{entry['name']}({rendered})", error_name=entry["name"], error_args=args
        )

    return None


def translate_error(exc: BaseException, abi: Optional[list] = None) -> FizzError:
    """
    Map a raised error into a user-facing FizzError.

    Already-translated errors pass through unchanged.
    """
    if isinstance(exc, (ContractError, EventTimeoutError, ConfigError)):
        return exc

    data = extract_revert_data(exc)
    if data:
        try:
            decoded = decode_revert(data, abi)
        except (DecodingError, ValueError):
            decoded = None
        if decoded is not None:
            decoded.cause = exc
            return decoded

    message = exc.message if isinstance(exc, RpcError) else str(exc)
    return ContractError(message or exc.__class__.__name__, cause=exc)
