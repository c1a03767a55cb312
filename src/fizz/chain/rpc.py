"""
JSON-RPC Client for the Fizz registries.

Lightweight alternative to web3.py: uses httpx for HTTP + eth-abi for encoding.
Supports read-only contract calls, gas estimation, transaction receipt polling
and log filters (used for event subscriptions).
"""

from __future__ import annotations

import logging
import time
from typing import Any, Optional

import httpx

from .abi import decode_result, encode_call
from .errors import RpcError

logger = logging.getLogger(__name__)

RPC_TIMEOUT = 30


def _rpc_call(method: str, params: list, rpc_url: str) -> Any:
    """
    Make a JSON-RPC call.

    Args:
        method: RPC method name (e.g., "eth_call")
        params: RPC parameters
        rpc_url: RPC endpoint URL

    Returns:
        Result field from the RPC response

    Raises:
        RpcError: If the transport fails or the node returns an error object
    """
    payload = {
        "jsonrpc": "2.0",
        "method": method,
        "params": params,
        "id": 1,
    }

    try:
        with httpx.Client(timeout=RPC_TIMEOUT) as client:
            response = client.post(rpc_url, json=payload)
            response.raise_for_status()
            data = response.json()
    except httpx.HTTPError as exc:
        raise RpcError(f"{method} failed: {exc}") from exc

    if "error" in data:
        error = data["error"]
        if isinstance(error, dict):
            raise RpcError(
                error.get("message", str(error)),
                code=error.get("code"),
                data=error.get("data"),
            )
        raise RpcError(f"RPC error: {error}")

    return data.get("result")


def read_contract(
    contract_address: str,
    function_name: str,
    abi: list,
    rpc_url: str,
    args: Optional[list] = None,
) -> Any:
    """
    Read from a smart contract (eth_call).

    Args:
        contract_address: 0x-prefixed contract address
        function_name: Function to call
        abi: Contract ABI
        rpc_url: RPC endpoint URL
        args: Function arguments (default: [])

    Returns:
        Return value(s) decoded by output name, see ``abi.decode_result``
    """
    calldata = encode_call(abi, function_name, args or [])

    result = _rpc_call(
        "eth_call",
        [{"to": contract_address, "data": calldata}, "latest"],
        rpc_url,
    )

    if result is None or result == "0x":
        return None

    return decode_result(abi, function_name, result)


def estimate_gas(tx: dict, rpc_url: str) -> int:
    """
    Estimate gas for a transaction.

    A call that would revert fails here, and the node's error carries the
    revert data.
    """
    call = {k: v for k, v in tx.items() if k in ("from", "to", "data", "value")}
    if "value" in call:
        call["value"] = hex(call["value"])
    result = _rpc_call("eth_estimateGas", [call], rpc_url)
    return int(result, 16)


def get_nonce(address: str, rpc_url: str) -> int:
    result = _rpc_call("eth_getTransactionCount", [address, "pending"], rpc_url)
    return int(result, 16)


def get_gas_price(rpc_url: str) -> int:
    result = _rpc_call("eth_gasPrice", [], rpc_url)
    return int(result, 16)


def get_chain_id(rpc_url: str) -> int:
    result = _rpc_call("eth_chainId", [], rpc_url)
    return int(result, 16)


def send_raw_transaction(raw_tx: str, rpc_url: str) -> str:
    """
    Send a signed raw transaction.

    Args:
        raw_tx: 0x-prefixed hex encoded signed transaction

    Returns:
        Transaction hash (0x-prefixed hex)
    """
    return _rpc_call("eth_sendRawTransaction", [raw_tx], rpc_url)


def wait_for_receipt(
    tx_hash: str,
    rpc_url: str,
    timeout: float = 120,
    poll_interval: float = 2.0,
) -> dict:
    """
    Wait for a transaction receipt.

    Args:
        tx_hash: Transaction hash
        rpc_url: RPC endpoint URL
        timeout: Maximum wait time in seconds
        poll_interval: Polling interval in seconds

    Returns:
        Transaction receipt dict

    Raises:
        TimeoutError: If receipt not found within timeout
    """
    start = time.monotonic()
    while time.monotonic() - start < timeout:
        receipt = _rpc_call("eth_getTransactionReceipt", [tx_hash], rpc_url)
        if receipt is not None:
            return receipt
        logger.debug("Receipt for %s not available yet", tx_hash)
        time.sleep(poll_interval)

    raise TimeoutError(f"Transaction {tx_hash} not confirmed within {timeout}s")


# ---------------------------------------------------------------------------
# Log filters
# ---------------------------------------------------------------------------


def new_filter(address: str, topics: list, rpc_url: str) -> str:
    """Install a log filter; returns the filter id."""
    return _rpc_call(
        "eth_newFilter",
        [{"address": address, "topics": topics, "fromBlock": "latest"}],
        rpc_url,
    )


def get_logs(
    address: str,
    topics: list,
    rpc_url: str,
    from_block: int,
    to_block: str = "latest",
) -> list[dict]:
    """Logs already mined in ``[from_block, to_block]`` (eth_getLogs)."""
    return _rpc_call(
        "eth_getLogs",
        [{"address": address, "topics": topics, "fromBlock": hex(from_block), "toBlock": to_block}],
        rpc_url,
    ) or []


def get_filter_changes(filter_id: str, rpc_url: str) -> list[dict]:
    """Logs that arrived since the last poll of ``filter_id``."""
    return _rpc_call("eth_getFilterChanges", [filter_id], rpc_url) or []


def uninstall_filter(filter_id: str, rpc_url: str) -> bool:
    return bool(_rpc_call("eth_uninstallFilter", [filter_id], rpc_url))
