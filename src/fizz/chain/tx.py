"""
Transaction Builder - Build, sign, and send Ethereum transactions.

Uses eth-account for signing and httpx-based JSON-RPC for sending.
All gas is paid by the signer EOA.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Optional

from eth_utils import to_checksum_address

from ..wallet import get_account
from .abi import encode_call
from .errors import TransactionFailedError
from .rpc import (
    estimate_gas,
    get_chain_id,
    get_gas_price,
    get_nonce,
    send_raw_transaction,
    wait_for_receipt,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TransactionResult:
    """Outcome of a mined transaction."""

    tx_hash: str
    status: int
    receipt: dict[str, Any] = field(default_factory=dict)

    @property
    def block_number(self) -> Optional[int]:
        value = self.receipt.get("blockNumber")
        if value is None:
            return None
        return int(value, 16) if isinstance(value, str) else int(value)


def build_contract_tx(
    contract_address: str,
    function_name: str,
    args: list,
    abi: list,
    private_key: str,
    rpc_url: str,
    chain_id: Optional[int] = None,
    value: int = 0,
    gas_limit: Optional[int] = None,
) -> dict:
    """
    Build a contract call transaction (unsigned).

    Args:
        contract_address: 0x-prefixed contract address
        function_name: Function to call
        args: Function arguments
        abi: Contract ABI
        private_key: Signer key, for the sender address and nonce lookup
        rpc_url: RPC endpoint URL
        chain_id: Chain id (queried from the node if None)
        value: ETH value in wei (default: 0)
        gas_limit: Gas limit (default: eth_estimateGas)

    Returns:
        Unsigned transaction dict
    """
    calldata = encode_call(abi, function_name, args)
    account = get_account(private_key)

    tx: dict[str, Any] = {
        "to": to_checksum_address(contract_address),
        "data": calldata,
        "value": value,
    }
    # Estimation runs the call, so a revert surfaces here with its data
    tx["gas"] = gas_limit or estimate_gas(dict(tx, **{"from": account.address}), rpc_url)
    tx["nonce"] = get_nonce(account.address, rpc_url)
    tx["gasPrice"] = get_gas_price(rpc_url)
    tx["chainId"] = chain_id if chain_id is not None else get_chain_id(rpc_url)

    return tx


def sign_and_send(
    tx: dict,
    private_key: str,
    rpc_url: str,
    timeout: float = 120,
    poll_interval: float = 2.0,
) -> TransactionResult:
    """
    Sign a transaction, send it and wait until it is mined.

    Raises:
        TransactionFailedError: If the receipt status is 0
    """
    account = get_account(private_key)
    signed = account.sign_transaction(tx)
    raw_tx = "0x" + signed.raw_transaction.hex().removeprefix("0x")

    tx_hash = send_raw_transaction(raw_tx, rpc_url)
    logger.debug("Sent transaction %s", tx_hash)

    receipt = wait_for_receipt(tx_hash, rpc_url, timeout=timeout, poll_interval=poll_interval)
    status = int(receipt.get("status", "0x0"), 16)
    if status != 1:
        raise TransactionFailedError(f"Transaction {tx_hash} reverted")

    return TransactionResult(tx_hash=tx_hash, status=status, receipt=receipt)


def send_contract_tx(
    contract_address: str,
    function_name: str,
    args: list,
    abi: list,
    private_key: str,
    rpc_url: str,
    chain_id: Optional[int] = None,
    value: int = 0,
    gas_limit: Optional[int] = None,
    timeout: float = 120,
    poll_interval: float = 2.0,
) -> TransactionResult:
    """
    Build, sign, and send a contract call transaction.

    Convenience function combining build + sign + send.
    """
    tx = build_contract_tx(
        contract_address=contract_address,
        function_name=function_name,
        args=args,
        abi=abi,
        private_key=private_key,
        rpc_url=rpc_url,
        chain_id=chain_id,
        value=value,
        gas_limit=gas_limit,
    )
    return sign_and_send(
        tx,
        private_key=private_key,
        rpc_url=rpc_url,
        timeout=timeout,
        poll_interval=poll_interval,
    )
