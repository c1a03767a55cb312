"""
Contract handles.

A ``Contract`` binds a deployment address and ABI to an RPC endpoint and,
for writes, a signer key. ``ContractFactory`` builds handles by logical
contract name from a ``NetworkConfig``.
"""

from __future__ import annotations

from typing import Any, Optional

from ..config import CONTRACTS, NetworkConfig
from ..wallet import load_private_key
from .abi import load_abi
from .errors import ConfigError
from .events import LogSubscription
from .rpc import read_contract
from .tx import TransactionResult, send_contract_tx


class Contract:
    def __init__(
        self,
        name: str,
        address: str,
        abi: list,
        config: NetworkConfig,
        private_key: Optional[str] = None,
    ):
        self.name = name
        self.address = address
        self.abi = abi
        self.config = config
        self.private_key = private_key

    def __repr__(self) -> str:
        mode = "signer" if self.private_key else "read-only"
        return f"<Contract {self.name} at {self.address} ({mode})>"

    def call(self, function_name: str, *args: Any) -> Any:
        """Invoke a view function; results are decoded by output name."""
        return read_contract(
            self.address,
            function_name,
            self.abi,
            self.config.rpc_url,
            args=list(args),
        )

    def transact(self, function_name: str, *args: Any, value: int = 0) -> TransactionResult:
        """Send a transaction and block until it is mined."""
        if not self.private_key:
            raise ConfigError(f"{self.name} handle is read-only; a signer is required")
        return send_contract_tx(
            contract_address=self.address,
            function_name=function_name,
            args=list(args),
            abi=self.abi,
            private_key=self.private_key,
            rpc_url=self.config.rpc_url,
            chain_id=self.config.chain_id,
            value=value,
            gas_limit=self.config.gas_limit,
            timeout=self.config.receipt_timeout,
            poll_interval=self.config.poll_interval,
        )

    def subscribe(self, event_name: str, from_block: Optional[int] = None) -> LogSubscription:
        """
        Open a new subscription to ``event_name``.

        Pass the block of a write already mined as ``from_block`` so its
        events are still delivered.
        """
        return LogSubscription(
            self.address, self.abi, event_name, self.config.rpc_url, from_block=from_block
        ).open()


class ContractFactory:
    """
    Builds contract handles by logical name.

    The signer key is resolved lazily, so read-only use never needs one.
    """

    def __init__(self, config: NetworkConfig, private_key: Optional[str] = None):
        self.config = config
        self._private_key = private_key

    def signer_key(self) -> str:
        if self._private_key is None:
            self._private_key = load_private_key()
        return self._private_key

    def abi(self, contract_name: str) -> list:
        if contract_name not in CONTRACTS:
            raise ConfigError(f"Unknown contract: {contract_name}")
        return load_abi(CONTRACTS[contract_name][2])

    def get(self, contract_name: str, signer: bool = False) -> Contract:
        return Contract(
            contract_name,
            self.config.address_for(contract_name),
            self.abi(contract_name),
            self.config,
            private_key=self.signer_key() if signer else None,
        )
