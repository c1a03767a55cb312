"""
FizzModule - typed facade over the Fizz node registry.

Writes sign with the configured key and block until mined. Reads decode
contract structs into records from ``fizz.models``. The ``listen_*``
methods wait for the registry event that confirms a write made by the
active account, with a timeout.

Every failure is logged, translated against the ABI of the contract that
was called, and raised.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Optional, Protocol

from ..chain.contract import ContractFactory
from ..chain.errors import EventTimeoutError, FizzError, translate_error
from ..chain.events import DEFAULT_EVENT_TIMEOUT, Event, Match, wait_for_event
from ..chain.tx import TransactionResult
from ..config import (
    COMPUTE_LEASE,
    FIZZ_REGISTRY,
    RESOURCE_REGISTRY_CPU,
    RESOURCE_REGISTRY_GPU,
    NetworkConfig,
    load_config,
)
from ..models import Lease, Node, NodeParams, Provider, Resource
from ..wallet import AccountIdentity, same_address, signer_identity
from .provider import ProviderModule

logger = logging.getLogger(__name__)

RESOURCE_REGISTRIES = {
    "CPU": RESOURCE_REGISTRY_CPU,
    "GPU": RESOURCE_REGISTRY_GPU,
}

CREATION_FAILED = "Fizz creation failed"
UPDATE_FAILED = "Fizz update failed"


class ProviderLookup(Protocol):
    def get_provider(self, provider_id: int) -> Provider: ...


class FizzModule:
    def __init__(
        self,
        contracts: ContractFactory,
        identity: Optional[AccountIdentity] = None,
        providers: Optional[ProviderLookup] = None,
        poll_interval: Optional[float] = None,
    ):
        """
        Args:
            contracts: Contract handle factory
            identity: Returns the active account; defaults to the signer address
            providers: Provider lookup used by ``get_fizz_leases``
            poll_interval: Seconds between event polls (default: from config)
        """
        self._contracts = contracts
        self._identity = identity or signer_identity(contracts.signer_key)
        self._providers = providers or ProviderModule(contracts)
        self._poll_interval = (
            poll_interval if poll_interval is not None else contracts.config.poll_interval
        )

    @classmethod
    def from_env(
        cls,
        private_key: Optional[str] = None,
        identity: Optional[AccountIdentity] = None,
        config: Optional[NetworkConfig] = None,
    ) -> "FizzModule":
        return cls(ContractFactory(config or load_config(), private_key), identity=identity)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def _transact(self, function_name: str, *args: Any) -> TransactionResult:
        try:
            contract = self._contracts.get(FIZZ_REGISTRY, signer=True)
            result = contract.transact(function_name, *args)
            logger.info("%s successful: %s", function_name, result.tx_hash)
            return result
        except Exception as exc:
            logger.error("%s failed: %s", function_name, exc)
            raise translate_error(exc, self._contracts.abi(FIZZ_REGISTRY)) from exc

    def add_fizz_node(self, params: NodeParams) -> TransactionResult:
        return self._transact("addFizzNode", params.to_abi())

    def update_fizz_name(self, new_name: str) -> TransactionResult:
        return self._transact("updateFizzName", new_name)

    def update_fizz_spec(self, spec: str) -> TransactionResult:
        return self._transact("updateFizzSpec", spec)

    def update_fizz_region(self, region: str) -> TransactionResult:
        return self._transact("updateFizzRegion", region)

    def update_fizz_provider(self, provider_id: int) -> TransactionResult:
        return self._transact("updateFizzProviderId", provider_id)

    def add_accepted_payment(self, token_address: str) -> TransactionResult:
        return self._transact("addAcceptedPayment", token_address)

    def remove_accepted_payment(self, token_address: str) -> TransactionResult:
        return self._transact("removeAcceptedPayment", token_address)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_fizz_by_id(self, fizz_id: int) -> Node:
        try:
            contract = self._contracts.get(FIZZ_REGISTRY)
            data = contract.call("getFizz", fizz_id)
            return Node.from_chain(data, fizz_id=fizz_id)
        except Exception as exc:
            logger.error("Failed to retrieve Fizz details for %s: %s", fizz_id, exc)
            raise translate_error(exc, self._contracts.abi(FIZZ_REGISTRY)) from exc

    def get_fizz_node_by_address(self, wallet_address: str) -> Node:
        try:
            contract = self._contracts.get(FIZZ_REGISTRY)
            fizz_id = contract.call("addressToFizzId", wallet_address)
            node = self.get_fizz_by_id(fizz_id)
            logger.debug("Fizz node for %s: %s", wallet_address, node)
            return node
        except Exception as exc:
            logger.error("Failed to fetch Fizz node for %s: %s", wallet_address, exc)
            raise translate_error(exc, self._contracts.abi(FIZZ_REGISTRY)) from exc

    def get_all_fizz_nodes(self) -> list[Node]:
        try:
            contract = self._contracts.get(FIZZ_REGISTRY)
            nodes = [Node.from_chain(entry) for entry in contract.call("getAllFizzNodes") or []]
            logger.debug("Fetched %d Fizz nodes", len(nodes))
            return nodes
        except Exception as exc:
            logger.error("Failed to fetch all Fizz nodes: %s", exc)
            raise translate_error(exc, self._contracts.abi(FIZZ_REGISTRY)) from exc

    def get_resource(self, resource_id: int, category: str) -> Resource:
        """
        Look up a resource in the CPU or GPU registry.

        Raises:
            ValueError: If ``category`` is neither CPU nor GPU
        """
        registry = RESOURCE_REGISTRIES.get(category.upper())
        if registry is None:
            raise ValueError(f"Unknown resource category {category!r}; expected CPU or GPU")

        try:
            contract = self._contracts.get(registry)
            resource = Resource.from_chain(contract.call("getResource", resource_id))
            logger.info("Resource with ID %s retrieved successfully: %s", resource_id, resource)
            return resource
        except Exception as exc:
            logger.error("Failed to retrieve resource %s: %s", resource_id, exc)
            raise translate_error(exc, self._contracts.abi(registry)) from exc

    def get_fizz_leases(
        self, fizz_id: int, provider_id: int, state: Optional[str] = None
    ) -> list[Lease]:
        """
        Leases of the node's provider that belong to ``fizz_id``.

        ``state="ACTIVE"`` restricts the scan to the provider's active
        leases; anything else scans all of them.
        """
        try:
            provider = self._providers.get_provider(provider_id)
            contract = self._contracts.get(COMPUTE_LEASE)
            lease_ids = contract.call("getProviderLeases", provider.wallet_address)
            selected = lease_ids["activeLeases"] if state == "ACTIVE" else lease_ids["allLeases"]

            leases = []
            for lease_id in selected:
                data = contract.call("leases", lease_id)
                if data["fizzId"] == fizz_id:
                    leases.append(Lease.from_chain(data))
            return leases
        except Exception as exc:
            logger.error("Failed to retrieve fizz leases for %s: %s", fizz_id, exc)
            raise translate_error(exc, self._contracts.abi(COMPUTE_LEASE)) from exc

    # ------------------------------------------------------------------
    # Event waits
    # ------------------------------------------------------------------

    def _listen(
        self,
        event_name: str,
        make_match: Callable[[str], Match],
        on_success: Optional[Callable[..., Any]],
        on_failure: Optional[Callable[[], Any]],
        timeout: float,
        timeout_message: str,
        from_block: Optional[int] = None,
    ) -> dict[str, Any]:
        try:
            account = self._identity()
            contract = self._contracts.get(FIZZ_REGISTRY)
            return wait_for_event(
                lambda: contract.subscribe(event_name, from_block=from_block),
                event_name,
                make_match(account),
                timeout=timeout,
                on_success=on_success,
                on_failure=on_failure,
                timeout_message=timeout_message,
                poll_interval=self._poll_interval,
            )
        except EventTimeoutError:
            raise
        except Exception as exc:
            logger.error("Error while waiting for %s: %s", event_name, exc)
            raise translate_error(exc, self._contracts.abi(FIZZ_REGISTRY)) from exc

    def _owned_node_update(self, value_field: str, payload_key: str) -> Callable[[str], Match]:
        """Match update events on nodes whose wallet is the active account."""

        def make_match(account: str) -> Match:
            def match(event: Event) -> Optional[dict[str, Any]]:
                fizz_id = event["fizzId"]
                try:
                    node = Node.from_chain(
                        self._contracts.get(FIZZ_REGISTRY).call("getFizz", fizz_id), fizz_id=fizz_id
                    )
                except FizzError as exc:
                    logger.warning("Skipping event for Fizz node %s, lookup failed: %s", fizz_id, exc)
                    return None
                if not same_address(node.wallet_address, account):
                    return None
                return {
                    "fizz_id": fizz_id,
                    payload_key: event[value_field],
                    "wallet_address": node.wallet_address,
                }

            return match

        return make_match

    def listen_to_fizz_created(
        self,
        on_success: Optional[Callable[[int, str], Any]] = None,
        on_failure: Optional[Callable[[], Any]] = None,
        timeout: float = DEFAULT_EVENT_TIMEOUT,
        from_block: Optional[int] = None,
    ) -> dict[str, Any]:
        """
        Wait for FizzNodeAdded emitted for the active account.

        Args:
            on_success: Called once with ``(fizz_id, wallet_address)``
            on_failure: Called once, with no arguments, on timeout
            timeout: Seconds to wait
            from_block: Also deliver events mined from this block on, e.g.
                        the ``block_number`` of the registration write

        Returns:
            ``{"fizz_id": ..., "wallet_address": ...}``

        Raises:
            EventTimeoutError: If no matching event arrives in time
        """

        def make_match(account: str) -> Match:
            def match(event: Event) -> Optional[dict[str, Any]]:
                if not same_address(event["walletAddress"], account):
                    return None
                return {"fizz_id": event["fizzId"], "wallet_address": event["walletAddress"]}

            return match

        return self._listen(
            "FizzNodeAdded", make_match, on_success, on_failure, timeout, CREATION_FAILED, from_block
        )

    def listen_name_updated(
        self,
        on_success: Optional[Callable[[int, str, str], Any]] = None,
        on_failure: Optional[Callable[[], Any]] = None,
        timeout: float = DEFAULT_EVENT_TIMEOUT,
        from_block: Optional[int] = None,
    ) -> dict[str, Any]:
        """Wait for FizzNodeNameUpdated on a node owned by the active account."""
        return self._listen(
            "FizzNodeNameUpdated",
            self._owned_node_update("name", "name"),
            on_success,
            on_failure,
            timeout,
            UPDATE_FAILED,
            from_block,
        )

    def listen_spec_updated(
        self,
        on_success: Optional[Callable[[int, str, str], Any]] = None,
        on_failure: Optional[Callable[[], Any]] = None,
        timeout: float = DEFAULT_EVENT_TIMEOUT,
        from_block: Optional[int] = None,
    ) -> dict[str, Any]:
        """Wait for FizzNodeSpecUpdated on a node owned by the active account."""
        return self._listen(
            "FizzNodeSpecUpdated",
            self._owned_node_update("spec", "spec"),
            on_success,
            on_failure,
            timeout,
            UPDATE_FAILED,
            from_block,
        )

    def listen_region_updated(
        self,
        on_success: Optional[Callable[[int, str, str], Any]] = None,
        on_failure: Optional[Callable[[], Any]] = None,
        timeout: float = DEFAULT_EVENT_TIMEOUT,
        from_block: Optional[int] = None,
    ) -> dict[str, Any]:
        """Wait for FizzNodeRegionUpdated on a node owned by the active account."""
        return self._listen(
            "FizzNodeRegionUpdated",
            self._owned_node_update("region", "region"),
            on_success,
            on_failure,
            timeout,
            UPDATE_FAILED,
            from_block,
        )

    def listen_provider_updated(
        self,
        on_success: Optional[Callable[[int, int, str], Any]] = None,
        on_failure: Optional[Callable[[], Any]] = None,
        timeout: float = DEFAULT_EVENT_TIMEOUT,
        from_block: Optional[int] = None,
    ) -> dict[str, Any]:
        """Wait for FizzNodeProviderIdUpdated on a node owned by the active account."""
        return self._listen(
            "FizzNodeProviderIdUpdated",
            self._owned_node_update("providerId", "provider_id"),
            on_success,
            on_failure,
            timeout,
            UPDATE_FAILED,
            from_block,
        )

    def listen_to_add_accepted_payment(
        self,
        on_success: Optional[Callable[[int, str, str], Any]] = None,
        on_failure: Optional[Callable[[], Any]] = None,
        timeout: float = DEFAULT_EVENT_TIMEOUT,
        from_block: Optional[int] = None,
    ) -> dict[str, Any]:
        """Wait for PaymentAdded on a node owned by the active account."""
        return self._listen(
            "PaymentAdded",
            self._owned_node_update("tokenAddress", "token_address"),
            on_success,
            on_failure,
            timeout,
            UPDATE_FAILED,
            from_block,
        )

    def listen_to_remove_accepted_payment(
        self,
        on_success: Optional[Callable[[int, str, str], Any]] = None,
        on_failure: Optional[Callable[[], Any]] = None,
        timeout: float = DEFAULT_EVENT_TIMEOUT,
        from_block: Optional[int] = None,
    ) -> dict[str, Any]:
        """Wait for PaymentRemoved on a node owned by the active account."""
        return self._listen(
            "PaymentRemoved",
            self._owned_node_update("tokenAddress", "token_address"),
            on_success,
            on_failure,
            timeout,
            UPDATE_FAILED,
            from_block,
        )
