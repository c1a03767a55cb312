"""Shared fixtures: stub contracts, scripted event subscriptions."""

from __future__ import annotations

from typing import Any, Callable, Optional

import pytest

from fizz.chain.abi import load_abi
from fizz.chain.tx import TransactionResult
from fizz.config import CONTRACTS, NetworkConfig
from fizz.models import Provider
from fizz.modules.fizz import FizzModule

OWNER = "0x1111111111111111111111111111111111111111"
OTHER = "0x2222222222222222222222222222222222222222"
REWARD = "0x3333333333333333333333333333333333333333"
TOKEN = "0x4444444444444444444444444444444444444444"
TENANT = "0x5555555555555555555555555555555555555555"

SPEC_WITH_REGION = "8,32GB,1TB,NVIDIA,RTX4090,24GB,Ubuntu,us-east,1Gbps"


class FakeSubscription:
    """Replays scripted event batches, one batch per poll."""

    def __init__(self, batches: list[list[dict]], from_block: Optional[int] = None):
        self.batches = list(batches)
        self.from_block = from_block
        self.polls = 0
        self.close_calls = 0

    @property
    def closed(self) -> bool:
        return self.close_calls > 0

    def poll(self) -> list[dict]:
        self.polls += 1
        if self.closed:
            raise RuntimeError("poll after close")
        return self.batches.pop(0) if self.batches else []

    def close(self) -> None:
        self.close_calls += 1


class FakeContract:
    """Contract handle whose calls are answered from a dict of responders."""

    def __init__(self, name: str, responses: dict[str, Any], events: dict[str, list]):
        self.name = name
        self.responses = responses
        self.events = events
        self.calls: list[tuple] = []
        self.transactions: list[tuple] = []
        self.subscriptions: list[FakeSubscription] = []

    def call(self, function_name: str, *args: Any) -> Any:
        self.calls.append((function_name, args))
        response = self.responses[function_name]
        if isinstance(response, Exception):
            raise response
        return response(*args) if callable(response) else response

    def transact(self, function_name: str, *args: Any, value: int = 0) -> TransactionResult:
        self.transactions.append((function_name, args))
        response = self.responses.get(function_name)
        if isinstance(response, Exception):
            raise response
        return TransactionResult(
            tx_hash="0x" + "ab" * 32, status=1, receipt={"status": "0x1", "blockNumber": "0x10"}
        )

    def subscribe(self, event_name: str, from_block: Optional[int] = None) -> FakeSubscription:
        subscription = FakeSubscription(self.events.get(event_name, []), from_block)
        self.subscriptions.append(subscription)
        return subscription


class FakeFactory:
    """Stands in for ContractFactory; one FakeContract per logical name."""

    def __init__(self, private_key: Optional[str] = None):
        self.config = NetworkConfig(poll_interval=0.005)
        self.contracts: dict[str, FakeContract] = {}
        self.signer_requests = 0
        self._private_key = private_key

    def contract(self, name: str, responses: Optional[dict] = None, events: Optional[dict] = None) -> FakeContract:
        fake = self.contracts.setdefault(name, FakeContract(name, {}, {}))
        fake.responses.update(responses or {})
        fake.events.update(events or {})
        return fake

    def abi(self, contract_name: str) -> list:
        return load_abi(CONTRACTS[contract_name][2])

    def signer_key(self) -> str:
        if self._private_key is None:
            raise AssertionError("signer key requested")
        return self._private_key

    def get(self, contract_name: str, signer: bool = False) -> FakeContract:
        if signer:
            self.signer_requests += 1
        return self.contract(contract_name)


class FakeProviders:
    def __init__(self, wallet: str = OWNER):
        self.wallet = wallet
        self.requested: list[int] = []

    def get_provider(self, provider_id: int) -> Provider:
        self.requested.append(provider_id)
        return Provider(
            provider_id=provider_id,
            name="provider",
            region="us-east",
            wallet_address=self.wallet,
            payments_accepted=(),
            spec="",
            status=1,
            join_timestamp=0,
            reward_wallet=self.wallet,
        )


def fizz_struct(wallet: str = OWNER, spec: str = SPEC_WITH_REGION, **overrides: Any) -> dict:
    """getFizz result as decoded by name."""
    data = {
        "providerId": 3,
        "spec": spec,
        "paymentsAccepted": (TOKEN,),
        "status": 1,
        "joinTimestamp": 1_700_000_000,
        "walletAddress": wallet,
        "rewardWallet": REWARD,
    }
    data.update(overrides)
    return data


def lease_struct(lease_id: int, fizz_id: int) -> dict:
    return {
        "leaseId": lease_id,
        "fizzId": fizz_id,
        "requestId": 100 + lease_id,
        "resourceAttributes": b"\x01\x02",
        "acceptedPrice": 5 * 10**18,
        "providerAddress": OWNER,
        "tenantAddress": TENANT,
        "startBlock": 1000 + lease_id,
        "startTime": 1_700_000_000,
        "endTime": 1_700_003_600,
        "state": 1,
    }


@pytest.fixture()
def factory() -> FakeFactory:
    return FakeFactory()


@pytest.fixture()
def providers() -> FakeProviders:
    return FakeProviders()


@pytest.fixture()
def make_module(factory: FakeFactory, providers: FakeProviders) -> Callable[..., FizzModule]:
    def _make(account: str = OWNER) -> FizzModule:
        return FizzModule(factory, identity=lambda: account, providers=providers, poll_interval=0.005)

    return _make
