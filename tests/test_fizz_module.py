"""Tests for the FizzModule facade against stub contracts."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest
from eth_abi import encode

from fizz.chain.errors import ContractError, EventTimeoutError, RpcError
from fizz.config import COMPUTE_LEASE, FIZZ_REGISTRY, RESOURCE_REGISTRY_CPU, RESOURCE_REGISTRY_GPU
from fizz.models import Node, NodeParams, Resource
from fizz.modules.fizz import FizzModule
from fizz.wallet import static_identity

from .conftest import (
    OTHER,
    OWNER,
    REWARD,
    SPEC_WITH_REGION,
    TOKEN,
    FakeFactory,
    FakeProviders,
    fizz_struct,
    lease_struct,
)


def _revert(reason: str) -> RpcError:
    data = "0x08c379a0" + encode(["string"], [reason]).hex()
    return RpcError("execution reverted", code=3, data=data)


class TestReads:
    def test_get_fizz_by_id(self, factory: FakeFactory, make_module) -> None:
        registry = factory.contract(FIZZ_REGISTRY, {"getFizz": lambda fizz_id: fizz_struct()})
        node = make_module().get_fizz_by_id(9)

        raw = fizz_struct()
        assert node.fizz_id == 9
        assert node.provider_id == raw["providerId"]
        assert node.spec == raw["spec"]
        assert node.payments_accepted == tuple(raw["paymentsAccepted"])
        assert node.status == raw["status"]
        assert node.join_timestamp == raw["joinTimestamp"]
        assert node.wallet_address == raw["walletAddress"]
        assert node.reward_wallet == raw["rewardWallet"]
        assert node.region == "us-east"
        assert registry.calls == [("getFizz", (9,))]

    def test_get_fizz_node_by_address(self, factory: FakeFactory, make_module) -> None:
        registry = factory.contract(
            FIZZ_REGISTRY,
            {"addressToFizzId": 4, "getFizz": lambda fizz_id: fizz_struct(spec="x")},
        )
        node = make_module().get_fizz_node_by_address(OWNER)
        assert node.fizz_id == 4
        assert node.region == ""
        assert registry.calls == [("addressToFizzId", (OWNER,)), ("getFizz", (4,))]

    def test_get_all_fizz_nodes(self, factory: FakeFactory, make_module) -> None:
        entries = [
            dict(fizz_struct(), fizzId=1),
            dict(fizz_struct(wallet=OTHER, spec="1,2"), fizzId=2),
        ]
        factory.contract(FIZZ_REGISTRY, {"getAllFizzNodes": entries})

        nodes = make_module().get_all_fizz_nodes()

        assert [n.fizz_id for n in nodes] == [1, 2]
        assert nodes[0] == Node.from_chain(entries[0])
        assert nodes[0].region == "us-east"
        assert nodes[1].wallet_address == OTHER
        assert nodes[1].region == ""

    def test_get_all_fizz_nodes_empty(self, factory: FakeFactory, make_module) -> None:
        factory.contract(FIZZ_REGISTRY, {"getAllFizzNodes": []})
        assert make_module().get_all_fizz_nodes() == []

    def test_read_revert_is_translated(self, factory: FakeFactory, make_module) -> None:
        factory.contract(FIZZ_REGISTRY, {"getFizz": _revert("Fizz node does not exist")})
        with pytest.raises(ContractError) as excinfo:
            make_module().get_fizz_by_id(404)
        assert excinfo.value.reason == "Fizz node does not exist"


class TestGetResource:
    @pytest.mark.parametrize(
        "category, registry",
        [("CPU", RESOURCE_REGISTRY_CPU), ("gpu", RESOURCE_REGISTRY_GPU), ("GPU", RESOURCE_REGISTRY_GPU)],
    )
    def test_category_selects_registry(self, factory: FakeFactory, make_module, category, registry) -> None:
        contract = factory.contract(
            registry, {"getResource": {"name": "EPYC", "tier": "Medium", "multiplier": 250}}
        )
        assert make_module().get_resource(5, category) == Resource("EPYC", "Medium", 250)
        assert contract.calls == [("getResource", (5,))]

    def test_unknown_category(self, make_module) -> None:
        with pytest.raises(ValueError):
            make_module().get_resource(5, "TPU")


class TestWrites:
    def test_add_fizz_node(self, factory: FakeFactory, make_module) -> None:
        params = NodeParams(provider_id=3, spec=SPEC_WITH_REGION, payments_accepted=(TOKEN,), reward_wallet=REWARD)
        result = make_module().add_fizz_node(params)

        registry = factory.contracts[FIZZ_REGISTRY]
        assert registry.transactions == [("addFizzNode", ((3, SPEC_WITH_REGION, [TOKEN], REWARD),))]
        assert result.status == 1
        assert result.block_number == 16
        assert factory.signer_requests == 1

    @pytest.mark.parametrize(
        "method, arg, function_name",
        [
            ("update_fizz_name", "node-1", "updateFizzName"),
            ("update_fizz_spec", SPEC_WITH_REGION, "updateFizzSpec"),
            ("update_fizz_region", "eu-west", "updateFizzRegion"),
            ("update_fizz_provider", 8, "updateFizzProviderId"),
            ("add_accepted_payment", TOKEN, "addAcceptedPayment"),
            ("remove_accepted_payment", TOKEN, "removeAcceptedPayment"),
        ],
    )
    def test_updates(self, factory: FakeFactory, make_module, method, arg, function_name) -> None:
        result = getattr(make_module(), method)(arg)
        assert factory.contracts[FIZZ_REGISTRY].transactions == [(function_name, (arg,))]
        assert result.tx_hash.startswith("0x")

    def test_revert_is_translated_with_registry_abi(self, factory: FakeFactory, make_module) -> None:
        from fizz.chain.abi import load_abi, selector

        abi = load_abi("FizzRegistry")
        entry = next(e for e in abi if e.get("type") == "error" and e["name"] == "PaymentNotAccepted")
        data = "0x" + selector(entry).hex() + encode(["address"], [TOKEN]).hex()
        factory.contract(FIZZ_REGISTRY, {"removeAcceptedPayment": RpcError("execution reverted", data=data)})

        with pytest.raises(ContractError) as excinfo:
            make_module().remove_accepted_payment(TOKEN)
        assert excinfo.value.error_name == "PaymentNotAccepted"
        assert excinfo.value.error_args == (TOKEN,)


class TestGetFizzLeases:
    @pytest.fixture()
    def lease_registry(self, factory: FakeFactory):
        leases = {1: lease_struct(1, fizz_id=8), 2: lease_struct(2, fizz_id=9), 3: lease_struct(3, fizz_id=7)}
        return factory.contract(
            COMPUTE_LEASE,
            {
                "getProviderLeases": {"activeLeases": (1, 2, 3), "allLeases": (1, 2, 3)},
                "leases": lambda lease_id: leases[lease_id],
            },
        )

    @pytest.mark.parametrize("state", ["ACTIVE", None, "ALL"])
    def test_only_matching_node(self, lease_registry, providers: FakeProviders, make_module, state) -> None:
        leases = make_module().get_fizz_leases(9, provider_id=3, state=state)

        assert [lease.lease_id for lease in leases] == [2]
        assert leases[0].fizz_id == 9
        assert providers.requested == [3]
        assert lease_registry.calls[0] == ("getProviderLeases", (OWNER,))
        assert [c[1][0] for c in lease_registry.calls[1:]] == [1, 2, 3]

    def test_scope_selects_id_list(self, factory: FakeFactory, make_module) -> None:
        registry = factory.contract(
            COMPUTE_LEASE,
            {
                "getProviderLeases": {"activeLeases": (2,), "allLeases": (1, 2)},
                "leases": lambda lease_id: lease_struct(lease_id, fizz_id=9),
            },
        )
        assert [lease.lease_id for lease in make_module().get_fizz_leases(9, 3, "ACTIVE")] == [2]
        registry.calls.clear()
        assert [lease.lease_id for lease in make_module().get_fizz_leases(9, 3)] == [1, 2]

    def test_lease_failure_is_translated(self, factory: FakeFactory, make_module) -> None:
        factory.contract(COMPUTE_LEASE, {"getProviderLeases": _revert("Unknown provider")})
        with pytest.raises(ContractError, match="Unknown provider"):
            make_module().get_fizz_leases(9, 3)


class TestListeners:
    def test_fizz_created(self, factory: FakeFactory, make_module) -> None:
        factory.contract(
            FIZZ_REGISTRY,
            events={"FizzNodeAdded": [[{"fizzId": 1, "walletAddress": OTHER}], [{"fizzId": 2, "walletAddress": OWNER.upper().replace("0X", "0x")}]]},
        )
        on_success, on_failure = MagicMock(), MagicMock()

        payload = make_module(account=OWNER).listen_to_fizz_created(on_success, on_failure, timeout=5)

        assert payload["fizz_id"] == 2
        on_success.assert_called_once()
        on_failure.assert_not_called()
        (sub,) = factory.contracts[FIZZ_REGISTRY].subscriptions
        assert sub.close_calls == 1

    def test_fizz_created_timeout(self, factory: FakeFactory, make_module) -> None:
        factory.contract(FIZZ_REGISTRY, events={"FizzNodeAdded": [[{"fizzId": 1, "walletAddress": OTHER}]]})
        on_failure = MagicMock()

        with pytest.raises(EventTimeoutError) as excinfo:
            make_module().listen_to_fizz_created(on_failure=on_failure, timeout=0.03)
        assert excinfo.value.msg == "Fizz creation failed"
        on_failure.assert_called_once_with()

    @pytest.mark.parametrize(
        "method, event_name, field, value, key",
        [
            ("listen_name_updated", "FizzNodeNameUpdated", "name", "node-1", "name"),
            ("listen_spec_updated", "FizzNodeSpecUpdated", "spec", "4,16GB", "spec"),
            ("listen_region_updated", "FizzNodeRegionUpdated", "region", "eu-west", "region"),
            ("listen_provider_updated", "FizzNodeProviderIdUpdated", "providerId", 8, "provider_id"),
            ("listen_to_add_accepted_payment", "PaymentAdded", "tokenAddress", TOKEN, "token_address"),
            ("listen_to_remove_accepted_payment", "PaymentRemoved", "tokenAddress", TOKEN, "token_address"),
        ],
    )
    def test_update_events_match_node_owner(
        self, factory: FakeFactory, make_module, method, event_name, field, value, key
    ) -> None:
        owners = {1: OTHER, 2: OWNER}
        factory.contract(
            FIZZ_REGISTRY,
            responses={"getFizz": lambda fizz_id: fizz_struct(wallet=owners[fizz_id])},
            events={event_name: [[{"fizzId": 1, field: value}, {"fizzId": 2, field: value}]]},
        )
        on_success = MagicMock()

        payload = getattr(make_module(), method)(on_success=on_success, timeout=5)

        assert payload == {"fizz_id": 2, key: value, "wallet_address": OWNER}
        on_success.assert_called_once_with(2, value, OWNER)
        lookups = [c for c in factory.contracts[FIZZ_REGISTRY].calls if c[0] == "getFizz"]
        assert lookups == [("getFizz", (1,)), ("getFizz", (2,))]

    def test_update_event_timeout(self, factory: FakeFactory, make_module) -> None:
        factory.contract(
            FIZZ_REGISTRY,
            responses={"getFizz": lambda fizz_id: fizz_struct(wallet=OTHER)},
            events={"FizzNodeSpecUpdated": [[{"fizzId": 1, "spec": "x"}]]},
        )
        on_success, on_failure = MagicMock(), MagicMock()

        with pytest.raises(EventTimeoutError) as excinfo:
            make_module().listen_spec_updated(on_success, on_failure, timeout=0.03)
        assert excinfo.value.msg == "Fizz update failed"
        on_failure.assert_called_once_with()
        on_success.assert_not_called()

    def test_failed_lookup_is_a_non_match(self, factory: FakeFactory, make_module) -> None:
        def get_fizz(fizz_id: int) -> dict:
            if fizz_id == 1:
                raise _revert("Fizz node does not exist")
            return fizz_struct(wallet=OWNER)

        factory.contract(
            FIZZ_REGISTRY,
            responses={"getFizz": get_fizz},
            events={"PaymentAdded": [[{"fizzId": 1, "tokenAddress": TOKEN}], [{"fizzId": 2, "tokenAddress": TOKEN}]]},
        )
        payload = make_module().listen_to_add_accepted_payment(timeout=1)
        assert payload["fizz_id"] == 2
        (sub,) = factory.contracts[FIZZ_REGISTRY].subscriptions
        assert sub.close_calls == 1

    def test_failed_lookup_only_leads_to_timeout(self, factory: FakeFactory, make_module) -> None:
        factory.contract(
            FIZZ_REGISTRY,
            responses={"getFizz": _revert("Fizz node does not exist")},
            events={"PaymentAdded": [[{"fizzId": 1, "tokenAddress": TOKEN}]]},
        )
        on_failure = MagicMock()
        with pytest.raises(EventTimeoutError):
            make_module().listen_to_add_accepted_payment(on_failure=on_failure, timeout=0.03)
        on_failure.assert_called_once_with()

    def test_subscription_error_is_translated(self, factory: FakeFactory, make_module) -> None:
        registry = factory.contract(FIZZ_REGISTRY)
        registry.subscribe = MagicMock(side_effect=RpcError("filter not found", code=-32000))
        with pytest.raises(ContractError, match="filter not found"):
            make_module().listen_spec_updated(timeout=1)

    def test_from_block_reaches_subscription(self, factory: FakeFactory, make_module) -> None:
        factory.contract(
            FIZZ_REGISTRY,
            responses={"getFizz": lambda fizz_id: fizz_struct()},
            events={"FizzNodeRegionUpdated": [[{"fizzId": 4, "region": "eu-west"}]]},
        )
        make_module().listen_region_updated(timeout=1, from_block=16)
        (sub,) = factory.contracts[FIZZ_REGISTRY].subscriptions
        assert sub.from_block == 16

    def test_static_identity_watches_another_wallet(self, factory: FakeFactory, providers: FakeProviders) -> None:
        factory.contract(
            FIZZ_REGISTRY,
            responses={"getFizz": lambda fizz_id: fizz_struct(wallet=OTHER if fizz_id == 2 else OWNER)},
            events={"FizzNodeSpecUpdated": [[{"fizzId": 1, "spec": "a"}, {"fizzId": 2, "spec": "b"}]]},
        )
        module = FizzModule(factory, identity=static_identity(OTHER), providers=providers, poll_interval=0.001)

        payload = module.listen_spec_updated(timeout=1)

        assert payload == {"fizz_id": 2, "spec": "b", "wallet_address": OTHER}
        assert factory.signer_requests == 0

    def test_default_identity_is_signer(self, providers: FakeProviders) -> None:
        from eth_account import Account

        account = Account.create()
        factory = FakeFactory(private_key=account.key.hex())
        factory.contract(
            FIZZ_REGISTRY,
            events={"FizzNodeAdded": [[{"fizzId": 5, "walletAddress": account.address.lower()}]]},
        )
        module = FizzModule(factory, providers=providers, poll_interval=0.001)
        assert module.listen_to_fizz_created(timeout=1)["fizz_id"] == 5
