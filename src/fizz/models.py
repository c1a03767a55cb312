"""
Domain records for the Fizz registries.

Every record is a read-only projection of on-chain state, built from a
contract result keyed by ABI output name (see ``chain.abi.decode_result``).
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any

REGION_FIELD_INDEX = 7


def region_from_spec(spec: str | None) -> str:
    """
    Region code stored in the node spec string.

    The node spec string is comma-separated and the region is field 7; a shorter or
    empty spec has no region.
    """
    if not spec:
        return ""
    parts = spec.split(",")
    if len(parts) <= REGION_FIELD_INDEX:
        return ""
    return parts[REGION_FIELD_INDEX]


@dataclass(frozen=True)
class NodeParams:
    """Registration input, encoded as the registry's FizzParams struct."""

    provider_id: int
    spec: str
    payments_accepted: tuple[str, ...] = ()
    reward_wallet: str = "0x" + "0" * 40

    def to_abi(self) -> tuple:
        return (self.provider_id, self.spec, list(self.payments_accepted), self.reward_wallet)


@dataclass(frozen=True)
class Node:
    fizz_id: int
    provider_id: int
    spec: str
    region: str
    payments_accepted: tuple[str, ...]
    status: int
    join_timestamp: int
    wallet_address: str
    reward_wallet: str

    @classmethod
    def from_chain(cls, data: dict[str, Any], fizz_id: int | None = None) -> "Node":
        """
        Build from a getFizz / getAllFizzNodes struct.

        getFizz does not return the id, so callers pass the one they asked for.
        """
        spec = data["spec"]
        return cls(
            fizz_id=data["fizzId"] if fizz_id is None else fizz_id,
            provider_id=data["providerId"],
            spec=spec,
            region=region_from_spec(spec),
            payments_accepted=tuple(data["paymentsAccepted"]),
            status=int(data["status"]),
            join_timestamp=data["joinTimestamp"],
            wallet_address=data["walletAddress"],
            reward_wallet=data["rewardWallet"],
        )

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class Resource:
    name: str
    tier: str
    multiplier: int

    @classmethod
    def from_chain(cls, data: dict[str, Any]) -> "Resource":
        return cls(name=data["name"], tier=data["tier"], multiplier=data["multiplier"])

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class Lease:
    lease_id: int
    fizz_id: int
    request_id: int
    resource_attributes: bytes
    accepted_price: int
    provider_address: str
    tenant_address: str
    start_block: int
    start_time: int
    end_time: int
    state: int

    @classmethod
    def from_chain(cls, data: dict[str, Any]) -> "Lease":
        return cls(
            lease_id=data["leaseId"],
            fizz_id=data["fizzId"],
            request_id=data["requestId"],
            resource_attributes=data["resourceAttributes"],
            accepted_price=data["acceptedPrice"],
            provider_address=data["providerAddress"],
            tenant_address=data["tenantAddress"],
            start_block=data["startBlock"],
            start_time=data["startTime"],
            end_time=data["endTime"],
            state=int(data["state"]),
        )

    def to_dict(self) -> dict[str, Any]:
        result = asdict(self)
        result["resource_attributes"] = "0x" + self.resource_attributes.hex()
        return result


@dataclass(frozen=True)
class Provider:
    provider_id: int
    name: str
    region: str
    wallet_address: str
    payments_accepted: tuple[str, ...]
    spec: str
    status: int
    join_timestamp: int
    reward_wallet: str

    @classmethod
    def from_chain(cls, data: dict[str, Any], provider_id: int) -> "Provider":
        return cls(
            provider_id=provider_id,
            name=data["name"],
            region=data["region"],
            wallet_address=data["walletAddress"],
            payments_accepted=tuple(data["paymentsAccepted"]),
            spec=data["spec"],
            status=int(data["status"]),
            join_timestamp=data["joinTimestamp"],
            reward_wallet=data["rewardWallet"],
        )


__all__ = [
    "Lease",
    "Node",
    "NodeParams",
    "Provider",
    "Resource",
    "region_from_spec",
]
