"""
Network configuration.

Values come from the process environment, after ~/.fizz/.env has been
loaded with python-dotenv (existing environment variables win).
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from .chain.errors import ConfigError
from .wallet import FIZZ_ENV

DEFAULT_RPC_URL = "http://127.0.0.1:8545"

FIZZ_REGISTRY = "FizzRegistry"
RESOURCE_REGISTRY_CPU = "ResourceRegistryCPU"
RESOURCE_REGISTRY_GPU = "ResourceRegistryGPU"
COMPUTE_LEASE = "ComputeLease"
PROVIDER_REGISTRY = "ProviderRegistry"

# logical contract name -> (NetworkConfig field, env var, ABI name)
CONTRACTS: dict[str, tuple[str, str, str]] = {
    FIZZ_REGISTRY: ("fizz_registry", "FIZZ_REGISTRY_ADDRESS", "FizzRegistry"),
    RESOURCE_REGISTRY_CPU: ("resource_registry_cpu", "RESOURCE_REGISTRY_CPU_ADDRESS", "ResourceRegistry"),
    RESOURCE_REGISTRY_GPU: ("resource_registry_gpu", "RESOURCE_REGISTRY_GPU_ADDRESS", "ResourceRegistry"),
    COMPUTE_LEASE: ("compute_lease", "COMPUTE_LEASE_ADDRESS", "ComputeLease"),
    PROVIDER_REGISTRY: ("provider_registry", "PROVIDER_REGISTRY_ADDRESS", "ProviderRegistry"),
}


@dataclass(frozen=True)
class NetworkConfig:
    rpc_url: str = DEFAULT_RPC_URL
    chain_id: Optional[int] = None
    fizz_registry: Optional[str] = None
    resource_registry_cpu: Optional[str] = None
    resource_registry_gpu: Optional[str] = None
    compute_lease: Optional[str] = None
    provider_registry: Optional[str] = None
    gas_limit: Optional[int] = None
    poll_interval: float = 2.0
    receipt_timeout: float = 120

    def address_for(self, contract_name: str) -> str:
        """
        Deployment address of a logical contract.

        Raises:
            ConfigError: If the contract is unknown or its address is unset
        """
        if contract_name not in CONTRACTS:
            raise ConfigError(f"Unknown contract: {contract_name}")
        attr, env_var, _ = CONTRACTS[contract_name]
        address = getattr(self, attr)
        if not address:
            raise ConfigError(f"{env_var} must be set to use {contract_name}.")
        return address


def _optional_int(value: Optional[str]) -> Optional[int]:
    if value is None or value == "":
        return None
    return int(value, 0)


def load_config(env_path: Optional[Path] = None) -> NetworkConfig:
    """Build a NetworkConfig from ~/.fizz/.env and the environment."""
    env_path = env_path or FIZZ_ENV
    if env_path.exists():
        load_dotenv(env_path, override=False)

    env = os.environ
    try:
        return NetworkConfig(
            rpc_url=env.get("FIZZ_RPC_URL", DEFAULT_RPC_URL),
            chain_id=_optional_int(env.get("FIZZ_CHAIN_ID")),
            fizz_registry=env.get("FIZZ_REGISTRY_ADDRESS"),
            resource_registry_cpu=env.get("RESOURCE_REGISTRY_CPU_ADDRESS"),
            resource_registry_gpu=env.get("RESOURCE_REGISTRY_GPU_ADDRESS"),
            compute_lease=env.get("COMPUTE_LEASE_ADDRESS"),
            provider_registry=env.get("PROVIDER_REGISTRY_ADDRESS"),
            gas_limit=_optional_int(env.get("FIZZ_GAS_LIMIT")),
            poll_interval=float(env.get("FIZZ_POLL_INTERVAL", "2.0")),
            receipt_timeout=float(env.get("FIZZ_RECEIPT_TIMEOUT", "120")),
        )
    except ValueError as exc:
        raise ConfigError(f"Invalid configuration value: {exc}") from exc
