__version__ = "0.1.0"

__all__ = [
    # Facades
    "FizzModule",
    "ProviderModule",
    # Records
    "Lease",
    "Node",
    "NodeParams",
    "Provider",
    "Resource",
    "region_from_spec",
    # Configuration
    "NetworkConfig",
    "load_config",
    # Contracts
    "Contract",
    "ContractFactory",
    "TransactionResult",
    # Events
    "LogSubscription",
    "wait_for_event",
    # Errors
    "FizzError",
    "ConfigError",
    "RpcError",
    "ContractError",
    "TransactionFailedError",
    "EventTimeoutError",
    "translate_error",
    # Identity
    "signer_identity",
    "static_identity",
]

from .chain.contract import Contract, ContractFactory
from .chain.errors import (
    ConfigError,
    ContractError,
    EventTimeoutError,
    FizzError,
    RpcError,
    TransactionFailedError,
    translate_error,
)
from .chain.events import LogSubscription, wait_for_event
from .chain.tx import TransactionResult
from .config import NetworkConfig, load_config
from .models import Lease, Node, NodeParams, Provider, Resource, region_from_spec
from .modules import FizzModule, ProviderModule
from .wallet import signer_identity, static_identity
