"""
Signer and account identity for the Fizz SDK.

The signer key is an Ethereum-compatible ECDSA/secp256k1 key used to sign
registry transactions. Keys are stored in ~/.fizz/.env as PRIVATE_KEY
(hex format) or provided through the environment.

The "active account" used to filter contract events comes from an
account-identity provider: any zero-argument callable that returns an
address. By default it is the signer's own address.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Callable, Optional, Union

from dotenv import load_dotenv
from eth_account import Account
from eth_account.signers.local import LocalAccount

from .chain.errors import ConfigError

# Default config directory
FIZZ_DIR = Path.home() / ".fizz"
FIZZ_ENV = FIZZ_DIR / ".env"

AccountIdentity = Callable[[], str]


def load_private_key(env_path: Optional[Path] = None) -> str:
    """
    Load private key from .env file or environment.

    Args:
        env_path: Path to .env file (default: ~/.fizz/.env)

    Returns:
        0x-prefixed hex private key

    Raises:
        ConfigError: If PRIVATE_KEY is not set
    """
    env_path = env_path or FIZZ_ENV

    if env_path.exists():
        load_dotenv(env_path, override=False)

    private_key = os.environ.get("PRIVATE_KEY")
    if not private_key:
        raise ConfigError(
            f"PRIVATE_KEY not found. Set PRIVATE_KEY in the environment or in {env_path}"
        )

    # Ensure 0x prefix
    if not private_key.startswith("0x"):
        private_key = "0x" + private_key

    return private_key


def get_account(private_key: Optional[str] = None) -> LocalAccount:
    """
    Get an eth-account LocalAccount from a private key.

    Args:
        private_key: 0x-prefixed hex private key.
                     If None, loads from .env.
    """
    if private_key is None:
        private_key = load_private_key()
    return Account.from_key(private_key)


def get_address(private_key: Optional[str] = None) -> str:
    """Checksummed address for a private key (loaded from .env if None)."""
    return get_account(private_key).address


def signer_identity(private_key: Union[str, Callable[[], str], None] = None) -> AccountIdentity:
    """
    Identity provider answering with the signer's address.

    Args:
        private_key: 0x-prefixed hex key, a callable returning one (resolved
                     on each call), or None to load from .env
    """

    def identity() -> str:
        key = private_key() if callable(private_key) else private_key
        return get_address(key)

    return identity


def static_identity(address: str) -> AccountIdentity:
    """Identity provider pinned to one address (watch-only use)."""
    return lambda: address


def same_address(a: Optional[str], b: Optional[str]) -> bool:
    """Case-insensitive address comparison; None never matches."""
    if not a or not b:
        return False
    return str(a).lower() == str(b).lower()
