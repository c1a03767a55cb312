"""
ABI Loader - Loads contract ABIs shipped with the package.

Single source of truth: fizz/chain/abis/<ContractName>.json (artifact
format, ABI under the "abi" key). Also holds the selector / canonical type
helpers used by the RPC, transaction and event layers.
"""

from __future__ import annotations

import json
from functools import lru_cache
from pathlib import Path
from typing import Any, Optional

from eth_abi import decode, encode
from eth_hash.auto import keccak

ABI_DIR = Path(__file__).resolve().parent / "abis"


def keccak256(data: bytes) -> bytes:
    """Compute Keccak-256 (NOT the same as hashlib.sha3_256 / NIST SHA-3)."""
    return keccak(data)


@lru_cache(maxsize=16)
def load_abi(contract_name: str) -> list[dict[str, Any]]:
    """
    Load ABI for a contract from the packaged artifacts.

    Args:
        contract_name: Contract name (e.g., "FizzRegistry", "ComputeLease")

    Returns:
        ABI as a list of dicts

    Raises:
        FileNotFoundError: If ABI file not found
    """
    abi_path = ABI_DIR / f"{contract_name}.json"

    if not abi_path.exists():
        raise FileNotFoundError(f"ABI not found: {abi_path}")

    with abi_path.open("r", encoding="utf-8") as f:
        artifact = json.load(f)

    return artifact["abi"]


def _find_entry(abi: list, entry_type: str, name: str) -> dict[str, Any]:
    for entry in abi:
        if entry.get("type") == entry_type and entry.get("name") == name:
            return entry
    raise ValueError(f"{entry_type.capitalize()} {name} not found in ABI")


def find_function(abi: list, name: str) -> dict[str, Any]:
    return _find_entry(abi, "function", name)


def find_event(abi: list, name: str) -> dict[str, Any]:
    return _find_entry(abi, "event", name)


def canonical_type(param: dict[str, Any]) -> str:
    """
    Canonical ABI type for a parameter, expanding structs.

    ``{"type": "tuple[]", "components": [uint256, string]}`` becomes
    ``"(uint256,string)[]"``.
    """
    abi_type = param["type"]
    if not abi_type.startswith("tuple"):
        return abi_type
    inner = ",".join(canonical_type(c) for c in param.get("components", []))
    return f"({inner}){abi_type[len('tuple'):]}"


def input_types(entry: dict[str, Any]) -> list[str]:
    return [canonical_type(p) for p in entry.get("inputs", [])]


def signature(entry: dict[str, Any]) -> str:
    """Solidity signature, e.g. ``getFizz(uint256)``."""
    return f"{entry['name']}({','.join(input_types(entry))})"


def selector(entry: dict[str, Any]) -> bytes:
    """First 4 bytes of keccak256 of the function or error signature."""
    return keccak256(signature(entry).encode("utf-8"))[:4]


def event_topic(entry: dict[str, Any]) -> str:
    """topic0 for an event, 0x-prefixed hex."""
    return "0x" + keccak256(signature(entry).encode("utf-8")).hex()


def encode_call(abi: list, function_name: str, args: list) -> str:
    """
    ABI-encode a function call.

    Args:
        abi: Contract ABI
        function_name: Function name to call
        args: Function arguments (structs as tuples, in component order)

    Returns:
        0x-prefixed hex encoded calldata
    """
    func = find_function(abi, function_name)
    types = input_types(func)
    encoded_args = encode(types, args) if args else b""
    return "0x" + selector(func).hex() + encoded_args.hex()


def hex_to_bytes(data: str) -> bytes:
    return bytes.fromhex(data[2:] if data.startswith("0x") else data)


def _named(param: dict[str, Any], value: Any) -> Any:
    """Attach component names to a decoded value (structs become dicts)."""
    abi_type = param["type"]
    components = param.get("components")
    if not components or not abi_type.startswith("tuple"):
        return value
    if abi_type == "tuple":
        return {
            (c.get("name") or str(i)): _named(c, v)
            for i, (c, v) in enumerate(zip(components, value))
        }
    # Array of structs: strip one array dimension and recurse
    element = dict(param, type=abi_type[: abi_type.rindex("[")])
    return [_named(element, v) for v in value]


def decode_named(params: list[dict[str, Any]], data: bytes) -> dict[str, Any]:
    """
    Decode ``data`` against ``params``, keyed by parameter name.

    Unnamed parameters are keyed by their position.
    """
    types = [canonical_type(p) for p in params]
    values = decode(types, data)
    return {
        (p.get("name") or str(i)): _named(p, v)
        for i, (p, v) in enumerate(zip(params, values))
    }


def decode_result(abi: list, function_name: str, data: str) -> Optional[Any]:
    """
    ABI-decode a function call result by output name.

    A single output is returned unwrapped (a dict for a struct, a list of
    dicts for a struct array). Multiple outputs are returned as a dict
    keyed by output name, which is how public mapping getters come back.
    """
    func = find_function(abi, function_name)
    outputs = func.get("outputs", [])
    if not outputs:
        return None

    decoded = decode_named(outputs, hex_to_bytes(data))
    if len(outputs) == 1:
        return next(iter(decoded.values()))
    return decoded
