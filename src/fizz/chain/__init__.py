"""
Chain - On-chain interaction layer for the Fizz SDK.

Provides JSON-RPC access, ABI management, transaction and event-log
utilities, contract handles and error translation for the Fizz registries.

Uses httpx + eth-account + eth-abi instead of the heavyweight web3.py.
"""
