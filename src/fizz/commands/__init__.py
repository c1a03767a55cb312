"""
Command implementations for the Fizz CLI.

Each module corresponds to a top-level command group:
- node:     Read, register and update Fizz nodes
- resource: Look up CPU / GPU resources
- lease:    List compute leases of a node
"""
