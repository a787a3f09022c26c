"""Infrastructure layer: ledger RPC client, signing keys, roster files.

This layer depends on stdlib and third-party libs (httpx, solders, base58).
It must never import from services, commands, or output.
The service layer drives the core logic through these adapters.
"""
