"""Domain layer: wallets, policy, transfer records, and run outcomes.

This layer depends only on stdlib and pydantic.
It must never import from services, infrastructure, commands, or config.
"""
