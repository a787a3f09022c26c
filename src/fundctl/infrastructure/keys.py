"""Address validation and signing-credential parsing.

Two credential formats are accepted, matching what common wallet tools
export: a JSON byte array (``[12,34,...]``, 64 bytes) or a base58
encoded secret key.
"""

from __future__ import annotations

import json

import base58
from solders.keypair import Keypair
from solders.pubkey import Pubkey

from fundctl.domain.errors import CredentialError

# Base58 public keys are 32-44 chars; anything this long without spaces
# is a secret key rather than an address.
_CREDENTIAL_MIN_LENGTH = 60


def is_valid_address(address: str) -> bool:
    """Check whether *address* is a well-formed base58 public key."""
    try:
        Pubkey.from_string(address)
    except ValueError:
        return False
    return True


def looks_like_credential(value: str) -> bool:
    """Heuristic used when a roster column has no recognizable header."""
    text = value.strip()
    return text.startswith("[") or (len(text) > _CREDENTIAL_MIN_LENGTH and " " not in text)


def parse_keypair(credential: str) -> Keypair:
    """Parse *credential* into a Keypair.

    Raises:
        CredentialError: If the value is in neither supported format.
    """
    text = credential.strip()
    try:
        if text.startswith("[") and text.endswith("]"):
            raw = bytes(json.loads(text))
        else:
            raw = base58.b58decode(text)
        return Keypair.from_bytes(raw)
    except (ValueError, TypeError) as exc:
        msg = f"Invalid private key format: {exc}"
        raise CredentialError(msg) from exc


def derive_address(credential: str) -> str:
    """Public address for the keypair encoded in *credential*."""
    return str(parse_keypair(credential).pubkey())
