"""Tests for address validation and credential parsing."""

from __future__ import annotations

import json

import base58
import pytest
from solders.keypair import Keypair

from fundctl.domain.errors import CredentialError
from fundctl.infrastructure.keys import (
    derive_address,
    is_valid_address,
    looks_like_credential,
    parse_keypair,
)


class TestAddresses:
    def test_valid(self) -> None:
        assert is_valid_address(str(Keypair().pubkey()))

    @pytest.mark.parametrize("value", ["", "not-an-address", "0OIl" * 10])
    def test_invalid(self, value: str) -> None:
        assert not is_valid_address(value)


class TestCredentials:
    def test_base58_secret(self) -> None:
        kp = Keypair()
        secret = base58.b58encode(bytes(kp)).decode()
        assert parse_keypair(secret).pubkey() == kp.pubkey()

    def test_json_byte_array(self) -> None:
        kp = Keypair()
        secret = json.dumps(list(bytes(kp)))
        assert derive_address(secret) == str(kp.pubkey())

    def test_whitespace_is_stripped(self) -> None:
        kp = Keypair()
        secret = "  " + base58.b58encode(bytes(kp)).decode() + "\n"
        assert derive_address(secret) == str(kp.pubkey())

    @pytest.mark.parametrize("value", ["[1, 2, 3]", "[999]", "not base58 0OIl", "[\"a\"]"])
    def test_rejects_malformed(self, value: str) -> None:
        with pytest.raises(CredentialError):
            parse_keypair(value)

    def test_credential_error_is_value_error(self) -> None:
        with pytest.raises(ValueError):
            parse_keypair("[]")

    def test_looks_like_credential(self) -> None:
        assert looks_like_credential("[1,2,3]")
        assert looks_like_credential(base58.b58encode(bytes(Keypair())).decode())
        assert not looks_like_credential(str(Keypair().pubkey()))
