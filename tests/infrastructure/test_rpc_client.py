"""Tests for SolanaRpcClient against an httpx.MockTransport."""

from __future__ import annotations

import base64
import itertools
import json
from collections.abc import Callable
from datetime import UTC, datetime
from decimal import Decimal
from typing import Any

import base58
import httpx
import pytest
from solders.keypair import Keypair
from solders.pubkey import Pubkey
from solders.transaction import Transaction

from fundctl.config.settings import FundSettings
from fundctl.domain.errors import (
    ConfirmationTimeoutError,
    LedgerLookupError,
    SubmissionError,
)
from fundctl.infrastructure.rpc import (
    HELIUS_RPC_URL,
    MAINNET_RPC_URL,
    SolanaRpcClient,
    create_ledger_client,
    mask_secret,
    resolve_rpc_url,
)

API_KEY = "abc123secret"
URL = f"https://rpc.example/?api-key={API_KEY}"
BLOCKHASH = "11111111111111111111111111111111"

Handler = Callable[[str, list[Any]], Any]


def _client(handler: Handler, **kwargs: Any) -> tuple[SolanaRpcClient, list[dict[str, Any]]]:
    """Client whose every JSON-RPC call is answered by *handler(method, params)*."""
    requests: list[dict[str, Any]] = []

    def respond(request: httpx.Request) -> httpx.Response:
        payload = json.loads(request.content)
        requests.append(payload)
        result = handler(payload["method"], payload["params"])
        if isinstance(result, httpx.Response):
            return result
        if isinstance(result, dict) and "error" in result:
            return httpx.Response(200, json={"jsonrpc": "2.0", "id": payload["id"], **result})
        return httpx.Response(
            200, json={"jsonrpc": "2.0", "id": payload["id"], "result": result}
        )

    kwargs.setdefault("sleep", lambda _s: None)
    client = SolanaRpcClient(
        URL, api_key=API_KEY, transport=httpx.MockTransport(respond), **kwargs
    )
    return client, requests


class TestEndpoint:
    def test_explicit_url_wins(self) -> None:
        assert resolve_rpc_url("https://x", "key") == "https://x"

    def test_helius_when_key(self) -> None:
        assert resolve_rpc_url(None, "key") == HELIUS_RPC_URL.format(api_key="key")

    def test_public_default(self) -> None:
        assert resolve_rpc_url(None, None) == MAINNET_RPC_URL

    def test_mask_secret(self) -> None:
        assert mask_secret(URL, API_KEY) == "https://rpc.example/?api-key=KEY_HIDDEN"
        assert mask_secret(URL, None) == URL

    def test_display_url_masked(self) -> None:
        client, _ = _client(lambda m, p: None)
        assert API_KEY not in client.display_url

    def test_unknown_commitment(self) -> None:
        with pytest.raises(ValueError):
            SolanaRpcClient(URL, commitment="eventually")

    def test_create_from_settings(self) -> None:
        settings = FundSettings.from_cli()
        client = create_ledger_client(settings)
        try:
            assert client.display_url == MAINNET_RPC_URL
        finally:
            client.close()


class TestReads:
    def test_get_balance(self) -> None:
        client, requests = _client(lambda m, p: {"context": {"slot": 1}, "value": 1_500_000_000})
        assert client.get_balance("addr") == Decimal("1.5")
        assert requests[0]["method"] == "getBalance"
        assert requests[0]["params"][1] == {"commitment": "confirmed"}

    def test_rpc_error_becomes_lookup_error(self) -> None:
        client, _ = _client(lambda m, p: {"error": {"code": -32602, "message": "Invalid param"}})
        with pytest.raises(LedgerLookupError, match="Invalid param"):
            client.get_balance("addr")

    def test_http_error_is_masked(self) -> None:
        client, _ = _client(lambda m, p: httpx.Response(500, text="boom"))
        with pytest.raises(LedgerLookupError) as info:
            client.get_balance("addr")
        assert API_KEY not in str(info.value)

    def test_get_recent_transactions(self) -> None:
        rows = [
            {"signature": "s1", "blockTime": 1_700_000_000, "err": None},
            {"signature": "s2", "blockTime": None, "err": {"InstructionError": [0, "x"]}},
        ]
        client, requests = _client(lambda m, p: rows)
        summaries = client.get_recent_transactions("addr", 25)
        assert requests[0]["params"][1]["limit"] == 25
        assert summaries[0].signature == "s1"
        assert summaries[0].block_time == datetime.fromtimestamp(1_700_000_000, tz=UTC)
        assert not summaries[0].failed
        assert summaries[1].block_time is None
        assert summaries[1].failed

    def test_malformed_history(self) -> None:
        client, _ = _client(lambda m, p: [{"blockTime": 1}])
        with pytest.raises(LedgerLookupError):
            client.get_recent_transactions("addr", 10)

    def test_transaction_detail_with_loaded_addresses(self) -> None:
        tx = {
            "blockTime": 1_700_000_000,
            "meta": {
                "err": None,
                "preBalances": [2_000_000_000, 0, 1],
                "postBalances": [1_800_000_000, 200_000_000, 1],
                "loadedAddresses": {"writable": [], "readonly": ["L1"]},
            },
            "transaction": {"message": {"accountKeys": ["D", "R"]}},
        }
        client, requests = _client(lambda m, p: tx)
        detail = client.get_transaction_detail("sig")
        assert requests[0]["params"][1]["maxSupportedTransactionVersion"] == 0
        assert detail is not None
        assert detail.success
        assert [p.address for p in detail.participants] == ["D", "R", "L1"]
        recipient = detail.participant("R")
        assert recipient is not None
        assert recipient.delta == Decimal("0.2")

    def test_transaction_not_found(self) -> None:
        client, _ = _client(lambda m, p: None)
        assert client.get_transaction_detail("sig") is None

    def test_transaction_without_meta(self) -> None:
        client, _ = _client(lambda m, p: {"blockTime": 1, "meta": None, "transaction": {}})
        detail = client.get_transaction_detail("sig")
        assert detail is not None
        assert not detail.success
        assert detail.participants == ()

    def test_failed_transaction(self) -> None:
        tx = {
            "blockTime": 1,
            "meta": {"err": {"x": 1}, "preBalances": [1], "postBalances": [0]},
            "transaction": {"message": {"accountKeys": ["D"]}},
        }
        client, _ = _client(lambda m, p: tx)
        detail = client.get_transaction_detail("sig")
        assert detail is not None
        assert not detail.success


class TestSubmitTransfer:
    @staticmethod
    def _secret(kp: Keypair) -> str:
        return base58.b58encode(bytes(kp)).decode()

    def test_sends_and_confirms(self) -> None:
        donor = Keypair()
        destination = str(Keypair().pubkey())
        statuses = iter(["processed", "confirmed"])
        sleeps: list[float] = []

        def handler(method: str, params: list[Any]) -> Any:
            if method == "getLatestBlockhash":
                return {"value": {"blockhash": BLOCKHASH, "lastValidBlockHeight": 10}}
            if method == "sendTransaction":
                return "5ig"
            if method == "getSignatureStatuses":
                return {"value": [{"err": None, "confirmationStatus": next(statuses)}]}
            raise AssertionError(method)

        client, requests = _client(handler, sleep=sleeps.append, poll_interval=0.25)
        receipt = client.submit_transfer(self._secret(donor), destination, Decimal("0.05"))

        assert receipt.signature == "5ig"
        assert receipt.from_address == str(donor.pubkey())
        assert sleeps == [0.25]
        sent = next(r for r in requests if r["method"] == "sendTransaction")
        tx = Transaction.from_bytes(base64.b64decode(sent["params"][0]))
        assert Pubkey.from_string(destination) in tx.message.account_keys

    def test_landed_with_error(self) -> None:
        def handler(method: str, params: list[Any]) -> Any:
            if method == "getLatestBlockhash":
                return {"value": {"blockhash": BLOCKHASH}}
            if method == "sendTransaction":
                return "5ig"
            return {"value": [{"err": {"InsufficientFundsForRent": 0}}]}

        client, _ = _client(handler)
        with pytest.raises(SubmissionError, match="failed"):
            client.submit_transfer(self._secret(Keypair()), str(Keypair().pubkey()), Decimal(1))

    def test_confirmation_timeout(self) -> None:
        ticks = itertools.count(0, 25)

        def handler(method: str, params: list[Any]) -> Any:
            if method == "getLatestBlockhash":
                return {"value": {"blockhash": BLOCKHASH}}
            if method == "sendTransaction":
                return "5ig"
            return {"value": [None]}

        client, _ = _client(handler, clock=lambda: float(next(ticks)), confirm_timeout=60)
        with pytest.raises(ConfirmationTimeoutError):
            client.submit_transfer(self._secret(Keypair()), str(Keypair().pubkey()), Decimal(1))

    def test_timeout_is_a_submission_error(self) -> None:
        assert issubclass(ConfirmationTimeoutError, SubmissionError)

    def test_send_rejected(self) -> None:
        def handler(method: str, params: list[Any]) -> Any:
            if method == "getLatestBlockhash":
                return {"value": {"blockhash": BLOCKHASH}}
            return {"error": {"code": -32002, "message": "Transaction simulation failed"}}

        client, _ = _client(handler)
        with pytest.raises(SubmissionError, match="simulation failed"):
            client.submit_transfer(self._secret(Keypair()), str(Keypair().pubkey()), Decimal(1))

    def test_bad_credential_makes_no_request(self) -> None:
        client, requests = _client(lambda m, p: None)
        with pytest.raises(SubmissionError):
            client.submit_transfer("[1,2,3]", str(Keypair().pubkey()), Decimal(1))
        assert requests == []

    def test_dust_amount_rejected(self) -> None:
        client, requests = _client(lambda m, p: None)
        with pytest.raises(SubmissionError, match="zero lamports"):
            client.submit_transfer(
                self._secret(Keypair()), str(Keypair().pubkey()), Decimal("0.0000000001")
            )
        assert requests == []
