"""Solana JSON-RPC implementation of :class:`LedgerClient` over httpx.

Reads map to ``getBalance``, ``getSignaturesForAddress`` and
``getTransaction``. Transfers are built and signed with ``solders``,
sent with ``sendTransaction`` and confirmed by polling
``getSignatureStatuses`` until the configured commitment is reached.

Every transport, protocol, and payload-shape failure is translated into
the ledger error contract (lookup vs. submission), so callers never see
httpx exceptions.
"""

from __future__ import annotations

import base64
import itertools
import logging
import time
from collections.abc import Callable
from datetime import UTC, datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Any

import httpx
from solders.hash import Hash
from solders.message import Message
from solders.pubkey import Pubkey
from solders.system_program import TransferParams, transfer
from solders.transaction import Transaction

from fundctl.domain.errors import (
    ConfirmationTimeoutError,
    CredentialError,
    LedgerLookupError,
    SubmissionError,
)
from fundctl.domain.transfers import (
    Participant,
    TransactionDetail,
    TransactionSummary,
    TransferReceipt,
)
from fundctl.domain.units import from_lamports, to_lamports
from fundctl.infrastructure.keys import parse_keypair

if TYPE_CHECKING:
    from fundctl.config.settings import FundSettings

logger = logging.getLogger(__name__)

MAINNET_RPC_URL = "https://api.mainnet-beta.solana.com"
HELIUS_RPC_URL = "https://mainnet.helius-rpc.com/?api-key={api_key}"

_COMMITMENT_RANK: dict[str, int] = {"processed": 1, "confirmed": 2, "finalized": 3}


class RpcError(Exception):
    """JSON-RPC error object returned by the node."""

    def __init__(self, method: str, error: Any) -> None:
        if isinstance(error, dict):
            detail = f"{error.get('message', 'unknown error')} (code {error.get('code')})"
        else:
            detail = str(error)
        super().__init__(f"{method}: {detail}")
        self.method = method
        self.error = error


# ---------------------------------------------------------------------------
# Endpoint resolution
# ---------------------------------------------------------------------------


def resolve_rpc_url(rpc_url: str | None, helius_api_key: str | None) -> str:
    """Explicit URL wins, then Helius when a key is set, then the public endpoint."""
    if rpc_url:
        return rpc_url
    if helius_api_key:
        return HELIUS_RPC_URL.format(api_key=helius_api_key)
    return MAINNET_RPC_URL


def mask_secret(text: str, secret: str | None) -> str:
    """Replace *secret* in *text* with a placeholder."""
    if not secret:
        return text
    return text.replace(secret, "KEY_HIDDEN")


def _block_time(value: Any) -> datetime | None:
    if value is None:
        return None
    return datetime.fromtimestamp(int(value), tz=UTC)


def _account_key(key: Any) -> str:
    # jsonParsed encoding wraps keys in objects; json encoding uses bare strings.
    if isinstance(key, dict):
        return str(key["pubkey"])
    return str(key)


# ---------------------------------------------------------------------------
# Client
# ---------------------------------------------------------------------------


class SolanaRpcClient:
    """Blocking JSON-RPC ledger client.

    Parameters:
        url: RPC endpoint (may embed an API key; it is masked in logs).
        commitment: ``processed``, ``confirmed`` or ``finalized``.
        timeout: Per-request HTTP timeout in seconds.
        confirm_timeout: How long to wait for a sent transfer to confirm.
        poll_interval: Delay between signature status polls.
        api_key: Secret to mask in log output.
        transport: Optional httpx transport (tests use ``httpx.MockTransport``).
        sleep: Sleep function used between status polls.
        clock: Monotonic clock used for the confirmation deadline.
    """

    def __init__(
        self,
        url: str,
        *,
        commitment: str = "confirmed",
        timeout: float = 30.0,
        confirm_timeout: float = 60.0,
        poll_interval: float = 1.0,
        api_key: str | None = None,
        transport: httpx.BaseTransport | None = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if commitment not in _COMMITMENT_RANK:
            msg = f"Unknown commitment level: {commitment!r}"
            raise ValueError(msg)
        self._url = url
        self._commitment = commitment
        self._confirm_timeout = confirm_timeout
        self._poll_interval = poll_interval
        self._api_key = api_key
        self._sleep = sleep
        self._clock = clock
        self._ids = itertools.count(1)
        self._http = httpx.Client(timeout=timeout, transport=transport)

    @property
    def display_url(self) -> str:
        return mask_secret(self._url, self._api_key)

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> SolanaRpcClient:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    def _call(self, method: str, params: list[Any]) -> Any:
        payload = {"jsonrpc": "2.0", "id": next(self._ids), "method": method, "params": params}
        logger.debug("rpc %s -> %s", method, self.display_url)
        response = self._http.post(self._url, json=payload)
        response.raise_for_status()
        body = response.json()
        if body.get("error"):
            raise RpcError(method, body["error"])
        return body.get("result")

    def _lookup(self, method: str, params: list[Any], *, subject: str) -> Any:
        try:
            return self._call(method, params)
        except (httpx.HTTPError, RpcError, ValueError) as exc:
            msg = mask_secret(f"{method} failed for {subject}: {exc}", self._api_key)
            raise LedgerLookupError(msg) from exc

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_balance(self, address: str) -> Decimal:
        result = self._lookup(
            "getBalance", [address, {"commitment": self._commitment}], subject=address
        )
        try:
            return from_lamports(int(result["value"]))
        except (KeyError, TypeError, ValueError) as exc:
            msg = f"getBalance returned an unexpected payload for {address}"
            raise LedgerLookupError(msg) from exc

    def get_recent_transactions(self, address: str, limit: int) -> list[TransactionSummary]:
        result = self._lookup(
            "getSignaturesForAddress",
            [address, {"limit": limit, "commitment": self._commitment}],
            subject=address,
        )
        try:
            return [
                TransactionSummary(
                    signature=str(entry["signature"]),
                    block_time=_block_time(entry.get("blockTime")),
                    failed=entry.get("err") is not None,
                )
                for entry in result or []
            ]
        except (KeyError, TypeError, ValueError, OverflowError) as exc:
            msg = f"getSignaturesForAddress returned an unexpected payload for {address}"
            raise LedgerLookupError(msg) from exc

    def get_transaction_detail(self, signature: str) -> TransactionDetail | None:
        result = self._lookup(
            "getTransaction",
            [
                signature,
                {
                    "encoding": "json",
                    "maxSupportedTransactionVersion": 0,
                    "commitment": self._commitment,
                },
            ],
            subject=signature,
        )
        if result is None:
            return None
        try:
            return self._parse_transaction(signature, result)
        except (KeyError, TypeError, ValueError, OverflowError) as exc:
            msg = f"getTransaction returned an unexpected payload for {signature}"
            raise LedgerLookupError(msg) from exc

    @staticmethod
    def _parse_transaction(signature: str, result: dict[str, Any]) -> TransactionDetail:
        block_time = _block_time(result.get("blockTime"))
        meta = result.get("meta")
        if meta is None:
            # Without meta there is no status and no balances: never qualifying.
            return TransactionDetail(signature=signature, success=False, block_time=block_time)

        message = result["transaction"]["message"]
        keys = [_account_key(k) for k in message.get("accountKeys") or []]
        loaded = meta.get("loadedAddresses") or {}
        keys.extend(str(k) for k in loaded.get("writable", []))
        keys.extend(str(k) for k in loaded.get("readonly", []))

        pre = meta.get("preBalances") or []
        post = meta.get("postBalances") or []
        participants: tuple[Participant, ...] = ()
        if len(pre) == len(post) and len(keys) >= len(pre):
            participants = tuple(
                Participant(
                    address=address,
                    pre_balance=from_lamports(int(before)),
                    post_balance=from_lamports(int(after)),
                )
                for address, before, after in zip(keys, pre, post, strict=False)
            )
        return TransactionDetail(
            signature=signature,
            success=meta.get("err") is None,
            participants=participants,
            block_time=block_time,
        )

    # ------------------------------------------------------------------
    # Transfers
    # ------------------------------------------------------------------

    def submit_transfer(
        self, from_credential: str, to_address: str, amount: Decimal
    ) -> TransferReceipt:
        try:
            keypair = parse_keypair(from_credential)
            destination = Pubkey.from_string(to_address)
        except (CredentialError, ValueError) as exc:
            raise SubmissionError(f"Cannot build transfer to {to_address}: {exc}") from exc

        lamports = to_lamports(amount)
        if lamports <= 0:
            raise SubmissionError(f"Transfer amount {amount} rounds to zero lamports")

        try:
            latest = self._call("getLatestBlockhash", [{"commitment": self._commitment}])
            blockhash = Hash.from_string(latest["value"]["blockhash"])
            instruction = transfer(
                TransferParams(
                    from_pubkey=keypair.pubkey(), to_pubkey=destination, lamports=lamports
                )
            )
            message = Message.new_with_blockhash([instruction], keypair.pubkey(), blockhash)
            tx = Transaction([keypair], message, blockhash)
            encoded = base64.b64encode(bytes(tx)).decode("ascii")
            signature = str(
                self._call(
                    "sendTransaction",
                    [encoded, {"encoding": "base64", "preflightCommitment": self._commitment}],
                )
            )
        except (httpx.HTTPError, RpcError, KeyError, TypeError, ValueError) as exc:
            msg = mask_secret(f"Transfer to {to_address} failed: {exc}", self._api_key)
            raise SubmissionError(msg) from exc

        self._await_confirmation(signature)
        return TransferReceipt(
            signature=signature,
            from_address=str(keypair.pubkey()),
            to_address=to_address,
            amount=amount,
        )

    def _await_confirmation(self, signature: str) -> None:
        """Poll until *signature* reaches the configured commitment."""
        target = _COMMITMENT_RANK[self._commitment]
        deadline = self._clock() + self._confirm_timeout
        while True:
            status: dict[str, Any] | None = None
            try:
                result = self._call("getSignatureStatuses", [[signature]])
                status = (result.get("value") or [None])[0]
            except (httpx.HTTPError, RpcError, AttributeError, ValueError) as exc:
                logger.debug("status poll for %s failed: %s", signature, exc)

            if status is not None:
                if status.get("err") is not None:
                    raise SubmissionError(f"Transaction {signature} failed: {status['err']}")
                reached = _COMMITMENT_RANK.get(str(status.get("confirmationStatus")), 0)
                if reached >= target:
                    return

            if self._clock() >= deadline:
                msg = (
                    f"Transaction {signature} not {self._commitment} "
                    f"after {self._confirm_timeout:.0f}s"
                )
                raise ConfirmationTimeoutError(msg)
            self._sleep(self._poll_interval)


def create_ledger_client(settings: FundSettings) -> SolanaRpcClient:
    """Build the RPC client described by the ``[ledger]`` settings section."""
    ledger = settings.ledger
    url = resolve_rpc_url(ledger.rpc_url, ledger.helius_api_key)
    return SolanaRpcClient(
        url,
        commitment=ledger.commitment,
        timeout=ledger.timeout,
        confirm_timeout=ledger.confirm_timeout,
        poll_interval=ledger.poll_interval,
        api_key=ledger.helius_api_key,
    )
