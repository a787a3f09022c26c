"""Roster loading: donor and recipient wallet lists from JSON or CSV files.

All format-specific guessing lives here. Each format strategy turns a
file into raw ``(address, credential)`` entries; :func:`_normalize` then
derives missing addresses from credentials, validates, de-duplicates and
returns plain :class:`Donor` / :class:`Recipient` lists.

Malformed entries are discarded with a warning. A file that yields no
valid wallet raises :class:`NoValidWalletsError`.
"""

from __future__ import annotations

import csv
import json
import logging
from collections.abc import Iterator
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Protocol

from fundctl.domain.errors import CredentialError, NoValidWalletsError, RosterLoadError
from fundctl.domain.types import WalletRole
from fundctl.domain.wallets import Donor, Recipient
from fundctl.infrastructure.keys import derive_address, is_valid_address, looks_like_credential

logger = logging.getLogger(__name__)

ADDRESS_COLUMNS: tuple[str, ...] = (
    "address",
    "wallet",
    "wallet_address",
    "public_key",
    "publicKey",
    "walletAddress",
    "Address",
    "Wallet",
    "PublicKey",
)

CREDENTIAL_COLUMNS: tuple[str, ...] = (
    "private_key",
    "privateKey",
    "secret",
    "secretKey",
    "secret_key",
    "key",
    "PrivateKey",
    "Private_Key",
)


@dataclass(frozen=True)
class RawEntry:
    """One unvalidated roster row."""

    origin: str
    address: str | None = None
    credential: str | None = field(default=None, repr=False)


class RosterFormat(Protocol):
    """Strategy that reads a roster file into raw entries."""

    def read(self, path: Path, warnings: list[str]) -> Iterator[RawEntry]: ...


# ---------------------------------------------------------------------------
# Format strategies
# ---------------------------------------------------------------------------


def _first_value(row: dict[str, Any], columns: tuple[str, ...]) -> str | None:
    for col in columns:
        value = row.get(col)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None


class JsonRosterFormat:
    """An array of address strings, or of objects with ``address`` and a key field."""

    def read(self, path: Path, warnings: list[str]) -> Iterator[RawEntry]:
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
            msg = f"Failed to parse JSON file {path}: {exc}"
            raise RosterLoadError(msg) from exc

        if not isinstance(data, list):
            msg = f"JSON file {path} must contain an array of wallets"
            raise RosterLoadError(msg)

        for index, item in enumerate(data):
            origin = f"{path.name}[{index}]"
            if isinstance(item, str):
                yield RawEntry(origin, address=item.strip() or None)
            elif isinstance(item, dict):
                yield RawEntry(
                    origin,
                    address=_first_value(item, ADDRESS_COLUMNS),
                    credential=_first_value(item, CREDENTIAL_COLUMNS),
                )
            else:
                warnings.append(f"{origin}: unsupported wallet entry of type {type(item).__name__}")


class CsvRosterFormat:
    """A CSV file with a header row; columns are matched by common names.

    When no header is recognized, the first column is used: values that
    look like secret keys are treated as credentials, anything else as an
    address. A first row that is itself a wallet is kept as data.
    """

    def read(self, path: Path, warnings: list[str]) -> Iterator[RawEntry]:
        try:
            with path.open(newline="", encoding="utf-8") as handle:
                rows = list(csv.reader(handle))
        except (OSError, UnicodeDecodeError, csv.Error) as exc:
            msg = f"Failed to parse CSV file {path}: {exc}"
            raise RosterLoadError(msg) from exc

        if not rows:
            return

        header = [h.strip() for h in rows[0]]
        logger.debug("CSV headers detected in %s: %s", path, ", ".join(header))
        known = set(ADDRESS_COLUMNS) | set(CREDENTIAL_COLUMNS)
        headerless = bool(header) and not known.intersection(header) and self._is_wallet(header[0])
        body = rows if headerless else rows[1:]
        first_line = 1 if headerless else 2

        for offset, values in enumerate(body):
            origin = f"{path.name}:{first_line + offset}"
            if not any(v.strip() for v in values):
                continue
            row = dict(zip(header, values, strict=False))
            address = _first_value(row, ADDRESS_COLUMNS)
            credential = _first_value(row, CREDENTIAL_COLUMNS)
            if address is None and credential is None and values:
                first = values[0].strip()
                if looks_like_credential(first):
                    credential = first
                else:
                    address = first or None
            yield RawEntry(origin, address=address, credential=credential)

    @staticmethod
    def _is_wallet(value: str) -> bool:
        return is_valid_address(value) or looks_like_credential(value)


def format_for(path: Path) -> RosterFormat:
    """Pick the strategy by file extension (``.json``, anything else is CSV)."""
    if path.suffix.lower() == ".json":
        return JsonRosterFormat()
    return CsvRosterFormat()


# ---------------------------------------------------------------------------
# Normalization
# ---------------------------------------------------------------------------


def _normalize(
    entries: Iterator[RawEntry],
    role: WalletRole,
    warnings: list[str],
) -> list[tuple[str, str | None]]:
    seen: set[str] = set()
    wallets: list[tuple[str, str | None]] = []
    for entry in entries:
        address = entry.address
        credential = entry.credential if role is WalletRole.DONOR else None

        if role is WalletRole.DONOR and credential is not None:
            try:
                derived = derive_address(credential)
            except CredentialError as exc:
                warnings.append(f"{entry.origin}: {exc}")
                continue
            if address is None:
                address = derived
            elif address != derived:
                warnings.append(
                    f"{entry.origin}: private key does not match address {address}; skipped"
                )
                continue
        elif address is None and entry.credential is not None:
            try:
                address = derive_address(entry.credential)
            except CredentialError as exc:
                warnings.append(f"{entry.origin}: {exc}")
                continue

        if address is None:
            warnings.append(f"{entry.origin}: no wallet address or private key found")
            continue
        if not is_valid_address(address):
            warnings.append(f"{entry.origin}: invalid wallet address {address}")
            continue
        if address in seen:
            warnings.append(f"{entry.origin}: duplicate wallet {address} ignored")
            continue
        if role is WalletRole.DONOR and credential is None:
            warnings.append(
                f"{entry.origin}: donor {address[:8]}... has no private key "
                "(cannot fund from this wallet)"
            )

        seen.add(address)
        wallets.append((address, credential))
    return wallets


def _load(
    path: Path | str,
    role: WalletRole,
    warnings: list[str] | None,
) -> list[tuple[str, str | None]]:
    path = Path(path)
    sink = warnings if warnings is not None else []
    if not path.is_file():
        msg = f"File not found: {path}"
        raise RosterLoadError(msg)

    start = len(sink)
    wallets = _normalize(format_for(path).read(path, sink), role, sink)
    for message in sink[start:]:
        logger.warning("roster %s: %s", role, message)

    if not wallets:
        msg = f"No valid {role} wallet addresses found in {path}"
        raise NoValidWalletsError(msg)
    logger.info("Loaded %d %s wallets from %s", len(wallets), role, path)
    return wallets


def load_donors(path: Path | str, warnings: list[str] | None = None) -> list[Donor]:
    """Load donors; credentials are kept when present and parseable."""
    return [
        Donor(address=address, signing_credential=credential)
        for address, credential in _load(path, WalletRole.DONOR, warnings)
    ]


def load_recipients(path: Path | str, warnings: list[str] | None = None) -> list[Recipient]:
    """Load recipients; any credential columns are ignored."""
    wallets = _load(path, WalletRole.RECIPIENT, warnings)
    return [Recipient(address=address) for address, _ in wallets]


# ---------------------------------------------------------------------------
# Example files
# ---------------------------------------------------------------------------


def write_example_files(
    directory: Path,
    *,
    donors: list[dict[str, str]],
    recipients: list[str],
    force: bool = False,
) -> list[Path]:
    """Write donor/recipient examples in both JSON and CSV form.

    Raises:
        FileExistsError: If a target exists and *force* is False.
    """
    directory.mkdir(parents=True, exist_ok=True)
    targets = {
        directory / "donors-example.json": json.dumps(donors, indent=2) + "\n",
        directory / "recipients-example.json": json.dumps(recipients, indent=2) + "\n",
        directory / "donors-example.csv": _csv_text(
            ["address", "private_key"], [[d["address"], d["privateKey"]] for d in donors]
        ),
        directory / "recipients-example.csv": _csv_text(["address"], [[r] for r in recipients]),
    }
    if not force:
        existing = [p for p in targets if p.exists()]
        if existing:
            msg = f"Refusing to overwrite {', '.join(str(p) for p in existing)}"
            raise FileExistsError(msg)

    for path, content in targets.items():
        path.write_text(content, encoding="utf-8")
    return list(targets)


def _csv_text(header: list[str], rows: list[list[str]]) -> str:
    from io import StringIO

    buffer = StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(header)
    writer.writerows(rows)
    return buffer.getvalue()
