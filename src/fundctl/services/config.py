"""ConfigService — report the effective settings."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fundctl.domain.errors import ConfigurationError
from fundctl.infrastructure.rpc import mask_secret, resolve_rpc_url
from fundctl.services.result import ServiceResult

if TYPE_CHECKING:
    from fundctl.config.settings import FundSettings


class ConfigService:
    """Read-only view over :class:`FundSettings`."""

    def __init__(self, settings: FundSettings) -> None:
        self._settings = settings

    def show(self) -> ServiceResult:
        """Effective configuration, secrets masked, plus policy validity."""
        ledger = self._settings.ledger
        data = self._settings.describe()
        data["rpc"] = mask_secret(
            resolve_rpc_url(ledger.rpc_url, ledger.helius_api_key), ledger.helius_api_key
        )

        warnings: list[str] = []
        try:
            self._settings.funding.to_policy()
        except ConfigurationError as exc:
            warnings.append(str(exc))
        data["policy_valid"] = not warnings
        return ServiceResult(ok=True, op="config", data=data, warnings=warnings)
