"""Unified settings — CLI flags, env vars, .env, and TOML config in one object.

Priority chain (highest to lowest):
  1. Init kwargs  — CLI flags passed by Click
  2. Env vars     — ``FUNDCTL_*`` prefix, ``__`` for nested sections
  3. ``.env``     — same names, read from the working directory
  4. TOML file    — ``fundctl.toml`` discovered via walk-up
  5. Code defaults — baked into the section models

Uses Pydantic Settings v2 with a custom :class:`TomlSettingsSource` that
reads the file located by :func:`fundctl.config.discovery.find_config`.
"""

from __future__ import annotations

import threading
from pathlib import Path
from typing import Any, ClassVar

from pydantic import Field
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource

from fundctl.config.discovery import find_config, read_config
from fundctl.config.models import (
    FundingConfig,
    LedgerConfig,
    PacingConfig,
    RosterConfig,
    VerifyConfig,
)


class TomlSettingsSource(PydanticBaseSettingsSource):
    """Read settings from a ``fundctl.toml`` file discovered via walk-up."""

    def __init__(self, settings_cls: type[BaseSettings], toml_path: Path | None) -> None:
        super().__init__(settings_cls)
        self._data: dict[str, Any] = read_config(toml_path)

    def get_field_value(self, field: Any, field_name: str) -> tuple[Any, str, bool]:
        """Return ``(value, field_name, value_is_complex)``."""
        val = self._data.get(field_name)
        return val, field_name, field_name in self._data

    def __call__(self) -> dict[str, Any]:
        """Return the full TOML data dict for Pydantic to merge."""
        return self._data


# Thread-local storage for TOML path during construction.
_tls = threading.local()


class FundSettings(BaseSettings):
    """Unified settings for the entire fundctl CLI.

    Merges CLI flags, environment variables, a ``.env`` file, TOML config
    sections, and code-baked defaults into a single frozen object. Stored
    on the :class:`~fundctl.commands._context.AppContext` at the CLI root.

    Attributes:
        config_path: The TOML file actually loaded, or None.
    """

    model_config = {
        "frozen": True,
        "env_prefix": "FUNDCTL_",
        "env_nested_delimiter": "__",
        "env_file": ".env",
        "extra": "ignore",
    }

    config_path: Path | None = None

    # --- CLI flags ---
    json_output: bool = False
    quiet: bool = False
    verbose: bool = False
    log_json: bool = False

    # --- TOML sections ---
    ledger: LedgerConfig = Field(default_factory=LedgerConfig)
    funding: FundingConfig = Field(default_factory=FundingConfig)
    roster: RosterConfig = Field(default_factory=RosterConfig)
    pacing: PacingConfig = Field(default_factory=PacingConfig)
    verify: VerifyConfig = Field(default_factory=VerifyConfig)

    # Retained for type-checker visibility; not used at runtime.
    _toml_path: ClassVar[Path | None] = None

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Insert TOML source between the .env file and defaults."""
        toml_path = getattr(_tls, "toml_path", None)
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            TomlSettingsSource(settings_cls, toml_path),
        )

    @classmethod
    def from_cli(
        cls,
        *,
        config_path: str | None = None,
        start: Path | None = None,
        **cli_flags: Any,
    ) -> FundSettings:
        """Construct settings from CLI invocation.

        Discovers ``fundctl.toml`` via walk-up from *start* (or uses the
        explicit *config_path*) and merges CLI flags as highest-priority
        overrides.
        """
        toml_path = find_config(start, explicit=config_path)

        _tls.toml_path = toml_path
        try:
            return cls(config_path=toml_path, **cli_flags)
        finally:
            _tls.toml_path = None

    def describe(self) -> dict[str, Any]:
        """Effective configuration with secrets masked, for ``fundctl config``."""
        ledger = self.ledger.model_dump()
        if ledger.get("helius_api_key"):
            ledger["helius_api_key"] = f"{ledger['helius_api_key'][:8]}..."
        return {
            "config_path": str(self.config_path) if self.config_path else None,
            "ledger": ledger,
            "funding": self.funding.model_dump(mode="json"),
            "roster": self.roster.model_dump(),
            "pacing": self.pacing.model_dump(),
            "verify": self.verify.model_dump(),
        }
