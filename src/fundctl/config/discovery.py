"""Locate and read ``fundctl.toml``.

Lookup order: an explicit ``--config`` path, then ``FUNDCTL_CONFIG``,
then the nearest ``fundctl.toml`` in the working directory or any of its
parents. A path that was named but does not exist means "no file", not
an error; the run then falls back to defaults and the environment.
"""

from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import Any

import click

CONFIG_FILENAME = "fundctl.toml"
CONFIG_ENV_VAR = "FUNDCTL_CONFIG"


def find_config(start: Path | None = None, *, explicit: str | None = None) -> Path | None:
    """Return the config file to load, or None when there is none."""
    named = explicit or os.environ.get(CONFIG_ENV_VAR)
    if named:
        path = Path(named)
        return path if path.is_file() else None

    here = (start or Path.cwd()).resolve()
    for directory in (here, *here.parents):
        candidate = directory / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
    return None


def read_config(path: Path | None) -> dict[str, Any]:
    """Parse *path* as TOML; an absent file reads as empty."""
    if path is None or not path.is_file():
        return {}
    try:
        return tomllib.loads(path.read_text(encoding="utf-8"))
    except tomllib.TOMLDecodeError as exc:
        msg = f"Invalid TOML in {path}: {exc}"
        raise click.ClickException(msg) from exc
