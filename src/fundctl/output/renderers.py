"""Operation-specific Rich renderers for ServiceResult.

Each renderer writes to a Rich Console (backed by StringIO).  The caller
extracts the rendered text via ``get_output(console)``.

Renderers are dispatched by ``result.op`` in :func:`render_result`.
Unknown ops fall through to a generic key-value renderer.
"""

from __future__ import annotations

import json as _json
from typing import TYPE_CHECKING, Any

from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from fundctl.output.console import create_console, get_output, style_for_status

if TYPE_CHECKING:
    from rich.console import Console

    from fundctl.services.result import ServiceResult


# ── Public API ────────────────────────────────────────────────────────


def render_result(result: ServiceResult, *, verbose: bool = False) -> str:
    """Render a ServiceResult to a styled string via Rich.

    Returns plain text (no ANSI) when Rich detects no terminal,
    which is the case inside Click's CliRunner and piped output.
    """
    console = create_console()

    if result.ok:
        renderer = _OP_RENDERERS.get(result.op, _render_generic)
        renderer(result, console, verbose=verbose)
    else:
        _render_error(result, console, verbose=verbose)

    return get_output(console).rstrip("\n")


def render_quiet(result: ServiceResult) -> str:
    """Render minimal output for ``--quiet`` mode.

    ``verify`` prints the unfunded addresses one per line so the output
    can be piped straight into a recipients file.
    """
    if not result.ok:
        msg = result.error.message if result.error else "Unknown error"
        return f"ERROR: {result.op} — {msg}"

    d = result.data
    if result.op == "verify":
        return "\n".join(
            c["address"] for c in d.get("classifications", []) if c.get("status") == "unfunded"
        )
    if result.op == "run":
        mode = "dry-run" if d.get("dry_run") else "executed"
        return (
            f"OK: run ({mode}) success={d.get('success', 0)} "
            f"failed={d.get('failed', 0)} skipped={d.get('skipped', 0)}"
        )
    return f"OK: {result.op}"


# ── Helpers ───────────────────────────────────────────────────────────


def _status_line(console: Console, result: ServiceResult) -> None:
    """Print the OK status line, flagging dry runs."""
    label = Text("OK", style="fund.ok")
    op = Text(f"  {result.op}", style="fund.op")
    if result.data.get("dry_run"):
        console.print(label, op, Text("  DRY RUN", style="fund.dry_run"), sep="", end="")
    else:
        console.print(label, op, sep="", end="")
    console.print()


def _field(console: Console, key: str, value: Any) -> None:
    """Print a single indented key-value field."""
    k = Text(f"  {key}: ", style="fund.key")
    if key in ("address", "donor", "rpc"):
        v = Text(str(value), style="fund.address")
    elif key in ("amount", "funding_amount", "min_transfer_amount"):
        v = Text(str(value), style="fund.amount")
    else:
        v = Text(str(value))
    console.print(k, v, sep="", end="")
    console.print()


def _status_text(status: str) -> Text:
    return Text(status, style=style_for_status(status))


def _render_meta(console: Console, result: ServiceResult) -> None:
    """Print meta block including telemetry span tree (verbose only)."""
    if not result.meta:
        return

    console.print()
    console.print(Text("  meta:", style="dim"))

    for k, v in result.meta.items():
        if k == "telemetry":
            _render_telemetry_tree(console, v, indent=4)
        else:
            console.print(f"    {k}: {v}")


def _render_telemetry_tree(
    console: Console,
    span_data: dict[str, Any],
    indent: int = 4,
) -> None:
    """Render a hierarchical span tree with color-coded timing."""
    prefix = " " * indent
    name = span_data.get("name", "?")
    duration = span_data.get("duration_ms", 0.0)

    if duration > 1000:
        style = "bold red"
    elif duration > 100:
        style = "yellow"
    else:
        style = "dim"

    line = f"{prefix}[{style}]{duration:>8.2f}ms[/{style}]  {name}"
    annotations = span_data.get("annotations") or {}
    if annotations:
        line += "  (" + ", ".join(f"{k}={v}" for k, v in annotations.items()) + ")"
    console.print(line)

    for child in span_data.get("children", []):
        _render_telemetry_tree(console, child, indent=indent + 4)


# ── Error renderer ────────────────────────────────────────────────────


def _render_error(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    err = result.error
    msg = err.message if err else "Unknown error"
    label = Text("ERROR", style="fund.error")
    op = Text(f"  {result.op}", style="fund.op")
    dash = Text(" — ")
    code = Text(f"[{err.code}] ", style="dim") if err else Text("")
    console.print(label, op, dash, code, Text(msg), sep="")

    if verbose and err and err.detail:
        console.print(Text("  detail:", style="dim"))
        for k, v in err.detail.items():
            console.print(f"    {k}: {v}")


# ── Run / verify renderers ────────────────────────────────────────────


def _policy_panel(data: dict[str, Any]) -> Panel:
    policy = data.get("policy", {})
    lines = [
        f"[fund.key]RPC:[/fund.key] {data.get('rpc') or '-'}",
        f"[fund.key]Donors:[/fund.key] {data.get('donors', 0)} "
        f"({data.get('donors_with_keys', 0)} with private keys)",
        f"[fund.key]Recipients:[/fund.key] {data.get('recipients', 0)}",
        f"[fund.key]Min transfer:[/fund.key] {policy.get('min_transfer_amount')} SOL",
        f"[fund.key]Lookback:[/fund.key] {policy.get('lookback_hours')} hours",
        f"[fund.key]Funding amount:[/fund.key] {policy.get('funding_amount')} SOL",
        f"[fund.key]Max operations:[/fund.key] {policy.get('max_operations')}",
    ]
    if data.get("dry_run"):
        mode = "[fund.dry_run]DRY RUN[/fund.dry_run]"
    else:
        mode = "[fund.error]LIVE[/fund.error]"
    lines.append(f"[fund.key]Mode:[/fund.key] {mode}")
    return Panel("\n".join(lines), title="Configuration", expand=False)


def _classification_table(classifications: list[dict[str, Any]], *, verbose: bool) -> Table:
    table = Table(show_header=True, show_lines=False, pad_edge=False, expand=False)
    table.add_column("Recipient", style="fund.address", no_wrap=True)
    table.add_column("Status")
    table.add_column("Amount", style="fund.amount", justify="right")
    table.add_column("From", no_wrap=True)
    if verbose:
        table.add_column("Signature", style="fund.signature")

    for item in classifications:
        row: list[Any] = [
            item.get("address", ""),
            _status_text(item.get("status", "")),
            item.get("amount", ""),
            item.get("from", "") or item.get("error", ""),
        ]
        if verbose:
            row.append(item.get("signature", ""))
        table.add_row(*row)
    return table


def _disbursement_table(disbursements: list[dict[str, Any]], *, verbose: bool) -> Table:
    table = Table(show_header=True, show_lines=False, pad_edge=False, expand=False)
    table.add_column("Recipient", style="fund.address", no_wrap=True)
    table.add_column("Donor", no_wrap=True)
    table.add_column("Status")
    table.add_column("Detail")

    for item in disbursements:
        if item.get("simulated"):
            detail = "simulated"
        elif item.get("reason"):
            detail = item["reason"]
        elif item.get("error"):
            detail = item["error"]
        else:
            signature = item.get("signature", "")
            detail = signature if verbose else signature[:16]
        table.add_row(
            item.get("address", ""),
            item.get("donor", "-"),
            _status_text(item.get("status", "")),
            detail,
        )
    return table


def _render_verify(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    d = result.data
    _status_line(console, result)
    console.print(_policy_panel(d))
    classifications = d.get("classifications", [])
    if classifications:
        console.print(_classification_table(classifications, verbose=verbose))
    _field(console, "funded", d.get("funded", 0))
    _field(console, "unfunded", d.get("unfunded", 0))
    if verbose:
        _render_meta(console, result)


def _render_run(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    d = result.data
    _status_line(console, result)
    console.print(_policy_panel(d))

    classifications = d.get("classifications", [])
    if classifications:
        console.print(_classification_table(classifications, verbose=verbose))

    disbursements = d.get("disbursements", [])
    if disbursements:
        console.print()
        console.print(_disbursement_table(disbursements, verbose=verbose))

    console.print()
    console.print(Text("  Summary", style="bold"))
    _field(console, "recipients", d.get("recipients", 0))
    _field(console, "funded", d.get("funded", 0))
    _field(console, "unfunded", d.get("unfunded", 0))
    _field(console, "success", d.get("success", 0))
    _field(console, "failed", d.get("failed", 0))
    _field(console, "skipped", d.get("skipped", 0))
    if d.get("truncated"):
        _field(console, "over_cap", d["truncated"])
    if d.get("dry_run") and d.get("success"):
        notice = "  Dry run: no transfers were sent. Re-run with --execute to send."
        console.print(Text(notice, style="fund.dry_run"))
    if verbose:
        _render_meta(console, result)


# ── Examples / config renderers ───────────────────────────────────────


def _render_examples(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    _status_line(console, result)
    _field(console, "directory", result.data.get("directory", ""))
    for path in result.data.get("files", []):
        console.print(f"  [fund.key]wrote[/fund.key] {path}")


def _render_config(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    _status_line(console, result)
    d = result.data
    _field(console, "config_path", d.get("config_path") or "(defaults)")
    _field(console, "rpc", d.get("rpc", ""))
    for section in ("ledger", "funding", "roster", "pacing", "verify"):
        values = d.get(section) or {}
        console.print(Text(f"  [{section}]", style="fund.op"))
        for key, value in values.items():
            console.print(f"    [fund.key]{key}[/fund.key] = {value}")
    if not d.get("policy_valid", True):
        console.print(Text("  funding policy is invalid; see warnings", style="fund.warning"))


def _render_generic(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    _status_line(console, result)
    for key, value in result.data.items():
        if isinstance(value, (dict, list)):
            _field(console, key, _json.dumps(value, separators=(",", ":")))
        else:
            _field(console, key, value)
    if verbose:
        _render_meta(console, result)


_OP_RENDERERS: dict[str, Any] = {
    "run": _render_run,
    "verify": _render_verify,
    "examples": _render_examples,
    "config": _render_config,
}
