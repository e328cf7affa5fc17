"""Operation-specific Rich renderers for ServiceResult.

Each renderer writes to a Rich Console (backed by StringIO). The caller
extracts the rendered text via ``get_output(console)``.

Renderers are dispatched by ``result.op`` in :func:`render_result`.
Unknown ops fall through to a generic key-value renderer.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from rich.table import Table
from rich.text import Text

from cdpgen.output.console import create_console, get_output, style_for_kind

if TYPE_CHECKING:
    from rich.console import Console

    from cdpgen.services.result import ServiceResult


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
    """Render minimal output for ``--quiet`` mode."""
    if not result.ok:
        msg = result.error.message if result.error else "Unknown error"
        return f"ERROR: {result.op}: {msg}"

    items = result.data.get("items")
    if items and isinstance(items, list):
        return "\n".join(f"{i['domain']}.{i['name']}" for i in items)

    if result.op == "generate":
        return str(result.data.get("output_dir", ""))

    return f"OK: {result.op}"


# ── Helpers ───────────────────────────────────────────────────────────


def _status_line(console: Console, result: ServiceResult) -> None:
    """Print the OK status line."""
    label = Text("OK", style="cdp.ok")
    op = Text(f"  {result.op}", style="cdp.op")
    console.print(label, op, end="")
    console.print()


def _field(console: Console, key: str, value: Any) -> None:
    """Print a single indented key-value field."""
    k = Text(f"  {key}: ", style="cdp.key")
    if key.endswith("_dir") or key == "path":
        v = Text(str(value), style="cdp.path")
    elif isinstance(value, list):
        v = Text(", ".join(str(x) for x in value) if value else "-")
    else:
        v = Text(str(value))
    console.print(k, v, sep="", end="")
    console.print()


def _bullets(console: Console, title: str, values: list[Any], *, style: str = "") -> None:
    if not values:
        return
    console.print(Text(f"  {title}:", style="cdp.key"))
    for value in values:
        text = " -> ".join(value) if isinstance(value, list) else str(value)
        console.print(Text(f"    {text}", style=style))


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
        line += f"  ({', '.join(f'{k}={v}' for k, v in annotations.items())})"

    console.print(line)

    for child in span_data.get("children", []):
        _render_telemetry_tree(console, child, indent=indent + 4)


# ── Error renderer ────────────────────────────────────────────────────


def _render_error(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    err = result.error
    msg = err.message if err else "Unknown error"
    label = Text("ERROR", style="cdp.error")
    op = Text(f"  {result.op}", style="cdp.op")
    code = Text(f" [{err.code}] " if err else " ", style="cdp.key")
    console.print(label, op, code, Text(msg))

    if verbose and err and err.detail:
        console.print(Text("  detail:", style="dim"))
        for k, v in err.detail.items():
            console.print(f"    {k}: {v}")


# ── Operation renderers ───────────────────────────────────────────────


def _render_generate(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    d = result.data
    _status_line(console, result)
    for key in ("package", "output_dir", "domains", "unit_count"):
        if key in d:
            _field(console, key, d[key])

    if d.get("dry_run"):
        _field(console, "dry_run", True)
        if verbose:
            _bullets(console, "units", d.get("units", []), style="cdp.path")
    else:
        _field(console, "written", len(d.get("written", [])))
        _field(console, "unchanged", len(d.get("unchanged", [])))
        if verbose:
            _bullets(console, "written files", d.get("written", []), style="cdp.path")

    if verbose:
        _render_meta(console, result)


def _render_check(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    d = result.data
    _status_line(console, result)
    if d.get("version"):
        _field(console, "version", d["version"])
    for key in ("domains", "types", "synthesized", "commands", "events", "signatures"):
        if key in d:
            _field(console, key, d[key])

    _bullets(console, "recursive types", d.get("cycles", []))
    _bullets(console, "redirects", d.get("redirects", []), style="cdp.forward")
    _bullets(console, "domain cycles", d.get("domain_cycles", []))

    if verbose:
        _bullets(console, "files", d.get("files", []), style="cdp.path")
        _render_meta(console, result)


def _render_plan(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    items = result.data.get("items", [])
    if not items:
        console.print("No commands or events planned.")
        return

    table = Table(show_header=True, show_lines=False, pad_edge=False, expand=False)
    table.add_column("Domain", style="cdp.domain", no_wrap=True)
    table.add_column("Name", no_wrap=True)
    table.add_column("Kind")
    table.add_column("Signatures")
    table.add_column("Returns")
    if verbose:
        table.add_column("Forwards to", style="cdp.forward")

    for item in items:
        kind = item.get("kind", "")
        row = [
            str(item.get("domain", "")),
            str(item.get("name", "")),
            Text(kind, style=style_for_kind(kind)),
            "\n".join(item.get("signatures", [])),
            str(item.get("returns", "")),
        ]
        if verbose:
            row.append(str(item.get("forward_to") or ""))
        table.add_row(*row)

    console.print(table)
    console.print(
        f"  {result.data.get('count', len(items))} members, "
        f"{result.data.get('signatures', 0)} signatures"
    )

    if verbose:
        _render_meta(console, result)


def _render_generic(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Fallback: status line + key-value fields."""
    _status_line(console, result)
    for key, value in result.data.items():
        _field(console, key, value)
    if verbose:
        _render_meta(console, result)


# ── Dispatch table ────────────────────────────────────────────────────

_OP_RENDERERS: dict[str, Any] = {
    "generate": _render_generate,
    "check": _render_check,
    "plan": _render_plan,
}
