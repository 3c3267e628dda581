"""Operation-specific Rich renderers for ServiceResult.

Each renderer writes to a Rich Console (backed by StringIO). The caller
extracts the rendered text via ``get_output(console)``.

Listings (``list_*``) render as one table per record kind; mutations
(``add_*``, ``mod_*``, ``del_*``) as a status line plus key/value fields.
"""

from __future__ import annotations

import json as _json
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from rich.table import Table
from rich.text import Text

from bcl.output.console import create_console, get_output, style_for_lub_level

if TYPE_CHECKING:
    from rich.console import Console

    from bcl.services.result import ServiceResult

NOTHING_FOUND = "Nothing found for your query."

Renderer = Callable[["ServiceResult", "Console"], None]


# ── Public API ────────────────────────────────────────────────────────


def render_result(result: ServiceResult, *, verbose: bool = False) -> str:
    """Render a ServiceResult to a styled string via Rich.

    Returns plain text (no ANSI) when Rich detects no terminal,
    which is the case inside Click's CliRunner and piped output.
    """
    console = create_console()

    if not result.ok:
        _render_error(result, console, verbose=verbose)
    elif result.op.startswith("list_"):
        _render_listing(result, console)
    else:
        renderer = _OP_RENDERERS.get(result.op, _render_mutation)
        renderer(result, console)
        if verbose and result.meta:
            _render_meta(console, result)

    return get_output(console).rstrip("\n")


def render_quiet(result: ServiceResult) -> str:
    """Render minimal output for ``--quiet`` mode: ids only for listings."""
    if not result.ok:
        msg = result.error.message if result.error else "Unknown error"
        return f"ERROR: {result.op} — {msg}"

    if result.op.startswith("list_"):
        return "\n".join(str(item["id"]) for item in result.items if "id" in item)
    return f"OK: {result.op}"


# ── Helpers ───────────────────────────────────────────────────────────


def _status_line(console: Console, result: ServiceResult) -> None:
    """Print the OK status line."""
    label = Text("OK", style="bcl.ok")
    op = Text(f"  {result.op}", style="bcl.op")
    console.print(Text.assemble(label, op))


def _field(console: Console, key: str, value: Any) -> None:
    """Print a single indented key-value field."""
    k = Text(f"  {key}: ", style="bcl.key")
    if key == "id":
        v = Text(str(value), style="bcl.id")
    elif key == "date":
        v = Text(str(value), style="bcl.date")
    elif isinstance(value, (dict, list)):
        v = Text(_json.dumps(value, separators=(",", ":"), ensure_ascii=False))
    else:
        v = Text(str(value))
    console.print(Text.assemble(k, v))


def _render_meta(console: Console, result: ServiceResult) -> None:
    if not result.meta:
        return
    console.print()
    console.print(Text("  meta:", style="dim"))
    for k, v in result.meta.items():
        console.print(f"    {k}: {v}")


def _amount(value: Any, unit: str) -> str:
    if value is None:
        return ""
    return f"{float(value):.2f} {unit}".rstrip()


def _text(value: Any) -> str:
    return "" if value is None else str(value)


def _tags(item: dict[str, Any]) -> Text:
    return Text(" ".join(f"#{name}" for name in item.get("tags", [])), style="bcl.tag")


# ── Error renderer ────────────────────────────────────────────────────


def _render_error(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    err = result.error
    msg = err.message if err else "Unknown error"
    label = Text("ERROR", style="bcl.error")
    op = Text(f"  {result.op}", style="bcl.op")
    console.print(Text.assemble(label, op, " — ", msg))

    if verbose and err and err.detail:
        console.print(Text("  detail:", style="dim"))
        for k, v in err.detail.items():
            console.print(f"    {k}: {v}")


# ── Listing renderer ──────────────────────────────────────────────────

# kind -> [(header, cell builder)]
_Column = tuple[str, Callable[[dict[str, Any], dict[str, Any]], Any]]

_COLUMNS: dict[str, list[_Column]] = {
    "cat": [
        ("Code", lambda i, m: i["abbr"]),
        ("Name", lambda i, m: i["name"]),
    ],
    "tag": [
        ("Name", lambda i, m: Text(i["name"], style="bcl.tag")),
    ],
    "bike": [
        ("Bike", lambda i, m: f"{i['category']}:{i['id_in_cat']}"),
        ("Name", lambda i, m: i["name"]),
        ("Since", lambda i, m: Text(i["datestamp"], style="bcl.date")),
    ],
    "buy": [
        ("Date", lambda i, m: Text(i["datestamp"], style="bcl.date")),
        ("Name", lambda i, m: i["name"]),
        ("Price", lambda i, m: _amount(i["price"], m.get("currency", ""))),
        ("Category", lambda i, m: _text(i.get("category"))),
        ("Bike", lambda i, m: _text(i.get("bike"))),
        ("Tags", lambda i, m: _tags(i)),
    ],
    "ride": [
        ("Date", lambda i, m: Text(i["datestamp"], style="bcl.date")),
        ("Bike", lambda i, m: i["bike"]),
        ("Distance", lambda i, m: _amount(i["distance"], m.get("unit", ""))),
        ("Note", lambda i, m: _text(i.get("annotation"))),
        ("Tags", lambda i, m: _tags(i)),
    ],
    "lub": [
        ("Date", lambda i, m: Text(i["datestamp"], style="bcl.date")),
        ("Bike", lambda i, m: i["bike"]),
        ("Distance", lambda i, m: _amount(i["distance"], m.get("unit", ""))),
        ("Note", lambda i, m: _text(i.get("annotation"))),
    ],
}

_RIGHT_ALIGNED = frozenset({"Price", "Distance"})


def _render_listing(result: ServiceResult, console: Console) -> None:
    """Render ``list_*`` results as a table with dynamic and static ids."""
    items = result.items
    if not items:
        console.print(Text(NOTHING_FOUND, style="bcl.warning"))
        return

    meta = result.meta or {}
    columns = _COLUMNS.get(result.data.get("kind", ""), [])
    table = Table(show_header=True, show_lines=False, pad_edge=False, expand=False)
    table.add_column("#", style="bcl.dyn", justify="right", no_wrap=True)
    table.add_column("ID", style="bcl.id", justify="right", no_wrap=True)
    for header, _ in columns:
        table.add_column(header, justify="right" if header in _RIGHT_ALIGNED else "left")

    for item in items:
        cells = [str(item.get("dyn_id", "")), str(item.get("id", ""))]
        cells.extend(build(item, meta) for _, build in columns)
        table.add_row(*cells)

    console.print(table)
    count = result.data.get("count", len(items))
    console.print(f"\n{count} record{'s' if count != 1 else ''}")


# ── Mutation renderers ────────────────────────────────────────────────


def _render_mutation(result: ServiceResult, console: Console) -> None:
    """Render add/mod/del results as key-value fields."""
    _status_line(console, result)
    for key, value in result.data.items():
        if key in {"record", "currency", "unit", "since_lub", "lub_level"}:
            continue
        if value is None or value == []:
            continue
        _field(console, key, value)


def _render_add_ride(result: ServiceResult, console: Console) -> None:
    """Ride added, plus the distance ridden since the last chain lubrication."""
    _render_mutation(result, console)
    d = result.data
    level = str(d.get("lub_level", "ok"))
    ridden = _amount(d.get("since_lub"), d.get("unit", ""))
    line = Text(f"  After last chain lubrication you ride: {ridden}")
    line.stylize(style_for_lub_level(level))
    console.print(line)
    if level != "ok":
        console.print(Text("  Time to lubricate the chain.", style=style_for_lub_level(level)))


def _render_deleted(result: ServiceResult, console: Console) -> None:
    """Deleted record: echo the row that was removed."""
    _render_mutation(result, console)
    record = result.data.get("record")
    if record:
        shown = {
            k: v for k, v in record.items() if k not in {"id", "dyn_id"} and v not in (None, [])
        }
        _field(console, "record", shown)


# ── Dispatch table ────────────────────────────────────────────────────

_OP_RENDERERS: dict[str, Renderer] = {
    "add_ride": _render_add_ride,
    "del_bike": _render_deleted,
    "del_buy": _render_deleted,
    "del_ride": _render_deleted,
    "del_lub": _render_deleted,
}
