"""
CLI utility helpers: output formatting and error reporting.
"""

from __future__ import annotations

import json
from dataclasses import asdict
from pathlib import Path
from typing import Any

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from provisioner.core.errors import ProvisionerError

console = Console()
err_console = Console(stderr=True)


def _to_dict(obj: Any) -> dict[str, Any]:
    """Convert dataclass / pydantic model / dict to plain dict."""
    if hasattr(obj, "model_dump"):
        return obj.model_dump()
    if hasattr(obj, "__dataclass_fields__"):
        return asdict(obj)
    if isinstance(obj, dict):
        return obj
    return {"value": str(obj)}


def output_data(data: Any, *, as_json: bool = False, title: str = "") -> None:
    """Render a record or a list of records to the terminal."""
    if as_json:
        payload = [_to_dict(d) for d in data] if isinstance(data, list | tuple) else _to_dict(data)
        console.print_json(json.dumps(payload, default=str))
        return

    if isinstance(data, list):
        if not data:
            console.print("[dim]No items.[/dim]")
            return
        _print_table(data, title=title)
    else:
        _print_dict(_to_dict(data), title=title)


def fail(error: Exception) -> None:
    """Print an error and exit with status 1."""
    if isinstance(error, ProvisionerError):
        err_console.print(f"[bold red]Error[/bold red] ({error.__class__.__name__}): {escape(error.message)}")
    else:
        err_console.print(f"[bold red]Error[/bold red]: {escape(str(error))}")
    raise typer.Exit(code=1)


def resolve_path(value: str) -> Path:
    return Path(value).expanduser()


# ── Private helpers ──────────────────────────────────────────────────────


def _print_table(items: list, *, title: str = "") -> None:
    """Render a list of dataclasses/dicts as a Rich table."""
    first = _to_dict(items[0])
    table = Table(title=title or None, show_lines=False, pad_edge=False)
    for col in first:
        table.add_column(col, overflow="fold")
    for item in items:
        row = _to_dict(item)
        table.add_row(*(str(row.get(col, "")) for col in first))
    console.print(table)


def _print_dict(data: dict[str, Any], *, title: str = "") -> None:
    """Render a dict as a two-column key/value table."""
    table = Table(title=title or None, show_header=False, pad_edge=False)
    table.add_column("key", style="bold")
    table.add_column("value", overflow="fold")
    for key, value in data.items():
        if isinstance(value, list):
            value = "\n".join(str(v) for v in value) or "-"
        table.add_row(key, str(value))
    console.print(table)
