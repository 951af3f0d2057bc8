"""Output formatting helpers using Rich."""

from __future__ import annotations

import json
from typing import Any

from rich.console import Console
from rich.table import Table

from logme.catalog import CatalogEntry
from logme.codes import DecodedLogCode

# Shared console instances
console = Console()
err_console = Console(stderr=True)


def print_error(message: str) -> None:
    """Print an error message to stderr."""
    err_console.print(f"[bold red]Error:[/bold red] {message}")


def print_hint(message: str) -> None:
    """Print a hint to stderr."""
    err_console.print(f"[yellow]{message}[/yellow]")


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(f"[bold green]{message}[/bold green]")


def print_json(data: Any, *, indent: int = 2) -> None:
    """Print data as JSON."""
    if hasattr(data, "model_dump"):
        data = data.model_dump()
    print(json.dumps(data, indent=indent, default=str))


def print_decoded_table(decoded: DecodedLogCode) -> None:
    """Print the six segments of a decoded log code."""
    table = Table(title=f"Log Code: {decoded.code}")
    table.add_column("Segment", style="cyan", no_wrap=True)
    table.add_column("Code", style="green")
    table.add_column("Key", style="magenta")
    table.add_column("Description")

    for label, segment in decoded.segments():
        table.add_row(label, segment.code, segment.key or "-", segment.description)

    console.print(table)


def print_catalog_table(title: str, entries: list[CatalogEntry]) -> None:
    """Print the catalog entries of one segment."""
    table = Table(title=title)
    table.add_column("Key", style="cyan", no_wrap=True)
    table.add_column("Code", style="green")
    table.add_column("Description")

    for entry in entries:
        table.add_row(entry.key, entry.code, entry.description)

    console.print(table)
