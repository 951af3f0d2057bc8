"""Main entry point for the logme CLI."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Annotated

import typer

from logme import __version__
from logme.catalog import SEGMENTS, CatalogEntry, catalog_dump, entries, lookup
from logme.cli.output import (
    console,
    print_catalog_table,
    print_decoded_table,
    print_error,
    print_hint,
    print_json,
    print_success,
)
from logme.codes import decode, describe, encode, is_valid

FORMAT_HINT = "Format should be: ENV.SERVICE.CATEGORY.ACTION.OUTCOME.SEVERITY (e.g. BE.1003.01.01.01.I)"

app = typer.Typer(
    name="logme",
    help="logme - encode, decode and validate structured log codes.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


def version_callback(value: bool) -> None:
    """Show version and exit."""
    if value:
        typer.echo(f"logme version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    _version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-v",
            help="Show version and exit.",
            callback=version_callback,
            is_eager=True,
        ),
    ] = None,
) -> None:
    """logme - standardized code-based logging."""


@app.command("decode")
def decode_cmd(
    code: Annotated[str, typer.Argument(help="The log code to decode, e.g. BE.1003.01.01.01.I")],
    json_output: Annotated[bool, typer.Option("--json", help="Output result as JSON.")] = False,
) -> None:
    """Decode a log code into its segments."""
    decoded = decode(code)
    if decoded is None:
        print_error(f"Invalid log code format: {code}")
        print_hint(FORMAT_HINT)
        raise typer.Exit(1)

    if json_output:
        print_json({**decoded.model_dump(), "description": describe(code)})
        return

    print_decoded_table(decoded)
    console.print(f"[cyan]Description:[/cyan] {describe(code)}")


@app.command("validate")
def validate_cmd(
    code: Annotated[str, typer.Argument(help="The log code to check.")],
) -> None:
    """Check whether a string is a well-formed log code."""
    if not is_valid(code):
        print_error(f"Invalid log code format: {code}")
        print_hint(FORMAT_HINT)
        raise typer.Exit(1)
    print_success(f"{code} is a valid log code")


def _resolve(segment: str, value: str) -> CatalogEntry | None:
    """Find a catalog entry by code, or by key as a convenience."""
    entry = lookup(segment, value)
    if entry is not None:
        return entry
    return next((e for e in entries(segment) if e.key == value.upper()), None)


@app.command("build")
def build_cmd(
    env: Annotated[str, typer.Argument(help="Environment code, e.g. FE, BE")],
    service: Annotated[str, typer.Argument(help="Service code, e.g. 1001")],
    category: Annotated[str, typer.Argument(help="Category code, e.g. 01")],
    action: Annotated[str, typer.Argument(help="Action code, e.g. 01")],
    outcome: Annotated[str, typer.Argument(help="Outcome code, e.g. 01")],
    severity: Annotated[str, typer.Argument(help="Severity code: I, W, E or D")],
) -> None:
    """Build a log code from catalog segments."""
    values = dict(
        zip(SEGMENTS, (env, service, category, action, outcome, severity), strict=True)
    )

    resolved: dict[str, CatalogEntry] = {}
    for segment, value in values.items():
        entry = _resolve(segment, value)
        if entry is None:
            _, label = SEGMENTS[segment]
            print_error(f"Unknown {label.lower()} code: {value}")
            print_hint("Use `logme list` to see available codes.")
            raise typer.Exit(1)
        resolved[segment] = entry

    code = encode(*(entry.code for entry in resolved.values()))
    print_success(code)
    console.print(f"[cyan]Description:[/cyan] {describe(code)}")


@app.command("list")
def list_cmd(
    segment: Annotated[
        str | None,
        typer.Argument(help=f"Segment to list: {', '.join(SEGMENTS)}. Lists all when omitted."),
    ] = None,
) -> None:
    """List the catalog codes of one or all segments."""
    if segment is None:
        selected = list(SEGMENTS)
    elif segment.lower() in SEGMENTS:
        selected = [segment.lower()]
    else:
        print_error(f"Invalid segment: {segment}. Choose from {', '.join(SEGMENTS)}")
        raise typer.Exit(1)

    for name in selected:
        _, label = SEGMENTS[name]
        print_catalog_table(label, entries(name))


@app.command("schema")
def schema_cmd(
    output: Annotated[
        Path | None,
        typer.Option("--output", "-o", help="Write the catalog to this file instead of stdout."),
    ] = None,
) -> None:
    """Dump the code catalog as JSON for other tools and languages."""
    dump = catalog_dump()
    if output is None:
        print_json(dump)
        return

    output.write_text(json.dumps(dump, indent=2) + "\n", encoding="utf-8")
    print_success(f"Catalog written to {output}")


if __name__ == "__main__":
    app()
