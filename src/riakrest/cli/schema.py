"""riakrest schema: show and set bucket schemas."""

from __future__ import annotations

from typing import Optional

import typer

from riakrest.bucket import Bucket
from riakrest.cli import _exitcodes as ec
from riakrest.cli._client import open_gateway, reporting_errors
from riakrest.cli._output import print_document, print_error, print_json
from riakrest.schema import Schema
from riakrest.types import Record, record_type

app = typer.Typer(no_args_is_help=True)


@app.command(name="show")
def schema_show_cmd(
    bucket: str = typer.Argument(..., help="Bucket name"),
    fmt: str = typer.Option("json", "--format", help="Output format: json or yaml"),
) -> None:
    """Show the schema the server holds for a bucket."""
    if fmt not in ("json", "yaml"):
        print_error("--format must be 'json' or 'yaml'")
        raise typer.Exit(ec.USAGE_ERROR)

    with reporting_errors(), open_gateway() as gateway:
        schema = gateway.get_schema(Bucket(bucket, Record))

    print_document(schema.to_wire(), fmt)


@app.command(name="set")
def schema_set_cmd(
    bucket: str = typer.Argument(..., help="Bucket name"),
    allow: Optional[list[str]] = typer.Option(None, "--allow", help="Allowed field (repeatable)"),
    require: Optional[list[str]] = typer.Option(None, "--require", help="Required field"),
    read: Optional[list[str]] = typer.Option(
        None, "--read", help="Readable field (default: every allowed field)"
    ),
    write: Optional[list[str]] = typer.Option(
        None, "--write", help="Writable field (default: every allowed field)"
    ),
) -> None:
    """Replace the schema for a bucket.

    Data already stored is untouched; the schema only affects future requests.
    """
    from riakrest.cli import state

    if not allow:
        print_error("At least one --allow field is required")
        raise typer.Exit(ec.USAGE_ERROR)

    with reporting_errors():
        schema = Schema.declare(allow, require or (), read, write)
        with open_gateway() as gateway:
            gateway.set_schema(Bucket(bucket, record_type(f"{bucket}_record", schema)))

    if state.json_output:
        print_json(schema.to_wire())
    else:
        print(f"Schema set for bucket '{bucket}'")
