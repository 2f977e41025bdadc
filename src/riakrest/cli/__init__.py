"""riakrest CLI: operator console for a Jiak server."""

from __future__ import annotations

from typing import Optional

import typer

from riakrest.cli import objects, schema

app = typer.Typer(
    name="riakrest",
    help="riakrest CLI: inspect buckets, objects and links on a Jiak server.",
    no_args_is_help=True,
)


class _State:
    """Global CLI state shared across subcommands."""

    server: str | None = None
    timeout: float | None = None
    json_output: bool = False


state = _State()


def _version_callback(value: bool) -> None:
    if value:
        from riakrest import __version__

        print(f"riakrest {__version__}")
        raise typer.Exit()


@app.callback(invoke_without_command=True)
def main_callback(
    ctx: typer.Context,
    server: Optional[str] = typer.Option(
        None,
        "--server",
        envvar="RIAKREST_SERVER",
        help="Jiak base URI (default: http://127.0.0.1:8002/jiak)",
    ),
    timeout: Optional[float] = typer.Option(
        None, "--timeout", help="Request timeout in seconds"
    ),
    json_output: bool = typer.Option(False, "--json", help="JSON output when supported"),
    version: bool = typer.Option(
        False, "--version", help="Show version", is_eager=True, callback=_version_callback
    ),
) -> None:
    """Global options for all riakrest commands."""
    if timeout is not None and timeout <= 0:
        raise typer.BadParameter("--timeout must be positive")

    state.server = server
    state.timeout = timeout
    state.json_output = json_output
    if ctx.invoked_subcommand is None and not version:
        print(ctx.get_help())
        raise typer.Exit()


app.add_typer(schema.app, name="schema", help="Show and set bucket schemas")

app.command(name="keys")(objects.keys_cmd)
app.command(name="get")(objects.get_cmd)
app.command(name="delete")(objects.delete_cmd)
app.command(name="walk")(objects.walk_cmd)


def main() -> None:
    """Entry point for the riakrest CLI."""
    app()
