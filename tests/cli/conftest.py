"""Shared fixtures for CLI tests."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
from typer.testing import CliRunner

from riakrest import StorageGateway
from riakrest.cli import app

if TYPE_CHECKING:
    from click.testing import Result

SERVER = "http://jiak.test/jiak"


@pytest.fixture
def runner():
    """Create a CLI test runner."""
    return CliRunner()


@pytest.fixture
def cli_server(server, monkeypatch):
    """Route every gateway the CLI opens to the in-memory server."""

    def _gateway(*args, **kwargs):
        kwargs.setdefault("session", server)
        return StorageGateway(*args, **kwargs)

    monkeypatch.setattr("riakrest.cli._client.StorageGateway", _gateway)
    monkeypatch.delenv("RIAKREST_SERVER", raising=False)
    return server


@pytest.fixture
def seeded_server(cli_server):
    cli_server.schemas["people"] = {
        "allowed_fields": ["name", "age"],
        "required_fields": ["name"],
        "read_mask": ["name", "age"],
        "write_mask": ["name", "age"],
    }
    cli_server.seed("people", "remy", {"name": "remy", "age": 10}, [["people", "callie", "sister"]])
    cli_server.seed("people", "callie", {"name": "callie", "age": 12})
    return cli_server


def invoke(runner: CliRunner, args: list[str], server: str | None = SERVER) -> "Result":
    """Invoke the CLI against ``server``."""
    if server:
        args = ["--server", server] + args
    return runner.invoke(app, args, catch_exceptions=False)
