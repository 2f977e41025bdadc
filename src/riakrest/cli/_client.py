"""CLI helpers for gateway construction and error reporting."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager

import typer

from riakrest.bucket import Bucket
from riakrest.cli import _exitcodes as ec
from riakrest.cli._output import print_error
from riakrest.config import RiakRestConfig
from riakrest.errors import ClientError, ResourceNotFound, RiakRestError, SchemaViolation
from riakrest.gateway import StorageGateway
from riakrest.types import Record, record_type


def config_from_state() -> RiakRestConfig:
    """Build a client config from the environment and the global CLI options."""
    from riakrest.cli import state

    config = RiakRestConfig.from_env()
    if state.server:
        config.server_uri = state.server
    if state.timeout is not None:
        config.request_timeout_s = state.timeout
    return config


def open_gateway() -> StorageGateway:
    """Open a gateway using the global CLI server selection."""
    return StorageGateway(config=config_from_state())


@contextmanager
def reporting_errors() -> Iterator[None]:
    """Map riakrest errors onto CLI exit codes."""
    try:
        yield
    except ResourceNotFound as e:
        print_error(str(e))
        raise typer.Exit(ec.NOT_FOUND)
    except ClientError as e:
        print_error(e.description())
        raise typer.Exit(ec.REMOTE_FAILURE)
    except RiakRestError as e:
        print_error(str(e))
        raise typer.Exit(ec.USAGE_ERROR)


def remote_bucket(gateway: StorageGateway, name: str) -> Bucket:
    """Bind ``name`` to a record type built from the schema the server holds for it."""
    bucket = Bucket(name, Record)
    schema = gateway.get_schema(bucket)
    try:
        rt = record_type(f"{name}_record", schema)
    except SchemaViolation as e:
        raise ClientError(
            f"incompatible remote schema: {e}", action="schema", uri=gateway.server + name
        ) from e
    return Bucket(name, rt)
