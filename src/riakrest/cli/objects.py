"""riakrest keys/get/delete/walk: object access by bucket and key."""

from __future__ import annotations

from typing import Any

import typer

from riakrest.bucket import Bucket
from riakrest.cli import _exitcodes as ec
from riakrest.cli._client import open_gateway, remote_bucket, reporting_errors
from riakrest.cli._output import print_error, print_json, print_object, print_table
from riakrest.errors import LinkShapeError
from riakrest.links import QueryLink, Wildcard
from riakrest.objects import StoredObject


def _object_data(obj: StoredObject) -> dict[str, Any]:
    data: dict[str, Any] = {
        "bucket": obj.bucket.name,
        "key": obj.key,
        "object": {n: obj.record[n] for n in obj.bucket.schema.read_mask if obj.record[n] is not None},
        "links": [link.for_wire() for link in obj.links],
    }
    if obj.version is not None:
        data.update(obj.version.to_wire())
    return data


def keys_cmd(bucket: str = typer.Argument(..., help="Bucket name")) -> None:
    """List the keys in a bucket."""
    from riakrest.cli import state

    with reporting_errors(), open_gateway() as gateway:
        keys = sorted(gateway.keys(remote_bucket(gateway, bucket)))

    if state.json_output:
        print_json(keys)
        return
    for key in keys:
        print(key)


def get_cmd(
    bucket: str = typer.Argument(..., help="Bucket name"),
    key: str = typer.Argument(..., help="Object key"),
) -> None:
    """Fetch one object."""
    from riakrest.cli import state

    with reporting_errors(), open_gateway() as gateway:
        obj = gateway.get(remote_bucket(gateway, bucket), key)

    print_object(_object_data(obj), json_mode=state.json_output)


def delete_cmd(
    bucket: str = typer.Argument(..., help="Bucket name"),
    key: str = typer.Argument(..., help="Object key"),
) -> None:
    """Delete one object."""
    from riakrest.cli import state

    with reporting_errors(), open_gateway() as gateway:
        gateway.delete(remote_bucket(gateway, bucket), key)

    print_object({"bucket": bucket, "key": key, "deleted": True}, json_mode=state.json_output)


def _parse_step(step: str) -> QueryLink:
    try:
        return QueryLink.create(step.split(","))
    except LinkShapeError as e:
        print_error(f"Invalid step '{step}': {e}")
        raise typer.Exit(ec.USAGE_ERROR)


def walk_cmd(
    bucket: str = typer.Argument(..., help="Bucket of the starting object"),
    key: str = typer.Argument(..., help="Key of the starting object"),
    steps: list[str] = typer.Argument(..., help="Steps as bucket[,tag[,acc]]; '_' matches anything"),
) -> None:
    """Follow links from an object and show what the last step reaches."""
    from riakrest.cli import state

    links = [_parse_step(s) for s in steps]
    with reporting_errors(), open_gateway() as gateway:
        origin = remote_bucket(gateway, bucket)
        last = links[-1].bucket
        target: Bucket = origin if isinstance(last, Wildcard) else remote_bucket(gateway, last)
        objects = gateway.walk(origin, key, links, target)

    if state.json_output:
        print_json([_object_data(obj) for obj in objects])
        return
    print_table(
        ["bucket", "key", "object"],
        [[obj.bucket.name, obj.key, _object_data(obj)["object"]] for obj in objects],
    )
