"""Masked conversion between records, stored objects and their JSON wire shapes.

Only write-masked fields go to the server and only read-masked fields are
taken from it. Stored objects travel in an envelope::

    {"bucket": "people", "key": "remy",
     "object": {"name": "remy", "age": 10},
     "links": [["people", "callie", "sister"]],
     "vclock": "...", "vtag": "...", "lastmod": "..."}
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from pydantic_core import to_jsonable_python

from riakrest.bucket import Bucket
from riakrest.errors import CodecError
from riakrest.objects import ServerVersion, StoredObject
from riakrest.links import StorageLink

if TYPE_CHECKING:
    from riakrest.types import Record


def to_wire(record: Record) -> dict[str, Any]:
    """Write-masked fields of ``record`` whose value is set."""
    out: dict[str, Any] = {}
    for name in type(record)._schema.write_mask:
        value = getattr(record, name, None)
        if value is not None:
            out[name] = to_jsonable_python(value)
    return out


def from_wire(data: Mapping[str, Any], record_type: type[Record]) -> Record:
    """Build a ``record_type`` instance from the read-masked fields present in ``data``."""
    if not isinstance(data, Mapping):
        raise CodecError(f"Record data must be a JSON object, got {type(data).__name__}")
    values = {name: data[name] for name in record_type._schema.read_mask if name in data}
    return record_type._from_values(values)


def object_to_wire(obj: StoredObject) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "bucket": obj.bucket.name,
        "key": obj.key,
        "object": to_wire(obj.record),
        "links": [link.for_wire() for link in obj.links],
    }
    if obj.version is not None:
        payload.update(obj.version.to_wire())
    return payload


def object_from_wire(payload: Any, bucket: Bucket) -> StoredObject:
    """Decode an object envelope using the record type bound to ``bucket``.

    An envelope from another bucket (reached by a wildcard traversal) is bound
    under that bucket's name with the same record type.
    """
    if not isinstance(payload, Mapping):
        raise CodecError(f"Object envelope must be a JSON object, got {type(payload).__name__}")
    if "object" not in payload:
        raise CodecError("Object envelope is missing 'object'")

    links = payload.get("links") or []
    if not isinstance(links, list):
        raise CodecError("Object envelope 'links' must be a list")

    name = payload.get("bucket")
    if isinstance(name, str) and name.strip() and name.strip() != bucket.name:
        bucket = bucket.renamed(name)

    key = payload.get("key") or ""
    if not isinstance(key, str):
        raise CodecError("Object envelope 'key' must be a string")

    return StoredObject(
        bucket,
        from_wire(payload["object"], bucket.record_type),
        key=key,
        links=[StorageLink.from_wire(link) for link in links],
        version=ServerVersion.from_wire(payload),
    )
