"""Stored objects: a record bound to a bucket and key, with links and server version."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any

from riakrest.bucket import Bucket
from riakrest.errors import LinkShapeError, SchemaViolation
from riakrest.links import StorageLink, Wildcard
from riakrest.types import Record

VERSION_KEYS = ("vclock", "vtag", "lastmod")


@dataclass(frozen=True)
class ServerVersion:
    """Opaque version tokens the server reports for a stored object."""

    vclock: str
    vtag: str | None = None
    lastmod: str | None = None

    @classmethod
    def from_wire(cls, payload: Mapping[str, Any]) -> ServerVersion | None:
        vclock = payload.get("vclock")
        if vclock is None:
            return None
        return cls(vclock, payload.get("vtag"), payload.get("lastmod"))

    def to_wire(self) -> dict[str, Any]:
        return {"vclock": self.vclock, "vtag": self.vtag, "lastmod": self.lastmod}


def _check_link(link: Any) -> StorageLink:
    if not isinstance(link, StorageLink):
        raise LinkShapeError(f"Expected a StorageLink, got {type(link).__name__}")
    if isinstance(link.bucket, Wildcard) or isinstance(link.key, Wildcard):
        raise LinkShapeError(f"Stored links need a concrete bucket and key: {link}")
    return link


class StoredObject:
    """A record in a bucket, addressed by key.

    An object without a server version is local: it has never been stored
    (or was built in-process). ``key`` is empty when the server should assign
    one on the first store.
    """

    def __init__(
        self,
        bucket: Bucket,
        record: Record,
        key: str | None = None,
        links: Iterable[StorageLink] = (),
        version: ServerVersion | None = None,
    ) -> None:
        if not isinstance(bucket, Bucket):
            raise TypeError(f"Expected a Bucket, got {type(bucket).__name__}")
        self._bucket = bucket
        self.record = record
        if key is None:
            key = record.key_hint() or ""
        self.key = key
        self._links: list[StorageLink] = []
        for link in links:
            self.add_link(link)
        self.version = version

    @property
    def bucket(self) -> Bucket:
        return self._bucket

    @bucket.setter
    def bucket(self, value: Bucket) -> None:
        if not isinstance(value, Bucket):
            raise TypeError(f"Expected a Bucket, got {type(value).__name__}")
        if not isinstance(self._record, value.record_type):
            raise SchemaViolation(
                f"Record type {type(self._record).__name__} does not match bucket '{value.name}'"
            )
        self._bucket = value

    @property
    def record(self) -> Record:
        return self._record

    @record.setter
    def record(self, value: Record) -> None:
        if not isinstance(value, self._bucket.record_type):
            raise SchemaViolation(
                f"Expected a {self._bucket.record_type.__name__} record for bucket "
                f"'{self._bucket.name}', got {type(value).__name__}"
            )
        self._record = value

    @property
    def key(self) -> str:
        return self._key

    @key.setter
    def key(self, value: str | None) -> None:
        if value is None:
            value = ""
        if not isinstance(value, str):
            raise TypeError(f"Key must be a string, got {type(value).__name__}")
        self._key = value.strip()

    @property
    def links(self) -> tuple[StorageLink, ...]:
        return tuple(self._links)

    @property
    def is_local(self) -> bool:
        return self.version is None

    def add_link(self, link: StorageLink) -> bool:
        """Add ``link`` unless already present. Returns whether it was added."""
        link = _check_link(link)
        if link in self._links:
            return False
        self._links.append(link)
        return True

    def remove_link(self, link: StorageLink) -> bool:
        """Remove ``link`` if present. Returns whether it was removed."""
        try:
            self._links.remove(link)
        except ValueError:
            return False
        return True

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, StoredObject):
            return NotImplemented
        return (
            self._bucket == other._bucket
            and self._key == other._key
            and self._record == other._record
            and self._links == other._links
            and self.version == other.version
        )

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        state = "local" if self.is_local else "persisted"
        return (
            f"StoredObject(bucket={self._bucket.name!r}, key={self._key!r}, "
            f"record={self._record!r}, links={len(self._links)}, {state})"
        )
