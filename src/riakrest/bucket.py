"""Bucket bindings: a bucket name, the record type stored there, and quorum parameters."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, fields, replace
from typing import Any

from riakrest.errors import BucketError
from riakrest.schema import Schema
from riakrest.types import Record

QUORUM_KEYS = ("reads", "writes", "durable_writes", "waits")


@dataclass(frozen=True)
class QuorumParams:
    """Read, write, durable-write and delete quorum values.

    ``None`` leaves the value to the next level (client defaults, then the
    server's own bucket settings). Values are integers or the symbolic
    quorum names the server understands (``"one"``, ``"quorum"``, ``"all"``).
    """

    reads: int | str | None = None
    writes: int | str | None = None
    durable_writes: int | str | None = None
    waits: int | str | None = None

    @classmethod
    def create(cls, params: QuorumParams | Mapping[str, Any] | None) -> QuorumParams:
        if params is None:
            return cls()
        if isinstance(params, QuorumParams):
            return params
        if not isinstance(params, Mapping):
            raise BucketError("Request params must be a mapping")
        unknown = sorted(str(k) for k in params if k not in QUORUM_KEYS)
        if unknown:
            raise BucketError(f"Unrecognized request params: {unknown}")
        for name, value in params.items():
            if value is None:
                continue
            if isinstance(value, bool) or not isinstance(value, (int, str)):
                raise BucketError(f"Request param '{name}' must be an int or a quorum name")
        return cls(**params)

    def merged(self, fallback: QuorumParams) -> QuorumParams:
        """These params, with unset values taken from ``fallback``."""
        return replace(
            self,
            **{
                f.name: getattr(fallback, f.name)
                for f in fields(self)
                if getattr(self, f.name) is None
            },
        )

    def to_dict(self) -> dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self) if getattr(self, f.name) is not None}


def _bucket_name(name: Any) -> str:
    if not isinstance(name, str):
        raise BucketError("Bucket name must be a string")
    name = name.strip()
    if not name:
        raise BucketError("Bucket name cannot be empty")
    return name


def _check_record_type(record_type: Any) -> type[Record]:
    if not isinstance(record_type, type) or not issubclass(record_type, Record):
        raise BucketError(f"Bucket record type must be a Record subclass, got {record_type!r}")
    return record_type


class Bucket:
    """Binds a bucket name to the record type stored there.

    Bucket equality is name and record type; request params do not take part.
    """

    def __init__(
        self,
        name: str,
        record_type: type[Record],
        params: QuorumParams | Mapping[str, Any] | None = None,
    ) -> None:
        self._name = _bucket_name(name)
        self._record_type = _check_record_type(record_type)
        self._params = QuorumParams.create(params)

    @property
    def name(self) -> str:
        return self._name

    @property
    def record_type(self) -> type[Record]:
        return self._record_type

    @record_type.setter
    def record_type(self, value: type[Record]) -> None:
        self._record_type = _check_record_type(value)

    @property
    def params(self) -> QuorumParams:
        return self._params

    @params.setter
    def params(self, value: QuorumParams | Mapping[str, Any] | None) -> None:
        self._params = QuorumParams.create(value)

    @property
    def schema(self) -> Schema:
        """Schema of the record type. Does not consult the server."""
        return self._record_type.schema()

    def renamed(self, name: str) -> Bucket:
        return Bucket(name, self._record_type, self._params)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Bucket):
            return NotImplemented
        return self._name == other._name and self._record_type is other._record_type

    def __hash__(self) -> int:
        return hash((self._name, self._record_type))

    def __repr__(self) -> str:
        return f"Bucket({self._name!r}, {self._record_type.__name__})"
