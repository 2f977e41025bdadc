"""Field-set schema for structured interaction with a bucket.

A schema holds four sets of field names:

* ``allowed_fields``: every field that may take part in the interaction.
* ``required_fields``: fields that must be present when storing.
* ``read_mask``: fields returned by the server on retrieval.
* ``write_mask``: fields sent to the server on storage.

Every mask is a subset of ``allowed_fields``. Dynamic changes to a bucket's
schema do not touch data already stored; they only affect future interaction.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from enum import Enum
from typing import Any

from riakrest.errors import SchemaViolation

SCHEMA_KEY = "schema"
ALLOWED = "allowed_fields"
REQUIRED = "required_fields"
READ_MASK = "read_mask"
WRITE_MASK = "write_mask"

_SET_NAMES = (ALLOWED, REQUIRED, READ_MASK, WRITE_MASK)


def field_name(value: Any) -> str:
    """Normalize a field name; a str-valued Enum member is the same field as its value."""
    if isinstance(value, Enum):
        value = value.value
    if not isinstance(value, str):
        raise SchemaViolation(f"Field names must be strings, got {type(value).__name__}")
    if not value.strip():
        raise SchemaViolation("Field names must not be empty")
    return value


def _field_list(desc: str, fields: Any) -> tuple[str, ...]:
    """Validate a sequence of field names and collapse duplicates, keeping first positions."""
    if isinstance(fields, (str, bytes, Enum)) or not isinstance(fields, Iterable):
        raise SchemaViolation(f"{desc} must be a sequence of field names")
    if isinstance(fields, Mapping):
        raise SchemaViolation(f"{desc} must be a sequence of field names")
    seen: dict[str, None] = {}
    for f in fields:
        seen.setdefault(field_name(f), None)
    return tuple(seen)


def _varargs(fields: tuple[Any, ...]) -> tuple[str, ...]:
    # allow("a", "b") and allow(["a", "b"]) are equivalent
    if len(fields) == 1 and not isinstance(fields[0], (str, Enum)):
        return _field_list("fields", fields[0])
    return _field_list("fields", fields)


class Schema:
    """The four field sets of a record type."""

    def __init__(
        self,
        allowed_fields: Iterable[Any] = (),
        required_fields: Iterable[Any] = (),
        read_mask: Iterable[Any] = (),
        write_mask: Iterable[Any] = (),
    ) -> None:
        self._sets: dict[str, tuple[str, ...]] = {
            ALLOWED: _field_list(ALLOWED, allowed_fields),
            REQUIRED: _field_list(REQUIRED, required_fields),
            READ_MASK: _field_list(READ_MASK, read_mask),
            WRITE_MASK: _field_list(WRITE_MASK, write_mask),
        }
        for name in (REQUIRED, READ_MASK, WRITE_MASK):
            self._check_allowed(name, self._sets[name])

    @classmethod
    def declare(
        cls,
        allowed: Iterable[Any],
        required: Iterable[Any] = (),
        read_mask: Iterable[Any] | None = None,
        write_mask: Iterable[Any] | None = None,
    ) -> Schema:
        """Declare a schema; both masks default to the allowed fields."""
        allowed_fields = _field_list(ALLOWED, allowed)
        return cls(
            allowed_fields,
            required,
            allowed_fields if read_mask is None else read_mask,
            allowed_fields if write_mask is None else write_mask,
        )

    @classmethod
    def create(cls, arg: Any) -> Schema:
        """Create a schema from a sequence of allowed names or a mapping of the four sets.

        The mapping may be wrapped in a ``{"schema": {...}}`` envelope, which
        is the shape the server uses.
        """
        if isinstance(arg, Schema):
            return arg.copy()
        if isinstance(arg, Mapping):
            opts = arg.get(SCHEMA_KEY, arg)
            if not isinstance(opts, Mapping):
                raise SchemaViolation("schema envelope must contain a mapping")
            if opts.get(ALLOWED) is None:
                raise SchemaViolation(f"{ALLOWED} is required")
            return cls.declare(
                _field_list(ALLOWED, opts[ALLOWED]),
                _field_list(REQUIRED, opts.get(REQUIRED) or ()),
                _optional_list(READ_MASK, opts.get(READ_MASK)),
                _optional_list(WRITE_MASK, opts.get(WRITE_MASK)),
            )
        if isinstance(arg, (str, bytes)) or not isinstance(arg, Iterable):
            raise SchemaViolation("Create arg must be either a mapping or a sequence of names")
        return cls.declare(arg)

    @classmethod
    def from_wire(cls, payload: Mapping[str, Any]) -> Schema:
        """Create a schema from the server's schema envelope."""
        if not isinstance(payload, Mapping):
            raise SchemaViolation("schema payload must be a mapping")
        return cls.create(payload)

    def to_wire(self) -> dict[str, Any]:
        """Schema envelope suitable for sending to the server."""
        return {SCHEMA_KEY: {name: list(self._sets[name]) for name in _SET_NAMES}}

    # --- field sets ---

    @property
    def allowed_fields(self) -> tuple[str, ...]:
        return self._sets[ALLOWED]

    @property
    def required_fields(self) -> tuple[str, ...]:
        return self._sets[REQUIRED]

    @property
    def read_mask(self) -> tuple[str, ...]:
        return self._sets[READ_MASK]

    @property
    def write_mask(self) -> tuple[str, ...]:
        return self._sets[WRITE_MASK]

    def is_allowed(self, name: Any) -> bool:
        return field_name(name) in self._sets[ALLOWED]

    # --- extension ---

    def allow(self, *fields: Any) -> list[str]:
        """Add to the allowed fields. Returns the names that were not already allowed."""
        return self._union(ALLOWED, _varargs(fields))

    def require(self, *fields: Any) -> list[str]:
        """Add to the required fields. Every name must already be allowed."""
        return self._extend(REQUIRED, _varargs(fields))

    def readable(self, *fields: Any) -> list[str]:
        """Add to the read mask. Every name must already be allowed."""
        return self._extend(READ_MASK, _varargs(fields))

    def writable(self, *fields: Any) -> list[str]:
        """Add to the write mask. Every name must already be allowed."""
        return self._extend(WRITE_MASK, _varargs(fields))

    def readwrite(self, *fields: Any) -> list[str]:
        """Allow the fields and add them to both masks.

        Returns the names added to either mask.
        """
        names = _varargs(fields)
        self._union(ALLOWED, names)
        added = dict.fromkeys(self._union(READ_MASK, names))
        added.update(dict.fromkeys(self._union(WRITE_MASK, names)))
        return list(added)

    def _extend(self, set_name: str, names: tuple[str, ...]) -> list[str]:
        self._check_allowed(set_name, names)
        return self._union(set_name, names)

    def _union(self, set_name: str, names: tuple[str, ...]) -> list[str]:
        current = self._sets[set_name]
        added = [n for n in names if n not in current]
        self._sets[set_name] = current + tuple(added)
        return added

    def _check_allowed(self, set_name: str, names: Iterable[str]) -> None:
        allowed = self._sets[ALLOWED]
        invalid = [n for n in names if n not in allowed]
        if invalid:
            raise SchemaViolation(f"{set_name} contains fields that are not allowed: {invalid}")

    def copy(self) -> Schema:
        return Schema(self.allowed_fields, self.required_fields, self.read_mask, self.write_mask)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Schema):
            return NotImplemented
        return all(set(self._sets[n]) == set(other._sets[n]) for n in _SET_NAMES)

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        parts = ", ".join(f"{n}={list(self._sets[n])!r}" for n in _SET_NAMES)
        return f"Schema({parts})"


def _optional_list(desc: str, fields: Any) -> tuple[str, ...] | None:
    if fields is None:
        return None
    return _field_list(desc, fields)
