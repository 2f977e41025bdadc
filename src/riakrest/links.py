"""Storage links between objects and query links for traversal.

A storage link is a directed, tagged edge held by a stored object. A query
link is one hop of a traversal; its components may be the wildcard ``ANY``.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any, Union
from urllib.parse import quote

from riakrest.bucket import Bucket
from riakrest.errors import LinkShapeError

WILDCARD_TOKEN = "_"


class Wildcard:
    """Matches any bucket, key or tag. ``ANY`` is the only instance."""

    _instance: Wildcard | None = None

    def __new__(cls) -> Wildcard:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "ANY"

    def __str__(self) -> str:
        return WILDCARD_TOKEN

    def __reduce__(self) -> str:
        return "ANY"


ANY = Wildcard()

Component = Union[str, Wildcard]


def _component(desc: str, value: Any, *, blank_is_wildcard: bool) -> Component:
    if isinstance(value, Wildcard):
        return ANY
    if value is None:
        if blank_is_wildcard:
            return ANY
        raise LinkShapeError(f"Link {desc} is required")
    if isinstance(value, Bucket):
        value = value.name
    if not isinstance(value, str):
        raise LinkShapeError(f"Link {desc} must be a string, got {type(value).__name__}")
    value = value.strip()
    if not value:
        if blank_is_wildcard:
            return ANY
        raise LinkShapeError(f"Link {desc} must not be blank")
    return value


def _render(component: Component) -> str:
    return WILDCARD_TOKEN if isinstance(component, Wildcard) else component


def _transport(parts: list[str]) -> str:
    return quote(",".join(parts), safe=",")


@dataclass(frozen=True)
class StorageLink:
    """Link from a stored object to ``bucket``/``key`` under ``tag``."""

    bucket: Component
    key: Component
    tag: Component

    def __post_init__(self) -> None:
        for desc in ("bucket", "key", "tag"):
            value = _component(desc, getattr(self, desc), blank_is_wildcard=False)
            object.__setattr__(self, desc, value)

    @property
    def is_concrete(self) -> bool:
        return not any(isinstance(c, Wildcard) for c in (self.bucket, self.key, self.tag))

    def for_wire(self) -> list[str]:
        return [_render(self.bucket), _render(self.key), _render(self.tag)]

    def for_transport(self) -> str:
        return _transport(self.for_wire())

    @classmethod
    def from_wire(cls, value: Any) -> StorageLink:
        """Parse a ``[bucket, key, tag]`` link reported by the server."""
        if isinstance(value, (str, bytes)) or not isinstance(value, Sequence) or len(value) != 3:
            raise LinkShapeError(f"Link must be a [bucket, key, tag] list, got {value!r}")
        return cls(*value)

    def __str__(self) -> str:
        return str(self.for_wire())


@dataclass(frozen=True)
class QueryLink:
    """One traversal hop: follow links into ``bucket`` tagged ``tag``.

    Missing or blank components match anything. ``acc`` is passed through to
    the server untouched.
    """

    bucket: Component = ANY
    tag: Component = ANY
    acc: Component = ANY

    def __post_init__(self) -> None:
        for desc in ("bucket", "tag", "acc"):
            value = _component(desc, getattr(self, desc), blank_is_wildcard=True)
            object.__setattr__(self, desc, value)

    @classmethod
    def create(cls, value: Any = None) -> QueryLink:
        """Create from None, an existing QueryLink, a bucket name or a 0-3 element sequence."""
        if value is None:
            return cls()
        if isinstance(value, QueryLink):
            return value
        if isinstance(value, str):
            return cls(value)
        if not isinstance(value, Sequence) or len(value) > 3:
            raise LinkShapeError(f"Query link must have at most 3 components, got {value!r}")
        return cls(*value)

    def for_wire(self) -> list[str]:
        return [_render(self.bucket), _render(self.tag), _render(self.acc)]

    def for_transport(self) -> str:
        return _transport(self.for_wire())

    def __str__(self) -> str:
        return str(self.for_wire())
