"""Resources: records with a storage lifecycle.

A Resource subclass declares its fields like a Record and is bound to a
bucket at class creation::

    class Person(Resource, bucket="people", key=("name",)):
        name: Field[str]
        age: Field[int]

    Person.bind(StorageGateway("http://127.0.0.1:8002/jiak"))

    remy = Person(name="remy", age=10).post()
    remy.age = 11
    remy.update()

An instance is Local until it has been stored and Persisted afterwards. With
auto-update on, every field assignment and link change on a Persisted
instance stores it straight away; a failed store propagates from the
assignment and the local change is kept. Instances are not thread-safe.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, ClassVar

from riakrest.bucket import Bucket, QuorumParams
from riakrest.errors import (
    AlreadyStored,
    CannotLinkLocal,
    DuplicateKey,
    NotBound,
    NotYetStored,
    SchemaViolation,
)
from riakrest.gateway import StorageGateway
from riakrest.links import StorageLink
from riakrest.objects import ServerVersion, StoredObject
from riakrest.query import TraversalPlanner
from riakrest.schema import Schema
from riakrest.types import Record, _collect_fields, make_record_type

logger = logging.getLogger(__name__)


class AutoUpdate(Enum):
    """Per-instance auto-update setting. INHERIT defers to the resource type."""

    YES = "yes"
    NO = "no"
    INHERIT = "inherit"

    @classmethod
    def coerce(cls, value: AutoUpdate | bool | None) -> AutoUpdate:
        if isinstance(value, AutoUpdate):
            return value
        if value is None:
            return cls.INHERIT
        if value is True:
            return cls.YES
        if value is False:
            return cls.NO
        raise TypeError(f"auto_update must be True, False, None or an AutoUpdate, got {value!r}")


def resolve_auto_update(instance: AutoUpdate | bool | None, class_default: bool) -> bool:
    setting = AutoUpdate.coerce(instance)
    if setting is AutoUpdate.INHERIT:
        return class_default
    return setting is AutoUpdate.YES


def _check_bool(desc: str, value: Any) -> bool:
    if not isinstance(value, bool):
        raise TypeError(f"{desc} must be True or False, got {value!r}")
    return value


def _as_gateway(server: StorageGateway | str) -> StorageGateway:
    if isinstance(server, StorageGateway):
        return server
    if isinstance(server, str):
        return StorageGateway(server)
    raise TypeError(f"Expected a StorageGateway or a server URI, got {type(server).__name__}")


@dataclass
class ResourceType:
    """Settings shared by every instance of a Resource class."""

    name: str
    bucket: Bucket
    gateway: StorageGateway | None = None
    auto_post: bool = False
    auto_update: bool = False
    # Views resolve their gateway through the resource they project
    parent: ResourceType | None = None

    def require_gateway(self) -> StorageGateway:
        if self.gateway is not None:
            return self.gateway
        if self.parent is not None and self.parent.gateway is not None:
            return self.parent.gateway
        raise NotBound(self.name)


class _ResourceField:
    """Accessor for a record field on a Resource; assignment may trigger auto-update."""

    def __init__(self, name: str) -> None:
        self.name = name

    def __get__(self, obj: Any, objtype: type | None = None) -> Any:
        if obj is None:
            return self
        return getattr(obj._stored.record, self.name)

    def __set__(self, obj: Any, value: Any) -> None:
        setattr(obj._stored.record, self.name, value)
        obj._auto_update_hook()


def _install_accessors(cls: type, record_cls: type[Record]) -> None:
    reserved = set(dir(Resource))
    clashes = [n for n in record_cls.__record_fields__ if n in reserved]
    if clashes:
        raise SchemaViolation(f"Resource '{cls.__name__}' field names are reserved: {clashes}")
    for name in record_cls.__record_fields__:
        setattr(cls, name, _ResourceField(name))


def _resolve_record(
    cls: type,
    record: type[Record] | None,
    key: Any,
    inherited: type[Record] | None,
) -> type[Record]:
    fields = _collect_fields(cls)
    if record is not None:
        if fields:
            raise SchemaViolation(
                f"Resource '{cls.__name__}' declares fields and a record type; use one or the other"
            )
        if key is not None:
            raise SchemaViolation(f"Resource '{cls.__name__}': declare key fields on the record type")
        if not isinstance(record, type) or not issubclass(record, Record):
            raise TypeError(f"record must be a Record subclass, got {record!r}")
        return record
    if inherited is not None:
        if not fields and key is None:
            return inherited
        fields = {**inherited._field_definitions, **fields}
        if key is None:
            key = inherited.__key_fields__ or None
    return make_record_type(f"{cls.__name__}Record", fields, key=key, module=cls.__module__)


class Resource:
    """Base class for stored resources."""

    __resource__: ClassVar[ResourceType]
    _record_type: ClassVar[type[Record]]

    def __init_subclass__(
        cls,
        bucket: str | None = None,
        record: type[Record] | None = None,
        server: StorageGateway | str | None = None,
        auto_post: bool | None = None,
        auto_update: bool | None = None,
        key: Any = None,
        params: QuorumParams | dict[str, Any] | None = None,
        abstract: bool = False,
        **kwargs: Any,
    ) -> None:
        super().__init_subclass__(**kwargs)
        if abstract:
            return

        parent: ResourceType | None = getattr(cls, "__resource__", None)
        record_cls = _resolve_record(cls, record, key, getattr(cls, "_record_type", None))
        _install_accessors(cls, record_cls)
        cls._record_type = record_cls

        if parent is not None:
            bucket = bucket or parent.bucket.name
            params = parent.bucket.params if params is None else params
        gateway = _as_gateway(server) if server is not None else (parent.gateway if parent else None)
        if auto_post is None:
            auto_post = parent.auto_post if parent else False
        if auto_update is None:
            auto_update = parent.auto_update if parent else False

        cls.__resource__ = ResourceType(
            name=cls.__name__,
            bucket=Bucket(bucket or cls.__name__.lower(), record_cls, params),
            gateway=gateway,
            auto_post=_check_bool("auto_post", auto_post),
            auto_update=_check_bool("auto_update", auto_update),
        )

    def __init__(self, *, auto_update: AutoUpdate | bool | None = None, **fields: Any) -> None:
        rt = self.__resource__
        self._stored = StoredObject(rt.bucket, self._record_type(**fields))
        self._auto_update = AutoUpdate.coerce(auto_update)
        if rt.auto_post:
            self._auto_post()

    # --- class-level settings ---

    @classmethod
    def resource_type(cls) -> ResourceType:
        return cls.__resource__

    @classmethod
    def bind(cls, server: StorageGateway | str) -> ResourceType:
        """Attach a gateway (or a server URI) to this resource type."""
        cls.__resource__.gateway = _as_gateway(server)
        return cls.__resource__

    @classmethod
    def set_auto_post(cls, state: bool) -> None:
        cls.__resource__.auto_post = _check_bool("auto_post", state)

    @classmethod
    def set_auto_update(cls, state: bool) -> None:
        cls.__resource__.auto_update = _check_bool("auto_update", state)

    @classmethod
    def set_params(cls, params: QuorumParams | dict[str, Any] | None = None, **kw: Any) -> None:
        cls.__resource__.bucket.params = params if params is not None else kw

    @classmethod
    def record_type(cls) -> type[Record]:
        return cls._record_type

    @classmethod
    def schema(cls) -> Schema:
        return cls._record_type.schema()

    @classmethod
    def _gateway(cls) -> StorageGateway:
        return cls.__resource__.require_gateway()

    # --- class-level server access ---

    @classmethod
    def point_of_view(cls) -> Schema:
        """Push this type's schema to the server; future interaction uses it."""
        cls._gateway().set_schema(cls.__resource__.bucket)
        return cls.schema()

    @classmethod
    def is_point_of_view(cls) -> bool:
        """Whether the server's schema for the bucket matches this type's."""
        return cls._gateway().get_schema(cls.__resource__.bucket) == cls.schema()

    @classmethod
    def keys(cls) -> set[str]:
        return cls._gateway().keys(cls.__resource__.bucket)

    @classmethod
    def exists(cls, key: str) -> bool:
        return cls._gateway().exists(cls.__resource__.bucket, key)

    @classmethod
    def get(cls, key: str, **opts: Any) -> Any:
        """Fetch the resource stored under ``key``. Raises ResourceNotFound when absent."""
        obj = cls._gateway().get(cls.__resource__.bucket, key, **cls._get_options(opts))
        return cls.from_stored(obj)

    @classmethod
    def from_stored(cls, obj: StoredObject) -> Any:
        if not isinstance(obj, StoredObject):
            raise TypeError(f"Expected a StoredObject, got {type(obj).__name__}")
        if not isinstance(obj.record, cls._record_type):
            raise SchemaViolation(
                f"{cls.__name__} cannot wrap a {type(obj.record).__name__} record"
            )
        instance = cls.__new__(cls)
        instance._stored = obj
        instance._auto_update = AutoUpdate.INHERIT
        return instance

    @classmethod
    def _get_options(cls, opts: dict[str, Any]) -> dict[str, Any]:
        return opts

    def _store_options(self, opts: dict[str, Any]) -> dict[str, Any]:
        return opts

    # --- state ---

    @property
    def stored(self) -> StoredObject:
        return self._stored

    @property
    def record(self) -> Record:
        return self._stored.record

    @property
    def key(self) -> str:
        return self._stored.key

    @property
    def bucket(self) -> Bucket:
        return self._stored.bucket

    @property
    def links(self) -> tuple[StorageLink, ...]:
        return self._stored.links

    @property
    def version(self) -> ServerVersion | None:
        return self._stored.version

    @property
    def is_local(self) -> bool:
        return self._stored.is_local

    @property
    def auto_update(self) -> AutoUpdate:
        return self._auto_update

    @auto_update.setter
    def auto_update(self, value: AutoUpdate | bool | None) -> None:
        self._auto_update = AutoUpdate.coerce(value)

    # --- lifecycle ---

    def put(self, **opts: Any) -> Any:
        """Store the resource, replacing local state with what the server now holds."""
        stored = self._gateway().store(self._stored, return_object=True, **self._store_options(opts))
        self._stored = stored
        return self

    def post(self, **opts: Any) -> Any:
        """Initial store. Raises AlreadyStored if the resource has been stored before."""
        if not self.is_local:
            raise AlreadyStored(self.key)
        return self.put(**opts)

    def update(self, **opts: Any) -> Any:
        """Store changes. Raises NotYetStored if the resource was never stored."""
        if self.is_local:
            raise NotYetStored()
        return self.put(**opts)

    def refresh(self, **opts: Any) -> Any:
        """Replace local state with the server's copy."""
        if not self.key:
            raise NotYetStored()
        self._stored = self._gateway().get(self.bucket, self.key, **self._get_options(opts))
        return self

    def delete(self, **opts: Any) -> bool:
        if not self.key:
            raise NotYetStored()
        return self._gateway().delete(self.bucket, self.key, **opts)

    def _auto_post(self) -> None:
        key = self.key
        if key and self.exists(key):
            raise DuplicateKey(key)
        logger.debug("auto-post %s key=%r", self.__resource__.name, key)
        self.post()

    def _auto_update_hook(self) -> None:
        if self.is_local:
            return
        if resolve_auto_update(self._auto_update, self.__resource__.auto_update):
            logger.debug("auto-update %s key=%r", self.__resource__.name, self.key)
            self.put()

    # --- links ---

    def link(self, to: Resource, tag: str) -> Any:
        """Add a link to ``to`` under ``tag``. ``to`` must have been stored."""
        if to.is_local:
            raise CannotLinkLocal()
        if self._stored.add_link(StorageLink(to.bucket, to.key, tag)):
            self._auto_update_hook()
        return self

    def bi_link(self, to: Resource, tag: str, reverse_tag: str | None = None) -> Any:
        """Link both ways; the reverse link uses ``reverse_tag`` or ``tag``.

        Both resources must have been stored; neither is changed otherwise.
        """
        if self.is_local or to.is_local:
            raise CannotLinkLocal()
        self.link(to, tag)
        to.link(self, reverse_tag or tag)
        return self

    def remove_link(self, to: Resource, tag: str) -> bool:
        if not to.key:
            return False
        removed = self._stored.remove_link(StorageLink(to.bucket, to.key, tag))
        if removed:
            self._auto_update_hook()
        return removed

    def query(self, *steps: Any) -> list[Any]:
        """Follow links from this resource.

        Each step is ``(target, tag)`` or ``(target, tag, acc)``. Results are
        wrapped as the last target's Resource class when it is one.
        """
        if len(steps) == 1 and isinstance(steps[0], list):
            steps = tuple(steps[0])
        planner = TraversalPlanner(self._gateway())
        objects = planner.walk(self._stored, steps)
        target = planner.final_target(steps)
        if isinstance(target, type) and issubclass(target, Resource):
            return [target.from_stored(obj) for obj in objects]
        return objects

    walk = query

    def view(self, view_cls: type[Any]) -> Any:
        """Project this resource onto a view of it."""
        from riakrest.view import ResourceView

        if not isinstance(view_cls, type) or not issubclass(view_cls, ResourceView):
            raise TypeError(f"Expected a ResourceView subclass, got {view_cls!r}")
        return view_cls.project(self)

    # --- misc ---

    def __eq__(self, other: object) -> bool:
        if type(other) is not type(self):
            return NotImplemented
        return self._stored == other._stored  # type: ignore[attr-defined]

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        fields = ", ".join(f"{k}={getattr(self.record, k)!r}" for k in self._record_type.__record_fields__)
        state = "local" if self.is_local else f"key={self.key!r}"
        return f"{self.__class__.__name__}({fields}; {state})"
