"""Points of view onto a resource.

A view exposes a subset of a resource's fields against the same bucket::

    class PersonAge(ResourceView, resource=Person):
        name: Field[str] = Field(writable=False)
        age: Field[int]

    older = PersonAge.get("remy")
    older.age = 12
    older.update()  # fields outside the view are kept by the server

Views are fetched or projected from a resource, never created or posted.
"""

from __future__ import annotations

from typing import Any, ClassVar

from riakrest.bucket import Bucket
from riakrest.errors import ViewError
from riakrest.objects import StoredObject
from riakrest.resource import Resource, ResourceType, _check_bool, _install_accessors
from riakrest.schema import Schema
from riakrest.types import _collect_fields, make_record_type


def _check_within(view_name: str, view: Schema, resource: Schema) -> None:
    for desc, names, allowed in (
        ("allowed", view.allowed_fields, resource.allowed_fields),
        ("readable", view.read_mask, resource.read_mask),
        ("writable", view.write_mask, resource.write_mask),
    ):
        outside = [n for n in names if n not in allowed]
        if outside:
            raise ViewError(
                f"View '{view_name}' has {desc} fields the resource does not allow: {outside}"
            )


class ResourceView(Resource, abstract=True):
    """Base class for views onto a Resource."""

    __view_of__: ClassVar[type[Resource]]

    def __init_subclass__(
        cls,
        resource: type[Resource] | None = None,
        auto_update: bool = False,
        **kwargs: Any,
    ) -> None:
        # Resource.__init_subclass__ would bind a bucket of its own
        super(Resource, cls).__init_subclass__(**kwargs)

        if (
            not isinstance(resource, type)
            or not issubclass(resource, Resource)
            or issubclass(resource, ResourceView)
        ):
            raise ViewError(f"View '{cls.__name__}' must name the Resource it projects")

        fields = _collect_fields(cls)
        if not fields:
            raise ViewError(f"View '{cls.__name__}' declares no fields")
        record_cls = make_record_type(f"{cls.__name__}Record", fields, module=cls.__module__)
        _check_within(cls.__name__, record_cls.schema(), resource.schema())
        _install_accessors(cls, record_cls)

        parent = resource.__resource__
        cls._record_type = record_cls
        cls.__view_of__ = resource
        cls.__resource__ = ResourceType(
            name=cls.__name__,
            bucket=Bucket(parent.bucket.name, record_cls, parent.bucket.params),
            auto_update=_check_bool("auto_update", auto_update),
            parent=parent,
        )

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        raise ViewError(
            f"{type(self).__name__} is a view; use get() or Resource.view() to obtain one"
        )

    @classmethod
    def project(cls, resource: Resource) -> Any:
        """The view of an in-process resource; shares its key, links and version."""
        if not isinstance(resource, cls.__view_of__):
            raise ViewError(
                f"{cls.__name__} views {cls.__view_of__.__name__}, not {type(resource).__name__}"
            )
        values = {n: resource.record[n] for n in cls._record_type.__record_fields__}
        record = cls._record_type._from_values(values)
        stored = StoredObject(
            cls.__resource__.bucket,
            record,
            key=resource.key,
            links=resource.links,
            version=resource.version,
        )
        return cls.from_stored(stored)

    @classmethod
    def _get_options(cls, opts: dict[str, Any]) -> dict[str, Any]:
        opts.setdefault("read_fields", cls._record_type.schema().read_mask)
        return opts

    def _store_options(self, opts: dict[str, Any]) -> dict[str, Any]:
        opts.setdefault("copy", True)
        opts.setdefault("read_fields", self._record_type.schema().read_mask)
        return opts

    def put(self, **opts: Any) -> Any:
        if self.is_local:
            raise ViewError(f"{type(self).__name__} can only update a stored resource")
        return super().put(**opts)

    def post(self, **opts: Any) -> Any:
        raise ViewError(f"{type(self).__name__} is a view and cannot be posted")
