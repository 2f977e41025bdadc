"""Record and Field types for riakrest."""

from __future__ import annotations

import inspect
import sys
from collections.abc import Iterable, Mapping
from typing import Any, ClassVar, Generic, Optional, TypeVar, get_args

from pydantic import BaseModel, ConfigDict, create_model

from riakrest.errors import SchemaViolation
from riakrest.schema import Schema, field_name

T = TypeVar("T")

_SENTINEL = object()


class Field(Generic[T]):
    """Field descriptor for Record schemas.

    Every declared field is allowed. ``readable`` and ``writable`` place it in
    the read and write masks, ``required`` in the required set.
    """

    def __init__(
        self,
        default: Any = None,
        *,
        default_factory: Any | None = None,
        required: bool = False,
        readable: bool = True,
        writable: bool = True,
    ) -> None:
        self.default = default
        self.default_factory = default_factory
        self.required = required
        self.readable = readable
        self.writable = writable
        self.name: str = ""
        self.annotation: Any = None

    def __set_name__(self, owner: type, name: str) -> None:
        self.name = name

    def __get__(self, obj: Any, objtype: type | None = None) -> Any:
        if obj is None:
            return self
        return obj.__dict__.get(self.name)

    def __set__(self, obj: Any, value: Any) -> None:
        obj.__dict__[self.name] = value

    def has_default(self) -> bool:
        return self.default is not None or self.default_factory is not None

    def get_default(self) -> Any:
        if self.default_factory is not None:
            return self.default_factory()
        return self.default

    def clone(self) -> Field[Any]:
        f: Field[Any] = Field(
            self.default,
            default_factory=self.default_factory,
            required=self.required,
            readable=self.readable,
            writable=self.writable,
        )
        f.name = self.name
        f.annotation = self.annotation
        return f

    def __repr__(self) -> str:
        return (
            f"Field(name={self.name!r}, required={self.required}, "
            f"readable={self.readable}, writable={self.writable})"
        )


def _resolve_annotation(ann: Any, module_name: str) -> Any:
    """Resolve string annotations and extract the inner type from Field[T]."""
    if isinstance(ann, str):
        module = sys.modules.get(module_name, None)
        ns = vars(module) if module else {}
        try:
            ann = eval(ann, ns)  # noqa: S307
        except Exception:
            return Any

    origin = getattr(ann, "__origin__", None)
    if origin is Field:
        args = get_args(ann)
        return args[0] if args else Any
    return ann


def _collect_fields(cls: type) -> dict[str, Field[Any]]:
    """Collect Field descriptors declared in the annotations of ``cls`` (not parents)."""
    fields: dict[str, Field[Any]] = {}

    for name, ann in inspect.get_annotations(cls).items():
        origin = getattr(ann, "__origin__", None)
        is_field_ann = origin is Field
        if isinstance(ann, str) and ann.startswith("Field"):
            is_field_ann = True
        if not is_field_ann:
            continue

        val = cls.__dict__.get(name, _SENTINEL)
        field_desc: Field[Any]
        if isinstance(val, Field):
            field_desc = val
        elif val is _SENTINEL or val is None:
            field_desc = Field()
        else:
            # `age: Field[int] = 0` shorthand
            field_desc = Field(default=val)

        field_desc.name = field_name(name)
        field_desc.annotation = _resolve_annotation(ann, cls.__module__)
        fields[name] = field_desc

        if not isinstance(cls.__dict__.get(name), Field):
            setattr(cls, name, field_desc)

    return fields


def _build_pydantic_model(model_name: str, fields: Mapping[str, Field[Any]]) -> type[BaseModel]:
    """Build a Pydantic model validating values for the given fields.

    Every field is optional: ``None`` means the field is unset.
    """
    pydantic_fields: dict[str, Any] = {}
    for name, f in fields.items():
        ann = f.annotation if f.annotation is not None else Any
        pydantic_fields[name] = (Optional[ann], None)

    return create_model(  # type: ignore[call-overload]
        model_name,
        __config__=ConfigDict(arbitrary_types_allowed=True),
        **pydantic_fields,
    )


def _schema_from_fields(base: Schema | None, fields: Mapping[str, Field[Any]]) -> Schema:
    schema = base.copy() if base is not None else Schema()
    for name, f in fields.items():
        schema.allow(name)
        if f.required:
            schema.require(name)
        if f.readable:
            schema.readable(name)
        if f.writable:
            schema.writable(name)
    return schema


def _key_fields(type_name: str, key: Any, fields: Iterable[str]) -> tuple[str, ...]:
    if key is None:
        return ()
    names = (key,) if isinstance(key, str) else tuple(key)
    names = tuple(field_name(n) for n in names)
    unknown = [n for n in names if n not in fields]
    if unknown:
        raise SchemaViolation(f"Record '{type_name}' key fields are not declared: {unknown}")
    return names


class Record:
    """Base class for typed records.

    Declaring a subclass generates its Schema once from the Field annotations;
    instances are validated field bags.
    """

    __record_name__: ClassVar[str]
    __record_fields__: ClassVar[tuple[str, ...]] = ()
    __key_fields__: ClassVar[tuple[str, ...]] = ()
    _schema: ClassVar[Schema]
    _field_definitions: ClassVar[dict[str, Field[Any]]] = {}
    _pydantic_model: ClassVar[type[BaseModel]]

    def __init_subclass__(cls, name: str | None = None, key: Any = None, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)

        cls.__record_name__ = name or cls.__name__

        own = _collect_fields(cls)
        reserved = [n for n in own if hasattr(Record, n)]
        if reserved:
            raise SchemaViolation(
                f"Record '{cls.__record_name__}' uses reserved field names: {reserved}"
            )

        fields = {**cls._field_definitions, **own}
        cls._field_definitions = fields
        cls.__record_fields__ = tuple(fields)
        cls._schema = _schema_from_fields(getattr(cls, "_schema", None), own)
        if key is not None:
            cls.__key_fields__ = _key_fields(cls.__record_name__, key, fields)
        cls._pydantic_model = _build_pydantic_model(f"_{cls.__record_name__}Model", fields)

    def __init__(self, **data: Any) -> None:
        self._populate(data, use_defaults=True)

    @classmethod
    def _from_values(cls, values: Mapping[str, Any]) -> Any:
        """Create an instance holding only ``values``; other fields stay unset."""
        obj = cls.__new__(cls)
        obj._populate(dict(values), use_defaults=False)
        return obj

    def _populate(self, data: dict[str, Any], *, use_defaults: bool) -> None:
        unknown = [k for k in data if k not in self._field_definitions]
        if unknown:
            raise SchemaViolation(f"Fields not allowed for '{self.__record_name__}': {unknown}")

        # Validate through pydantic
        validated = self._pydantic_model(**data)
        for name, f in self._field_definitions.items():
            if name in data:
                setattr(self, name, getattr(validated, name))
            elif use_defaults and f.has_default():
                setattr(self, name, f.get_default())

    # --- schema ---

    @classmethod
    def schema(cls) -> Schema:
        """A copy of the schema for this record type."""
        return cls._schema.copy()

    @classmethod
    def allow(cls, *fields: Any) -> list[str]:
        """Allow more fields on this record type, installing accessors for them."""
        added = cls._schema.allow(*fields)
        cls._install_fields(added)
        return added

    @classmethod
    def require(cls, *fields: Any) -> list[str]:
        return cls._schema.require(*fields)

    @classmethod
    def readable(cls, *fields: Any) -> list[str]:
        return cls._schema.readable(*fields)

    @classmethod
    def writable(cls, *fields: Any) -> list[str]:
        return cls._schema.writable(*fields)

    @classmethod
    def readwrite(cls, *fields: Any) -> list[str]:
        before = set(cls._schema.allowed_fields)
        added = cls._schema.readwrite(*fields)
        cls._install_fields([n for n in cls._schema.allowed_fields if n not in before])
        return added

    @classmethod
    def _install_fields(cls, names: Iterable[str]) -> None:
        names = [n for n in names if n not in cls._field_definitions]
        if not names:
            return
        reserved = [n for n in names if hasattr(Record, n)]
        if reserved:
            cls._schema = _schema_without(cls._schema, reserved)
            raise SchemaViolation(
                f"Record '{cls.__record_name__}' uses reserved field names: {reserved}"
            )
        fields = dict(cls._field_definitions)
        for name in names:
            f: Field[Any] = Field()
            f.name = name
            f.annotation = Any
            setattr(cls, name, f)
            fields[name] = f
        cls._field_definitions = fields
        cls.__record_fields__ = tuple(fields)
        cls._pydantic_model = _build_pydantic_model(f"_{cls.__record_name__}Model", fields)

    # --- wire ---

    def to_wire(self) -> dict[str, Any]:
        """Values of the write-masked fields that are set."""
        from riakrest.codec import to_wire

        return to_wire(self)

    @classmethod
    def from_wire(cls, data: Mapping[str, Any]) -> Any:
        """Create a record from the read-masked fields in ``data``."""
        from riakrest.codec import from_wire

        return from_wire(data, cls)

    # --- keys ---

    def key_hint(self) -> str | None:
        """Natural key for this record, or None to let the server assign one."""
        if not self.__key_fields__:
            return None
        key = "".join(
            str(v) for v in (getattr(self, n) for n in self.__key_fields__) if v is not None
        )
        return key or None

    # --- generic access ---

    def __getitem__(self, name: str) -> Any:
        if name not in self._field_definitions:
            raise KeyError(name)
        return getattr(self, name)

    def __setitem__(self, name: str, value: Any) -> None:
        if name not in self._field_definitions:
            raise KeyError(name)
        setattr(self, name, value)

    def model_dump(self) -> dict[str, Any]:
        return {name: getattr(self, name) for name in self.__record_fields__}

    def __repr__(self) -> str:
        fields = ", ".join(f"{k}={getattr(self, k)!r}" for k in self.__record_fields__)
        return f"{self.__class__.__name__}({fields})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, self.__class__):
            return NotImplemented
        return self.model_dump() == other.model_dump()


def _schema_without(schema: Schema, names: list[str]) -> Schema:
    keep = [n for n in schema.allowed_fields if n not in names]
    return Schema(
        keep,
        [n for n in schema.required_fields if n in keep],
        [n for n in schema.read_mask if n in keep],
        [n for n in schema.write_mask if n in keep],
    )


def make_record_type(
    name: str,
    fields: Mapping[str, Field[Any]],
    *,
    key: Any = None,
    module: str | None = None,
) -> type[Record]:
    """Build a Record subclass from already-collected Field descriptors."""
    annotations: dict[str, Any] = {}
    ns: dict[str, Any] = {"__module__": module or __name__}
    for field_key, f in fields.items():
        clone = f.clone()
        annotations[field_key] = Field[clone.annotation if clone.annotation is not None else Any]
        ns[field_key] = clone
    ns["__annotations__"] = annotations
    return type(name, (Record,), ns, key=key)  # type: ignore[call-arg]


def record_type(name: str, fields: Schema | Iterable[Any], *, key: Any = None) -> type[Record]:
    """Create a record type from a Schema or a list of field names.

    A list of names gives fields that are allowed, readable and writable.
    """
    schema = fields.copy() if isinstance(fields, Schema) else Schema.declare(fields)
    descriptors: dict[str, Field[Any]] = {}
    for n in schema.allowed_fields:
        f: Field[Any] = Field(
            required=n in schema.required_fields,
            readable=n in schema.read_mask,
            writable=n in schema.write_mask,
        )
        f.name = n
        f.annotation = Any
        descriptors[n] = f
    return make_record_type(name, descriptors, key=key)
