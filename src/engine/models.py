"""
Data models for the engine boundary.

Key concepts
────────────
TypeDescriptor    — table name, primary-key field and codec for one stored type
SortSpec          — field + direction for ordered reads
Persistable       — capability every storable type implements
PersistableModel  — dataclass mixin that derives the Persistable capability
"""

from dataclasses import dataclass, fields, is_dataclass
from typing import Any, Callable, ClassVar, Optional, Protocol, runtime_checkable

__all__ = [
    "TypeDescriptor",
    "SortSpec",
    "Persistable",
    "PersistableModel",
    "describe",
]


@dataclass(frozen=True)
class TypeDescriptor:
    """
    Everything the engine needs to know about one stored type.

    Fields
    ──────
    name         — table name (any non-empty string; the engine quotes it)
    primary_key  — name of the field holding the primary key
    fields       — known field names; empty means "untyped, accept any"
    factory      — payload dict → object; None loads rows as plain dicts
    """
    name:        str
    primary_key: str
    fields:      tuple[str, ...]                        = ()
    factory:     Optional[Callable[[dict], Any]]        = None

    def key_of(self, obj: Any) -> Any:
        """Return the primary key of *obj* (object or payload dict)."""
        if isinstance(obj, dict):
            return obj[self.primary_key]
        return obj.primary_key()

    def dump(self, obj: Any) -> dict:
        if isinstance(obj, dict):
            return dict(obj)
        return obj.to_payload()

    def load(self, payload: dict) -> Any:
        if self.factory is None:
            return payload
        return self.factory(payload)

    def has_field(self, name: str) -> bool:
        return not self.fields or name in self.fields


@dataclass(frozen=True)
class SortSpec:
    """Order rows by *field*; equal keys keep insertion order."""
    field:     str
    ascending: bool = True


@runtime_checkable
class Persistable(Protocol):
    """Capability interface for any object the facade can store."""

    @classmethod
    def type_descriptor(cls) -> TypeDescriptor: ...

    def primary_key(self) -> Any: ...

    def to_payload(self) -> dict: ...


class PersistableModel:
    """
    Mixin for dataclasses that should be storable.

    Usage::

        @dataclass
        class Connection(PersistableModel):
            __primary_key__ = "uuid"
            uuid: str
            name: str
            port: int = 5432

    ``__type_name__`` overrides the table name (defaults to the class name).
    """

    __primary_key__: ClassVar[str] = "id"
    __type_name__:   ClassVar[Optional[str]] = None

    @classmethod
    def type_descriptor(cls) -> TypeDescriptor:
        if not is_dataclass(cls):
            raise TypeError(f"{cls.__name__} must be a dataclass to use PersistableModel")
        names = tuple(f.name for f in fields(cls))
        if cls.__primary_key__ not in names:
            raise TypeError(
                f"{cls.__name__}.__primary_key__ = {cls.__primary_key__!r} "
                f"is not one of its fields {names}"
            )
        return TypeDescriptor(
            name=cls.__type_name__ or cls.__name__,
            primary_key=cls.__primary_key__,
            fields=names,
            factory=cls.from_payload,
        )

    @classmethod
    def from_payload(cls, payload: dict) -> "PersistableModel":
        known = {f.name for f in fields(cls) if f.init}
        return cls(**{k: v for k, v in payload.items() if k in known})

    def primary_key(self) -> Any:
        return getattr(self, self.__primary_key__)

    def to_payload(self) -> dict:
        return {f.name: getattr(self, f.name) for f in fields(self)}


def describe(type_or_descriptor: Any) -> TypeDescriptor:
    """
    Normalise a Persistable class or a TypeDescriptor into a TypeDescriptor.

    Raises:
        TypeError: *type_or_descriptor* is neither.
    """
    if isinstance(type_or_descriptor, TypeDescriptor):
        return type_or_descriptor
    factory = getattr(type_or_descriptor, "type_descriptor", None)
    if factory is None:
        raise TypeError(
            f"{type_or_descriptor!r} is not a Persistable type or TypeDescriptor"
        )
    return factory()
