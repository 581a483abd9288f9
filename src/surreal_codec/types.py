"""Declarations and descriptors for records and sum types."""

from __future__ import annotations

import dataclasses
from dataclasses import MISSING, dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Callable, ClassVar, Generic, TypeVar

from surreal_codec.errors import ConfigurationError
from surreal_codec.values import Thing

if TYPE_CHECKING:
    from surreal_codec.codecs import Codec


# Keys used by the tagged enum encoding
TAG_KEY = "type"
VALUE_KEY = "value"

# dataclasses.Field.metadata key holding FieldOptions
FIELD_OPTIONS_KEY = "surreal_codec"


class Shape(Enum):
    """How a field's value is carried on the wire, resolved from its annotation."""

    LEAF = "leaf"
    RECORD = "record"
    VARIANT = "variant"
    OPTIONAL = "optional"
    SEQUENCE = "sequence"
    MAPPING = "mapping"
    LINK = "link"
    TRANSPARENT = "transparent"


class VariantShape(Enum):
    """Payload shape of a single sum type variant."""

    UNIT = "unit"
    TUPLE = "tuple"
    NAMED = "named"


class EncodingStrategy(Enum):
    """Wire format for the non-unit variants of a sum type."""

    IMPLICIT = "implicit"  # {wire_name: payload}
    TAGGED = "tagged"  # {"type": wire_name, "value": payload}


def encoding_for_tag(tag: str | None) -> EncodingStrategy:
    """Map a declared tag key to an encoding strategy."""
    if not tag:
        return EncodingStrategy.IMPLICIT
    if tag == TAG_KEY:
        return EncodingStrategy.TAGGED
    raise ConfigurationError('Invalid tag field name, only "type" is allowed.')


# ---- Per-field configuration ----


@dataclass(frozen=True)
class FieldOptions:
    """Overrides declared on a single dataclass field."""

    rename: str | None = None
    skip_serializing: bool = False
    skip_deserializing: bool = False
    default_on_absent: bool = False


def wire_field(
    *,
    rename: str | None = None,
    skip_serializing: bool = False,
    skip_deserializing: bool = False,
    default_on_absent: bool = False,
    default: Any = MISSING,
    default_factory: Any = MISSING,
    **kwargs: Any,
) -> Any:
    """dataclasses.field() with codec options attached to its metadata.

    Args:
        rename: Wire name to use instead of the naming-convention one.
        skip_serializing: Leave the field out of serialized objects.
        skip_deserializing: Ignore the wire value and use the field default.
        default_on_absent: Use the field default when the key is missing.
    """
    metadata = dict(kwargs.pop("metadata", None) or {})
    metadata[FIELD_OPTIONS_KEY] = FieldOptions(
        rename=rename,
        skip_serializing=skip_serializing,
        skip_deserializing=skip_deserializing,
        default_on_absent=default_on_absent,
    )
    return field(default=default, default_factory=default_factory, metadata=metadata, **kwargs)


def field_options(f: dataclasses.Field) -> FieldOptions:
    """Return the FieldOptions declared on a dataclass field (or the defaults)."""
    return f.metadata.get(FIELD_OPTIONS_KEY, FieldOptions())


# ---- Per-record configuration ----


def transparent(cls: type) -> type:
    """Mark a single-field dataclass to be carried as its field's bare value.

    ::

        @transparent
        @dataclass
        class Email:
            address: str

    serializes ``Email("a@b.c")`` as ``"a@b.c"`` rather than an object.
    """
    cls.__transparent__ = True
    return cls


def is_transparent(tp: type) -> bool:
    return tp.__dict__.get("__transparent__", False)


# ---- Descriptors ----


@dataclass
class FieldDefinition:
    """A record (or named variant) field as seen by the codec."""

    name: str
    wire_name: str
    shape: Shape
    codec: Codec
    skip_serializing: bool = False
    skip_deserializing: bool = False
    default_on_absent: bool = False
    default_factory: Callable[[], Any] | None = None

    @property
    def is_optional(self) -> bool:
        return self.shape is Shape.OPTIONAL

    @property
    def is_sequence(self) -> bool:
        return self.shape is Shape.SEQUENCE

    def default(self) -> Any:
        """Return a fresh default value for this field."""
        if self.default_factory is None:
            raise ConfigurationError(f"Field '{self.name}' has no default value")
        return self.default_factory()


@dataclass
class VariantDefinition:
    """A single variant within a sum type."""

    name: str
    wire_name: str
    host_type: type
    shape: VariantShape
    fields: list[FieldDefinition] = field(default_factory=list)

    @property
    def arity(self) -> int:
        return len(self.fields)

    def matches(self, name: str, translate: Callable[[str], str]) -> bool:
        """True if a name read from the wire designates this variant."""
        return name == self.wire_name or translate(name) == self.wire_name


# ---- Sum types ----


class SumType:
    """Base for sum types.

    Subclass once to declare the sum type, then subclass that with one
    dataclass per variant::

        class Figure(SumType, tag="type"):
            pass

        @dataclass
        class Empty(Figure):
            pass

        @dataclass
        class Point(Figure, shape="tuple"):
            x: float
            y: float

        @dataclass
        class Circle(Figure):
            radius: float

    ``tag`` selects the encoding: omitted or ``""`` for implicit,
    ``"type"`` for tagged. Variants are kept in declaration order.
    """

    __encoding__: ClassVar[EncodingStrategy]
    __variants__: ClassVar[list[type]]
    __variant_shape__: ClassVar[str | None] = None
    __variant_rename__: ClassVar[str | None] = None

    def __init_subclass__(
        cls,
        tag: str | None = None,
        shape: str | None = None,
        rename: str | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init_subclass__(**kwargs)
        if SumType in cls.__bases__:
            if shape is not None or rename is not None:
                raise ConfigurationError(
                    f"'shape' and 'rename' apply to variants, not to sum type {cls.__name__}"
                )
            cls.__encoding__ = encoding_for_tag(tag)
            cls.__variants__ = []
            return

        root = sum_type_root(cls)
        if root not in cls.__bases__:
            raise ConfigurationError(
                f"Variant {cls.__name__} must subclass its sum type {root.__name__} directly"
            )
        if tag is not None:
            raise ConfigurationError(f"'tag' applies to sum types, not to variant {cls.__name__}")
        if shape not in (None, "named", "tuple"):
            raise ConfigurationError(f"Unknown variant shape {shape!r} on {cls.__name__}")
        cls.__variant_shape__ = shape
        cls.__variant_rename__ = rename
        root.__variants__.append(cls)


def is_sum_type(tp: Any) -> bool:
    """True for a sum type declaration (not for one of its variants)."""
    return isinstance(tp, type) and SumType in tp.__bases__


def sum_type_root(tp: type) -> type:
    """Return the sum type a variant class belongs to."""
    for base in tp.__mro__:
        if SumType in base.__bases__:
            return base
    raise ConfigurationError(f"{tp.__name__} is not a sum type variant")


# ---- Record links ----

T = TypeVar("T")


@dataclass(frozen=True)
class Link(Generic[T]):
    """Reference to a record: either its identity or the record itself."""

    id: Thing | None = None
    record: T | None = None

    def __post_init__(self) -> None:
        if (self.id is None) == (self.record is None):
            raise ValueError("Link needs exactly one of 'id' or 'record'")

    @classmethod
    def to(cls, table: str, key: str | int) -> Link[T]:
        return cls(id=Thing(table, key))

    @property
    def is_id(self) -> bool:
        return self.id is not None
