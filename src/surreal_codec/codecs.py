"""Codecs between host values and wire values.

Every codec is a small object with ``serialize(value)`` and
``deserialize(wire)``. Record and variant codecs hold the field and variant
descriptors built by the registry and delegate each field to that field's
own codec, so nesting is handled by recursion.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from decimal import Decimal
from typing import Any, Callable

from surreal_codec.errors import (
    DeserializeError,
    ExpectedAnArray,
    ExpectedAnArrayWith1ItemToDeserializeToObject,
    ExpectedAnObject,
    InvalidEnumFormat,
    MissingValue,
    NumberOfFieldOfLengthOfDbValueNotMatchLengthOfEnum,
    ParsingFieldFailed,
    SerializeError,
    TypeEnumMustBeString,
    UnexpectedValue,
    UnknownVariant,
)
from surreal_codec.types import (
    TAG_KEY,
    VALUE_KEY,
    EncodingStrategy,
    FieldDefinition,
    Link,
    Shape,
    VariantDefinition,
    VariantShape,
)
from surreal_codec.values import (
    ABSENT,
    Thing,
    check_wire,
    parse_datetime,
    parse_duration,
)


def _is_missing(wire: Any) -> bool:
    """ABSENT and the explicit none marker both mean "no value"."""
    return wire is ABSENT or wire is None


class Codec:
    """Base class for all codecs."""

    shape: Shape = Shape.LEAF
    name: str = "?"

    def serialize(self, value: Any) -> Any:
        raise NotImplementedError

    def deserialize(self, wire: Any) -> Any:
        raise NotImplementedError

    def zero(self) -> Callable[[], Any] | None:
        """Factory for the type's default value, or None if it has none."""
        return None

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name}>"


# ---- Leaves ----


class LeafCodec(Codec):
    """Scalar codec: the wire value is the host value."""

    host_types: tuple[type, ...] = ()
    expected: str = "a value"
    zero_value: Any = None

    def _accepts(self, value: Any) -> bool:
        return isinstance(value, self.host_types) and not (
            isinstance(value, bool) and bool not in self.host_types
        )

    def serialize(self, value: Any) -> Any:
        if not self._accepts(value):
            raise SerializeError(f"Expected {self.expected}, got {type(value).__name__}")
        return value

    def deserialize(self, wire: Any) -> Any:
        if _is_missing(wire):
            raise MissingValue(wire)
        if self._accepts(wire):
            return self.convert(wire)
        if isinstance(wire, str):
            try:
                return self.parse(wire)
            except ValueError:
                pass
        raise UnexpectedValue(self.expected, wire)

    def convert(self, wire: Any) -> Any:
        return wire

    def parse(self, text: str) -> Any:
        """Fallback for leaves whose wire form may arrive as text."""
        raise ValueError(text)

    def zero(self) -> Callable[[], Any] | None:
        if self.zero_value is None:
            return None
        value = self.zero_value
        return lambda: value


class BoolCodec(LeafCodec):
    name = "bool"
    host_types = (bool,)
    expected = "a boolean"
    zero_value = False


class IntCodec(LeafCodec):
    name = "int"
    host_types = (int,)
    expected = "an integer"
    zero_value = 0


class FloatCodec(LeafCodec):
    name = "float"
    host_types = (float, int)
    expected = "a number"
    zero_value = 0.0

    def convert(self, wire: Any) -> Any:
        return float(wire)


class DecimalCodec(LeafCodec):
    name = "Decimal"
    host_types = (Decimal, int)
    expected = "a decimal number"
    zero_value = Decimal(0)

    def convert(self, wire: Any) -> Any:
        return Decimal(wire)


class StrCodec(LeafCodec):
    name = "str"
    host_types = (str,)
    expected = "a string"
    zero_value = ""


class ThingCodec(LeafCodec):
    name = "Thing"
    host_types = (Thing,)
    expected = "a record id"

    def parse(self, text: str) -> Any:
        return Thing.parse(text)


class DurationCodec(LeafCodec):
    name = "timedelta"
    host_types = (timedelta,)
    expected = "a non-negative duration"
    zero_value = timedelta(0)

    def _accepts(self, value: Any) -> bool:
        # The store has no negative durations
        return super()._accepts(value) and value >= timedelta(0)

    def parse(self, text: str) -> Any:
        return parse_duration(text)


class DatetimeCodec(LeafCodec):
    name = "datetime"
    host_types = (datetime,)
    expected = "a timestamp"

    def parse(self, text: str) -> Any:
        return parse_datetime(text)


class AnyCodec(Codec):
    """Passes any wire value through unchanged."""

    name = "Any"

    def serialize(self, value: Any) -> Any:
        try:
            check_wire(value)
        except (TypeError, ValueError) as e:
            raise SerializeError(str(e)) from e
        return value

    def deserialize(self, wire: Any) -> Any:
        return None if wire is ABSENT else wire

    def zero(self) -> Callable[[], Any] | None:
        return lambda: None


# ---- Containers ----


class OptionalCodec(Codec):
    """``X | None``: None is the none marker; a missing key is None too."""

    shape = Shape.OPTIONAL

    def __init__(self, inner: Codec) -> None:
        self.inner = inner

    @property
    def name(self) -> str:  # type: ignore[override]
        return f"{self.inner.name} | None"

    def serialize(self, value: Any) -> Any:
        if value is None:
            return None
        return self.inner.serialize(value)

    def deserialize(self, wire: Any) -> Any:
        if _is_missing(wire):
            return None
        return self.inner.deserialize(wire)

    def zero(self) -> Callable[[], Any] | None:
        return lambda: None


class SequenceCodec(Codec):
    """``list[X]`` or ``tuple[X, ...]`` carried as an array."""

    shape = Shape.SEQUENCE

    def __init__(self, inner: Codec, container: type = list) -> None:
        self.inner = inner
        self.container = container

    @property
    def name(self) -> str:  # type: ignore[override]
        if self.container is tuple:
            return f"tuple[{self.inner.name}, ...]"
        return f"list[{self.inner.name}]"

    def serialize(self, value: Any) -> Any:
        if not isinstance(value, (list, tuple)):
            raise SerializeError(f"Expected a sequence, got {type(value).__name__}")
        return [self.inner.serialize(item) for item in value]

    def deserialize(self, wire: Any) -> Any:
        if _is_missing(wire):
            raise MissingValue(wire)
        if not isinstance(wire, list):
            raise ExpectedAnArray(wire)
        items = []
        for i, item in enumerate(wire):
            try:
                items.append(self.inner.deserialize(item))
            except DeserializeError as e:
                raise ParsingFieldFailed(str(i), e) from e
        return self.container(items)

    def zero(self) -> Callable[[], Any] | None:
        return self.container


class MappingCodec(Codec):
    """``dict[str, X]`` carried as an object."""

    shape = Shape.MAPPING

    def __init__(self, inner: Codec) -> None:
        self.inner = inner

    @property
    def name(self) -> str:  # type: ignore[override]
        return f"dict[str, {self.inner.name}]"

    def serialize(self, value: Any) -> Any:
        if not isinstance(value, dict):
            raise SerializeError(f"Expected a dict, got {type(value).__name__}")
        result = {}
        for key, item in value.items():
            if not isinstance(key, str):
                raise SerializeError(f"Object keys must be strings, got {type(key).__name__}")
            result[key] = self.inner.serialize(item)
        return result

    def deserialize(self, wire: Any) -> Any:
        if _is_missing(wire):
            raise MissingValue(wire)
        if not isinstance(wire, dict):
            raise ExpectedAnObject(wire)
        result = {}
        for key, item in wire.items():
            try:
                result[key] = self.inner.deserialize(item)
            except DeserializeError as e:
                raise ParsingFieldFailed(key, e) from e
        return result

    def zero(self) -> Callable[[], Any] | None:
        return dict


# ---- Records ----


def serialize_fields(fields: list[FieldDefinition], value: Any) -> dict[str, Any]:
    """Serialize the fields of a record or named variant, in declaration order."""
    result: dict[str, Any] = {}
    for f in fields:
        if f.skip_serializing:
            continue
        result[f.wire_name] = f.codec.serialize(getattr(value, f.name))
    return result


def deserialize_field(f: FieldDefinition, obj: dict[str, Any]) -> Any:
    """Read one field from a wire object, wrapping failures with its wire name."""
    if f.skip_deserializing:
        return f.default()
    wire = obj.get(f.wire_name, ABSENT)
    if wire is ABSENT and f.default_on_absent:
        return f.default()
    if f.shape is Shape.RECORD and _is_missing(wire):
        raise ParsingFieldFailed(f.wire_name, MissingValue(wire))
    try:
        return f.codec.deserialize(wire)
    except DeserializeError as e:
        raise ParsingFieldFailed(f.wire_name, e) from e


def deserialize_fields(fields: list[FieldDefinition], obj: dict[str, Any]) -> dict[str, Any]:
    """Read every field; returns keyword arguments for the host constructor."""
    return {f.name: deserialize_field(f, obj) for f in fields}


class RecordCodec(Codec):
    """Dataclass <-> object codec.

    Fields are bound after construction so that self-referential records
    can refer to their own codec.
    """

    shape = Shape.RECORD

    def __init__(self, host_type: type) -> None:
        self.host_type = host_type
        self.name = host_type.__name__
        self.fields: list[FieldDefinition] = []

    def bind(self, fields: list[FieldDefinition]) -> None:
        self.fields = list(fields)

    def get_field(self, name: str) -> FieldDefinition | None:
        for f in self.fields:
            if f.name == name:
                return f
        return None

    def serialize(self, value: Any) -> dict[str, Any]:
        if not isinstance(value, self.host_type):
            raise SerializeError(f"Expected {self.name}, got {type(value).__name__}")
        return serialize_fields(self.fields, value)

    def deserialize(self, wire: Any) -> Any:
        obj = self._unwrap(wire)
        return self.host_type(**deserialize_fields(self.fields, obj))

    def _unwrap(self, wire: Any) -> dict[str, Any]:
        """Accept an object, or a single-row result (array of one object)."""
        if isinstance(wire, dict):
            return wire
        if isinstance(wire, list):
            if len(wire) == 1 and isinstance(wire[0], dict):
                return wire[0]
            raise ExpectedAnArrayWith1ItemToDeserializeToObject(wire)
        raise ExpectedAnObject(wire)


class TransparentCodec(Codec):
    """Single-field record carried as its field's bare value."""

    shape = Shape.TRANSPARENT

    def __init__(self, host_type: type) -> None:
        self.host_type = host_type
        self.name = host_type.__name__
        self.field: FieldDefinition | None = None

    def bind(self, field: FieldDefinition) -> None:
        self.field = field

    def serialize(self, value: Any) -> Any:
        if not isinstance(value, self.host_type):
            raise SerializeError(f"Expected {self.name}, got {type(value).__name__}")
        return self.field.codec.serialize(getattr(value, self.field.name))

    def deserialize(self, wire: Any) -> Any:
        return self.host_type(**{self.field.name: self.field.codec.deserialize(wire)})

    def zero(self) -> Callable[[], Any] | None:
        inner = self.field.codec.zero() if self.field else None
        if inner is None:
            return None
        return lambda: self.host_type(**{self.field.name: inner()})


# ---- Sum types ----


class VariantCodec(Codec):
    """Sum type codec with implicit or tagged encoding.

    Unit variants are always a bare string. Other variants are either
    ``{wire_name: payload}`` (implicit) or
    ``{"type": wire_name, "value": payload}`` (tagged), where the payload is
    an array for tuple variants and an object for named variants.
    """

    shape = Shape.VARIANT

    def __init__(
        self,
        host_type: type,
        encoding: EncodingStrategy,
        translate: Callable[[str], str],
    ) -> None:
        self.host_type = host_type
        self.name = host_type.__name__
        self.encoding = encoding
        self.translate = translate
        self.variants: list[VariantDefinition] = []
        self._by_type: dict[type, VariantDefinition] = {}

    def bind(self, variants: list[VariantDefinition]) -> None:
        self.variants = list(variants)
        self._by_type = {v.host_type: v for v in self.variants}

    def get_variant(self, name: str) -> VariantDefinition | None:
        for v in self.variants:
            if v.matches(name, self.translate):
                return v
        return None

    def variant_of(self, value: Any) -> VariantDefinition | None:
        return self._by_type.get(type(value))

    def serialize(self, value: Any) -> Any:
        variant = self.variant_of(value)
        if variant is None:
            raise SerializeError(f"Expected a variant of {self.name}, got {type(value).__name__}")
        if variant.shape is VariantShape.UNIT:
            return variant.wire_name

        if variant.shape is VariantShape.TUPLE:
            payload: Any = [f.codec.serialize(getattr(value, f.name)) for f in variant.fields]
        else:
            payload = serialize_fields(variant.fields, value)

        if self.encoding is EncodingStrategy.TAGGED:
            return {TAG_KEY: variant.wire_name, VALUE_KEY: payload}
        return {variant.wire_name: payload}

    def deserialize(self, wire: Any) -> Any:
        if _is_missing(wire):
            raise MissingValue(wire)
        name, payload = self._split(wire)
        variant = self.get_variant(name)
        if variant is None:
            raise UnknownVariant(name)

        if variant.shape is VariantShape.UNIT:
            return variant.host_type()
        if variant.shape is VariantShape.TUPLE:
            return variant.host_type(*self._tuple_payload(variant, payload))
        if not isinstance(payload, dict):
            raise ExpectedAnObject(payload)
        return variant.host_type(**deserialize_fields(variant.fields, payload))

    def _split(self, wire: Any) -> tuple[str, Any]:
        """Recover (variant name, payload) from either encoding."""
        if self.encoding is EncodingStrategy.TAGGED:
            if isinstance(wire, str):
                wire = {TAG_KEY: wire}
            if not isinstance(wire, dict):
                raise InvalidEnumFormat(wire)
            name = wire.get(TAG_KEY, ABSENT)
            if not isinstance(name, str):
                raise TypeEnumMustBeString(wire)
            return name, wire.get(VALUE_KEY, name)

        if isinstance(wire, str):
            wire = {wire: wire}
        if not isinstance(wire, dict) or len(wire) != 1:
            raise InvalidEnumFormat(wire)
        ((name, payload),) = wire.items()
        return name, payload

    def _tuple_payload(self, variant: VariantDefinition, payload: Any) -> list[Any]:
        if not isinstance(payload, list):
            raise ExpectedAnArray(payload)
        if len(payload) != variant.arity:
            raise NumberOfFieldOfLengthOfDbValueNotMatchLengthOfEnum(payload)
        values = []
        for i, (f, item) in enumerate(zip(variant.fields, payload)):
            try:
                values.append(f.codec.deserialize(item))
            except DeserializeError as e:
                raise ParsingFieldFailed(str(i), e) from e
        return values


class VariantMemberCodec(Codec):
    """A single variant class used as a type: only that variant is accepted."""

    shape = Shape.VARIANT

    def __init__(self, host_type: type, sum_type: VariantCodec) -> None:
        self.host_type = host_type
        self.name = host_type.__name__
        self.sum_type = sum_type

    def serialize(self, value: Any) -> Any:
        if type(value) is not self.host_type:
            raise SerializeError(f"Expected {self.name}, got {type(value).__name__}")
        return self.sum_type.serialize(value)

    def deserialize(self, wire: Any) -> Any:
        value = self.sum_type.deserialize(wire)
        if type(value) is not self.host_type:
            raise UnknownVariant(self.sum_type.variant_of(value).wire_name)
        return value


# ---- Links ----


class LinkCodec(Codec):
    """``Link[T]``: a record id, or the record itself as an object."""

    shape = Shape.LINK

    def __init__(self, target: Codec) -> None:
        self.target = target

    @property
    def name(self) -> str:  # type: ignore[override]
        return f"Link[{self.target.name}]"

    def serialize(self, value: Any) -> Any:
        if not isinstance(value, Link):
            raise SerializeError(f"Expected a Link, got {type(value).__name__}")
        if value.id is not None:
            return value.id
        return self.target.serialize(value.record)

    def deserialize(self, wire: Any) -> Any:
        if _is_missing(wire):
            raise MissingValue(wire)
        if isinstance(wire, Thing):
            return Link(id=wire)
        if isinstance(wire, str):
            try:
                return Link(id=Thing.parse(wire))
            except ValueError:
                raise UnexpectedValue("a record id or an object", wire) from None
        if isinstance(wire, (dict, list)):
            return Link(record=self.target.deserialize(wire))
        raise UnexpectedValue("a record id or an object", wire)
