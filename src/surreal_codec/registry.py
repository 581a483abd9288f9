"""Registry that resolves host types to codecs."""

from __future__ import annotations

import dataclasses
import logging
import threading
import types
import typing
from datetime import datetime, timedelta
from decimal import Decimal
from functools import lru_cache
from typing import Any, Callable

from surreal_codec.codecs import (
    AnyCodec,
    BoolCodec,
    Codec,
    DatetimeCodec,
    DecimalCodec,
    DurationCodec,
    FloatCodec,
    IntCodec,
    LinkCodec,
    MappingCodec,
    OptionalCodec,
    RecordCodec,
    SequenceCodec,
    StrCodec,
    ThingCodec,
    TransparentCodec,
    VariantCodec,
    VariantMemberCodec,
)
from surreal_codec.config import CodecConfig, get_config
from surreal_codec.errors import ConfigurationError
from surreal_codec.types import (
    FieldDefinition,
    Link,
    SumType,
    VariantDefinition,
    VariantShape,
    field_options,
    is_sum_type,
    is_transparent,
    sum_type_root,
)
from surreal_codec.values import Thing, render

logger = logging.getLogger(__name__)


def _leaf_codecs() -> dict[Any, Codec]:
    return {
        bool: BoolCodec(),
        int: IntCodec(),
        float: FloatCodec(),
        Decimal: DecimalCodec(),
        str: StrCodec(),
        Thing: ThingCodec(),
        timedelta: DurationCodec(),
        datetime: DatetimeCodec(),
        Any: AnyCodec(),
    }


class CodecRegistry:
    """Builds and caches one codec per host type.

    Codecs are built on first use from the type's annotations. A codec is
    only published once it and everything it refers to are fully built;
    from then on it is never modified, so lookups need no locking.
    """

    def __init__(self, config: CodecConfig) -> None:
        self.config = config
        self.naming = config.naming
        self._codecs: dict[Any, Codec] = _leaf_codecs()
        self._pending: dict[Any, Codec] = {}
        self._depth = 0
        self._lock = threading.RLock()

    def codec_for(self, tp: Any) -> Codec:
        """Return the codec for a type annotation, building it if needed."""
        codec = self._codecs.get(tp)
        if codec is not None:
            return codec
        with self._lock:
            codec = self._codecs.get(tp) or self._pending.get(tp)
            if codec is not None:
                return codec
            outermost = self._depth == 0
            self._depth += 1
            try:
                codec = self._build(tp)
            except Exception:
                if outermost:
                    self._pending.clear()
                raise
            finally:
                self._depth -= 1
            if outermost:
                self._codecs.update(self._pending)
                self._pending.clear()
            return codec

    def __contains__(self, tp: Any) -> bool:
        return tp in self._codecs

    # ---- Public conversion API ----

    def serialize(self, value: Any, tp: Any = None) -> Any:
        """Serialize a host value. ``tp`` defaults to the value's own type."""
        codec = self.codec_for(type(value) if tp is None else tp)
        wire = codec.serialize(value)
        if self.config.enable_log and logger.isEnabledFor(logging.INFO):
            logger.info("%s: %s", self.config.namespace, render(wire))
        return wire

    def deserialize(self, tp: Any, wire: Any) -> Any:
        """Deserialize a wire value into ``tp``.

        Raises:
            DeserializeError: If the wire value does not fit the type.
        """
        return self.codec_for(tp).deserialize(wire)

    # ---- Building ----

    def _build(self, tp: Any) -> Codec:
        origin = typing.get_origin(tp)
        args = typing.get_args(tp)

        if origin is typing.Union or origin is types.UnionType:
            others = [a for a in args if a is not type(None)]
            if len(others) != 1 or len(others) == len(args):
                raise ConfigurationError(f"Only 'X | None' unions are supported, got {tp!r}")
            return self._publish(tp, OptionalCodec(self.codec_for(others[0])))

        if origin is list or tp is list:
            inner = self.codec_for(args[0] if args else Any)
            return self._publish(tp, SequenceCodec(inner))

        if origin is tuple:
            if len(args) != 2 or args[1] is not Ellipsis:
                raise ConfigurationError(f"Only variable-length tuples are supported, got {tp!r}")
            return self._publish(tp, SequenceCodec(self.codec_for(args[0]), container=tuple))

        if origin is dict or tp is dict:
            if args and args[0] is not str:
                raise ConfigurationError(f"Object keys must be str, got {tp!r}")
            inner = self.codec_for(args[1] if args else Any)
            return self._publish(tp, MappingCodec(inner))

        if origin is Link or tp is Link:
            if not args:
                raise ConfigurationError("Link needs a target type, e.g. Link[User]")
            return self._publish(tp, LinkCodec(self.codec_for(args[0])))

        if origin is not None:
            raise ConfigurationError(f"Unsupported type: {tp!r}")

        if is_sum_type(tp):
            return self._build_sum_type(tp)

        if isinstance(tp, type) and issubclass(tp, SumType):
            # Decoded through the sum type, then checked against this variant
            return self._publish(tp, VariantMemberCodec(tp, self.codec_for(sum_type_root(tp))))

        if isinstance(tp, type) and dataclasses.is_dataclass(tp):
            if is_transparent(tp):
                return self._build_transparent(tp)
            return self._build_record(tp)

        raise ConfigurationError(f"Unsupported type: {tp!r}")

    def _publish(self, tp: Any, codec: Codec) -> Codec:
        self._pending[tp] = codec
        return codec

    def _build_record(self, tp: type) -> RecordCodec:
        codec = RecordCodec(tp)
        self._publish(tp, codec)
        codec.bind(self._field_definitions(tp))
        logger.debug("registered record codec for %s (%d fields)", tp.__name__, len(codec.fields))
        return codec

    def _build_transparent(self, tp: type) -> TransparentCodec:
        codec = TransparentCodec(tp)
        self._publish(tp, codec)
        self._check_no_field_options(tp, "Transparent record")
        fields = self._field_definitions(tp)
        if len(fields) != 1:
            raise ConfigurationError(
                f"Transparent record {tp.__name__} requires exactly one field, got {len(fields)}"
            )
        codec.bind(fields[0])
        logger.debug("registered transparent codec for %s", tp.__name__)
        return codec

    def _build_sum_type(self, tp: type) -> VariantCodec:
        codec = VariantCodec(tp, tp.__encoding__, self.naming.apply)
        self._publish(tp, codec)

        variants: list[VariantDefinition] = []
        for variant_type in tp.__variants__:
            if not dataclasses.is_dataclass(variant_type):
                raise ConfigurationError(f"Variant {variant_type.__name__} must be a dataclass")
            fields = self._field_definitions(variant_type)
            if not fields:
                shape = VariantShape.UNIT
            elif variant_type.__variant_shape__ == "tuple":
                shape = VariantShape.TUPLE
                self._check_no_field_options(variant_type, "Tuple variant")
            else:
                shape = VariantShape.NAMED
            wire_name = variant_type.__variant_rename__ or self.naming.apply(variant_type.__name__)
            variants.append(
                VariantDefinition(
                    name=variant_type.__name__,
                    wire_name=wire_name,
                    host_type=variant_type,
                    shape=shape,
                    fields=fields,
                )
            )

        _check_unique(tp, [v.wire_name for v in variants])
        codec.bind(variants)
        logger.debug(
            "registered %s sum type codec for %s (%d variants)",
            codec.encoding.value,
            tp.__name__,
            len(variants),
        )
        return codec

    def _field_definitions(self, tp: type) -> list[FieldDefinition]:
        try:
            hints = typing.get_type_hints(tp)
        except NameError as e:
            raise ConfigurationError(f"Cannot resolve annotations of {tp.__name__}: {e}") from e

        definitions = []
        for f in dataclasses.fields(tp):
            if not f.init:
                continue
            opts = field_options(f)
            codec = self.codec_for(hints[f.name])
            default_factory = _default_factory(f, codec)
            # A key that is never written must come back as the default
            default_on_absent = opts.default_on_absent or opts.skip_serializing
            if (opts.skip_deserializing or default_on_absent) and default_factory is None:
                raise ConfigurationError(
                    f"Field '{tp.__name__}.{f.name}' needs a default to be skipped or defaulted"
                )
            definitions.append(
                FieldDefinition(
                    name=f.name,
                    wire_name=opts.rename or self.naming.apply(f.name),
                    shape=codec.shape,
                    codec=codec,
                    skip_serializing=opts.skip_serializing,
                    skip_deserializing=opts.skip_deserializing,
                    default_on_absent=default_on_absent,
                    default_factory=default_factory,
                )
            )

        _check_unique(tp, [d.wire_name for d in definitions])
        return definitions

    def _check_no_field_options(self, tp: type, kind: str) -> None:
        for f in dataclasses.fields(tp):
            opts = field_options(f)
            if opts.rename or opts.skip_serializing or opts.skip_deserializing or opts.default_on_absent:
                raise ConfigurationError(
                    f"{kind} {tp.__name__} cannot use field options (field '{f.name}')"
                )


def _default_factory(f: dataclasses.Field, codec: Codec) -> Callable[[], Any] | None:
    """Dataclass default first, then the type's zero value."""
    if f.default_factory is not dataclasses.MISSING:
        return f.default_factory
    if f.default is not dataclasses.MISSING:
        default = f.default
        return lambda: default
    return codec.zero()


def _check_unique(tp: type, wire_names: list[str]) -> None:
    seen: set[str] = set()
    for name in wire_names:
        if name in seen:
            raise ConfigurationError(f"Duplicate wire name '{name}' in {tp.__name__}")
        seen.add(name)


@lru_cache(maxsize=1)
def default_registry() -> CodecRegistry:
    """Registry built from the environment configuration."""
    return CodecRegistry(get_config())


def serialize(value: Any, tp: Any = None) -> Any:
    """Serialize with the default registry."""
    return default_registry().serialize(value, tp)


def deserialize(tp: Any, wire: Any) -> Any:
    """Deserialize with the default registry."""
    return default_registry().deserialize(tp, wire)
