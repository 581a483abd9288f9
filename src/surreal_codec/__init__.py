"""Surreal Codec - Records and sum types to and from document store values."""

from surreal_codec.codecs import Codec, RecordCodec, TransparentCodec, VariantCodec
from surreal_codec.config import CodecConfig, get_config
from surreal_codec.errors import (
    ConfigurationError,
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
from surreal_codec.naming import NamingConvention, camel_to_snake, snake_to_camel
from surreal_codec.registry import CodecRegistry, default_registry, deserialize, serialize
from surreal_codec.types import (
    EncodingStrategy,
    FieldDefinition,
    Link,
    Shape,
    SumType,
    VariantDefinition,
    VariantShape,
    transparent,
    wire_field,
)
from surreal_codec.values import ABSENT, Thing, render

__all__ = [
    # Main API
    "CodecRegistry",
    "CodecConfig",
    "get_config",
    "default_registry",
    "serialize",
    "deserialize",
    # Declarations
    "SumType",
    "Link",
    "wire_field",
    "transparent",
    # Descriptors
    "Codec",
    "RecordCodec",
    "TransparentCodec",
    "VariantCodec",
    "FieldDefinition",
    "VariantDefinition",
    "Shape",
    "VariantShape",
    "EncodingStrategy",
    # Wire values
    "ABSENT",
    "Thing",
    "render",
    # Naming
    "NamingConvention",
    "camel_to_snake",
    "snake_to_camel",
    # Errors
    "ConfigurationError",
    "SerializeError",
    "DeserializeError",
    "ExpectedAnObject",
    "ExpectedAnArray",
    "ExpectedAnArrayWith1ItemToDeserializeToObject",
    "InvalidEnumFormat",
    "UnknownVariant",
    "TypeEnumMustBeString",
    "NumberOfFieldOfLengthOfDbValueNotMatchLengthOfEnum",
    "ParsingFieldFailed",
    "MissingValue",
    "UnexpectedValue",
]

__version__ = "0.1.0"
