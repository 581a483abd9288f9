"""Errors raised by codec registration, serialization and deserialization."""

from __future__ import annotations

from typing import Any

_REPR_LIMIT = 80


def short_repr(value: Any) -> str:
    """repr() clipped for use in error messages."""
    text = repr(value)
    if len(text) > _REPR_LIMIT:
        text = text[: _REPR_LIMIT - 3] + "..."
    return text


class ConfigurationError(TypeError):
    """A type could not be registered with the given declaration."""


class SerializeError(TypeError):
    """A value handed to serialize() does not match the codec's host type."""


class DeserializeError(ValueError):
    """Base class for every failure to turn a wire value into a host value."""


class _ReprError(DeserializeError):
    message = "Unexpected value"

    def __init__(self, value: Any) -> None:
        self.value = value
        super().__init__(f"{self.message}: {short_repr(value)}")


class ExpectedAnObject(_ReprError):
    message = "Expected an object"


class ExpectedAnArray(_ReprError):
    message = "Expected an array"


class ExpectedAnArrayWith1ItemToDeserializeToObject(_ReprError):
    message = "Expected an object or an array with exactly one object"


class InvalidEnumFormat(_ReprError):
    message = "Invalid enum format"


class TypeEnumMustBeString(_ReprError):
    message = "Enum 'type' must be a string"


class NumberOfFieldOfLengthOfDbValueNotMatchLengthOfEnum(_ReprError):
    message = "Number of values does not match the variant's arity"


class MissingValue(_ReprError):
    message = "Missing value for a required field"


class UnknownVariant(DeserializeError):
    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Unknown variant: {name!r}")


class UnexpectedValue(DeserializeError):
    def __init__(self, expected: str, value: Any) -> None:
        self.expected = expected
        self.value = value
        super().__init__(f"Expected {expected}, got {short_repr(value)}")


class ParsingFieldFailed(DeserializeError):
    """A field (or array element) failed; ``cause`` holds the inner error."""

    def __init__(self, field_name: str, cause: DeserializeError) -> None:
        self.field_name = field_name
        self.cause = cause
        super().__init__(f"Parsing field '{field_name}' failed: {cause}")
        self.__cause__ = cause

    @property
    def path(self) -> tuple[str, ...]:
        """Wire names from this field down to the innermost failure."""
        names = [self.field_name]
        inner = self.cause
        while isinstance(inner, ParsingFieldFailed):
            names.append(inner.field_name)
            inner = inner.cause
        return tuple(names)

    @property
    def root_cause(self) -> DeserializeError:
        inner = self.cause
        while isinstance(inner, ParsingFieldFailed):
            inner = inner.cause
        return inner
