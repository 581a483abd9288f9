"""Wire value model for the document store.

A wire value is one of::

    None            NONE (absent / none marker)
    bool            boolean
    int | float     number (Decimal is accepted as well)
    str             text
    list            array of wire values
    dict            object, str keys, insertion ordered
    Thing           record identity (table, key)
    timedelta       duration
    datetime        timestamp

``ABSENT`` is not a wire value. It is handed to a field codec when the key
is missing from the object so optional fields can tell "missing" apart from
a malformed value.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from enum import Enum
from typing import Any


class _Absent:
    """Sentinel type for a key that is missing from an object."""

    _instance: _Absent | None = None

    def __new__(cls) -> _Absent:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "ABSENT"

    def __bool__(self) -> bool:
        return False


ABSENT = _Absent()


_IDENT_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
_INT_RE = re.compile(r"^-?\d+$")


def _escape_ident(text: str) -> str:
    if _IDENT_RE.match(text):
        return text
    return "⟨" + text.replace("⟩", "\\⟩") + "⟩"


@dataclass(frozen=True)
class Thing:
    """Record identity: a table name plus a key within that table."""

    table: str
    key: str | int

    @classmethod
    def parse(cls, text: str) -> Thing:
        """Parse ``table:key``. Integer keys come back as ``int``."""
        table, sep, key = text.partition(":")
        if not sep or not table or not key:
            raise ValueError(f"Invalid record id: {text!r}")
        if key.startswith("⟨") and key.endswith("⟩"):
            return cls(table, key[1:-1].replace("\\⟩", "⟩"))
        if _INT_RE.match(key):
            return cls(table, int(key))
        return cls(table, key)

    def __str__(self) -> str:
        if isinstance(self.key, int):
            key = str(self.key)
        elif _INT_RE.match(self.key):
            key = "⟨" + self.key + "⟩"
        else:
            key = _escape_ident(self.key)
        return f"{_escape_ident(self.table)}:{key}"


class ValueKind(Enum):
    """Constructors of the wire value union."""

    NONE = "none"
    BOOL = "bool"
    NUMBER = "number"
    STRING = "string"
    ARRAY = "array"
    OBJECT = "object"
    THING = "thing"
    DURATION = "duration"
    DATETIME = "datetime"


def kind_of(value: Any) -> ValueKind:
    """Classify a wire value. Raises TypeError for non-wire values."""
    if value is None:
        return ValueKind.NONE
    # bool before int: bool is an int subclass
    if isinstance(value, bool):
        return ValueKind.BOOL
    if isinstance(value, (int, float, Decimal)):
        return ValueKind.NUMBER
    if isinstance(value, str):
        return ValueKind.STRING
    if isinstance(value, list):
        return ValueKind.ARRAY
    if isinstance(value, dict):
        return ValueKind.OBJECT
    if isinstance(value, Thing):
        return ValueKind.THING
    if isinstance(value, timedelta):
        return ValueKind.DURATION
    if isinstance(value, datetime):
        return ValueKind.DATETIME
    raise TypeError(f"Not a wire value: {type(value).__name__}")


def check_wire(value: Any) -> None:
    """Check a whole wire value tree.

    Raises:
        TypeError: If any node is not a wire value.
        ValueError: If a duration is negative or an object key is not a string.
    """
    kind = kind_of(value)
    if kind is ValueKind.ARRAY:
        for item in value:
            check_wire(item)
    elif kind is ValueKind.OBJECT:
        for key, item in value.items():
            if not isinstance(key, str):
                raise ValueError(f"Object keys must be strings, got {type(key).__name__}")
            check_wire(item)
    elif kind is ValueKind.DURATION and value < timedelta(0):
        raise ValueError(f"Durations cannot be negative: {value!r}")


# ---- Durations ----

_MICROS_PER_UNIT: dict[str, int] = {
    "y": 365 * 24 * 60 * 60 * 1_000_000,
    "w": 7 * 24 * 60 * 60 * 1_000_000,
    "d": 24 * 60 * 60 * 1_000_000,
    "h": 60 * 60 * 1_000_000,
    "m": 60 * 1_000_000,
    "s": 1_000_000,
    "ms": 1_000,
    "us": 1,
}

# Formatting order; years are accepted on input but never emitted.
_FORMAT_UNITS = ("w", "d", "h", "m", "s", "ms", "us")

_DURATION_PART_RE = re.compile(r"(\d+)(ns|us|µs|ms|s|m|h|d|w|y)")


def format_duration(value: timedelta) -> str:
    """Render a timedelta in the store's compact syntax, e.g. ``1h30m``."""
    micros = (value.days * 86_400 + value.seconds) * 1_000_000 + value.microseconds
    if micros < 0:
        raise ValueError(f"Durations cannot be negative: {value!r}")
    if micros == 0:
        return "0ns"
    parts = []
    for unit in _FORMAT_UNITS:
        count, micros = divmod(micros, _MICROS_PER_UNIT[unit])
        if count:
            parts.append(f"{count}{unit}")
    return "".join(parts)


def parse_duration(text: str) -> timedelta:
    """Parse the compact duration syntax. Nanoseconds are truncated."""
    pos = 0
    micros = 0
    nanos = 0
    for match in _DURATION_PART_RE.finditer(text):
        if match.start() != pos:
            break
        count, unit = int(match.group(1)), match.group(2)
        if unit == "ns":
            nanos += count
        else:
            micros += count * _MICROS_PER_UNIT["us" if unit == "µs" else unit]
        pos = match.end()
    if pos == 0 or pos != len(text):
        raise ValueError(f"Invalid duration: {text!r}")
    return timedelta(microseconds=micros + nanos // 1000)


# ---- Timestamps ----


def format_datetime(value: datetime) -> str:
    """ISO-8601 in UTC with a ``Z`` suffix. Naive datetimes are taken as UTC."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    else:
        value = value.astimezone(timezone.utc)
    text = value.strftime("%Y-%m-%dT%H:%M:%S")
    if value.microsecond:
        text += f".{value.microsecond:06d}".rstrip("0")
    return text + "Z"


def parse_datetime(text: str) -> datetime:
    """Parse an ISO-8601 timestamp, accepting a trailing ``Z``."""
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    return datetime.fromisoformat(text)


# ---- Rendering ----


def _render_string(text: str) -> str:
    return "'" + text.replace("\\", "\\\\").replace("'", "\\'") + "'"


def render(value: Any) -> str:
    """Render a wire value as a SurrealQL literal."""
    kind = kind_of(value)
    if kind is ValueKind.NONE:
        return "NONE"
    if kind is ValueKind.BOOL:
        return "true" if value else "false"
    if kind is ValueKind.NUMBER:
        if isinstance(value, Decimal):
            return f"{value}dec"
        return repr(value)
    if kind is ValueKind.STRING:
        return _render_string(value)
    if kind is ValueKind.ARRAY:
        return "[" + ", ".join(render(v) for v in value) + "]"
    if kind is ValueKind.OBJECT:
        if not value:
            return "{}"
        entries = ", ".join(f"{_escape_key(k)}: {render(v)}" for k, v in value.items())
        return "{ " + entries + " }"
    if kind is ValueKind.THING:
        return str(value)
    if kind is ValueKind.DURATION:
        return format_duration(value)
    return _render_string(format_datetime(value))


def _escape_key(key: str) -> str:
    if _IDENT_RE.match(key):
        return key
    return _render_string(key)


def to_json(value: Any) -> Any:
    """Project a wire value onto plain JSON types.

    Record ids, durations and timestamps become strings in the same form
    the leaf codecs accept back.
    """
    kind = kind_of(value)
    if kind is ValueKind.ARRAY:
        return [to_json(v) for v in value]
    if kind is ValueKind.OBJECT:
        return {k: to_json(v) for k, v in value.items()}
    if kind is ValueKind.THING:
        return str(value)
    if kind is ValueKind.DURATION:
        return format_duration(value)
    if kind is ValueKind.DATETIME:
        return format_datetime(value)
    if isinstance(value, Decimal):
        return str(value)
    return value
