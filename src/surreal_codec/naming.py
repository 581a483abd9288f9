"""Identifier case conversion between host names and wire names."""

from __future__ import annotations

from enum import Enum


def snake_to_camel(name: str) -> str:
    """Convert ``snake_case`` to ``camelCase``.

    The first segment is lower-cased, every later segment gets its first
    letter upper-cased and the rest left alone.
    """
    segments = name.split("_")
    head = segments[0].lower()
    tail = "".join(seg[:1].upper() + seg[1:] for seg in segments[1:])
    return head + tail


def camel_to_snake(name: str) -> str:
    """Convert ``camelCase`` (or ``PascalCase``) to ``snake_case``.

    An underscore goes before every upper-case character except the first
    one, then the whole result is lower-cased. Runs of capitals and digits
    are not treated specially, so ``"HTTPCode"`` becomes ``"h_t_t_p_code"``.
    """
    out: list[str] = []
    for i, ch in enumerate(name):
        if i > 0 and ch.isupper():
            out.append("_")
        out.append(ch)
    return "".join(out).lower()


class NamingConvention(Enum):
    """Case style used for wire names."""

    SNAKE_CASE = "snake_case"
    CAMEL_CASE = "camelCase"

    def apply(self, name: str) -> str:
        """Translate a host identifier into this convention."""
        if self is NamingConvention.CAMEL_CASE:
            return snake_to_camel(name)
        return camel_to_snake(name)

    @classmethod
    def from_flag(cls, use_camel_case: bool) -> NamingConvention:
        return cls.CAMEL_CASE if use_camel_case else cls.SNAKE_CASE
