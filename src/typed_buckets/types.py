"""Attribute and bucket definitions for the typed_buckets library."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable

Transform = Callable[[Any], Any]


class DuplicateAttributeError(ValueError):
    """Raised when a virtual attribute name is declared twice on one record type."""


class TypeHint(Enum):
    """Declared type of a virtual attribute."""

    STRING = "string"
    INTEGER = "integer"
    BOOLEAN = "boolean"
    CUSTOM = "custom"


# Mapping from type name strings to the built-in hints
TYPE_HINT_NAMES: dict[str, TypeHint] = {
    th.value: th for th in TypeHint if th is not TypeHint.CUSTOM
}

# Python builtins accepted as shorthand for the built-in hints
_BUILTIN_HINTS: dict[type, TypeHint] = {
    str: TypeHint.STRING,
    int: TypeHint.INTEGER,
    bool: TypeHint.BOOLEAN,
}

TRUE_TOKENS = frozenset({"1", "t", "true"})

_INTEGER_RE = re.compile(r"^[-+]?\d+$")


def coerce_string(value: Any) -> str | None:
    """Pass strings through, keep None, stringify everything else."""
    if value is None or isinstance(value, str):
        return value
    if isinstance(value, (bytes, bytearray)):
        return bytes(value).decode("utf-8", errors="replace")
    return str(value)


def coerce_integer(value: Any) -> int | None:
    """Parse raw input as an integer, or return None when it isn't one."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    if isinstance(value, bytes):
        value = value.decode("utf-8", errors="replace")
    if isinstance(value, str):
        text = value.strip()
        if _INTEGER_RE.match(text):
            # Very long digit strings exceed the interpreter's conversion limit
            try:
                return int(text)
            except ValueError:
                return None
    return None


def coerce_boolean(value: Any) -> bool | None:
    """Map form-style truthy tokens to True, blanks to None, the rest to False."""
    if value is None:
        return None
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return value == 1
    text = str(value).strip()
    if not text:
        return None
    return text.lower() in TRUE_TOKENS


_COERCIONS: dict[TypeHint, Transform] = {
    TypeHint.STRING: coerce_string,
    TypeHint.INTEGER: coerce_integer,
    TypeHint.BOOLEAN: coerce_boolean,
}


def resolve_type_hint(hint: Any) -> tuple[TypeHint, Transform | None]:
    """Turn a declared hint into a (TypeHint, transform) pair.

    Accepts TypeHint members, their names ("string", "integer", "boolean"),
    the builtins str/int/bool, None (string), or any other callable, which
    becomes a custom transform.

    Raises:
        TypeError: If the hint is none of the above.
    """
    if hint is None:
        return TypeHint.STRING, None
    if isinstance(hint, TypeHint):
        if hint is TypeHint.CUSTOM:
            raise TypeError("A custom attribute needs a transform callable, not TypeHint.CUSTOM")
        return hint, None
    if isinstance(hint, str):
        type_hint = TYPE_HINT_NAMES.get(hint)
        if type_hint is None:
            raise TypeError(f"Unknown type hint '{hint}'")
        return type_hint, None
    if isinstance(hint, type) and hint in _BUILTIN_HINTS:
        return _BUILTIN_HINTS[hint], None
    if callable(hint):
        return TypeHint.CUSTOM, hint
    raise TypeError(f"Type hint must be a type name or a callable, got {hint!r}")


@dataclass(frozen=True)
class AttributeSpec:
    """Declaration of a single virtual attribute."""

    name: str
    type_hint: TypeHint = TypeHint.STRING
    transform: Transform | None = field(default=None, compare=False)

    def __post_init__(self) -> None:
        if self.type_hint is TypeHint.CUSTOM and self.transform is None:
            raise TypeError(f"Attribute '{self.name}' is custom but has no transform")

    @classmethod
    def from_hint(cls, name: str, hint: Any = None) -> AttributeSpec:
        """Build a spec from anything resolve_type_hint accepts."""
        type_hint, transform = resolve_type_hint(hint)
        return cls(name=name, type_hint=type_hint, transform=transform)

    def coerce(self, value: Any) -> Any:
        """Apply this attribute's coercion rule to a raw input value.

        A transform, when present, is used verbatim and may raise.
        """
        if self.transform is not None:
            return self.transform(value)
        return _COERCIONS[self.type_hint](value)

    @property
    def type_name(self) -> str:
        """Name of the declared type, used in metadata."""
        if self.transform is not None:
            return getattr(self.transform, "__name__", TypeHint.CUSTOM.value)
        return self.type_hint.value


@dataclass(frozen=True)
class BucketSpec:
    """A container column and the virtual attributes packed into it."""

    container_column: str
    attributes: tuple[AttributeSpec, ...] = ()

    @property
    def attribute_names(self) -> list[str]:
        """Return attribute names in declaration order."""
        return [a.name for a in self.attributes]

    def get_attribute(self, name: str) -> AttributeSpec | None:
        """Get an attribute by name."""
        for a in self.attributes:
            if a.name == name:
                return a
        return None

    def merged_with(self, other: BucketSpec) -> BucketSpec:
        """Return a new spec holding this spec's attributes followed by other's."""
        if other.container_column != self.container_column:
            raise ValueError(
                f"Cannot merge bucket '{other.container_column}' into '{self.container_column}'"
            )
        return BucketSpec(self.container_column, self.attributes + other.attributes)
