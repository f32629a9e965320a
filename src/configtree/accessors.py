"""Typed getters with default fallback, layered over section lookup."""

from __future__ import annotations

import logging
import math
import re
from datetime import date, datetime
from typing import TYPE_CHECKING, Any

from configtree.errors import DeserializationError, UnknownSerializableTypeError

if TYPE_CHECKING:
    from configtree.serialization.registry import SerializationRegistry

logger = logging.getLogger(__name__)

__all__ = ["SCALAR_TYPES", "TypedAccessors", "is_scalar", "parse_number", "to_string"]

SCALAR_TYPES: tuple[type, ...] = (str, bool, int, float, date, datetime)


def is_scalar(value: Any) -> bool:
    """Return True for string, number, boolean and date values."""
    return isinstance(value, SCALAR_TYPES)


def to_string(value: Any) -> str:
    """Render a scalar the way it reads in a document."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return str(value)


_INT_PATTERN = re.compile(r"[+-]?\d+")
_FLOAT_PATTERN = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")


def parse_number(text: str) -> int | float | None:
    """Parse decimal document text as an int or float.

    Only plain decimal forms are accepted; ``"1_000"``, ``"0x10"``, ``"inf"``
    and ``"nan"`` are not numbers here.
    """
    text = text.strip()
    if _INT_PATTERN.fullmatch(text):
        return int(text)
    if _FLOAT_PATTERN.fullmatch(text):
        parsed = float(text)
        return parsed if math.isfinite(parsed) else None
    return None


def _to_int(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        value = parse_number(value)
    if isinstance(value, float):
        return int(value) if math.isfinite(value) else None
    return value if isinstance(value, int) else None


def _to_float(value: Any) -> float | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = parse_number(value)
    if isinstance(value, (int, float)):
        return float(value)
    return None


def _to_number(value: Any) -> int | float | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return value
    if isinstance(value, str):
        return parse_number(value)
    return None


def _to_bool(value: Any) -> bool | None:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered == "true":
            return True
        if lowered == "false":
            return False
    return None


class TypedAccessors:
    """Typed read access on top of ``get(path)``.

    Every getter returns its ``default`` verbatim when the value is absent,
    ``None``, or of a shape that cannot be coerced. Only a malformed path
    raises.
    """

    def get(self, path: str, default: Any = None) -> Any:  # pragma: no cover - provided by Section
        raise NotImplementedError

    @property
    def registry(self) -> SerializationRegistry:  # pragma: no cover - provided by Section
        raise NotImplementedError

    # ----- Scalars -----

    def get_string(self, path: str, default: str | None = None) -> str | None:
        """Return the string form of a scalar value."""
        value = self.get(path)
        if not is_scalar(value):
            return default
        return to_string(value)

    def get_int(self, path: str, default: int = 0) -> int:
        """Return an integer from a number or a numeric-looking string."""
        converted = _to_int(self.get(path))
        return default if converted is None else converted

    def get_float(self, path: str, default: float = 0.0) -> float:
        """Return a float from a number or a numeric-looking string."""
        converted = _to_float(self.get(path))
        return default if converted is None else converted

    def get_number(self, path: str, default: int | float = 0) -> int | float:
        """Return an int or float, preserving the stored numeric kind."""
        converted = _to_number(self.get(path))
        return default if converted is None else converted

    def get_boolean(self, path: str, default: bool = False) -> bool:
        """Return a boolean from a bool or the strings ``true``/``false``."""
        converted = _to_bool(self.get(path))
        return default if converted is None else converted

    # ----- Sequences -----

    def get_list(self, path: str, default: list[Any] | None = None) -> list[Any] | None:
        """Return a shallow copy of a list value."""
        value = self.get(path)
        if not isinstance(value, list):
            return default
        return list(value)

    def get_string_list(self, path: str, default: list[str] | None = None) -> list[str] | None:
        """Return a list of scalars as strings.

        ``default`` (often ``None``) is returned when the path is absent or any
        element is not a scalar, so callers can tell "not configured" apart
        from "configured empty".
        """
        value = self.get(path)
        if not isinstance(value, list) or not all(is_scalar(item) for item in value):
            return default
        return [to_string(item) for item in value]

    def get_string_array(self, path: str, default: tuple[str, ...] = ()) -> tuple[str, ...]:
        """Like :meth:`get_string_list` but returns a fixed-size tuple."""
        items = self.get_string_list(path)
        if items is None:
            return default
        return tuple(items)

    def get_int_list(self, path: str, default: list[int] | None = None) -> list[int] | None:
        """Return a list whose every element coerces to int."""
        return self._coerce_list(path, _to_int, default)

    def get_float_list(self, path: str, default: list[float] | None = None) -> list[float] | None:
        """Return a list whose every element coerces to float."""
        return self._coerce_list(path, _to_float, default)

    def _coerce_list(self, path: str, convert: Any, default: Any) -> Any:
        value = self.get(path)
        if not isinstance(value, list):
            return default
        result = []
        for item in value:
            converted = convert(item)
            if converted is None:
                return default
            result.append(converted)
        return result

    # ----- Mappings and objects -----

    def get_mapping(self, path: str, default: dict[str, Any] | None = None) -> dict[str, Any] | None:
        """Return a plain ``dict`` copy of a section."""
        value = self.get(path)
        if not isinstance(value, TypedAccessors):
            return default
        return value.to_dict()  # type: ignore[attr-defined]

    def get_object(self, path: str, default: Any = None) -> Any:
        """Return the value at ``path``, deserializing tagged sections.

        Tagged sections resolve against their own nearest registry, so a
        value written by another registry family keeps its marker. A tagged
        section whose type cannot be resolved or whose payload is
        rejected yields ``default``; the failure is logged, not raised.
        """
        value = self.get(path)
        if value is None:
            return default
        if isinstance(value, TypedAccessors):
            registry = value.registry
            if not registry.is_tagged(value):
                return value
            try:
                return registry.deserialize(value)
            except (UnknownSerializableTypeError, DeserializationError) as e:
                logger.warning("Falling back to default for '%s': %s", path, e)
                return default
        return value

    # ----- Predicates -----

    def is_string(self, path: str) -> bool:
        return isinstance(self.get(path), str)

    def is_boolean(self, path: str) -> bool:
        return isinstance(self.get(path), bool)

    def is_int(self, path: str) -> bool:
        value = self.get(path)
        return isinstance(value, int) and not isinstance(value, bool)

    def is_float(self, path: str) -> bool:
        return isinstance(self.get(path), float)

    def is_number(self, path: str) -> bool:
        return self.is_int(path) or self.is_float(path)

    def is_list(self, path: str) -> bool:
        return isinstance(self.get(path), list)

    def is_section(self, path: str) -> bool:
        return isinstance(self.get(path), TypedAccessors)

    def is_tagged(self, path: str) -> bool:
        """Whether the value at ``path`` is a section carrying a type marker."""
        value = self.get(path)
        return isinstance(value, TypedAccessors) and value.registry.is_tagged(value)
