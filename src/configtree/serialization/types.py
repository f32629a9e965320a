"""Serialization types: SerializableDescriptor and conversion helpers."""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from typing import Any, Callable, Mapping

from pydantic import BaseModel, PydanticSchemaGenerationError, PydanticUndefinedAnnotation, TypeAdapter

from configtree.errors import InvalidInputError

__all__ = [
    "DEFAULT_MARKER",
    "ALIAS_ATTRIBUTE",
    "SerializableDescriptor",
    "canonical_name_of",
    "descriptor_from_type",
]

DEFAULT_MARKER = "==()!"

ALIAS_ATTRIBUTE = "__serializable_alias__"


@dataclass(frozen=True)
class SerializableDescriptor:
    """How one application type is written to and read back from a section."""

    canonical_name: str
    to_map: Callable[[Any], Mapping[str, Any]]
    from_map: Callable[[Mapping[str, Any]], Any]
    alias: str | None = None
    type: type | None = None

    @property
    def identifier(self) -> str:
        """The identifier written under the marker key."""
        return self.alias or self.canonical_name


def canonical_name_of(cls: type) -> str:
    """Fully-qualified name of a class, e.g. ``"myapp.models.Endpoint"``."""
    return f"{cls.__module__}.{cls.__qualname__}".replace("<locals>.", "")


def descriptor_from_type(
    cls: type,
    *,
    alias: str | None = None,
    to_map: Callable[[Any], Mapping[str, Any]] | None = None,
    from_map: Callable[[Mapping[str, Any]], Any] | None = None,
) -> SerializableDescriptor:
    """Build a descriptor for ``cls``.

    Conversion functions are taken from the explicit arguments first, then
    from ``to_map``/``from_map`` defined on the class, then from pydantic
    models, then from dataclasses.

    Raises:
        InvalidInputError: If no conversion can be derived.
    """
    if not isinstance(cls, type):
        raise InvalidInputError(message=f"Serializable type must be a class, got {cls!r}")

    if to_map is None:
        if callable(getattr(cls, "to_map", None)):
            to_map = _call_to_map
        elif issubclass(cls, BaseModel):
            to_map = _model_to_map
        elif dataclasses.is_dataclass(cls):
            to_map = _dataclass_to_map

    if from_map is None:
        if callable(getattr(cls, "from_map", None)):
            from_map = cls.from_map  # type: ignore[attr-defined]
        elif issubclass(cls, BaseModel):
            from_map = cls.model_validate
        elif dataclasses.is_dataclass(cls):
            from_map = _dataclass_factory(cls)

    if to_map is None or from_map is None:
        raise InvalidInputError(
            message=(
                f"Cannot derive to_map/from_map for {canonical_name_of(cls)}. "
                "Define them on the class, use a pydantic model or dataclass, or pass them explicitly."
            )
        )

    if alias is None:
        alias = getattr(cls, ALIAS_ATTRIBUTE, None)

    return SerializableDescriptor(
        canonical_name=canonical_name_of(cls),
        to_map=to_map,
        from_map=from_map,
        alias=alias,
        type=cls,
    )


def _call_to_map(instance: Any) -> Mapping[str, Any]:
    return instance.to_map()


def _model_to_map(instance: BaseModel) -> Mapping[str, Any]:
    return instance.model_dump()


def _dataclass_to_map(instance: Any) -> Mapping[str, Any]:
    # Shallow: nested registered values are serialized by the section they land in.
    return {f.name: getattr(instance, f.name) for f in dataclasses.fields(instance)}


def _dataclass_factory(cls: type) -> Callable[[Mapping[str, Any]], Any]:
    # Field annotations restore container types (tuple, set) that a
    # document stores as lists. Classes pydantic cannot describe are
    # built from the payload as-is.
    adapter: TypeAdapter[Any] | None = None
    plain = False

    def factory(data: Mapping[str, Any]) -> Any:
        nonlocal adapter, plain
        if adapter is None and not plain:
            try:
                adapter = TypeAdapter(cls)
            except (PydanticSchemaGenerationError, PydanticUndefinedAnnotation):
                plain = True
        if adapter is None:
            return cls(**data)
        return adapter.validate_python(dict(data))

    return factory
