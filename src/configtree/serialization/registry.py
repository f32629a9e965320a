"""Named serialization registries and the tagged-section resolution algorithm."""

from __future__ import annotations

import logging
import threading
from collections.abc import Mapping
from typing import Any, Callable

from configtree.errors import (
    DeserializationError,
    InvalidInputError,
    UnknownSerializableTypeError,
)
from configtree.section import Section
from configtree.serialization.types import (
    DEFAULT_MARKER,
    SerializableDescriptor,
    canonical_name_of,
    descriptor_from_type,
)

logger = logging.getLogger(__name__)

__all__ = [
    "DEFAULT_REGISTRY_NAME",
    "SerializationRegistry",
    "create_registry",
    "default_registry",
    "get_registry",
    "registry_names",
    "remove_registry",
]

DEFAULT_REGISTRY_NAME = "DEFAULT"


# Resolution rules, tried in order across all descriptors. First match wins.


def _match_canonical(d: SerializableDescriptor, identifier: str, marker: str) -> bool:
    return d.canonical_name == identifier


def _match_marked_canonical(d: SerializableDescriptor, identifier: str, marker: str) -> bool:
    return marker + d.canonical_name == identifier


def _match_unmarked_identifier(d: SerializableDescriptor, identifier: str, marker: str) -> bool:
    return identifier.startswith(marker) and d.canonical_name == identifier[len(marker) :]


def _match_alias(d: SerializableDescriptor, identifier: str, marker: str) -> bool:
    return d.alias is not None and d.alias == identifier


def _match_marker_length_suffix(d: SerializableDescriptor, identifier: str, marker: str) -> bool:
    return len(identifier) > len(marker) and d.canonical_name == identifier[len(marker) :]


_RESOLUTION_RULES: tuple[Callable[[SerializableDescriptor, str, str], bool], ...] = (
    _match_canonical,
    _match_marked_canonical,
    _match_unmarked_identifier,
    _match_alias,
    _match_marker_length_suffix,
)


def _is_mapping(value: Any) -> bool:
    return isinstance(value, (Section, Mapping))


class SerializationRegistry:
    """Catalog of serializable types for one registry family.

    Mutations are serialized by a lock and replace the catalog wholesale, so
    lookups read a consistent snapshot without locking.
    """

    def __init__(self, name: str, marker: str = DEFAULT_MARKER) -> None:
        if not name:
            raise InvalidInputError(message="Registry name must be a non-empty string")
        if not marker:
            raise InvalidInputError(message="Registry marker must be a non-empty string")
        self._name = name
        self._marker = marker
        self._descriptors: dict[str, SerializableDescriptor] = {}
        self._write_lock = threading.RLock()

    @property
    def name(self) -> str:
        return self._name

    @property
    def marker(self) -> str:
        """Reserved key that identifies a tagged section."""
        return self._marker

    # ----- Registration -----

    def register(self, descriptor: SerializableDescriptor) -> SerializableDescriptor:
        """Add a descriptor to the catalog.

        Re-registering an identical descriptor is a no-op.

        Raises:
            InvalidInputError: If a different descriptor already uses the
                same canonical name.
        """
        name = descriptor.canonical_name
        if not name:
            raise InvalidInputError(message="canonical_name must be a non-empty string")
        with self._write_lock:
            existing = self._descriptors.get(name)
            if existing is not None:
                if existing == descriptor:
                    return existing
                raise InvalidInputError(message=f"Serializable type already registered: {name}")
            updated = dict(self._descriptors)
            updated[name] = descriptor
            self._descriptors = updated
        logger.debug("Registered serializable type '%s' in registry '%s'", name, self._name)
        return descriptor

    def register_type(
        self,
        cls: type,
        *,
        alias: str | None = None,
        to_map: Callable[[Any], Mapping[str, Any]] | None = None,
        from_map: Callable[[Mapping[str, Any]], Any] | None = None,
    ) -> SerializableDescriptor:
        """Derive a descriptor for ``cls`` and register it."""
        descriptor = descriptor_from_type(cls, alias=alias, to_map=to_map, from_map=from_map)
        return self.register(descriptor)

    def unregister(self, target: str | type | SerializableDescriptor) -> bool:
        """Remove a descriptor by canonical name, class, or descriptor.

        Returns False if it was not registered.
        """
        if isinstance(target, SerializableDescriptor):
            name = target.canonical_name
        elif isinstance(target, type):
            name = canonical_name_of(target)
        else:
            name = target
        with self._write_lock:
            if name not in self._descriptors:
                return False
            updated = dict(self._descriptors)
            del updated[name]
            self._descriptors = updated
        logger.debug("Unregistered serializable type '%s' from registry '%s'", name, self._name)
        return True

    # ----- Queries -----

    def get(self, canonical_name: str) -> SerializableDescriptor | None:
        return self._descriptors.get(canonical_name)

    def has(self, target: str | type) -> bool:
        name = canonical_name_of(target) if isinstance(target, type) else target
        return name in self._descriptors

    def list(self) -> list[str]:
        """Sorted canonical names of all registered types."""
        return sorted(self._descriptors)

    @property
    def count(self) -> int:
        return len(self._descriptors)

    @property
    def descriptors(self) -> list[SerializableDescriptor]:
        """Snapshot of registered descriptors in registration order."""
        return list(self._descriptors.values())

    def resolve(self, identifier: str) -> SerializableDescriptor:
        """Find the descriptor named by a tagged section's type identifier.

        Rules are tried in priority order over every descriptor: exact
        canonical name, marker plus canonical name, identifier with its
        leading marker removed, alias, then canonical name against the
        identifier minus a marker-length prefix.

        Raises:
            UnknownSerializableTypeError: If no rule matches.
        """
        if not isinstance(identifier, str) or not identifier:
            raise UnknownSerializableTypeError(str(identifier), registry=self._name)
        snapshot = list(self._descriptors.values())
        for rule in _RESOLUTION_RULES:
            for descriptor in snapshot:
                if rule(descriptor, identifier, self._marker):
                    return descriptor
        raise UnknownSerializableTypeError(identifier, registry=self._name)

    def descriptor_for(self, instance: Any) -> SerializableDescriptor | None:
        """Descriptor for an instance: exact type first, then subclasses."""
        snapshot = list(self._descriptors.values())
        for descriptor in snapshot:
            if descriptor.type is type(instance):
                return descriptor
        for descriptor in snapshot:
            if descriptor.type is not None and isinstance(instance, descriptor.type):
                return descriptor
        return None

    # ----- Tagged sections -----

    def type_identifier(self, value: Any) -> str | None:
        """Identifier carried by a tagged section or mapping, else None.

        Two layouts are recognised: the marker key holding the identifier
        next to the payload keys, and the older nested layout with a single
        ``<marker><identifier>`` key holding the payload.
        """
        if not _is_mapping(value):
            return None
        if self._marker in value:
            identifier = value[self._marker]
            return identifier if isinstance(identifier, str) and identifier else None
        if len(value) == 1:
            key = next(iter(value))
            if (
                isinstance(key, str)
                and key.startswith(self._marker)
                and len(key) > len(self._marker)
                and _is_mapping(value[key])
            ):
                return key
        return None

    def is_tagged(self, value: Any) -> bool:
        return self.type_identifier(value) is not None

    def serialize(self, instance: Any) -> Section:
        """Write ``instance`` as a tagged section.

        Raises:
            UnknownSerializableTypeError: If the instance's type is not registered.
            InvalidInputError: If ``to_map`` does not return a mapping or
                uses the marker as a key.
        """
        descriptor = self.descriptor_for(instance)
        if descriptor is None:
            raise UnknownSerializableTypeError(canonical_name_of(type(instance)), registry=self._name)
        data = descriptor.to_map(instance)
        if not isinstance(data, Mapping):
            raise InvalidInputError(
                message=f"to_map() for '{descriptor.canonical_name}' must return a mapping, got {type(data).__name__}"
            )
        payload: dict[str, Any] = {self._marker: descriptor.identifier}
        for key, value in data.items():
            if str(key) == self._marker:
                raise InvalidInputError(message=f"to_map() for '{descriptor.canonical_name}' uses the reserved marker key")
            payload[str(key)] = value
        return Section(payload, registry=self)

    def deserialize(self, tagged: Section | Mapping[str, Any]) -> Any:
        """Rebuild an instance from a tagged section or mapping.

        Raises:
            UnknownSerializableTypeError: If the identifier does not resolve.
            DeserializationError: If the value is not tagged or ``from_map``
                rejects the payload.
        """
        identifier = self.type_identifier(tagged)
        if identifier is None:
            raise DeserializationError(None, f"missing '{self._marker}' type marker")
        descriptor = self.resolve(identifier)

        if self._marker in tagged:
            entries = [(k, v) for k, v in tagged.items() if k != self._marker]
        else:
            entries = list(tagged[identifier].items())
        payload = {str(k): self._to_data(v) for k, v in entries}

        try:
            return descriptor.from_map(payload)
        except (UnknownSerializableTypeError, DeserializationError):
            raise
        except Exception as e:
            raise DeserializationError(identifier, str(e), cause=e) from e

    def _to_data(self, value: Any) -> Any:
        if _is_mapping(value):
            if self.is_tagged(value):
                return self.deserialize(value)
            return {str(k): self._to_data(v) for k, v in value.items()}
        if isinstance(value, list):
            return [self._to_data(item) for item in value]
        return value

    def __repr__(self) -> str:
        return f"SerializationRegistry(name={self._name!r}, marker={self._marker!r}, count={self.count})"


# ----- Process-wide registry table -----

_registries: dict[str, SerializationRegistry] = {}
_table_lock = threading.Lock()


def create_registry(name: str, marker: str | None = None) -> SerializationRegistry:
    """Return the registry called ``name``, creating it on first use.

    Idempotent: every call with the same name returns the same instance. A
    ``marker`` that differs from an existing registry's marker is ignored.
    """
    if not name:
        raise InvalidInputError(message="Registry name must be a non-empty string")
    registry = _registries.get(name)
    if registry is None:
        with _table_lock:
            registry = _registries.get(name)
            if registry is None:
                registry = SerializationRegistry(name, marker or DEFAULT_MARKER)
                _registries[name] = registry
                logger.debug("Created serialization registry '%s'", name)
                return registry
    if marker is not None and marker != registry.marker:
        logger.warning(
            "Registry '%s' already exists with marker %r; ignoring requested marker %r",
            name,
            registry.marker,
            marker,
        )
    return registry


def get_registry(name: str = DEFAULT_REGISTRY_NAME) -> SerializationRegistry:
    """Look up a registry by name, creating it lazily."""
    return create_registry(name)


def default_registry() -> SerializationRegistry:
    return _registries[DEFAULT_REGISTRY_NAME]


def registry_names() -> list[str]:
    with _table_lock:
        return sorted(_registries)


def remove_registry(name: str) -> bool:
    """Drop a named registry. The default registry cannot be removed."""
    if name == DEFAULT_REGISTRY_NAME:
        raise InvalidInputError(message=f"The '{DEFAULT_REGISTRY_NAME}' registry cannot be removed")
    with _table_lock:
        return _registries.pop(name, None) is not None


create_registry(DEFAULT_REGISTRY_NAME)
