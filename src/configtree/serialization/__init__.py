"""Serialization registries for storing application objects in a section tree.

Usage::

    from configtree.serialization import serializable

    @serializable(alias="endpoint")
    @dataclass
    class Endpoint:
        host: str
        port: int
"""

from __future__ import annotations

from configtree.serialization.decorator import serializable
from configtree.serialization.registry import (
    DEFAULT_REGISTRY_NAME,
    SerializationRegistry,
    create_registry,
    default_registry,
    get_registry,
    registry_names,
    remove_registry,
)
from configtree.serialization.types import (
    DEFAULT_MARKER,
    SerializableDescriptor,
    canonical_name_of,
    descriptor_from_type,
)

__all__ = [
    "DEFAULT_MARKER",
    "DEFAULT_REGISTRY_NAME",
    "SerializableDescriptor",
    "SerializationRegistry",
    "canonical_name_of",
    "create_registry",
    "default_registry",
    "descriptor_from_type",
    "get_registry",
    "registry_names",
    "remove_registry",
    "serializable",
]
