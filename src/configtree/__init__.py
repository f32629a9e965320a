"""configtree - Hierarchical configuration store with typed accessors and object serialization."""

from __future__ import annotations

# Tree
from configtree.path import join_path, split_path
from configtree.section import Section

# Serialization
from configtree.serialization import (
    DEFAULT_MARKER,
    DEFAULT_REGISTRY_NAME,
    SerializableDescriptor,
    SerializationRegistry,
    create_registry,
    default_registry,
    get_registry,
    registry_names,
    remove_registry,
    serializable,
)

# Codecs
from configtree.codec import CodecOptions, IniCodec, JsonCodec, PropertiesCodec, TextCodec, YamlCodec

# Store
from configtree.store import Store, empty, load, loads, save

# Errors
from configtree.errors import (
    CodecError,
    ConfigNotFoundError,
    ConfigTreeError,
    DeserializationError,
    ErrorCodes,
    InvalidInputError,
    MalformedPathError,
    UnknownSerializableTypeError,
)

# Consumers
from configtree.server import SameSitePolicy, ServerConfiguration
from configtree.webapp import ServletConfiguration, WebApplicationConfiguration

__version__ = "0.3.0"

__all__ = [
    # Tree
    "Section",
    "split_path",
    "join_path",
    # Serialization
    "DEFAULT_MARKER",
    "DEFAULT_REGISTRY_NAME",
    "SerializableDescriptor",
    "SerializationRegistry",
    "create_registry",
    "default_registry",
    "get_registry",
    "registry_names",
    "remove_registry",
    "serializable",
    # Codecs
    "TextCodec",
    "CodecOptions",
    "YamlCodec",
    "JsonCodec",
    "IniCodec",
    "PropertiesCodec",
    # Store
    "Store",
    "load",
    "loads",
    "save",
    "empty",
    # Errors
    "ErrorCodes",
    "ConfigTreeError",
    "MalformedPathError",
    "UnknownSerializableTypeError",
    "DeserializationError",
    "CodecError",
    "ConfigNotFoundError",
    "InvalidInputError",
    # Consumers
    "ServerConfiguration",
    "SameSitePolicy",
    "WebApplicationConfiguration",
    "ServletConfiguration",
]
