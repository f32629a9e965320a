"""Tests for SerializationRegistry and the named registry table."""

from __future__ import annotations

import logging
import threading
import uuid
from pathlib import Path

import pytest

from configtree.errors import DeserializationError, InvalidInputError, UnknownSerializableTypeError
from configtree.section import Section
from configtree.serialization import (
    DEFAULT_MARKER,
    DEFAULT_REGISTRY_NAME,
    SerializableDescriptor,
    SerializationRegistry,
    canonical_name_of,
    create_registry,
    default_registry,
    get_registry,
    registry_names,
    remove_registry,
)
from configtree.store import Store
from configtree.webapp import ServletConfiguration

from sample_types import Credentials, Endpoint, Mirror, Version


class TestRegistration:
    def test_register_type(self) -> None:
        registry = SerializationRegistry("unit")
        descriptor = registry.register_type(Endpoint)
        assert descriptor.canonical_name == canonical_name_of(Endpoint)
        assert registry.has(Endpoint)
        assert registry.has(canonical_name_of(Endpoint))
        assert registry.get(canonical_name_of(Endpoint)) is descriptor
        assert registry.count == 1

    def test_identical_re_registration_is_noop(self) -> None:
        registry = SerializationRegistry("unit")
        first = registry.register_type(Version)
        second = registry.register(first)
        assert second is first
        assert registry.count == 1

    def test_conflicting_registration_raises(self) -> None:
        registry = SerializationRegistry("unit")
        registry.register_type(Endpoint)
        with pytest.raises(InvalidInputError, match="already registered"):
            registry.register_type(Endpoint, alias="other")

    def test_empty_canonical_name_rejected(self) -> None:
        registry = SerializationRegistry("unit")
        with pytest.raises(InvalidInputError):
            registry.register(SerializableDescriptor("", dict, dict))

    def test_unregister(self) -> None:
        registry = SerializationRegistry("unit")
        descriptor = registry.register_type(Endpoint)
        assert registry.unregister(Endpoint) is True
        assert registry.unregister(descriptor) is False
        registry.register(descriptor)
        assert registry.unregister(descriptor.canonical_name) is True
        assert registry.count == 0

    def test_list_is_sorted(self) -> None:
        registry = SerializationRegistry("unit")
        registry.register_type(Version)
        registry.register_type(Endpoint)
        assert registry.list() == sorted([canonical_name_of(Version), canonical_name_of(Endpoint)])

    def test_descriptors_snapshot(self) -> None:
        registry = SerializationRegistry("unit")
        registry.register_type(Endpoint)
        snapshot = registry.descriptors
        registry.register_type(Version)
        assert len(snapshot) == 1
        assert len(registry.descriptors) == 2

    def test_invalid_construction(self) -> None:
        with pytest.raises(InvalidInputError):
            SerializationRegistry("")
        with pytest.raises(InvalidInputError):
            SerializationRegistry("unit", marker="")

    def test_concurrent_registration(self) -> None:
        registry = SerializationRegistry("unit")
        errors: list[Exception] = []

        def register(index: int) -> None:
            try:
                registry.register(SerializableDescriptor(f"pkg.Type{index}", dict, dict))
            except Exception as e:  # pragma: no cover
                errors.append(e)

        threads = [threading.Thread(target=register, args=(i,)) for i in range(50)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert errors == []
        assert registry.count == 50


class TestSerialize:
    def test_marker_first_then_payload(self, registry: SerializationRegistry) -> None:
        tagged = registry.serialize(Endpoint("example.org", 8443))
        assert isinstance(tagged, Section)
        assert tagged.keys() == [registry.marker, "host", "port"]
        assert tagged.get_string(registry.marker) == "endpoint"

    def test_canonical_name_written_without_alias(self, registry: SerializationRegistry) -> None:
        tagged = registry.serialize(Version("2.1"))
        assert tagged[registry.marker] == canonical_name_of(Version)

    def test_pydantic_model(self, registry: SerializationRegistry) -> None:
        tagged = registry.serialize(Credentials(user="admin", token="t"))
        assert tagged.to_dict() == {registry.marker: "creds", "user": "admin", "token": "t"}

    def test_unregistered_type(self, registry: SerializationRegistry) -> None:
        with pytest.raises(UnknownSerializableTypeError):
            registry.serialize(object())

    def test_to_map_must_return_mapping(self) -> None:
        registry = SerializationRegistry("unit")
        registry.register_type(Endpoint, to_map=lambda e: [e.host])
        with pytest.raises(InvalidInputError, match="must return a mapping"):
            registry.serialize(Endpoint("h"))

    def test_payload_may_not_use_marker(self) -> None:
        registry = SerializationRegistry("unit")
        registry.register_type(Endpoint, to_map=lambda e: {DEFAULT_MARKER: "x"})
        with pytest.raises(InvalidInputError, match="reserved marker"):
            registry.serialize(Endpoint("h"))

    def test_subclass_uses_parent_descriptor(self, registry: SerializationRegistry) -> None:
        class Beta(Version):
            pass

        tagged = registry.serialize(Beta("3.0", beta=True))
        assert tagged[registry.marker] == canonical_name_of(Version)


class TestDeserialize:
    def test_from_section(self, registry: SerializationRegistry) -> None:
        tagged = registry.serialize(Endpoint("example.org", 8443))
        assert registry.deserialize(tagged) == Endpoint("example.org", 8443)

    def test_from_plain_mapping(self, registry: SerializationRegistry) -> None:
        data = {registry.marker: canonical_name_of(Version), "value": "1.2", "beta": True}
        assert registry.deserialize(data) == Version("1.2", beta=True)

    def test_legacy_nested_layout(self, registry: SerializationRegistry) -> None:
        data = {registry.marker + canonical_name_of(Endpoint): {"host": "legacy", "port": 21}}
        assert registry.type_identifier(data) == registry.marker + canonical_name_of(Endpoint)
        assert registry.deserialize(data) == Endpoint("legacy", 21)

    def test_nested_tagged_values(self, registry: SerializationRegistry) -> None:
        section = Section(registry=registry)
        section.set("mirror", Mirror("eu", Endpoint("eu.example.org", 443)))
        assert section.is_tagged("mirror.endpoint")
        restored = registry.deserialize(section.get_section("mirror"))
        assert restored == Mirror("eu", Endpoint("eu.example.org", 443))

    def test_untagged_value(self, registry: SerializationRegistry) -> None:
        with pytest.raises(DeserializationError, match="type marker"):
            registry.deserialize({"host": "x"})

    def test_unknown_identifier(self, registry: SerializationRegistry) -> None:
        with pytest.raises(UnknownSerializableTypeError):
            registry.deserialize({registry.marker: "com.example.Nope"})

    def test_rejected_payload_is_wrapped(self, registry: SerializationRegistry) -> None:
        with pytest.raises(DeserializationError) as exc_info:
            registry.deserialize({registry.marker: canonical_name_of(Version)})
        assert isinstance(exc_info.value.cause, KeyError)
        assert exc_info.value.identifier == canonical_name_of(Version)

    def test_pydantic_validation_error_is_wrapped(self, registry: SerializationRegistry) -> None:
        with pytest.raises(DeserializationError):
            registry.deserialize({registry.marker: "creds", "token": "x"})

    def test_dataclass_tuple_field_round_trip(self) -> None:
        registry = SerializationRegistry("unit")
        registry.register_type(ServletConfiguration)
        servlet = ServletConfiguration("Home", "com.example.Home", ("/", "/home"))
        restored = registry.deserialize(registry.serialize(servlet))
        assert restored == servlet
        assert isinstance(restored.url_patterns, tuple)

    def test_tuple_field_round_trip_through_document(self, tmp_path: Path) -> None:
        registry = SerializationRegistry("unit")
        registry.register_type(ServletConfiguration)
        store = Store(tmp_path / "servlets.yml", registry=registry)
        store.set("app.home", ServletConfiguration("Home", None, ("/",)))
        store.save()
        loaded = Store.load(tmp_path / "servlets.yml", registry=registry)
        assert loaded.get_object("app.home") == ServletConfiguration("Home", None, ("/",))

    def test_from_map_library_error_is_wrapped(self) -> None:
        registry = SerializationRegistry("unit")

        def reject(data: object) -> Endpoint:
            raise InvalidInputError("bad payload")

        registry.register_type(Endpoint, from_map=reject)
        with pytest.raises(DeserializationError) as exc_info:
            registry.deserialize(registry.serialize(Endpoint("h")))
        assert isinstance(exc_info.value.cause, InvalidInputError)

    def test_is_tagged(self, registry: SerializationRegistry) -> None:
        assert registry.is_tagged({registry.marker: "a.B"})
        assert not registry.is_tagged({registry.marker: ""})
        assert not registry.is_tagged({"host": "x"})
        assert not registry.is_tagged("scalar")


class TestRegistryTable:
    def test_default_registry_exists(self) -> None:
        assert default_registry().name == DEFAULT_REGISTRY_NAME
        assert get_registry() is default_registry()
        assert DEFAULT_REGISTRY_NAME in registry_names()

    def test_create_is_idempotent(self) -> None:
        name = f"table-{uuid.uuid4().hex}"
        try:
            first = create_registry(name, marker="@@")
            assert create_registry(name) is first
            assert get_registry(name) is first
            assert first.marker == "@@"
        finally:
            remove_registry(name)

    def test_conflicting_marker_is_ignored(self, caplog: pytest.LogCaptureFixture) -> None:
        name = f"table-{uuid.uuid4().hex}"
        try:
            first = create_registry(name)
            with caplog.at_level(logging.WARNING, logger="configtree.serialization.registry"):
                again = create_registry(name, marker="##")
            assert again is first
            assert again.marker == DEFAULT_MARKER
            assert "ignoring requested marker" in caplog.text
        finally:
            remove_registry(name)

    def test_concurrent_create_returns_one_instance(self) -> None:
        name = f"table-{uuid.uuid4().hex}"
        results: list[SerializationRegistry] = []
        lock = threading.Lock()

        def create() -> None:
            reg = create_registry(name)
            with lock:
                results.append(reg)

        threads = [threading.Thread(target=create) for _ in range(20)]
        try:
            for t in threads:
                t.start()
            for t in threads:
                t.join()
            assert len({id(r) for r in results}) == 1
        finally:
            remove_registry(name)

    def test_remove_registry(self) -> None:
        name = f"table-{uuid.uuid4().hex}"
        create_registry(name)
        assert remove_registry(name) is True
        assert remove_registry(name) is False
        assert name not in registry_names()

    def test_default_cannot_be_removed(self) -> None:
        with pytest.raises(InvalidInputError):
            remove_registry(DEFAULT_REGISTRY_NAME)
