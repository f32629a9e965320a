"""Tests for the @serializable decorator."""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from typing import Iterator

import pytest

from configtree.section import Section
from configtree.serialization import (
    SerializationRegistry,
    canonical_name_of,
    create_registry,
    default_registry,
    remove_registry,
    serializable,
)


@pytest.fixture
def plugins() -> Iterator[SerializationRegistry]:
    name = f"plugins-{uuid.uuid4().hex}"
    yield create_registry(name)
    remove_registry(name)


class TestSerializable:
    def test_bare_form_uses_default_registry(self) -> None:
        @serializable
        @dataclass
        class Listener:
            port: int = 80

        try:
            assert default_registry().has(Listener)
            assert Listener.configtree_descriptor.canonical_name == canonical_name_of(Listener)
        finally:
            default_registry().unregister(Listener)

    def test_returns_class_unchanged(self, plugins: SerializationRegistry) -> None:
        @dataclass
        class Listener:
            port: int = 80

        decorated = serializable(registry=plugins)(Listener)
        assert decorated is Listener
        assert Listener(8080).port == 8080

    def test_registry_by_name(self, plugins: SerializationRegistry) -> None:
        @serializable(alias="listener", registry=plugins.name)
        @dataclass
        class Listener:
            port: int = 80

        assert plugins.has(Listener)
        assert plugins.resolve("listener").type is Listener
        assert not default_registry().has(Listener)

    def test_round_trip_through_section(self, plugins: SerializationRegistry) -> None:
        @serializable(alias="listener", registry=plugins)
        @dataclass
        class Listener:
            port: int = 80

        section = Section(registry=plugins)
        section.set("web.listener", Listener(8443))
        assert section.get_string("web.listener." + plugins.marker) == "listener"
        assert section.get_object("web.listener") == Listener(8443)
