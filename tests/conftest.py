"""Shared fixtures."""

from __future__ import annotations

import uuid
from pathlib import Path
from typing import Iterator

import pytest

from configtree.serialization import SerializationRegistry, create_registry, remove_registry
from configtree.store import Store

from sample_types import SERVLET_DOCUMENT, Credentials, Endpoint, Mirror, Version


@pytest.fixture
def registry() -> Iterator[SerializationRegistry]:
    """An isolated registry with Endpoint, Version, Credentials and Mirror registered."""
    name = f"test-{uuid.uuid4().hex}"
    reg = create_registry(name)
    reg.register_type(Endpoint, alias="endpoint")
    reg.register_type(Version)
    reg.register_type(Credentials, alias="creds")
    reg.register_type(Mirror)
    yield reg
    remove_registry(name)


@pytest.fixture
def store(registry: SerializationRegistry) -> Store:
    """An empty in-memory store bound to the isolated registry."""
    return Store(registry=registry)


@pytest.fixture
def servlet_yaml(tmp_path: Path) -> Path:
    """Write the sample servlet document and return its path."""
    path = tmp_path / "app.yml"
    path.write_text(SERVLET_DOCUMENT)
    return path
