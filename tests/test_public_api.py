"""Tests for the top-level package exports."""

from __future__ import annotations

import configtree


class TestPublicApi:
    def test_all_names_resolve(self) -> None:
        for name in configtree.__all__:
            assert hasattr(configtree, name), name

    def test_version(self) -> None:
        assert configtree.__version__ == "0.3.0"

    def test_key_exports(self) -> None:
        assert configtree.Store is configtree.store.Store
        assert configtree.DEFAULT_MARKER == "==()!"
        assert configtree.default_registry().name == configtree.DEFAULT_REGISTRY_NAME

    def test_load_helper(self) -> None:
        store = configtree.loads("a:\n  b: [1, 2]\n")
        assert isinstance(store, configtree.Store)
        assert store.get_int_list("a.b") == [1, 2]

    def test_registry_table_helpers_exported(self) -> None:
        from configtree.serialization import registry_names, remove_registry

        assert configtree.remove_registry is remove_registry
        assert configtree.registry_names is registry_names
        assert "remove_registry" in configtree.__all__

    def test_codec_exports(self) -> None:
        assert configtree.IniCodec.name == "ini"
        assert configtree.PropertiesCodec.name == "properties"
