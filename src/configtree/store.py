"""Store: a root section bound to a document source, a codec and a registry."""

from __future__ import annotations

import io
import logging
from pathlib import Path
from typing import IO, TYPE_CHECKING, Any, Union

from configtree.codec import TextCodec, codec_for_path
from configtree.errors import CodecError, ConfigNotFoundError, InvalidInputError, UnknownSerializableTypeError
from configtree.section import Section

if TYPE_CHECKING:
    from configtree.serialization.registry import SerializationRegistry

logger = logging.getLogger(__name__)

__all__ = ["Store", "Source", "empty", "load", "loads", "save"]

Source = Union[str, Path, IO[Any]]


def _is_path(source: Any) -> bool:
    return isinstance(source, (str, Path))


def _describe(source: Any) -> str | None:
    if source is None:
        return None
    if _is_path(source):
        return str(source)
    name = getattr(source, "name", None)
    return str(name) if name is not None else type(source).__name__


def _read(source: Source, missing_ok: bool) -> bytes | str | None:
    if _is_path(source):
        path = Path(source)
        if not path.exists():
            if missing_ok:
                logger.debug("Configuration file %s not found, starting empty", path)
                return None
            raise ConfigNotFoundError(config_path=str(path))
        return path.read_bytes()
    return source.read()


def _write(destination: Source, data: bytes, encoding: str) -> None:
    if _is_path(destination):
        path = Path(destination)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
    elif isinstance(destination, io.TextIOBase):
        destination.write(data.decode(encoding))
    else:
        destination.write(data)


class Store(Section):
    """Root section of a configuration document.

    Holds the document source (a path or a stream), the text codec used to
    read and write it, and the serialization registry its tagged sections
    resolve against.

    Usage::

        store = Store.load("server/configuration.yml")
        port = store.get_int("web.http.port", 80)
        store.set("web.http.port", 8080)
        store.save()
    """

    def __init__(
        self,
        source: Source | None = None,
        *,
        codec: TextCodec | None = None,
        registry: SerializationRegistry | None = None,
        data: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(data, registry=registry)
        self._source = source
        self._codec = codec or codec_for_path(source if _is_path(source) else None)

    @property
    def source(self) -> Source | None:
        return self._source

    @source.setter
    def source(self, value: Source | None) -> None:
        self._source = value

    @property
    def codec(self) -> TextCodec:
        return self._codec

    # ----- Loading -----

    @classmethod
    def load(
        cls,
        source: Source,
        *,
        codec: TextCodec | None = None,
        registry: SerializationRegistry | None = None,
        missing_ok: bool = False,
    ) -> Store:
        """Read and parse a document into a new store.

        Raises:
            ConfigNotFoundError: If ``source`` is a missing path and
                ``missing_ok`` is False.
            CodecError: If the document cannot be parsed.
        """
        store = cls(source, codec=codec, registry=registry)
        data = _read(source, missing_ok)
        if data is not None:
            store._replace(store._codec.parse(data, source=_describe(source)))
        logger.debug("Loaded configuration from %s (%d top-level keys)", _describe(source), len(store))
        return store

    @classmethod
    def loads(
        cls,
        text: str | bytes,
        *,
        codec: TextCodec | None = None,
        registry: SerializationRegistry | None = None,
    ) -> Store:
        """Parse a document held in memory."""
        store = cls(codec=codec, registry=registry)
        store._replace(store._codec.parse(text))
        return store

    def reload(self) -> None:
        """Re-read the bound path. On failure the current tree is kept."""
        if not _is_path(self._source):
            raise InvalidInputError(message="Only stores bound to a file path can be reloaded")
        data = _read(self._source, missing_ok=False)
        self._replace(self._codec.parse(data, source=_describe(self._source)))
        logger.debug("Reloaded configuration from %s", self._source)

    def _replace(self, tree: dict[str, Any]) -> None:
        previous = self._values
        self._values = {}
        try:
            for key, value in tree.items():
                self._put(str(key), value)
        except UnknownSerializableTypeError as e:
            self._values = previous
            raise CodecError(
                f"Unsupported value of type '{e.identifier}' in document",
                source=_describe(self._source),
                cause=e,
            ) from e
        except Exception:
            self._values = previous
            raise

    # ----- Saving -----

    def save(self, destination: Source | None = None) -> None:
        """Render the tree and write it to ``destination`` or the bound source.

        Parent directories of a path destination are created. Write failures
        propagate and may leave the destination partially written.
        """
        target = destination if destination is not None else self._source
        if target is None:
            raise InvalidInputError(message="No destination given and the store has no source")
        _write(target, self._codec.render(self.to_tree()), self._codec.encoding)
        logger.debug("Saved configuration to %s", _describe(target))

    def dumps(self) -> str:
        """Render the tree as document text."""
        return self._codec.render(self.to_tree()).decode(self._codec.encoding)

    def __repr__(self) -> str:
        return f"Store(source={_describe(self._source)!r}, keys={list(self._values)!r})"


def load(
    source: Source,
    *,
    codec: TextCodec | None = None,
    registry: SerializationRegistry | None = None,
    missing_ok: bool = False,
) -> Store:
    """Load a document and return its root."""
    return Store.load(source, codec=codec, registry=registry, missing_ok=missing_ok)


def loads(
    text: str | bytes,
    *,
    codec: TextCodec | None = None,
    registry: SerializationRegistry | None = None,
) -> Store:
    return Store.loads(text, codec=codec, registry=registry)


def save(root: Section, destination: Source, *, codec: TextCodec | None = None) -> None:
    """Write any section tree to ``destination``.

    The codec defaults to the store's own codec, else one picked from the
    destination suffix.
    """
    if codec is None:
        codec = root.codec if isinstance(root, Store) else codec_for_path(destination if _is_path(destination) else None)
    _write(destination, codec.render(root.to_tree()), codec.encoding)
    logger.debug("Saved configuration to %s", _describe(destination))


def empty(
    source: Source | None = None,
    *,
    codec: TextCodec | None = None,
    registry: SerializationRegistry | None = None,
) -> Store:
    """A new store with no keys, optionally bound to a source for ``save()``."""
    return Store(source, codec=codec, registry=registry)
