"""Section: a mutable, path-addressed node of the configuration tree."""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, Iterator

from configtree.accessors import TypedAccessors, is_scalar
from configtree.path import join_path, split_path

if TYPE_CHECKING:
    from configtree.serialization.registry import SerializationRegistry

__all__ = ["Section"]


class Section(TypedAccessors):
    """A nested node holding an ordered mapping of keys to values.

    Values are ``None``, scalars, lists, or child sections. A section has at
    most one parent; attaching a section that is already owned elsewhere (or
    that would create a cycle) attaches a deep copy instead.
    """

    def __init__(
        self,
        data: Mapping[Any, Any] | None = None,
        *,
        name: str = "",
        parent: Section | None = None,
        registry: SerializationRegistry | None = None,
    ) -> None:
        self._values: dict[str, Any] = {}
        self._name = name
        self._parent = parent
        self._registry = registry
        if data:
            for key, value in data.items():
                self._put(str(key), value)

    @classmethod
    def from_tree(cls, tree: Mapping[Any, Any] | None, *, registry: SerializationRegistry | None = None) -> Section:
        """Wrap a generic tree of mappings, lists and scalars."""
        return cls(tree or {}, registry=registry)

    # ----- Identity and navigation -----

    @property
    def name(self) -> str:
        """The key of this section in its parent, ``""`` for a root."""
        return self._name

    @property
    def parent(self) -> Section | None:
        return self._parent

    @property
    def root(self) -> Section:
        node = self
        while node._parent is not None:
            node = node._parent
        return node

    @property
    def path(self) -> str:
        """Full dotted path from the root to this section."""
        names: list[str] = []
        node: Section | None = self
        while node is not None and node._parent is not None:
            names.append(node._name)
            node = node._parent
        return join_path(*reversed(names))

    @property
    def registry(self) -> SerializationRegistry:
        """The serialization registry in effect for this section.

        Inherited from the nearest ancestor that has one, else the default
        registry.
        """
        node: Section | None = self
        while node is not None:
            if node._registry is not None:
                return node._registry
            node = node._parent
        from configtree.serialization.registry import default_registry

        return default_registry()

    @property
    def marker(self) -> str:
        return self.registry.marker

    def children(self) -> list[Section]:
        """Direct child sections, in key order."""
        return [v for v in self._values.values() if isinstance(v, Section)]

    def has_children(self) -> bool:
        return any(isinstance(v, Section) for v in self._values.values())

    def keys(self, deep: bool = False) -> list[str]:
        """Direct keys, or every dotted descendant path when ``deep``."""
        if not deep:
            return list(self._values)
        return list(self.get_values(deep=True))

    def get_values(self, deep: bool = False) -> dict[str, Any]:
        """Key to value mapping; with ``deep``, keyed by dotted descendant path."""
        if not deep:
            return dict(self._values)
        result: dict[str, Any] = {}
        for key, value in self._values.items():
            result[key] = value
            if isinstance(value, Section):
                for sub_key, sub_value in value.get_values(deep=True).items():
                    result[join_path(key, sub_key)] = sub_value
        return result

    def items(self) -> list[tuple[str, Any]]:
        return list(self._values.items())

    # ----- Path resolution -----

    def _walk(self, segments: list[str]) -> Section | None:
        node = self
        for segment in segments:
            child = node._values.get(segment)
            if not isinstance(child, Section):
                return None
            node = child
        return node

    def _ensure(self, segments: list[str]) -> Section:
        node = self
        for segment in segments:
            child = node._values.get(segment)
            if not isinstance(child, Section):
                child = Section(name=segment, parent=node)
                node._values[segment] = child
            node = child
        return node

    def resolve(self, path: str) -> Section | None:
        """Return the section at ``path`` without creating anything."""
        return self._walk(split_path(path))

    def get(self, path: str, default: Any = None) -> Any:
        """Return the raw value at ``path``.

        An absent key, a ``None`` value, or an intermediate segment that is
        not a section all yield ``default``.
        """
        segments = split_path(path)
        holder = self._walk(segments[:-1])
        if holder is None:
            return default
        value = holder._values.get(segments[-1])
        return default if value is None else value

    def set(self, path: str, value: Any) -> None:
        """Write ``value`` at ``path``, creating intermediate sections.

        Non-section intermediates are replaced by empty sections. Setting
        ``None`` removes the key. If ``value`` holds an object that cannot be
        serialized, the error is raised before the tree is touched.
        """
        segments = split_path(path)
        if value is None:
            self.remove(path)
            return
        value = self._deepest(segments[:-1])._serialize_objects(value)
        holder = self._ensure(segments[:-1])
        holder._put(segments[-1], value)

    def _deepest(self, segments: list[str]) -> Section:
        node = self
        for segment in segments:
            child = node._values.get(segment)
            if not isinstance(child, Section):
                break
            node = child
        return node

    def _serialize_objects(self, value: Any) -> Any:
        if value is None or is_scalar(value) or isinstance(value, Section):
            return value
        if isinstance(value, Mapping):
            return {key: self._serialize_objects(item) for key, item in value.items()}
        if isinstance(value, (list, tuple)):
            return [self._serialize_objects(item) for item in value]
        return self.registry.serialize(value)

    def remove(self, path: str) -> bool:
        """Remove the value at ``path``. Returns False if nothing was there."""
        segments = split_path(path)
        holder = self._walk(segments[:-1])
        if holder is None or segments[-1] not in holder._values:
            return False
        removed = holder._values.pop(segments[-1])
        if isinstance(removed, Section):
            removed._parent = None
        return True

    def contains(self, path: str) -> bool:
        return self.get(path) is not None

    def contains_section(self, path: str) -> bool:
        """True only if the terminal value exists and is a section."""
        return self.resolve(path) is not None

    def get_section(self, path: str) -> Section | None:
        return self.resolve(path)

    def create_section(self, path: str) -> Section:
        """Place a fresh empty section at ``path`` and return it."""
        segments = split_path(path)
        holder = self._ensure(segments[:-1])
        section = Section(name=segments[-1], parent=holder)
        holder._values[segments[-1]] = section
        return section

    def clear(self) -> None:
        for value in self._values.values():
            if isinstance(value, Section):
                value._parent = None
        self._values.clear()

    # ----- Value conversion -----

    def _put(self, key: str, value: Any) -> None:
        self._values[key] = self._wrap(key, value)

    def _wrap(self, key: str, value: Any) -> Any:
        if value is None or is_scalar(value):
            return value
        if isinstance(value, Section):
            return self._attach(key, value)
        if isinstance(value, Mapping):
            section = Section(name=key, parent=self)
            for sub_key, sub_value in value.items():
                section._put(str(sub_key), sub_value)
            return section
        if isinstance(value, (list, tuple)):
            return [self._wrap(key, item) for item in value]
        return self._attach(key, self.registry.serialize(value))

    def _attach(self, key: str, section: Section) -> Section:
        if section._parent is not None or section is self or section._is_ancestor_of(self):
            section = section.copy()
        section._parent = self
        section._name = key
        return section

    def _is_ancestor_of(self, other: Section) -> bool:
        node = other._parent
        while node is not None:
            if node is self:
                return True
            node = node._parent
        return False

    def copy(self) -> Section:
        """Deep copy as an unowned section that keeps this section's name."""
        clone = Section(name=self._name, registry=self._registry)
        for key, value in self._values.items():
            clone._values[key] = clone._copy_value(key, value)
        return clone

    def _copy_value(self, key: str, value: Any) -> Any:
        if isinstance(value, Section):
            child = value.copy()
            child._parent = self
            child._name = key
            return child
        if isinstance(value, list):
            return [self._copy_value(key, item) for item in value]
        return value

    def to_dict(self) -> dict[str, Any]:
        """Deep plain copy: sections become dicts, tagged sections included."""
        return {key: _plain(value) for key, value in self._values.items()}

    def to_tree(self) -> dict[str, Any]:
        """Generic tree shape handed to a text codec."""
        return self.to_dict()

    # ----- Mapping protocol on direct keys -----

    def __getitem__(self, key: str) -> Any:
        return self._values[key]

    def __contains__(self, key: object) -> bool:
        return key in self._values

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._values))

    def __len__(self) -> int:
        return len(self._values)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Section):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"{type(self).__name__}(path={self.path!r}, keys={list(self._values)!r})"


def _plain(value: Any) -> Any:
    if isinstance(value, Section):
        return value.to_dict()
    if isinstance(value, list):
        return [_plain(item) for item in value]
    return value
