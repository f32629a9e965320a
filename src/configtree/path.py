"""Dotted path handling for section addressing."""

from __future__ import annotations

from configtree.errors import MalformedPathError

__all__ = ["SEPARATOR", "split_path", "join_path", "parent_path", "leaf_name"]

SEPARATOR = "."


def split_path(path: str) -> list[str]:
    """Split a dotted path into its ordered segments.

    Outer whitespace is ignored. Segments are case-sensitive and kept verbatim.

    Raises:
        MalformedPathError: If the path is not a string, is empty, or has an
            empty segment (``"a..b"``, ``".a"``, ``"a."``).
    """
    if not isinstance(path, str):
        raise MalformedPathError(path, reason="path must be a string")
    stripped = path.strip()
    if not stripped:
        raise MalformedPathError(path, reason="path is empty")
    segments = stripped.split(SEPARATOR)
    if any(segment == "" for segment in segments):
        raise MalformedPathError(path)
    return segments


def join_path(*segments: str) -> str:
    """Join non-empty segments with the separator."""
    return SEPARATOR.join(s for s in segments if s)


def parent_path(path: str) -> str:
    """Return the path of the parent node, ``""`` for a top-level key."""
    return join_path(*split_path(path)[:-1])


def leaf_name(path: str) -> str:
    """Return the last segment of a path."""
    return split_path(path)[-1]
