"""The ``serializable`` class decorator."""

from __future__ import annotations

from typing import Any

from configtree.serialization.registry import SerializationRegistry, default_registry, get_registry

__all__ = ["serializable"]


def serializable(
    cls_or_none: type | None = None,
    /,
    *,
    alias: str | None = None,
    registry: SerializationRegistry | str | None = None,
) -> Any:
    """Register a class as serializable and return it unchanged.

    Dual-purpose: works bare (``@serializable``) and with arguments
    (``@serializable(alias="endpoint", registry="plugins")``). ``registry``
    may be a registry instance or a registry name; the default registry is
    used when omitted.
    """

    def _wrap(cls: type) -> type:
        if registry is None:
            target = default_registry()
        elif isinstance(registry, str):
            target = get_registry(registry)
        else:
            target = registry
        cls.configtree_descriptor = target.register_type(cls, alias=alias)  # type: ignore[attr-defined]
        return cls

    if cls_or_none is not None:
        return _wrap(cls_or_none)
    return _wrap
