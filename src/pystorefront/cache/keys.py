"""Cache keys.

A key is an ordered tuple of primitives, typically the resource path
followed by whatever partitions it (``("/api/phone-rental-history", 42)``).
Keys compare structurally, and a shorter key acts as a prefix of every key
that starts with the same parts.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TypeAlias

Primitive: TypeAlias = str | int | float | bool | None
CacheKey: TypeAlias = tuple[Primitive, ...]
KeyLike: TypeAlias = str | Sequence[Primitive]

_PRIMITIVES = (str, int, float, bool, type(None))


def make_key(key: KeyLike) -> CacheKey:
    """Normalize *key* into a :data:`CacheKey`.

    A bare string is a one-part key. Raises :class:`ValueError` for empty
    keys or non-primitive parts.
    """
    parts: tuple[object, ...] = (key,) if isinstance(key, str) else tuple(key)
    if not parts:
        raise ValueError("cache key must have at least one part")
    for part in parts:
        if not isinstance(part, _PRIMITIVES):
            raise ValueError(f"cache key parts must be primitives, got {type(part).__name__}: {part!r}")
    return parts  # type: ignore[return-value]


def is_prefix(prefix: CacheKey, key: CacheKey) -> bool:
    """Return ``True`` when *key* starts with every part of *prefix*."""
    return len(prefix) <= len(key) and key[: len(prefix)] == prefix


def key_path(key: CacheKey) -> str:
    """Resource path encoded in the first part of *key*."""
    head = key[0]
    if not isinstance(head, str):
        raise ValueError(f"first key part must be a path string, got {head!r}")
    return head
