"""Mutation → cache invalidation policy.

Patterns are path-segment prefixes: ``/api/http-proxies`` covers
``/api/http-proxies/7`` and ``/api/http-proxies/bulk-delete`` but not
``/api/http-proxies-archive``. A ``{name}`` segment matches any one
segment. When several patterns match, the longest wins (most segments,
then most literal segments), so a specific descriptor can override a
broader one, including with an empty ``affected_keys`` to opt out.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any, Protocol

from pydantic import BaseModel, ConfigDict, field_validator

from pystorefront.cache.keys import CacheKey, KeyLike, make_key

_logger = logging.getLogger(__name__)


class Invalidator(Protocol):
    def invalidate(self, key_or_prefix: KeyLike) -> int:
        ...


def endpoint_segments(endpoint: str) -> tuple[str, ...]:
    """Split *endpoint* into path segments, dropping query and fragment."""
    path = endpoint.split("?", 1)[0].split("#", 1)[0]
    if "://" in path:
        path = "/" + path.split("://", 1)[1].partition("/")[2]
    return tuple(part for part in path.split("/") if part)


def _is_placeholder(segment: str) -> bool:
    return segment.startswith("{") and segment.endswith("}")


def match_score(pattern: tuple[str, ...], segments: tuple[str, ...]) -> tuple[int, int] | None:
    """Return ``(length, literal_count)`` if *pattern* prefixes *segments*, else ``None``."""
    if len(pattern) > len(segments):
        return None
    literals = 0
    for expected, actual in zip(pattern, segments):
        if _is_placeholder(expected):
            continue
        if expected != actual:
            return None
        literals += 1
    return len(pattern), literals


class MutationDescriptor(BaseModel):
    """Which cached queries a family of mutation endpoints makes stale."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    pattern: str
    affected_keys: tuple[CacheKey, ...] = ()

    @field_validator("pattern")
    @classmethod
    def _normalize_pattern(cls, value: str) -> str:
        segments = endpoint_segments(value.strip())
        if not segments:
            raise ValueError("pattern must contain at least one path segment")
        return "/" + "/".join(segments)

    @field_validator("affected_keys", mode="before")
    @classmethod
    def _normalize_keys(cls, value: Any) -> tuple[CacheKey, ...]:
        return tuple(make_key(key) for key in value)

    @property
    def segments(self) -> tuple[str, ...]:
        return endpoint_segments(self.pattern)


def descriptor(pattern: str, *keys: KeyLike) -> MutationDescriptor:
    """Shorthand used by the descriptor table."""
    return MutationDescriptor(pattern=pattern, affected_keys=tuple(make_key(k) for k in keys))


class InvalidationPolicy:
    """Resolves mutation endpoints against an explicit descriptor table.

    Parameters
    ----------
    descriptors
        The table. Duplicate patterns are rejected.
    cache_irrelevant
        Endpoint patterns known to change nothing the console caches. They
        only feed :meth:`covers`; matching one is still a no-op.
    """

    def __init__(
        self,
        descriptors: Iterable[MutationDescriptor],
        *,
        cache_irrelevant: Iterable[str] = (),
    ) -> None:
        self._descriptors: tuple[MutationDescriptor, ...] = tuple(descriptors)
        seen: set[str] = set()
        for item in self._descriptors:
            if item.pattern in seen:
                raise ValueError(f"duplicate mutation descriptor for {item.pattern}")
            seen.add(item.pattern)
        self._irrelevant: tuple[tuple[str, ...], ...] = tuple(endpoint_segments(p) for p in cache_irrelevant)

    @property
    def descriptors(self) -> tuple[MutationDescriptor, ...]:
        return self._descriptors

    def match(self, endpoint: str) -> MutationDescriptor | None:
        """Return the longest descriptor matching *endpoint*, if any."""
        segments = endpoint_segments(endpoint)
        best: MutationDescriptor | None = None
        best_score: tuple[int, int] | None = None
        for item in self._descriptors:
            score = match_score(item.segments, segments)
            if score is not None and (best_score is None or score > best_score):
                best, best_score = item, score
        return best

    def covers(self, endpoint: str) -> bool:
        """Whether *endpoint* has a descriptor or is documented as cache-irrelevant."""
        if self.match(endpoint) is not None:
            return True
        segments = endpoint_segments(endpoint)
        return any(match_score(pattern, segments) is not None for pattern in self._irrelevant)

    def on_mutation_success(self, endpoint: str, cache_store: Invalidator) -> list[CacheKey]:
        """Invalidate every key the matching descriptor names.

        Returns the invalidated keys; an empty list when nothing matched.
        """
        matched = self.match(endpoint)
        if matched is None:
            _logger.debug("No invalidation descriptor for %s", endpoint)
            return []
        for key in matched.affected_keys:
            cache_store.invalidate(key)
        _logger.debug("Mutation %s (pattern %s) invalidated %r", endpoint, matched.pattern, matched.affected_keys)
        return list(matched.affected_keys)
