"""Bounded render cache keyed by everything that affects an entry's rendering.

A render is reachable only through a key that names its entry, width,
expand state and wrap mode, so a change to any of them is a miss and no
explicit invalidation exists.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Any, NamedTuple

from textual.cache import LRUCache

from cc_logview.view_state.layout import WrapMode

logger = logging.getLogger(__name__)

DEFAULT_CAPACITY = 1000


class RenderCacheKey(NamedTuple):
    identity: str
    width: int
    expanded: bool
    wrap_mode: WrapMode


@dataclass(frozen=True, slots=True)
class CachedRender:
    """Rendered output lines for one key. Lines are opaque to the cache."""

    lines: tuple[Any, ...]

    @classmethod
    def from_lines(cls, lines: Sequence[Any]) -> CachedRender:
        return cls(tuple(lines))

    @property
    def height(self) -> int:
        return len(self.lines)


@dataclass(frozen=True, slots=True)
class CacheStats:
    size: int
    capacity: int
    hits: int
    misses: int

    @property
    def hit_rate(self) -> float:
        lookups = self.hits + self.misses
        return self.hits / lookups if lookups else 0.0


class RenderCache:
    """LRU store of CachedRender values. Capacity 0 selects the default."""

    def __init__(self, capacity: int = DEFAULT_CAPACITY):
        self._capacity = capacity if capacity > 0 else DEFAULT_CAPACITY
        self._cache: LRUCache[RenderCacheKey, CachedRender] = LRUCache(self._capacity)
        self._hits = 0
        self._misses = 0

    @classmethod
    def from_config(cls, config: Any) -> RenderCache:
        """Build from anything with a render_cache_capacity attribute (ResolvedConfig)."""
        return cls(getattr(config, "render_cache_capacity", DEFAULT_CAPACITY))

    def __repr__(self) -> str:
        return f"RenderCache(len={len(self._cache)}, capacity={self._capacity})"

    def __len__(self) -> int:
        return len(self._cache)

    def __contains__(self, key: RenderCacheKey) -> bool:
        return key in self._cache

    @property
    def capacity(self) -> int:
        return self._capacity

    def get(self, key: RenderCacheKey) -> CachedRender | None:
        """Look up and promote to most-recently-used."""
        cached = self._cache.get(key)
        if cached is None:
            self._misses += 1
        else:
            self._hits += 1
        return cached

    def put(self, key: RenderCacheKey, render: CachedRender) -> None:
        """Insert, replacing an existing value and evicting the LRU key when full."""
        # LRUCache.set() keeps the old value for a key it already holds.
        self._cache.discard(key)
        self._cache.set(key, render)

    def get_or_render(
        self, key: RenderCacheKey, render_fn: Callable[[], Sequence[Any]]
    ) -> CachedRender:
        cached = self.get(key)
        if cached is not None:
            return cached
        cached = CachedRender.from_lines(render_fn())
        self.put(key, cached)
        return cached

    def clear(self) -> None:
        self._cache.clear()
        logger.debug("render cache cleared (hits=%d misses=%d)", self._hits, self._misses)
        self._hits = 0
        self._misses = 0

    def stats(self) -> CacheStats:
        return CacheStats(len(self._cache), self._capacity, self._hits, self._misses)
