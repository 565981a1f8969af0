"""Versioned TTL cache shared by the repository and the load use case.

An entry is served while it is younger than the TTL *and* was written under
the current version. ``invalidate()`` only bumps the version, so it is O(1)
no matter how many keys exist; stale entries are dropped lazily on the next
read. ``clear()`` scrubs every key immediately and bumps the version too.

Concurrent loads are coalesced: ``get_or_load`` keeps at most one in-flight
population task per key (per version). Callers await that task through
``asyncio.shield`` so a caller that gets cancelled does not cancel the
population, and the result still lands in the cache for the next caller.
A population that started before an invalidation is never written back.
"""
import asyncio
import logging
import time
from dataclasses import dataclass
from typing import (
    Any,
    Awaitable,
    Callable,
    Dict,
    Generic,
    Hashable,
    List,
    Optional,
    Tuple,
    TypeVar,
)

logger = logging.getLogger(__name__)

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")

_MISSING = object()


@dataclass(frozen=True)
class CacheEntry(Generic[V]):
    """Single cached value with the time and version it was stored under."""
    key: Any
    value: V
    timestamp: float
    version: int


class VersionedTTLCache(Generic[K, V]):
    """TTL cache with O(1) versioned invalidation and single-flight loads.

    Example:
        cache: VersionedTTLCache[str, tuple] = VersionedTTLCache(ttl_seconds=300)
        blocks, from_cache = await cache.get_or_load("all", load_everything)
        cache.invalidate()  # next read misses
    """

    def __init__(
        self,
        ttl_seconds: float = 300.0,
        clock: Callable[[], float] = time.monotonic,
        name: str = "cache",
    ):
        """
        Initialize the cache.

        Args:
            ttl_seconds: Maximum entry age in seconds.
            clock: Monotonic time source (injectable for tests).
            name: Label used in log messages.
        """
        self._ttl = ttl_seconds
        self._clock = clock
        self._name = name
        self._entries: Dict[K, CacheEntry[V]] = {}
        self._inflight: Dict[K, Tuple[int, "asyncio.Task[V]"]] = {}
        self._version = 0
        self._hits = 0
        self._misses = 0

    @property
    def version(self) -> int:
        """Current cache version."""
        return self._version

    @property
    def ttl_seconds(self) -> float:
        return self._ttl

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: K) -> bool:
        return self.get(key, _MISSING) is not _MISSING

    def keys(self) -> List[K]:
        """Keys currently stored, including stale ones not yet evicted."""
        return list(self._entries.keys())

    def _is_fresh(self, entry: CacheEntry[V]) -> bool:
        return (
            self._clock() - entry.timestamp < self._ttl
            and entry.version == self._version
        )

    def get(self, key: K, default: Any = None) -> Any:
        """Return the fresh value for ``key`` or ``default``.

        Expired or outdated entries are evicted as a side effect.
        """
        entry = self._entries.get(key)
        if entry is None:
            return default
        if self._is_fresh(entry):
            return entry.value
        del self._entries[key]
        return default

    def set(self, key: K, value: V, version: Optional[int] = None) -> bool:
        """Store a value.

        Args:
            key: Cache key.
            value: Value to store. Callers should pass an immutable snapshot.
            version: Version observed when the value was produced. Writes
                tagged with an outdated version are discarded.

        Returns:
            True if the value was stored.
        """
        if version is None:
            version = self._version
        if version != self._version:
            logger.debug(
                f"[{self._name}] Discarding stale write for {key!r} "
                f"(version {version}, current {self._version})"
            )
            return False
        self._entries[key] = CacheEntry(
            key=key, value=value, timestamp=self._clock(), version=version
        )
        return True

    def delete(self, key: K) -> None:
        self._entries.pop(key, None)

    def invalidate(self) -> int:
        """Bump the version so every existing entry becomes stale.

        Returns:
            The new version.
        """
        self._version += 1
        logger.debug(f"[{self._name}] Invalidated, version={self._version}")
        return self._version

    def clear(self) -> None:
        """Drop every entry immediately and bump the version."""
        self._entries.clear()
        self._version += 1
        logger.debug(f"[{self._name}] Cleared, version={self._version}")

    async def get_or_load(
        self,
        key: K,
        loader: Callable[[], Awaitable[V]],
        should_cache: Optional[Callable[[V], bool]] = None,
    ) -> Tuple[V, bool]:
        """Return the cached value or populate it with ``loader``.

        Args:
            key: Cache key.
            loader: Zero-argument coroutine function producing the value.
            should_cache: Optional predicate; values it rejects are returned
                but not stored.

        Returns:
            Tuple of (value, served_from_cache).
        """
        cached = self.get(key, _MISSING)
        if cached is not _MISSING:
            self._hits += 1
            return cached, True

        inflight = self._inflight.get(key)
        if inflight is None or inflight[0] != self._version:
            self._misses += 1
            version = self._version
            task = asyncio.ensure_future(self._populate(key, loader, version, should_cache))
            task.add_done_callback(self._consume_failure)
            inflight = (version, task)
            self._inflight[key] = inflight
        else:
            logger.debug(f"[{self._name}] Joining in-flight load for {key!r}")

        value = await asyncio.shield(inflight[1])
        return value, False

    async def _populate(
        self,
        key: K,
        loader: Callable[[], Awaitable[V]],
        version: int,
        should_cache: Optional[Callable[[V], bool]],
    ) -> V:
        try:
            value = await loader()
            if should_cache is None or should_cache(value):
                self.set(key, value, version=version)
            return value
        finally:
            current = self._inflight.get(key)
            if current is not None and current[1] is asyncio.current_task():
                del self._inflight[key]

    def _consume_failure(self, task: "asyncio.Task[V]") -> None:
        # Retrieve the exception so abandoned loads don't warn at GC time.
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.warning(f"[{self._name}] Cache population failed: {error}")

    def stats(self) -> Dict[str, Any]:
        """Cache statistics for debugging."""
        return {
            "size": len(self._entries),
            "keys": self.keys(),
            "version": self._version,
            "hits": self._hits,
            "misses": self._misses,
            "in_flight": len(self._inflight),
        }
