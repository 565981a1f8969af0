"""Load prompt blocks with caching.

Sits between the host and the repository: answers "all blocks" and
"blocks in category X" from a versioned TTL cache, filters out disabled
blocks and hands every caller its own list.
"""
import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple

from ..core.block import PromptBlock
from ..core.cache import VersionedTTLCache
from ..core.category import PromptCategory
from ..core.interfaces.repository import Disposer, IPromptBlockRepository

logger = logging.getLogger(__name__)

ALL_KEY = "all"


def category_key(category: PromptCategory) -> str:
    return f"category:{category.value}"


@dataclass(frozen=True)
class _Snapshot:
    """Immutable cache value: enabled blocks plus how many records were loaded."""
    blocks: Tuple[PromptBlock, ...]
    raw_count: int


@dataclass
class LoadPromptBlocksResult:
    """Load result with metadata.

    ``error_count`` is the number of loaded records that were dropped
    because they are disabled. ``load_time`` is in seconds.
    """
    blocks: List[PromptBlock]
    loaded_count: int
    error_count: int
    from_cache: bool
    load_time: float


class LoadPromptBlocks:
    """Use case for loading prompt blocks with caching.

    Example:
        loader = LoadPromptBlocks(repository)
        result = await loader.execute()
        stop = loader.enable_hot_reload()
    """

    def __init__(
        self,
        repository: IPromptBlockRepository,
        cache_ttl_seconds: float = 300.0,
        clock: Callable[[], float] = time.monotonic,
        logger: Optional[logging.Logger] = None,
    ):
        self._repository = repository
        self._cache: VersionedTTLCache[str, _Snapshot] = VersionedTTLCache(
            ttl_seconds=cache_ttl_seconds, clock=clock, name="load"
        )
        self._logger = logger or logging.getLogger(__name__)

    async def execute(self) -> LoadPromptBlocksResult:
        """Load all enabled prompt blocks."""
        return await self._load(ALL_KEY, self._repository.load_all)

    async def execute_by_category(self, category: PromptCategory) -> LoadPromptBlocksResult:
        """Load enabled prompt blocks of one category."""
        return await self._load(
            category_key(category),
            lambda: self._repository.load_by_category(category),
        )

    async def execute_by_name(self, name: str) -> Optional[PromptBlock]:
        """Load one block by name.

        Returns:
            The block, or None if it is missing, invalid or disabled.
        """
        result = await self._repository.load_by_name(name)
        if result.success and result.block is not None and result.block.is_enabled():
            return result.block
        if not result.success:
            self._logger.debug(f"Block '{name}' unavailable: {result.error}")
        return None

    async def get_available_names(self) -> List[str]:
        """Available block names for autocomplete and UI."""
        return await self._repository.get_available_names()

    def invalidate_cache(self) -> None:
        """Drop both cache layers; the next load re-reads from disk."""
        self._cache.clear()
        self._repository.clear_cache()
        self._logger.info(f"Prompt block cache invalidated (version {self._cache.version})")

    def enable_hot_reload(self) -> Disposer:
        """Start watching block files; any change invalidates both cache layers.

        Returns:
            Idempotent function that stops watching and invalidates the cache.
        """
        stop_watching = self._repository.watch_for_changes(on_change=self.invalidate_cache)
        stopped = False

        def dispose() -> None:
            nonlocal stopped
            if stopped:
                return
            stopped = True
            stop_watching()
            self.invalidate_cache()

        self._logger.info("Prompt block hot reload enabled")
        return dispose

    def get_cache_stats(self) -> Dict[str, Any]:
        """Cache statistics for debugging."""
        stats = self._cache.stats()
        return {"size": stats["size"], "keys": stats["keys"], "version": stats["version"]}

    async def _load(self, key: str, fetch) -> LoadPromptBlocksResult:
        start = time.perf_counter()

        async def populate() -> _Snapshot:
            blocks = await fetch()
            enabled = tuple(block for block in blocks if block.is_enabled())
            self._logger.info(
                f"Loaded {len(enabled)} enabled prompt block(s) for '{key}' "
                f"({len(blocks) - len(enabled)} disabled)"
            )
            return _Snapshot(blocks=enabled, raw_count=len(blocks))

        snapshot, from_cache = await self._cache.get_or_load(key, populate)

        return LoadPromptBlocksResult(
            blocks=list(snapshot.blocks),
            loaded_count=len(snapshot.blocks),
            error_count=snapshot.raw_count - len(snapshot.blocks),
            from_cache=from_cache,
            load_time=time.perf_counter() - start,
        )
