"""File system repository for prompt blocks.

Blocks live one per file in up to three ranked source directories:

1. Workspace blocks (``<workspace>/.promptblocks/prompts``)
2. Global blocks (``~/.promptblocks/prompts``)
3. Default blocks (bundled with the package)

A name defined in a higher-ranked source shadows the same name in lower
ones, regardless of the blocks' own ``priority`` field.
"""
import asyncio
import logging
import time
from pathlib import Path
from typing import Callable, Dict, List, Optional, Tuple, Union

from ..core.block import PromptBlock, is_valid_block_name
from ..core.cache import VersionedTTLCache
from ..core.category import PromptCategory
from ..core.exceptions import BlockIOError, PromptBlocksError, normalize_error
from ..core.interfaces.repository import (
    BlockLoadResult,
    BlockSource,
    ChangeListener,
    Disposer,
)
from ..core.interfaces.watcher import FileEvent, IChangeNotifier
from .file_watcher import WatchfilesChangeNotifier
from .yaml_parser import YamlPromptBlockParser

logger = logging.getLogger(__name__)

BLOCK_EXTENSIONS = (".yaml", ".yml")
PROMPTS_SUBDIR = "prompts"

PathLike = Union[str, Path]
SearchPath = Tuple[BlockSource, Path]


class FileSystemPromptBlockRepository:
    """Load prompt blocks from ranked directories on disk.

    Example:
        repo = FileSystemPromptBlockRepository(
            workspace_path="/project/.promptblocks",
            global_path=Path.home() / ".promptblocks",
            defaults_path=bundled_defaults_dir(),
        )
        blocks = await repo.load_all()
        result = await repo.load_by_name("eda-analysis")
    """

    def __init__(
        self,
        workspace_path: Optional[PathLike] = None,
        global_path: Optional[PathLike] = None,
        defaults_path: Optional[PathLike] = None,
        parser: Optional[YamlPromptBlockParser] = None,
        notifier: Optional[IChangeNotifier] = None,
        cache_ttl_seconds: float = 300.0,
        clock: Callable[[], float] = time.monotonic,
        logger: Optional[logging.Logger] = None,
    ):
        """
        Initialize the repository.

        Args:
            workspace_path: Workspace blocks root (highest priority).
            global_path: User-wide blocks root.
            defaults_path: Bundled blocks root (lowest priority).
            parser: YAML parser; a default one is created if omitted.
            notifier: File change notifier used by ``watch_for_changes``.
            cache_ttl_seconds: TTL for memoized per-name lookups.
            clock: Time source for the cache.
            logger: Optional logger; defaults to the module logger.
        """
        self._workspace_path = Path(workspace_path) if workspace_path else None
        self._global_path = Path(global_path) if global_path else None
        self._defaults_path = Path(defaults_path) if defaults_path else None
        self._logger = logger or logging.getLogger(__name__)
        self._parser = parser or YamlPromptBlockParser(logger=self._logger)
        self._notifier = notifier or WatchfilesChangeNotifier()
        self._cache: VersionedTTLCache[str, BlockLoadResult] = VersionedTTLCache(
            ttl_seconds=cache_ttl_seconds, clock=clock, name="repository"
        )
        self._dispose_watch: Optional[Disposer] = None

    # ==================== Search Paths ====================

    def get_search_paths(self) -> List[SearchPath]:
        """Configured source directories, highest priority first."""
        roots = (
            (BlockSource.WORKSPACE, self._workspace_path),
            (BlockSource.GLOBAL, self._global_path),
            (BlockSource.DEFAULTS, self._defaults_path),
        )
        return [(source, root / PROMPTS_SUBDIR) for source, root in roots if root is not None]

    # ==================== Loading ====================

    async def load_all(self) -> List[PromptBlock]:
        """Load every resolvable block, enabled and disabled.

        Files that fail to read or validate are logged and skipped.
        """
        return await asyncio.to_thread(self._load_all_sync)

    async def load_by_name(self, name: str) -> BlockLoadResult:
        """Load one block by name. Never raises.

        The name is checked against the identifier pattern before any file
        system access, so it cannot be used to escape the source directories.
        """
        if not is_valid_block_name(name):
            return BlockLoadResult.failed("Invalid block name format")

        try:
            result, from_cache = await self._cache.get_or_load(
                name,
                lambda: asyncio.to_thread(self._lookup_sync, name),
                should_cache=lambda r: r.success,
            )
        except Exception as e:
            error = normalize_error(e, "BLOCK_LOOKUP_FAILED", {"name": name})
            self._logger.error(f"Lookup for block '{name}' failed: {error.message}")
            return BlockLoadResult.failed(error.message)

        if from_cache:
            self._logger.debug(f"Block '{name}' served from cache")
        return result

    async def load_by_category(self, category: PromptCategory) -> List[PromptBlock]:
        blocks = await self.load_all()
        return [block for block in blocks if block.category == category]

    async def exists(self, name: str) -> bool:
        result = await self.load_by_name(name)
        return result.success

    async def get_available_names(self) -> List[str]:
        """Sorted, de-duplicated names of block files across all sources."""
        return await asyncio.to_thread(self._available_names_sync)

    # ==================== Cache & Watching ====================

    def clear_cache(self) -> None:
        self._cache.clear()

    def get_cache_stats(self) -> Dict:
        return self._cache.stats()

    def watch_for_changes(self, on_change: Optional[ChangeListener] = None) -> Disposer:
        """Clear the cache whenever a block file is created, modified or deleted.

        A previous watch started by this repository is stopped first.

        Args:
            on_change: Called after the cache has been cleared.

        Returns:
            Idempotent function that stops watching.
        """
        if self._dispose_watch is not None:
            self._dispose_watch()
            self._dispose_watch = None

        def handle(events: List[FileEvent]) -> None:
            self._logger.info(
                f"Prompt block file change detected ({len(events)} event(s)), clearing cache"
            )
            self.clear_cache()
            if on_change is not None:
                on_change()

        directories = [directory for _, directory in self.get_search_paths()]
        stop = self._notifier.watch(directories, handle)
        disposed = False

        def dispose() -> None:
            nonlocal disposed
            if disposed:
                return
            disposed = True
            stop()
            if self._dispose_watch is dispose:
                self._dispose_watch = None

        self._dispose_watch = dispose
        return dispose

    # ==================== Blocking helpers (run in worker threads) ====================

    def _load_all_sync(self) -> List[PromptBlock]:
        blocks: Dict[str, PromptBlock] = {}

        # Lowest priority first; later sources overwrite.
        for source, directory in reversed(self.get_search_paths()):
            for block in self._load_directory(source, directory):
                blocks[block.name] = block

        return list(blocks.values())

    def _load_directory(self, source: BlockSource, directory: Path) -> List[PromptBlock]:
        blocks = []
        for file_path in self._list_block_files(directory):
            result = self._load_file(file_path, source)
            if result.success:
                blocks.append(result.block)
            else:
                self._logger.warning(
                    f"Skipping prompt block file {file_path} ({source.value}): {result.error}"
                )
        self._logger.debug(f"Loaded {len(blocks)} block(s) from {directory} ({source.value})")
        return blocks

    def _list_block_files(self, directory: Path) -> List[Path]:
        """Block files in ``directory``; ``.yaml`` wins over ``.yml`` per stem."""
        if not directory.is_dir():
            return []

        try:
            entries = sorted(directory.iterdir())
        except OSError as e:
            self._logger.warning(f"Failed to read block directory {directory}: {e}")
            return []

        by_stem: Dict[str, Path] = {}
        for entry in entries:
            if entry.suffix not in BLOCK_EXTENSIONS or entry.name.startswith("."):
                continue
            if not entry.is_file():
                continue
            current = by_stem.get(entry.stem)
            if current is None or entry.suffix == ".yaml":
                by_stem[entry.stem] = entry
        return [by_stem[stem] for stem in sorted(by_stem)]

    def _load_file(self, file_path: Path, source: BlockSource) -> BlockLoadResult:
        try:
            try:
                content = file_path.read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError) as e:
                raise BlockIOError(
                    "FILE_READ_FAILED",
                    f"Failed to read {file_path}: {e}",
                    {"file": str(file_path)},
                    cause=e,
                )
            block = self._parser.parse_block(content, file_path=str(file_path))
        except PromptBlocksError as e:
            return BlockLoadResult.failed(e.message, source=source, file_path=str(file_path))

        return BlockLoadResult.ok(block, source, str(file_path))

    def _lookup_sync(self, name: str) -> BlockLoadResult:
        first_failure: Optional[BlockLoadResult] = None

        for source, directory in self.get_search_paths():
            for extension in BLOCK_EXTENSIONS:
                file_path = directory / f"{name}{extension}"
                if not file_path.is_file():
                    continue

                result = self._load_file(file_path, source)
                if result.success:
                    return result

                self._logger.warning(
                    f"Failed to load block '{name}' from {file_path}: {result.error}"
                )
                if first_failure is None:
                    first_failure = result

        if first_failure is not None:
            return first_failure
        return BlockLoadResult.failed(f"Block '{name}' not found")

    def _available_names_sync(self) -> List[str]:
        names = set()
        for _, directory in self.get_search_paths():
            names.update(path.stem for path in self._list_block_files(directory))
        return sorted(names)
