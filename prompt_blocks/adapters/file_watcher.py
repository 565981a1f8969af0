"""File watcher for prompt block directories.

Uses watchfiles (based on notify-rs) for efficient cross-platform
file system monitoring. Only YAML files directly inside the watched
directories are reported; hidden and editor temp files are ignored.

The repository only needs to know that *something* changed, so events are
delivered in debounced batches to a synchronous handler. Handlers must be
cheap (bump a cache version, clear a dict) and must not block.
"""
import asyncio
import logging
from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence

from watchfiles import Change, awatch

from ..core.interfaces.watcher import ChangeHandler, FileChangeType, FileEvent

logger = logging.getLogger(__name__)

_CHANGE_TYPES = {
    Change.added: FileChangeType.CREATED,
    Change.modified: FileChangeType.MODIFIED,
    Change.deleted: FileChangeType.DELETED,
}


class BlockDirectoryWatcher:
    """
    Async watcher for a set of block directories.

    Example:
        watcher = BlockDirectoryWatcher([Path(".promptblocks/prompts")], on_change)
        watcher.start()   # must be called with a running event loop

        # Later...
        watcher.stop()
    """

    def __init__(
        self,
        paths: Sequence[Path],
        handler: ChangeHandler,
        debounce_ms: int = 200,
    ):
        """
        Initialize the watcher.

        Args:
            paths: Existing directories to watch (non-recursive).
            handler: Called with each batch of relevant events.
            debounce_ms: Debounce delay in milliseconds.
        """
        self._paths = [Path(p).resolve() for p in paths]
        self._handler = handler
        self._debounce_ms = debounce_ms
        self._stop_event: Optional[asyncio.Event] = None
        self._task: Optional[asyncio.Task] = None

        # Stats
        self._events_processed = 0
        self._events_ignored = 0

    @property
    def paths(self) -> List[Path]:
        return list(self._paths)

    @property
    def is_running(self) -> bool:
        """Check if the watcher is currently running."""
        return self._task is not None and not self._task.done()

    @property
    def stats(self) -> Dict[str, int]:
        """Get watcher statistics."""
        return {
            "events_processed": self._events_processed,
            "events_ignored": self._events_ignored,
        }

    def _make_event(self, change: Change, path_str: str) -> Optional[FileEvent]:
        """
        Create a FileEvent from a watchfiles change.

        Returns:
            FileEvent or None if it should be ignored.
        """
        change_type = _CHANGE_TYPES.get(change)
        if change_type is None:
            return None

        event = FileEvent(path=Path(path_str), change_type=change_type)
        if not event.is_yaml() or event.path.name.startswith("."):
            self._events_ignored += 1
            return None
        return event

    def _dispatch(self, events: List[FileEvent]) -> None:
        try:
            self._handler(events)
            self._events_processed += len(events)
        except Exception as e:
            logger.error(f"Error handling {len(events)} block file event(s): {e}")

    async def _watch_loop(self) -> None:
        """Main watch loop. Runs until stop() is called."""
        logger.info(f"Watching prompt block directories: {[str(p) for p in self._paths]}")

        try:
            async for changes in awatch(
                *self._paths,
                debounce=self._debounce_ms,
                recursive=False,
                stop_event=self._stop_event,
            ):
                events = [
                    event
                    for event in (self._make_event(change, path) for change, path in changes)
                    if event is not None
                ]
                if events:
                    logger.debug(f"Block file changes detected: {len(events)} event(s)")
                    self._dispatch(events)
        except asyncio.CancelledError:
            logger.debug("Block directory watcher cancelled")
            raise
        except Exception as e:
            logger.error(f"Block directory watcher error: {e}")
            raise

    def start(self) -> None:
        """Start watching in the background.

        Raises:
            RuntimeError: If called without a running event loop.
        """
        if self.is_running:
            logger.warning("Block directory watcher already running")
            return

        asyncio.get_running_loop()
        self._stop_event = asyncio.Event()
        self._task = asyncio.create_task(self._watch_loop())

    def stop(self) -> None:
        """Stop watching. Calling it again is a no-op."""
        if self._task is None:
            return

        if self._stop_event is not None:
            self._stop_event.set()
        if not self._task.done():
            self._task.cancel()
        self._task = None

        logger.info(
            f"Block directory watcher stopped. "
            f"Processed: {self._events_processed}, Ignored: {self._events_ignored}"
        )


class WatchfilesChangeNotifier:
    """IChangeNotifier backed by watchfiles."""

    def __init__(self, debounce_ms: int = 200):
        self._debounce_ms = debounce_ms

    def watch(self, paths: Sequence[Path], handler: ChangeHandler) -> Callable[[], None]:
        """Watch the existing directories among ``paths``.

        Directories that do not exist yet are skipped; if none exist the
        returned disposer does nothing.
        """
        existing = [Path(p) for p in paths if Path(p).is_dir()]
        if not existing:
            logger.info("No prompt block directories exist yet; nothing to watch")
            return lambda: None

        watcher = BlockDirectoryWatcher(existing, handler, debounce_ms=self._debounce_ms)
        watcher.start()
        return watcher.stop
