"""Repository interface for prompt block data access."""
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional, Protocol

from ..block import PromptBlock
from ..category import PromptCategory


class BlockSource(str, Enum):
    """Origin of a block file, highest priority first."""
    WORKSPACE = "workspace"
    GLOBAL = "global"
    DEFAULTS = "defaults"


@dataclass(frozen=True)
class BlockLoadResult:
    """Result of a single-block lookup."""
    success: bool
    source: BlockSource
    block: Optional[PromptBlock] = None
    error: Optional[str] = None
    file_path: Optional[str] = None

    @classmethod
    def ok(cls, block: PromptBlock, source: BlockSource, file_path: str) -> "BlockLoadResult":
        return cls(success=True, source=source, block=block, file_path=file_path)

    @classmethod
    def failed(
        cls,
        error: str,
        source: BlockSource = BlockSource.WORKSPACE,
        file_path: Optional[str] = None,
    ) -> "BlockLoadResult":
        return cls(success=False, source=source, error=error, file_path=file_path)


# Called after the repository has dropped its own cache because files changed.
ChangeListener = Callable[[], None]

# Stops watching. Safe to call more than once.
Disposer = Callable[[], None]


class IPromptBlockRepository(Protocol):
    """Contract for loading prompt blocks from ranked sources.

    Resolution order is workspace > global > defaults; a name present in a
    higher-priority source shadows the same name in lower ones.
    """

    async def load_all(self) -> List[PromptBlock]:
        """Load every resolvable block, enabled and disabled."""
        ...

    async def load_by_name(self, name: str) -> BlockLoadResult:
        """Load one block. Never raises; failures are returned as data."""
        ...

    async def load_by_category(self, category: PromptCategory) -> List[PromptBlock]:
        ...

    async def exists(self, name: str) -> bool:
        ...

    async def get_available_names(self) -> List[str]:
        """Sorted, de-duplicated block names across all sources."""
        ...

    def clear_cache(self) -> None:
        ...

    def watch_for_changes(self, on_change: Optional[ChangeListener] = None) -> Disposer:
        """Invalidate on file changes until the returned disposer is called."""
        ...
