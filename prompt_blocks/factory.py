"""Wiring for prompt block services.

The factory resolves source directories from configuration and builds the
repository and use cases around one shared repository instance. It holds no
global state: create one factory per application (or per test).
"""
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional, Union

from .adapters.file_watcher import WatchfilesChangeNotifier
from .adapters.filesystem_repository import FileSystemPromptBlockRepository
from .adapters.yaml_parser import YamlPromptBlockParser
from .core.config import Config
from .services.enhance_system_prompt import EnhanceSystemPrompt
from .services.load_prompt_blocks import LoadPromptBlocks
from .services.system_prompt_service import SystemPromptEnhancer

logger = logging.getLogger(__name__)

BUNDLED_DEFAULTS_PATH = Path(__file__).parent / "defaults"

PathLike = Union[str, Path]


@dataclass(frozen=True)
class ResolvedPaths:
    """Block roots; each is searched in its ``prompts`` sub-directory."""
    workspace_path: Optional[Path]
    global_path: Path
    defaults_path: Path

    def to_dict(self) -> Dict[str, Optional[str]]:
        return {
            "workspace_path": str(self.workspace_path) if self.workspace_path else None,
            "global_path": str(self.global_path),
            "defaults_path": str(self.defaults_path),
        }


class PromptBlocksFactory:
    """Build prompt block services with explicit dependencies.

    Example:
        factory = PromptBlocksFactory(Config())
        loader = factory.create_load_prompt_blocks(workspace_root="/project")
        result = await loader.execute()
    """

    def __init__(
        self,
        config: Optional[Config] = None,
        logger: Optional[logging.Logger] = None,
    ):
        """
        Initialize the factory.

        Args:
            config: Configuration; loaded from file and environment if omitted.
            logger: Logger injected into every component built here.
        """
        self._config = config or Config()
        self._logger = logger or logging.getLogger("prompt_blocks")
        self._repository: Optional[FileSystemPromptBlockRepository] = None
        self._load_use_case: Optional[LoadPromptBlocks] = None
        self._enhance_use_case: Optional[EnhanceSystemPrompt] = None

    @property
    def config(self) -> Config:
        return self._config

    def resolve_paths(
        self,
        workspace_root: Optional[PathLike] = None,
        extension_path: Optional[PathLike] = None,
    ) -> ResolvedPaths:
        """Resolve the three block roots.

        Args:
            workspace_root: Project directory; overrides the configured one.
            extension_path: Host install directory shipping ``defaults/blocks``.
        """
        paths = self._config.paths

        root = workspace_root or paths.workspace_root
        workspace_path = Path(root) / paths.blocks_dir_name if root else None

        if paths.global_root:
            global_path = Path(paths.global_root).expanduser()
        else:
            global_path = Path.home() / paths.blocks_dir_name

        if paths.defaults_root:
            defaults_path = Path(paths.defaults_root).expanduser()
        elif extension_path:
            defaults_path = Path(extension_path) / "defaults" / "blocks"
        else:
            defaults_path = BUNDLED_DEFAULTS_PATH

        return ResolvedPaths(
            workspace_path=workspace_path,
            global_path=global_path,
            defaults_path=defaults_path,
        )

    def create_repository(
        self,
        workspace_root: Optional[PathLike] = None,
        extension_path: Optional[PathLike] = None,
    ) -> FileSystemPromptBlockRepository:
        """Create (once) the shared file system repository."""
        if self._repository is None:
            resolved = self.resolve_paths(workspace_root, extension_path)
            self._repository = FileSystemPromptBlockRepository(
                workspace_path=resolved.workspace_path,
                global_path=resolved.global_path,
                defaults_path=resolved.defaults_path,
                parser=YamlPromptBlockParser(
                    options=self._config.validation, logger=self._logger
                ),
                notifier=WatchfilesChangeNotifier(debounce_ms=self._config.watch.debounce_ms),
                cache_ttl_seconds=self._config.cache.repository_ttl_seconds,
                logger=self._logger,
            )
            logger.info(f"Prompt block repository created: {resolved.to_dict()}")
        return self._repository

    def create_load_prompt_blocks(
        self,
        workspace_root: Optional[PathLike] = None,
        extension_path: Optional[PathLike] = None,
    ) -> LoadPromptBlocks:
        if self._load_use_case is None:
            self._load_use_case = LoadPromptBlocks(
                self.create_repository(workspace_root, extension_path),
                cache_ttl_seconds=self._config.cache.load_ttl_seconds,
                logger=self._logger,
            )
        return self._load_use_case

    def create_enhance_system_prompt(self) -> EnhanceSystemPrompt:
        if self._enhance_use_case is None:
            self._enhance_use_case = EnhanceSystemPrompt()
        return self._enhance_use_case

    def create_system_prompt_enhancer(
        self,
        workspace_root: Optional[PathLike] = None,
        extension_path: Optional[PathLike] = None,
    ) -> SystemPromptEnhancer:
        return SystemPromptEnhancer(
            self.create_load_prompt_blocks(workspace_root, extension_path),
            self.create_enhance_system_prompt(),
            logger=self._logger,
        )

    def get_configuration_info(
        self,
        workspace_root: Optional[PathLike] = None,
        extension_path: Optional[PathLike] = None,
    ) -> Dict[str, Optional[str]]:
        """Resolved paths, for debugging."""
        return self.resolve_paths(workspace_root, extension_path).to_dict()

    def reset(self) -> None:
        """Drop memoized instances."""
        self._repository = None
        self._load_use_case = None
        self._enhance_use_case = None
