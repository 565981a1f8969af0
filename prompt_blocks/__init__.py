"""Prompt Blocks.

Reusable, categorized prompt fragments stored as YAML files and appended to
an assistant's system prompt. Blocks are resolved from workspace, global and
bundled default directories (in that priority order), cached, and composed
with at most one block per category.

Example:
    from prompt_blocks import ActivePromptBlocks, Config, PromptBlocksFactory

    factory = PromptBlocksFactory(Config())
    enhancer = factory.create_system_prompt_enhancer(workspace_root="/project")

    active = ActivePromptBlocks()
    active.add("eda-analysis", {"dataset": "sales.csv"})
    prompt = await enhancer.enhance("You are a data assistant.", active)
"""
from .core import (
    Config,
    PromptBlock,
    PromptBlockData,
    PromptCategory,
    PromptBlocksError,
    ConfigError,
    ValidationError,
    BlockIOError,
    VersionedTTLCache,
)
from .core.interfaces import BlockLoadResult, BlockSource
from .adapters import FileSystemPromptBlockRepository, YamlPromptBlockParser
from .services import (
    ActivePromptBlocks,
    ActivePromptConfig,
    EnhanceSystemPrompt,
    LoadPromptBlocks,
    SystemPromptEnhancer,
)
from .factory import PromptBlocksFactory

__version__ = "0.1.0"

__all__ = [
    "Config",
    "PromptBlock",
    "PromptBlockData",
    "PromptCategory",
    "PromptBlocksError",
    "ConfigError",
    "ValidationError",
    "BlockIOError",
    "VersionedTTLCache",
    "BlockLoadResult",
    "BlockSource",
    "FileSystemPromptBlockRepository",
    "YamlPromptBlockParser",
    "ActivePromptBlocks",
    "ActivePromptConfig",
    "EnhanceSystemPrompt",
    "LoadPromptBlocks",
    "SystemPromptEnhancer",
    "PromptBlocksFactory",
]
