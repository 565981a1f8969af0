"""Use cases: loading blocks, composing system prompts, host integration."""
from .load_prompt_blocks import LoadPromptBlocks, LoadPromptBlocksResult
from .enhance_system_prompt import (
    ActivePromptConfig,
    ConflictResolution,
    EnhanceSystemPrompt,
    SystemPromptResult,
)
from .system_prompt_service import ActivePromptBlocks, SystemPromptEnhancer

__all__ = [
    "LoadPromptBlocks",
    "LoadPromptBlocksResult",
    "ActivePromptConfig",
    "ConflictResolution",
    "EnhanceSystemPrompt",
    "SystemPromptResult",
    "ActivePromptBlocks",
    "SystemPromptEnhancer",
]
