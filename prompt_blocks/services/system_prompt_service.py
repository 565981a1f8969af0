"""Host-side integration: active block store and system prompt enhancement."""
import logging
from typing import Dict, Iterator, List, Mapping, Optional, Tuple

from ..core.exceptions import normalize_error
from .enhance_system_prompt import ActivePromptConfig, EnhanceSystemPrompt
from .load_prompt_blocks import LoadPromptBlocks

logger = logging.getLogger(__name__)


class ActivePromptBlocks:
    """Blocks the user has activated in a session, in activation order.

    Example:
        active = ActivePromptBlocks()
        active.add("eda-analysis", {"dataset": "sales.csv"})
        active.add("apa-reporting")
    """

    def __init__(self):
        self._blocks: Dict[str, Dict[str, str]] = {}

    def add(self, name: str, variables: Optional[Mapping[str, str]] = None) -> None:
        """Activate a block. Re-adding a name replaces its variables but keeps its position."""
        self._blocks[name] = dict(variables or {})

    def remove(self, name: str) -> bool:
        """Deactivate a block. Returns False if it was not active."""
        return self._blocks.pop(name, None) is not None

    def clear(self) -> None:
        self._blocks.clear()

    def items(self) -> List[Tuple[str, Dict[str, str]]]:
        return [(name, dict(variables)) for name, variables in self._blocks.items()]

    def names(self) -> List[str]:
        return list(self._blocks)

    def __len__(self) -> int:
        return len(self._blocks)

    def __contains__(self, name: object) -> bool:
        return name in self._blocks

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._blocks))


class SystemPromptEnhancer:
    """Apply active prompt blocks to a host system prompt.

    Enhancement must never break prompt generation: on any failure the
    error is logged and the system prompt is returned unmodified.
    """

    def __init__(
        self,
        load_use_case: LoadPromptBlocks,
        enhance_use_case: Optional[EnhanceSystemPrompt] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self._load = load_use_case
        self._enhance = enhance_use_case or EnhanceSystemPrompt()
        self._logger = logger or logging.getLogger(__name__)

    async def build_active_configs(self, active: ActivePromptBlocks) -> List[ActivePromptConfig]:
        """Resolve active names to configs; missing or disabled blocks are skipped."""
        configs = []
        for name, variables in active.items():
            block = await self._load.execute_by_name(name)
            if block is None:
                self._logger.warning(f"Active prompt block '{name}' is unavailable, skipping")
                continue
            configs.append(self._enhance.create_active_prompt(block, variables, block.priority))
        return configs

    async def enhance(self, system_prompt: str, active: ActivePromptBlocks) -> str:
        """Return ``system_prompt`` enhanced with the active blocks.

        Args:
            system_prompt: Prompt produced by the host.
            active: Blocks activated for the current session.

        Returns:
            The enhanced prompt, or ``system_prompt`` unchanged when nothing
            is active, nothing resolves, or enhancement fails.
        """
        if len(active) == 0:
            return system_prompt

        try:
            configs = await self.build_active_configs(active)
            if not configs:
                return system_prompt

            result = self._enhance.execute(system_prompt, configs)
            self._logger.debug(
                f"System prompt enhanced with prompt blocks: "
                f"applied={[c.block.name for c in result.applied_prompts]}, "
                f"conflicts={len(result.conflict_resolution)}, "
                f"added_length={result.added_length}, total_length={result.total_length}"
            )
            for conflict in result.conflict_resolution:
                self._logger.info(
                    f"Prompt block '{conflict.previous_block}' dropped in favour of "
                    f"'{conflict.selected_block}' ({conflict.category.value}): {conflict.reason}"
                )
            return result.enhanced_prompt
        except Exception as e:
            error = normalize_error(
                e,
                "SYSTEM_PROMPT_ENHANCEMENT_FAILED",
                {"operation": "enhance_system_prompt", "active_block_count": len(active)},
            )
            self._logger.error(
                f"Failed to enhance system prompt with prompt blocks: {error.to_log_dict()}"
            )
            return system_prompt
