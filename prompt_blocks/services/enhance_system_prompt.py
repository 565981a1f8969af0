"""Enhance system prompts with prompt blocks.

Composition rules:
1. At most one block per category. The highest effective priority wins;
   on a tie the block activated first wins.
2. Survivors are ordered by effective priority, highest first (stable).
3. Each block's ``{{variable}}`` placeholders are resolved.
4. Block bodies are appended to the original prompt, separated by a
   blank line. No headings or framing text are added.
"""
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Tuple

from ..core.block import PromptBlock
from ..core.category import PromptCategory, get_category_display_name

logger = logging.getLogger(__name__)

SEPARATOR = "\n\n"
EMPTY_SUMMARY = "No active prompt blocks"


@dataclass(frozen=True)
class ActivePromptConfig:
    """A block the user has activated, with its variable values."""
    block: PromptBlock
    variables: Mapping[str, str] = field(default_factory=dict)
    priority: Optional[int] = None

    @property
    def effective_priority(self) -> int:
        """Override priority if given, else the block's own priority."""
        return self.block.priority if self.priority is None else self.priority


@dataclass(frozen=True)
class ConflictResolution:
    """Record of a block dropped because another won its category."""
    category: PromptCategory
    previous_block: str
    selected_block: str
    reason: str


@dataclass(frozen=True)
class SystemPromptResult:
    original_prompt: str
    enhanced_prompt: str
    applied_prompts: List[ActivePromptConfig]
    conflict_resolution: List[ConflictResolution]
    total_length: int
    added_length: int


class EnhanceSystemPrompt:
    """Use case composing a system prompt from active prompt blocks.

    Example:
        enhancer = EnhanceSystemPrompt()
        active = [enhancer.create_active_prompt(block, {"dataset": "sales.csv"})]
        result = enhancer.execute("You are a data assistant.", active)
        print(result.enhanced_prompt)
    """

    def execute(
        self,
        original_prompt: str,
        active_prompts: List[ActivePromptConfig],
    ) -> SystemPromptResult:
        """Enhance a system prompt with the given active blocks.

        Never fails for empty or fully conflicting input; with no surviving
        blocks the original prompt is returned unchanged.

        Args:
            original_prompt: Host system prompt.
            active_prompts: Activations in the order the user selected them.

        Returns:
            SystemPromptResult with the enhanced prompt and conflict records.
        """
        survivors, conflicts = self.resolve_conflicts(active_prompts)
        ordered = self._sort_by_priority(survivors)
        enhanced = self._concatenate(original_prompt, ordered)

        if conflicts:
            logger.debug(f"Resolved {len(conflicts)} prompt block conflict(s)")

        return SystemPromptResult(
            original_prompt=original_prompt,
            enhanced_prompt=enhanced,
            applied_prompts=ordered,
            conflict_resolution=conflicts,
            total_length=len(enhanced),
            added_length=len(enhanced) - len(original_prompt),
        )

    def create_active_prompt(
        self,
        block: PromptBlock,
        variables: Optional[Mapping[str, str]] = None,
        priority: Optional[int] = None,
    ) -> ActivePromptConfig:
        """Build an activation; priority defaults to the block's priority."""
        return ActivePromptConfig(
            block=block,
            variables=dict(variables or {}),
            priority=block.priority if priority is None else priority,
        )

    def resolve_conflicts(
        self, active_prompts: List[ActivePromptConfig]
    ) -> Tuple[List[ActivePromptConfig], List[ConflictResolution]]:
        """Keep one activation per category.

        Returns:
            Tuple of (survivors in first-seen category order, conflicts).
        """
        by_category: Dict[PromptCategory, List[ActivePromptConfig]] = {}
        for config in active_prompts:
            by_category.setdefault(config.block.category, []).append(config)

        survivors: List[ActivePromptConfig] = []
        conflicts: List[ConflictResolution] = []

        for category, configs in by_category.items():
            # sorted() is stable, so ties keep activation order.
            ranked = sorted(configs, key=lambda c: c.effective_priority, reverse=True)
            winner = ranked[0]
            survivors.append(winner)

            for loser in ranked[1:]:
                conflicts.append(
                    ConflictResolution(
                        category=category,
                        previous_block=loser.block.name,
                        selected_block=winner.block.name,
                        reason=(
                            f"Higher priority ({winner.effective_priority} "
                            f"vs {loser.effective_priority})"
                        ),
                    )
                )

        return survivors, conflicts

    def generate_prompt_summary(self, active_prompts: List[ActivePromptConfig]) -> str:
        """One-line summary for UI display, e.g. ``"Analysis: eda | Reporting: apa"``."""
        if not active_prompts:
            return EMPTY_SUMMARY

        survivors, _ = self.resolve_conflicts(active_prompts)
        names_by_category: Dict[PromptCategory, List[str]] = {}
        for config in survivors:
            names_by_category.setdefault(config.block.category, []).append(config.block.name)

        return " | ".join(
            f"{get_category_display_name(category)}: {', '.join(names)}"
            for category, names in names_by_category.items()
        )

    def _sort_by_priority(self, configs: List[ActivePromptConfig]) -> List[ActivePromptConfig]:
        return sorted(configs, key=lambda c: c.effective_priority, reverse=True)

    def _concatenate(self, original_prompt: str, configs: List[ActivePromptConfig]) -> str:
        if not configs:
            return original_prompt

        parts = [original_prompt.rstrip()]
        for config in configs:
            parts.append(config.block.resolve_prompt(config.variables).strip())
        return SEPARATOR.join(parts)
