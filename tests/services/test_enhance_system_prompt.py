"""Tests for system prompt composition."""
import pytest

from prompt_blocks.core.block import PromptVariable
from prompt_blocks.core.category import PromptCategory
from prompt_blocks.services.enhance_system_prompt import ActivePromptConfig, EnhanceSystemPrompt

BASE_PROMPT = "You are a data assistant."


@pytest.fixture
def enhancer():
    return EnhanceSystemPrompt()


class TestCreateActivePrompt:
    def test_priority_defaults_to_block_priority(self, enhancer, block_factory):
        config = enhancer.create_active_prompt(block_factory(priority=70))

        assert config.priority == 70
        assert config.effective_priority == 70
        assert config.variables == {}

    def test_priority_override(self, enhancer, block_factory):
        config = enhancer.create_active_prompt(block_factory(priority=70), {"a": "b"}, priority=5)

        assert config.effective_priority == 5
        assert config.variables == {"a": "b"}

    def test_effective_priority_without_explicit_priority(self, block_factory):
        assert ActivePromptConfig(block=block_factory(priority=33)).effective_priority == 33


class TestConflictResolution:
    def test_one_survivor_per_category(self, enhancer, block_factory):
        configs = [
            enhancer.create_active_prompt(block_factory(name="a1", category="analysis", priority=10)),
            enhancer.create_active_prompt(block_factory(name="v1", category="visualization")),
            enhancer.create_active_prompt(block_factory(name="a2", category="analysis", priority=60)),
            enhancer.create_active_prompt(block_factory(name="a3", category="analysis", priority=30)),
            enhancer.create_active_prompt(block_factory(name="r1", category="reporting")),
        ]

        result = enhancer.execute(BASE_PROMPT, configs)

        assert len(result.applied_prompts) == 3
        assert len(result.conflict_resolution) == 2
        assert {c.previous_block for c in result.conflict_resolution} == {"a1", "a3"}
        assert all(c.selected_block == "a2" for c in result.conflict_resolution)
        assert all(c.category is PromptCategory.ANALYSIS for c in result.conflict_resolution)

    def test_conflict_reason_format(self, enhancer, block_factory):
        configs = [
            enhancer.create_active_prompt(block_factory(name="low", priority=20)),
            enhancer.create_active_prompt(block_factory(name="high", priority=80)),
        ]

        conflict = enhancer.execute(BASE_PROMPT, configs).conflict_resolution[0]

        assert conflict.previous_block == "low"
        assert conflict.selected_block == "high"
        assert conflict.reason == "Higher priority (80 vs 20)"

    def test_tie_goes_to_first_activated(self, enhancer, block_factory):
        configs = [
            enhancer.create_active_prompt(block_factory(name="blockA", priority=50)),
            enhancer.create_active_prompt(block_factory(name="blockB", priority=50)),
        ]

        result = enhancer.execute(BASE_PROMPT, configs)

        assert [c.block.name for c in result.applied_prompts] == ["blockA"]
        assert result.conflict_resolution[0].previous_block == "blockB"
        assert result.conflict_resolution[0].reason == "Higher priority (50 vs 50)"

    def test_override_priority_decides_conflict(self, enhancer, block_factory):
        configs = [
            enhancer.create_active_prompt(block_factory(name="native-high", priority=90)),
            enhancer.create_active_prompt(block_factory(name="boosted", priority=10), priority=95),
        ]

        result = enhancer.execute(BASE_PROMPT, configs)

        assert [c.block.name for c in result.applied_prompts] == ["boosted"]


class TestOrderingAndConcatenation:
    def test_survivors_sorted_by_priority(self, enhancer, block_factory):
        configs = [
            enhancer.create_active_prompt(block_factory(name="analysis", category="analysis", priority=80)),
            enhancer.create_active_prompt(block_factory(name="reporting", category="reporting", priority=75)),
            enhancer.create_active_prompt(block_factory(name="viz", category="visualization", priority=90)),
        ]

        result = enhancer.execute(BASE_PROMPT, configs)

        assert [c.block.name for c in result.applied_prompts] == ["viz", "analysis", "reporting"]
        assert result.enhanced_prompt == (
            "You are a data assistant.\n\n"
            "Instructions for viz.\n\n"
            "Instructions for analysis.\n\n"
            "Instructions for reporting."
        )

    def test_equal_priorities_keep_activation_order(self, enhancer, block_factory):
        configs = [
            enhancer.create_active_prompt(block_factory(name="m", category="methodology")),
            enhancer.create_active_prompt(block_factory(name="a", category="analysis")),
        ]

        result = enhancer.execute(BASE_PROMPT, configs)

        assert [c.block.name for c in result.applied_prompts] == ["m", "a"]

    def test_trailing_whitespace_of_original_removed(self, enhancer, block_factory):
        config = enhancer.create_active_prompt(block_factory(prompt="Block body."))

        result = enhancer.execute("  Base prompt.  \n\n", [config])

        assert result.enhanced_prompt == "  Base prompt.\n\nBlock body."

    def test_variables_substituted(self, enhancer, block_factory):
        block = block_factory(
            prompt="Analyse {{dataset}} for {{goal}}. Again: {{dataset}}.",
            variables=[
                PromptVariable(name="dataset"),
                PromptVariable(name="goal", default_value="insights"),
            ],
        )
        config = enhancer.create_active_prompt(block, {"dataset": "sales.csv"})

        result = enhancer.execute(BASE_PROMPT, [config])

        assert result.enhanced_prompt.endswith(
            "Analyse sales.csv for insights. Again: sales.csv."
        )

    def test_lengths(self, enhancer, block_factory):
        config = enhancer.create_active_prompt(block_factory(prompt="Extra."))

        result = enhancer.execute(BASE_PROMPT, [config])

        assert result.total_length == len(result.enhanced_prompt)
        assert result.added_length == len("\n\nExtra.")
        assert result.original_prompt == BASE_PROMPT

    def test_empty_activation_list_returns_original(self, enhancer):
        original = "Prompt with trailing space   "

        result = enhancer.execute(original, [])

        assert result.enhanced_prompt == original
        assert result.applied_prompts == []
        assert result.conflict_resolution == []
        assert result.added_length == 0


class TestPromptSummary:
    def test_empty(self, enhancer):
        assert enhancer.generate_prompt_summary([]) == "No active prompt blocks"

    def test_summary_uses_survivors_in_category_order(self, enhancer, block_factory):
        configs = [
            enhancer.create_active_prompt(block_factory(name="eda", category="analysis", priority=60)),
            enhancer.create_active_prompt(block_factory(name="apa", category="reporting")),
            enhancer.create_active_prompt(block_factory(name="quick", category="analysis", priority=10)),
        ]

        assert enhancer.generate_prompt_summary(configs) == "Analysis: eda | Reporting: apa"
