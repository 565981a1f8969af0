"""Tests for the file system prompt block repository."""
from pathlib import Path
from unittest.mock import patch

import pytest

from prompt_blocks.adapters.filesystem_repository import FileSystemPromptBlockRepository
from prompt_blocks.core.category import PromptCategory
from prompt_blocks.core.interfaces.repository import BlockSource
from prompt_blocks.core.interfaces.watcher import FileChangeType, FileEvent

from conftest import block_yaml


@pytest.fixture
def repository(block_roots, fake_notifier, fake_clock):
    return FileSystemPromptBlockRepository(
        workspace_path=block_roots["workspace"],
        global_path=block_roots["global"],
        defaults_path=block_roots["defaults"],
        notifier=fake_notifier,
        clock=fake_clock,
    )


def _event(path: Path) -> FileEvent:
    return FileEvent(path=path, change_type=FileChangeType.MODIFIED)


class TestSearchPaths:
    def test_priority_order(self, repository, block_roots):
        assert repository.get_search_paths() == [
            (BlockSource.WORKSPACE, block_roots["workspace"] / "prompts"),
            (BlockSource.GLOBAL, block_roots["global"] / "prompts"),
            (BlockSource.DEFAULTS, block_roots["defaults"] / "prompts"),
        ]

    def test_unconfigured_roots_are_skipped(self, tmp_path):
        repo = FileSystemPromptBlockRepository(defaults_path=tmp_path)
        assert repo.get_search_paths() == [(BlockSource.DEFAULTS, tmp_path / "prompts")]


class TestLoadAll:
    @pytest.mark.asyncio
    async def test_loads_blocks_from_every_source(self, repository, write_block):
        write_block("workspace", "a.yaml", block_yaml("a"))
        write_block("global", "b.yaml", block_yaml("b", category="reporting"))
        write_block("defaults", "c.yml", block_yaml("c", category="methodology"))

        blocks = await repository.load_all()

        assert sorted(b.name for b in blocks) == ["a", "b", "c"]

    @pytest.mark.asyncio
    async def test_workspace_shadows_defaults(self, repository, write_block):
        write_block("defaults", "shared.yaml", block_yaml("shared", prompt="Default body.", priority=90))
        write_block("workspace", "shared.yaml", block_yaml("shared", prompt="Workspace body.", priority=10))

        blocks = await repository.load_all()
        result = await repository.load_by_name("shared")

        assert [b.prompt for b in blocks] == ["Workspace body."]
        assert result.success
        assert result.block.prompt == "Workspace body."
        assert result.source == BlockSource.WORKSPACE

    @pytest.mark.asyncio
    async def test_malformed_file_is_skipped(self, repository, write_block):
        for name in ("one", "two", "three", "four"):
            write_block("workspace", f"{name}.yaml", block_yaml(name))
        write_block("workspace", "broken.yaml", "name: broken\nprompt: [unclosed\n")

        blocks = await repository.load_all()

        assert sorted(b.name for b in blocks) == ["four", "one", "three", "two"]

    @pytest.mark.asyncio
    async def test_invalid_block_is_skipped(self, repository, write_block):
        write_block("workspace", "good.yaml", block_yaml("good"))
        write_block("workspace", "bad.yaml", block_yaml("bad", category="cooking"))

        blocks = await repository.load_all()

        assert [b.name for b in blocks] == ["good"]

    @pytest.mark.asyncio
    async def test_includes_disabled_blocks(self, repository, write_block):
        write_block("workspace", "off.yaml", block_yaml("off", enabled=False))

        blocks = await repository.load_all()

        assert len(blocks) == 1
        assert blocks[0].enabled is False

    @pytest.mark.asyncio
    async def test_yaml_wins_over_yml_in_same_directory(self, repository, write_block):
        write_block("workspace", "dup.yml", block_yaml("dup", prompt="From yml."))
        write_block("workspace", "dup.yaml", block_yaml("dup", prompt="From yaml."))

        blocks = await repository.load_all()

        assert [b.prompt for b in blocks] == ["From yaml."]

    @pytest.mark.asyncio
    async def test_non_yaml_and_missing_directories_ignored(self, tmp_path):
        prompts = tmp_path / "defaults" / "prompts"
        prompts.mkdir(parents=True)
        (prompts / "notes.txt").write_text("not a block")
        repo = FileSystemPromptBlockRepository(
            workspace_path=tmp_path / "nowhere",
            defaults_path=tmp_path / "defaults",
        )

        assert await repo.load_all() == []

    @pytest.mark.asyncio
    async def test_load_by_category(self, repository, write_block):
        write_block("workspace", "a.yaml", block_yaml("a", category="analysis"))
        write_block("workspace", "v.yaml", block_yaml("v", category="visualization"))

        blocks = await repository.load_by_category(PromptCategory.VISUALIZATION)

        assert [b.name for b in blocks] == ["v"]


class TestLoadByName:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("name", ["../secrets", "a/b", "", "name with space", "evil\n"])
    async def test_invalid_name_rejected_before_file_access(self, repository, name):
        with patch.object(Path, "is_file") as is_file:
            result = await repository.load_by_name(name)

        assert not result.success
        assert result.error == "Invalid block name format"
        is_file.assert_not_called()

    @pytest.mark.asyncio
    async def test_not_found(self, repository):
        result = await repository.load_by_name("missing")

        assert not result.success
        assert result.error == "Block 'missing' not found"
        assert result.source == BlockSource.WORKSPACE

    @pytest.mark.asyncio
    async def test_yml_fallback(self, repository, write_block):
        path = write_block("global", "legacy.yml", block_yaml("legacy"))

        result = await repository.load_by_name("legacy")

        assert result.success
        assert result.source == BlockSource.GLOBAL
        assert result.file_path == str(path)

    @pytest.mark.asyncio
    async def test_broken_higher_source_falls_through_to_lower(self, repository, write_block):
        write_block("workspace", "x.yaml", "name: x\nprompt: [unclosed\n")
        write_block("defaults", "x.yaml", block_yaml("x", prompt="Default."))

        result = await repository.load_by_name("x")

        assert result.success
        assert result.source == BlockSource.DEFAULTS

    @pytest.mark.asyncio
    async def test_first_failure_returned_when_all_fail(self, repository, write_block):
        bad_path = write_block("workspace", "x.yaml", "name: x\nprompt: [unclosed\n")
        write_block("defaults", "x.yaml", block_yaml("x", category="cooking"))

        result = await repository.load_by_name("x")

        assert not result.success
        assert result.source == BlockSource.WORKSPACE
        assert result.file_path == str(bad_path)
        assert "YAML parsing failed" in result.error

    @pytest.mark.asyncio
    async def test_disabled_block_loadable_by_name(self, repository, write_block):
        write_block("workspace", "off.yaml", block_yaml("off", enabled=False))

        result = await repository.load_by_name("off")

        assert result.success
        assert result.block.enabled is False

    @pytest.mark.asyncio
    async def test_successful_lookup_is_cached(self, repository, write_block, fake_clock):
        path = write_block("workspace", "c.yaml", block_yaml("c", prompt="First."))
        await repository.load_by_name("c")

        path.write_text(block_yaml("c", prompt="Second."))
        cached = await repository.load_by_name("c")
        assert cached.block.prompt == "First."

        fake_clock.advance(301)
        fresh = await repository.load_by_name("c")
        assert fresh.block.prompt == "Second."

    @pytest.mark.asyncio
    async def test_failed_lookup_is_not_cached(self, repository, write_block):
        assert not (await repository.load_by_name("late")).success

        write_block("workspace", "late.yaml", block_yaml("late"))

        assert (await repository.load_by_name("late")).success

    @pytest.mark.asyncio
    async def test_clear_cache(self, repository, write_block):
        path = write_block("workspace", "c.yaml", block_yaml("c", prompt="First."))
        await repository.load_by_name("c")
        path.write_text(block_yaml("c", prompt="Second."))

        repository.clear_cache()

        assert (await repository.load_by_name("c")).block.prompt == "Second."

    @pytest.mark.asyncio
    async def test_exists(self, repository, write_block):
        write_block("defaults", "here.yaml", block_yaml("here"))

        assert await repository.exists("here")
        assert not await repository.exists("gone")


class TestAvailableNames:
    @pytest.mark.asyncio
    async def test_sorted_and_deduplicated(self, repository, write_block):
        write_block("workspace", "zeta.yaml", block_yaml("zeta"))
        write_block("defaults", "zeta.yml", block_yaml("zeta"))
        write_block("global", "alpha.yaml", block_yaml("alpha"))
        write_block("defaults", "readme.md", "# not a block")

        assert await repository.get_available_names() == ["alpha", "zeta"]


class TestWatchForChanges:
    @pytest.mark.asyncio
    async def test_change_clears_cache_and_notifies(
        self, repository, write_block, fake_notifier, block_roots
    ):
        path = write_block("workspace", "w.yaml", block_yaml("w", prompt="First."))
        await repository.load_by_name("w")
        notified = []

        repository.watch_for_changes(on_change=lambda: notified.append(True))
        path.write_text(block_yaml("w", prompt="Second."))
        fake_notifier.fire([_event(path)])

        assert notified == [True]
        assert (await repository.load_by_name("w")).block.prompt == "Second."
        assert fake_notifier.watched[0] == [
            block_roots["workspace"] / "prompts",
            block_roots["global"] / "prompts",
            block_roots["defaults"] / "prompts",
        ]

    def test_dispose_is_idempotent(self, repository, fake_notifier):
        dispose = repository.watch_for_changes()

        dispose()
        dispose()

        assert fake_notifier.dispose_calls == 1
        assert fake_notifier.handlers == []

    def test_rewatch_stops_previous_watch(self, repository, fake_notifier):
        repository.watch_for_changes()
        repository.watch_for_changes()

        assert fake_notifier.dispose_calls == 1
        assert len(fake_notifier.handlers) == 1
