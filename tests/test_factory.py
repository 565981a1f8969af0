"""Tests for service wiring and path resolution."""
from pathlib import Path

import pytest

from prompt_blocks.core.config import Config
from prompt_blocks.factory import BUNDLED_DEFAULTS_PATH, PromptBlocksFactory
from prompt_blocks.services.system_prompt_service import ActivePromptBlocks


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("PROMPT_BLOCKS_WORKSPACE", "PROMPT_BLOCKS_GLOBAL_DIR", "PROMPT_BLOCKS_DEFAULTS_DIR"):
        monkeypatch.delenv(name, raising=False)


class TestResolvePaths:
    def test_defaults(self):
        paths = PromptBlocksFactory(Config(data={})).resolve_paths()

        assert paths.workspace_path is None
        assert paths.global_path == Path.home() / ".promptblocks"
        assert paths.defaults_path == BUNDLED_DEFAULTS_PATH

    def test_workspace_argument_overrides_config(self):
        factory = PromptBlocksFactory(Config(data={"paths": {"workspace_root": "/configured"}}))

        assert factory.resolve_paths().workspace_path == Path("/configured/.promptblocks")
        assert factory.resolve_paths("/project").workspace_path == Path("/project/.promptblocks")

    def test_extension_path_defaults(self):
        paths = PromptBlocksFactory(Config(data={})).resolve_paths(extension_path="/opt/host")
        assert paths.defaults_path == Path("/opt/host/defaults/blocks")

    def test_configured_roots_win(self):
        factory = PromptBlocksFactory(Config(data={"paths": {
            "global_root": "/g",
            "defaults_root": "/d",
            "blocks_dir_name": ".blocks",
        }}))

        paths = factory.resolve_paths("/project", extension_path="/opt/host")

        assert paths.workspace_path == Path("/project/.blocks")
        assert paths.global_path == Path("/g")
        assert paths.defaults_path == Path("/d")

    def test_configuration_info(self):
        info = PromptBlocksFactory(Config(data={})).get_configuration_info("/project")

        assert info["workspace_path"] == str(Path("/project/.promptblocks"))
        assert info["defaults_path"] == str(BUNDLED_DEFAULTS_PATH)


class TestWiring:
    def test_instances_are_memoized_and_share_repository(self):
        factory = PromptBlocksFactory(Config(data={}))

        loader = factory.create_load_prompt_blocks()

        assert factory.create_load_prompt_blocks() is loader
        assert factory.create_repository() is loader._repository
        assert factory.create_enhance_system_prompt() is factory.create_enhance_system_prompt()

    def test_reset_drops_instances(self):
        factory = PromptBlocksFactory(Config(data={}))
        repository = factory.create_repository()

        factory.reset()

        assert factory.create_repository() is not repository

    def test_factories_are_independent(self):
        config = Config(data={})
        assert PromptBlocksFactory(config).create_repository() is not PromptBlocksFactory(config).create_repository()


class TestBundledDefaults:
    @pytest.mark.asyncio
    async def test_bundled_blocks_load(self, tmp_path):
        config = Config(data={"paths": {"global_root": str(tmp_path / "no-global")}})
        loader = PromptBlocksFactory(config).create_load_prompt_blocks()

        result = await loader.execute()

        assert sorted(b.category.value for b in result.blocks) == [
            "analysis",
            "methodology",
            "reporting",
            "visualization",
        ]
        assert result.error_count == 0

    @pytest.mark.asyncio
    async def test_enhancer_uses_bundled_blocks(self, tmp_path):
        config = Config(data={"paths": {"global_root": str(tmp_path / "no-global")}})
        enhancer = PromptBlocksFactory(config).create_system_prompt_enhancer()
        active = ActivePromptBlocks()
        active.add("eda-analysis", {"dataset": "sales.csv"})

        prompt = await enhancer.enhance("Base.", active)

        assert prompt.startswith("Base.\n\nWhen analysing sales.csv")
