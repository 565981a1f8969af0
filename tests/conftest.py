"""Shared test fixtures for prompt blocks tests."""
from pathlib import Path
from textwrap import dedent
from typing import Callable, Dict, List, Optional

import pytest

from prompt_blocks.core.block import PromptBlock, PromptBlockData
from prompt_blocks.core.interfaces.watcher import ChangeHandler


# =============================================================================
# Fake Clock
# =============================================================================

class FakeClock:
    """Manually advanced monotonic clock for TTL tests."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


# =============================================================================
# Fake Change Notifier
# =============================================================================

class FakeChangeNotifier:
    """Records watch() calls and lets tests fire change batches by hand."""

    def __init__(self):
        self.watched: List[List[Path]] = []
        self.handlers: List[ChangeHandler] = []
        self.dispose_calls = 0

    def watch(self, paths, handler: ChangeHandler):
        self.watched.append(list(paths))
        self.handlers.append(handler)

        def dispose():
            self.dispose_calls += 1
            if handler in self.handlers:
                self.handlers.remove(handler)

        return dispose

    def fire(self, events) -> None:
        for handler in list(self.handlers):
            handler(events)


# =============================================================================
# Blocks
# =============================================================================

def make_block(
    name: str = "test-block",
    category: str = "analysis",
    prompt: Optional[str] = None,
    priority: int = 50,
    **kwargs,
) -> PromptBlock:
    """Build a valid block with sensible defaults."""
    return PromptBlock.create(
        PromptBlockData(
            name=name,
            category=category,
            prompt=prompt or f"Instructions for {name}.",
            priority=priority,
            **kwargs,
        )
    )


def block_yaml(
    name: str,
    category: str = "analysis",
    prompt: Optional[str] = None,
    priority: int = 50,
    enabled: bool = True,
) -> str:
    """Minimal YAML document for a block file."""
    return dedent(f"""
        name: {name}
        description: Block {name}
        category: {category}
        priority: {priority}
        enabled: {"true" if enabled else "false"}
        prompt: |
          {prompt or f"Instructions for {name}."}
    """).lstrip()


@pytest.fixture
def block_factory() -> Callable[..., PromptBlock]:
    return make_block


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def fake_notifier() -> FakeChangeNotifier:
    return FakeChangeNotifier()


@pytest.fixture
def block_roots(tmp_path) -> Dict[str, Path]:
    """Workspace, global and defaults roots, each with an empty prompts/ dir."""
    roots = {}
    for source in ("workspace", "global", "defaults"):
        root = tmp_path / source
        (root / "prompts").mkdir(parents=True)
        roots[source] = root
    return roots


@pytest.fixture
def write_block(block_roots) -> Callable[..., Path]:
    """Factory writing a block file into one of the source roots."""
    def _write(source: str, filename: str, content: str) -> Path:
        path = block_roots[source] / "prompts" / filename
        path.write_text(content, encoding="utf-8")
        return path
    return _write
