"""Core domain for prompt blocks: entity, categories, cache, config, errors."""
from .category import (
    PromptCategory,
    CATEGORY_DISPLAY_NAMES,
    CATEGORY_DESCRIPTIONS,
    get_all_categories,
    is_valid_category,
    get_category_display_name,
    get_category_description,
)
from .block import (
    PromptBlock,
    PromptBlockData,
    PromptVariable,
    PromptOutput,
    NAME_PATTERN,
    is_valid_block_name,
)
from .cache import VersionedTTLCache, CacheEntry
from .config import Config, PathsConfig, CacheConfig, WatchConfig
from .exceptions import (
    PromptBlocksError,
    ConfigError,
    ValidationError,
    BlockIOError,
    normalize_error,
)

__all__ = [
    # Categories
    "PromptCategory",
    "CATEGORY_DISPLAY_NAMES",
    "CATEGORY_DESCRIPTIONS",
    "get_all_categories",
    "is_valid_category",
    "get_category_display_name",
    "get_category_description",
    # Entity
    "PromptBlock",
    "PromptBlockData",
    "PromptVariable",
    "PromptOutput",
    "NAME_PATTERN",
    "is_valid_block_name",
    # Cache
    "VersionedTTLCache",
    "CacheEntry",
    # Config
    "Config",
    "PathsConfig",
    "CacheConfig",
    "WatchConfig",
    # Errors
    "PromptBlocksError",
    "ConfigError",
    "ValidationError",
    "BlockIOError",
    "normalize_error",
]
