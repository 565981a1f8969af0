"""Configuration management for prompt blocks."""
import os
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional

import yaml

from .exceptions import ConfigError
from .interfaces.validator import ValidationOptions

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "config/prompt_blocks.yaml"


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


# =============================================================================
# Paths Configuration
# =============================================================================

@dataclass
class PathsConfig:
    """Block source roots. Each root is extended with a ``prompts`` sub-directory."""
    workspace_root: Optional[str] = None
    global_root: Optional[str] = None   # Defaults to ~/<blocks_dir_name>
    defaults_root: Optional[str] = None  # Defaults to the bundled blocks
    blocks_dir_name: str = ".promptblocks"

    @classmethod
    def from_dict(cls, data: Dict) -> "PathsConfig":
        """Create PathsConfig from dictionary (e.g., from YAML)."""
        if not data:
            return cls()

        return cls(
            workspace_root=data.get("workspace_root"),
            global_root=data.get("global_root"),
            defaults_root=data.get("defaults_root"),
            blocks_dir_name=data.get("blocks_dir_name", ".promptblocks"),
        )


# =============================================================================
# Cache Configuration
# =============================================================================

@dataclass
class CacheConfig:
    """Cache configuration for both cache layers."""
    repository_ttl_seconds: float = 300.0  # Per-name lookups
    load_ttl_seconds: float = 300.0        # "all" / "category:<cat>" queries

    @classmethod
    def from_dict(cls, data: Dict) -> "CacheConfig":
        """Create CacheConfig from dictionary (e.g., from YAML)."""
        if not data:
            return cls()

        return cls(
            repository_ttl_seconds=data.get("repository_ttl_seconds", 300.0),
            load_ttl_seconds=data.get("load_ttl_seconds", 300.0),
        )


# =============================================================================
# Hot Reload Configuration
# =============================================================================

@dataclass
class WatchConfig:
    """File watching configuration."""
    enabled: bool = False
    debounce_ms: int = 200

    @classmethod
    def from_dict(cls, data: Dict) -> "WatchConfig":
        """Create WatchConfig from dictionary (e.g., from YAML)."""
        if not data:
            return cls()

        return cls(
            enabled=data.get("enabled", False),
            debounce_ms=data.get("debounce_ms", 200),
        )


class Config:
    """
    Configuration manager for prompt blocks.

    Loads a YAML file (optional) and applies environment overrides:
    - PROMPT_BLOCKS_CONFIG: config file path
    - PROMPT_BLOCKS_WORKSPACE / PROMPT_BLOCKS_GLOBAL_DIR / PROMPT_BLOCKS_DEFAULTS_DIR
    - PROMPT_BLOCKS_CACHE_TTL: TTL in seconds for both cache layers
    - PROMPT_BLOCKS_STRICT: strict validation
    - PROMPT_BLOCKS_HOT_RELOAD: enable file watching
    """

    def __init__(self, config_path: Optional[str] = None, data: Optional[Dict] = None):
        self._config_path = Path(
            config_path or os.getenv("PROMPT_BLOCKS_CONFIG") or DEFAULT_CONFIG_PATH
        )
        self._data: Dict = {}
        self._paths: PathsConfig = None
        self._cache: CacheConfig = None
        self._watch: WatchConfig = None
        self._validation: ValidationOptions = None

        if data is not None:
            self._data = data
        else:
            self._load_config()
        self._load_paths_config()
        self._load_cache_config()
        self._load_watch_config()
        self._load_validation_config()

    def _load_config(self):
        """Load configuration from YAML file."""
        if not self._config_path.exists():
            logger.warning(f"Config file not found: {self._config_path}, using defaults")
            self._data = {}
            return

        try:
            data = yaml.safe_load(self._config_path.read_text(encoding="utf-8"))
        except yaml.YAMLError as e:
            raise ConfigError(
                "INVALID_CONFIG_YAML",
                f"Invalid YAML in config file {self._config_path}: {e}",
                {"path": str(self._config_path)},
                cause=e,
            )

        if data is not None and not isinstance(data, dict):
            raise ConfigError(
                "INVALID_CONFIG_ROOT",
                f"Config file {self._config_path} must contain a mapping",
                {"path": str(self._config_path)},
            )
        self._data = data or {}

    def _load_paths_config(self):
        """Load path configuration, env vars taking precedence."""
        self._paths = PathsConfig.from_dict(self._data.get("paths", {}))

        overrides = {
            "workspace_root": os.getenv("PROMPT_BLOCKS_WORKSPACE"),
            "global_root": os.getenv("PROMPT_BLOCKS_GLOBAL_DIR"),
            "defaults_root": os.getenv("PROMPT_BLOCKS_DEFAULTS_DIR"),
        }
        for attr, value in overrides.items():
            if value:
                setattr(self._paths, attr, value)
                logger.info(f"Path '{attr}' overridden by env var: {value}")

    def _load_cache_config(self):
        """Load cache configuration."""
        self._cache = CacheConfig.from_dict(self._data.get("cache", {}))

        ttl = os.getenv("PROMPT_BLOCKS_CACHE_TTL")
        if ttl:
            try:
                seconds = float(ttl)
            except ValueError:
                raise ConfigError(
                    "INVALID_CACHE_TTL",
                    f"PROMPT_BLOCKS_CACHE_TTL must be a number, got {ttl!r}",
                    {"value": ttl},
                )
            self._cache.repository_ttl_seconds = seconds
            self._cache.load_ttl_seconds = seconds

        logger.info(
            f"Loaded cache config: repository_ttl={self._cache.repository_ttl_seconds}s, "
            f"load_ttl={self._cache.load_ttl_seconds}s"
        )

    def _load_watch_config(self):
        """Load hot reload configuration."""
        self._watch = WatchConfig.from_dict(self._data.get("watch", {}))

        hot_reload = os.getenv("PROMPT_BLOCKS_HOT_RELOAD")
        if hot_reload:
            self._watch.enabled = _parse_bool(hot_reload)

    def _load_validation_config(self):
        """Load validation options."""
        validation_data = dict(self._data.get("validation") or {})

        strict = os.getenv("PROMPT_BLOCKS_STRICT")
        if strict:
            validation_data["strict"] = _parse_bool(strict)

        self._validation = ValidationOptions.from_dict(validation_data)
        logger.info(
            f"Loaded validation config: strict={self._validation.strict}, "
            f"max_prompt_length={self._validation.max_prompt_length}"
        )

    @property
    def paths(self) -> PathsConfig:
        """Get block source paths."""
        return self._paths

    @property
    def cache(self) -> CacheConfig:
        """Get cache configuration."""
        return self._cache

    @property
    def watch(self) -> WatchConfig:
        """Get hot reload configuration."""
        return self._watch

    @property
    def validation(self) -> ValidationOptions:
        """Get validation options."""
        return self._validation
