"""Adapters: YAML parsing, file watching and the file system repository."""
from .yaml_parser import YamlPromptBlockParser, clean_yaml_content
from .file_watcher import BlockDirectoryWatcher, WatchfilesChangeNotifier
from .filesystem_repository import FileSystemPromptBlockRepository

__all__ = [
    "YamlPromptBlockParser",
    "clean_yaml_content",
    "BlockDirectoryWatcher",
    "WatchfilesChangeNotifier",
    "FileSystemPromptBlockRepository",
]
