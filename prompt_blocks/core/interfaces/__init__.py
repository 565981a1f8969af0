"""Core interfaces for prompt blocks (Dependency Inversion Principle)."""
from .validator import (
    FieldError,
    FieldWarning,
    ValidationResult,
    ValidationOptions,
    IPromptBlockValidator,
)
from .repository import (
    BlockSource,
    BlockLoadResult,
    ChangeListener,
    Disposer,
    IPromptBlockRepository,
)
from .watcher import (
    FileChangeType,
    FileEvent,
    ChangeHandler,
    IChangeNotifier,
)

__all__ = [
    # Validation
    "FieldError",
    "FieldWarning",
    "ValidationResult",
    "ValidationOptions",
    "IPromptBlockValidator",
    # Repository
    "BlockSource",
    "BlockLoadResult",
    "ChangeListener",
    "Disposer",
    "IPromptBlockRepository",
    # Change notification
    "FileChangeType",
    "FileEvent",
    "ChangeHandler",
    "IChangeNotifier",
]
