"""Change-notification interface for block directories."""
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable, List, Protocol, Sequence


class FileChangeType(Enum):
    """Type of file change event."""
    CREATED = "created"
    MODIFIED = "modified"
    DELETED = "deleted"


@dataclass(frozen=True)
class FileEvent:
    """A single file change inside a watched directory."""
    path: Path
    change_type: FileChangeType

    def is_yaml(self) -> bool:
        """Check if the changed file is a YAML file."""
        return self.path.suffix.lower() in (".yaml", ".yml")


ChangeHandler = Callable[[List[FileEvent]], None]


class IChangeNotifier(Protocol):
    """Capability: "tell me when the block corpus may have changed".

    Example:
        dispose = notifier.watch([Path("~/.promptblocks/prompts")], handler)
        ...
        dispose()
    """

    def watch(self, paths: Sequence[Path], handler: ChangeHandler) -> Callable[[], None]:
        """Start delivering batches of events for ``paths`` to ``handler``.

        Returns:
            A dispose function that stops the subscription. Idempotent.
        """
        ...
