"""Custom exceptions for prompt blocks.

Every failure that crosses a component boundary is one of these types and
carries a stable ``code`` plus a ``context`` dict for structured logging.
"""
from typing import Any, Dict, Optional


class PromptBlocksError(Exception):
    """Base exception for prompt blocks."""

    def __init__(
        self,
        code: str,
        message: str,
        context: Optional[Dict[str, Any]] = None,
        cause: Optional[BaseException] = None,
    ):
        super().__init__(message)
        self.code = code
        self.message = message
        self.context: Dict[str, Any] = dict(context or {})
        self.cause = cause

    def to_log_dict(self) -> Dict[str, Any]:
        """Structured representation for log records."""
        data: Dict[str, Any] = {
            "name": type(self).__name__,
            "code": self.code,
            "message": self.message,
            "context": self.context,
        }
        if self.cause is not None:
            data["cause"] = str(self.cause)
        return data

    def __repr__(self) -> str:
        return f"{type(self).__name__}(code={self.code!r}, message={self.message!r})"


class ConfigError(PromptBlocksError):
    """Raised when a block source or configuration file is malformed."""
    pass


class ValidationError(PromptBlocksError):
    """Raised when block data violates a domain invariant."""

    def __init__(
        self,
        code: str,
        message: str,
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        cause: Optional[BaseException] = None,
    ):
        context = dict(context or {})
        if field is not None:
            context.setdefault("field", field)
        super().__init__(code, message, context, cause)

    @property
    def field(self) -> Optional[str]:
        """Name of the offending field, if known."""
        return self.context.get("field")


class BlockIOError(PromptBlocksError):
    """Raised when a block file or directory cannot be read."""
    pass


def normalize_error(
    error: BaseException,
    default_code: str,
    context: Optional[Dict[str, Any]] = None,
) -> PromptBlocksError:
    """Convert any exception into a PromptBlocksError.

    Typed errors pass through untouched; anything else is wrapped with
    ``default_code`` and keeps the original as ``cause``.
    """
    if isinstance(error, PromptBlocksError):
        return error
    if isinstance(error, OSError):
        return BlockIOError(default_code, str(error), context, cause=error)
    return PromptBlocksError(default_code, str(error) or type(error).__name__, context, cause=error)
