"""Logging configuration for prompt blocks."""
import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class LogSettings(BaseSettings):
    """Logging configuration with environment variable support."""

    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

    # File output is optional; leave LOG_DIR empty to log to stderr only
    LOG_DIR: str = ""
    LOG_FILE_NAME: str = "prompt_blocks.log"

    # Rotation settings
    LOG_MAX_BYTES: int = 10 * 1024 * 1024  # 10MB per file
    LOG_BACKUP_COUNT: int = 5

    # Third-party loggers to silence (set to WARNING level)
    NOISY_LOGGERS: str = "watchfiles,asyncio,httpx,httpcore,uvicorn.access"

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )


def get_log_file_path(settings: LogSettings) -> Optional[Path]:
    """
    Get full path for the log file.

    Args:
        settings: Logging settings.

    Returns:
        Path to the log file, or None when file logging is disabled.
    """
    if not settings.LOG_DIR:
        return None
    return Path(settings.LOG_DIR) / settings.LOG_FILE_NAME


def setup_logging(settings: Optional[LogSettings] = None) -> logging.Logger:
    """
    Configure the ``prompt_blocks`` logger hierarchy.

    Adds a stderr handler and, when LOG_DIR is set, a size-rotating file
    handler. Safe to call more than once; existing handlers are replaced.

    Args:
        settings: Logging settings (read from the environment if omitted).

    Returns:
        The configured package logger.
    """
    settings = settings or LogSettings()
    level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)
    formatter = logging.Formatter(settings.LOG_FORMAT)

    package_logger = logging.getLogger("prompt_blocks")
    package_logger.setLevel(level)
    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)
        handler.close()

    stream_handler = logging.StreamHandler(sys.stderr)
    stream_handler.setFormatter(formatter)
    package_logger.addHandler(stream_handler)

    log_path = get_log_file_path(settings)
    if log_path is not None:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            log_path,
            maxBytes=settings.LOG_MAX_BYTES,
            backupCount=settings.LOG_BACKUP_COUNT,
            encoding="utf-8",
        )
        file_handler.setFormatter(formatter)
        package_logger.addHandler(file_handler)

    for name in filter(None, (n.strip() for n in settings.NOISY_LOGGERS.split(","))):
        logging.getLogger(name).setLevel(logging.WARNING)

    package_logger.propagate = False
    return package_logger


def silent_logger(name: str = "prompt_blocks.silent") -> logging.Logger:
    """Logger that discards everything. Inject it to mute a component."""
    quiet = logging.getLogger(name)
    if not quiet.handlers:
        quiet.addHandler(logging.NullHandler())
    quiet.propagate = False
    quiet.disabled = True
    return quiet
