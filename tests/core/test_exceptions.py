"""Tests for the exception taxonomy."""
from prompt_blocks.core.exceptions import (
    BlockIOError,
    ConfigError,
    PromptBlocksError,
    ValidationError,
    normalize_error,
)


def test_validation_error_carries_field():
    error = ValidationError("INVALID_NAME_FORMAT", "bad name", field="name", context={"value": "a b"})

    assert error.field == "name"
    assert error.context == {"value": "a b", "field": "name"}
    assert isinstance(error, PromptBlocksError)


def test_to_log_dict_includes_cause():
    cause = ValueError("boom")
    error = ConfigError("INVALID_YAML", "could not parse", {"file": "x.yaml"}, cause=cause)

    log = error.to_log_dict()

    assert log["name"] == "ConfigError"
    assert log["code"] == "INVALID_YAML"
    assert log["context"] == {"file": "x.yaml"}
    assert log["cause"] == "boom"


def test_normalize_passes_typed_errors_through():
    error = ConfigError("X", "x")
    assert normalize_error(error, "OTHER") is error


def test_normalize_wraps_os_errors_as_io():
    original = FileNotFoundError("missing.yaml")
    error = normalize_error(original, "FILE_READ_FAILED", {"file": "missing.yaml"})

    assert isinstance(error, BlockIOError)
    assert error.code == "FILE_READ_FAILED"
    assert error.cause is original


def test_normalize_wraps_anything_else():
    error = normalize_error(RuntimeError(), "SYSTEM_PROMPT_ENHANCEMENT_FAILED")

    assert type(error) is PromptBlocksError
    assert error.code == "SYSTEM_PROMPT_ENHANCEMENT_FAILED"
    assert error.message == "RuntimeError"
