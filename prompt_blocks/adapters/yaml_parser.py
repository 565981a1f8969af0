"""YAML parser and validator for prompt block files.

Turns raw file content into validated ``PromptBlockData``:

1. ``clean_yaml_content`` strips the BOM and normalizes punctuation that
   usually arrives through copy/paste (NBSP, zero-width characters, curly
   quotes, dash glyphs).
2. The injected ``load`` function (``yaml.safe_load`` by default) produces a
   raw, untyped field map.
3. ``validate`` runs the schema phase (types) and then the semantic phase
   (required fields, formats, ranges, length policy).

Validation never raises; ``parse_from_content`` turns failed validation into
``ConfigError`` (bad shape) or ``ValidationError`` (bad values).
"""
import logging
from typing import Any, Callable, Dict, List, Mapping, Optional

import yaml

from ..core.block import (
    MAX_PRIORITY,
    MIN_PRIORITY,
    NAME_PATTERN,
    OUTPUT_TYPES,
    PromptBlock,
    PromptBlockData,
)
from ..core.category import PromptCategory, is_valid_category
from ..core.exceptions import ConfigError, ValidationError
from ..core.interfaces.validator import (
    FieldError,
    FieldWarning,
    ValidationOptions,
    ValidationResult,
)

logger = logging.getLogger(__name__)

# Replacement table for characters that break YAML or confuse matching.
_CHAR_REPLACEMENTS = {
    "\u00a0": " ",  # Non-breaking space
    "\u200b": "",   # Zero-width space
    "\u200c": "",   # Zero-width non-joiner
    "\u200d": "",   # Zero-width joiner
    "\u2018": "'",
    "\u2019": "'",
    "\u201c": '"',
    "\u201d": '"',
    "\u2010": "-",
    "\u2011": "-",
    "\u2012": "-",
    "\u2013": "-",
    "\u2014": "-",
    "\u2015": "-",
    "\u2212": "-",
}
_TRANSLATION = str.maketrans(_CHAR_REPLACEMENTS)

_ALLOWED_CATEGORIES = ", ".join(c.value for c in PromptCategory)


def clean_yaml_content(content: str) -> str:
    """Strip BOM and problematic Unicode characters from YAML content."""
    if content.startswith("\ufeff"):
        content = content[1:]
    return content.translate(_TRANSLATION).strip()


def _is_blank(value: Any) -> bool:
    return not isinstance(value, str) or not value.strip()


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


class YamlPromptBlockParser:
    """Parse and validate prompt block YAML.

    Example:
        parser = YamlPromptBlockParser()
        data = parser.parse_from_content(path.read_text(), file_path=str(path))
        block = PromptBlock.create(data)
    """

    def __init__(
        self,
        load: Callable[[str], Any] = yaml.safe_load,
        options: Optional[ValidationOptions] = None,
        logger: Optional[logging.Logger] = None,
    ):
        """
        Initialize the parser.

        Args:
            load: Function turning cleaned text into a raw field map.
            options: Validation options used when none are passed explicitly.
            logger: Optional logger; defaults to the module logger.
        """
        self._load = load
        self._options = options or ValidationOptions()
        self._logger = logger or logging.getLogger(__name__)

    # ==================== Parsing ====================

    def parse_raw(self, content: str, file_path: Optional[str] = None) -> Any:
        """Clean and load content into a raw field map.

        Raises:
            ConfigError: If the text cannot be parsed.
        """
        cleaned = clean_yaml_content(content)
        try:
            return self._load(cleaned)
        except yaml.YAMLError as e:
            location = f" in {file_path}" if file_path else ""
            raise ConfigError(
                "INVALID_YAML",
                f"YAML parsing failed{location}: {e}",
                {"file": file_path},
                cause=e,
            )

    def parse_from_content(
        self,
        content: str,
        file_path: Optional[str] = None,
        options: Optional[ValidationOptions] = None,
    ) -> PromptBlockData:
        """Parse YAML content into validated PromptBlockData.

        Args:
            content: Raw file content.
            file_path: Source path, used in messages only.
            options: Validation options (parser defaults if omitted).

        Returns:
            Validated PromptBlockData.

        Raises:
            ConfigError: Content is not YAML or has the wrong shape.
            ValidationError: Field values violate block rules.
        """
        raw = self.parse_raw(content, file_path)

        if not isinstance(raw, Mapping):
            raise ConfigError(
                "INVALID_ROOT_TYPE",
                "YAML file must contain a valid object",
                {"file": file_path},
            )

        schema = self.validate_schema(raw)
        if not schema.is_valid:
            raise ConfigError(
                "SCHEMA_VALIDATION_FAILED",
                f"Schema validation failed: {schema.error_summary()}",
                {"file": file_path, "fields": [e.field for e in schema.errors]},
            )

        result = self.validate(raw, options)
        if not result.is_valid:
            first = result.errors[0]
            raise ValidationError(
                first.code,
                f"Data validation failed: {result.error_summary()}",
                field=first.field,
                context={"file": file_path},
            )

        for warning in result.warnings:
            self._logger.debug(
                f"Prompt block warning in {file_path or '<content>'}: "
                f"{warning.field}: {warning.message}"
            )

        return PromptBlockData.from_dict(raw)

    def parse_block(
        self,
        content: str,
        file_path: Optional[str] = None,
        options: Optional[ValidationOptions] = None,
    ) -> PromptBlock:
        """Parse content straight into a PromptBlock.

        Raises:
            ConfigError: See ``parse_from_content``.
            ValidationError: See ``parse_from_content`` and ``PromptBlock.create``.
        """
        return PromptBlock.create(self.parse_from_content(content, file_path, options))

    # ==================== Validation ====================

    def get_default_options(self) -> ValidationOptions:
        return self._options

    def validate(
        self, data: Any, options: Optional[ValidationOptions] = None
    ) -> ValidationResult:
        """Validate raw block data (schema phase, then semantic phase)."""
        opts = options or self._options

        schema = self.validate_schema(data)
        if not isinstance(data, Mapping):
            return schema

        errors: List[FieldError] = list(schema.errors)
        warnings: List[FieldWarning] = list(schema.warnings)
        bad_fields = {e.field for e in schema.errors}

        # Required fields
        for field_name, label in (("name", "Name"), ("prompt", "Prompt"), ("category", "Category")):
            if field_name in bad_fields:
                continue
            if _is_blank(data.get(field_name)):
                errors.append(FieldError(field_name, f"{label} is required", "REQUIRED_FIELD_MISSING"))

        name = data.get("name")
        if "name" not in bad_fields and not _is_blank(name) and not NAME_PATTERN.fullmatch(name):
            errors.append(FieldError(
                "name",
                "Name must contain only letters, numbers, underscores, and hyphens",
                "INVALID_NAME_FORMAT",
            ))

        category = data.get("category")
        if "category" not in bad_fields and not _is_blank(category) and not is_valid_category(category):
            errors.append(FieldError(
                "category",
                f"Invalid category: {category}. Must be one of: {_ALLOWED_CATEGORIES}",
                "INVALID_CATEGORY",
            ))

        priority = data.get("priority")
        if "priority" not in bad_fields and _is_int(priority):
            if not MIN_PRIORITY <= priority <= MAX_PRIORITY:
                errors.append(FieldError(
                    "priority",
                    f"Priority must be a number between {MIN_PRIORITY} and {MAX_PRIORITY}",
                    "INVALID_PRIORITY_RANGE",
                ))

        if opts.require_description and _is_blank(data.get("description")):
            warnings.append(FieldWarning(
                "description",
                "Description is recommended for better documentation",
                "Add a brief description of what this prompt block does",
            ))

        if opts.require_tags and not data.get("tags"):
            warnings.append(FieldWarning(
                "tags",
                "Tags help with organization and searchability",
                "Add relevant tags like ['analysis', 'visualization', 'reporting']",
            ))

        prompt = data.get("prompt")
        if "prompt" not in bad_fields and not _is_blank(prompt):
            length_check = self.validate_prompt(prompt, opts)
            errors.extend(length_check.errors)
            warnings.extend(length_check.warnings)

        variables = data.get("variables")
        if "variables" not in bad_fields and variables is not None:
            variable_check = self.validate_variables(variables)
            errors.extend(variable_check.errors)
            warnings.extend(variable_check.warnings)

        outputs = data.get("outputs")
        if "outputs" not in bad_fields and isinstance(outputs, list):
            for index, output in enumerate(outputs):
                if not isinstance(output, Mapping):
                    continue
                output_type = output.get("type")
                if output_type is not None and output_type not in OUTPUT_TYPES:
                    warnings.append(FieldWarning(
                        f"outputs[{index}].type",
                        f"Unknown output type: {output_type}",
                        f"Use one of: {', '.join(OUTPUT_TYPES)}",
                    ))

        return ValidationResult.from_issues(errors, warnings)

    def validate_schema(self, raw_data: Any) -> ValidationResult:
        """Check field types against the raw map. Never raises."""
        errors: List[FieldError] = []

        if not isinstance(raw_data, Mapping):
            errors.append(FieldError("root", "YAML must contain an object", "INVALID_ROOT_TYPE"))
            return ValidationResult.from_issues(errors)

        data: Mapping[str, Any] = raw_data

        for field_name in ("name", "prompt", "category"):
            if field_name in data and data[field_name] is not None and not isinstance(data[field_name], str):
                errors.append(FieldError(field_name, f"{field_name} must be a string", "INVALID_FIELD_TYPE"))

        description = data.get("description")
        if description is not None and not isinstance(description, str):
            errors.append(FieldError(
                "description", "description must be a string if provided", "INVALID_FIELD_TYPE"
            ))

        tags = data.get("tags")
        if tags is not None:
            if not isinstance(tags, list):
                errors.append(FieldError("tags", "tags must be an array if provided", "INVALID_FIELD_TYPE"))
            else:
                for index, tag in enumerate(tags):
                    if not isinstance(tag, str):
                        errors.append(FieldError(
                            f"tags[{index}]", "All tags must be strings", "INVALID_ARRAY_ITEM_TYPE"
                        ))

        enabled = data.get("enabled")
        if enabled is not None and not isinstance(enabled, bool):
            errors.append(FieldError("enabled", "enabled must be a boolean if provided", "INVALID_FIELD_TYPE"))

        priority = data.get("priority")
        if priority is not None and not _is_int(priority):
            errors.append(FieldError("priority", "priority must be a number if provided", "INVALID_FIELD_TYPE"))

        variables = data.get("variables")
        if variables is not None and not isinstance(variables, list):
            errors.append(FieldError(
                "variables", "variables must be an array if provided", "INVALID_FIELD_TYPE"
            ))

        outputs = data.get("outputs")
        if outputs is not None:
            if not isinstance(outputs, list):
                errors.append(FieldError("outputs", "outputs must be an array if provided", "INVALID_FIELD_TYPE"))
            else:
                for index, output in enumerate(outputs):
                    if not isinstance(output, Mapping):
                        errors.append(FieldError(
                            f"outputs[{index}]", "Each output must be an object", "INVALID_ARRAY_ITEM_TYPE"
                        ))

        return ValidationResult.from_issues(errors)

    def validate_name(self, name: Any) -> ValidationResult:
        """Validate a block name. Used before any file-system access."""
        errors: List[FieldError] = []
        if _is_blank(name):
            errors.append(FieldError("name", "Name is required", "REQUIRED_FIELD_MISSING"))
        elif not NAME_PATTERN.fullmatch(name):
            errors.append(FieldError(
                "name",
                "Name must contain only letters, numbers, underscores, and hyphens",
                "INVALID_NAME_FORMAT",
            ))
        return ValidationResult.from_issues(errors)

    def validate_category(self, category: Any) -> ValidationResult:
        errors: List[FieldError] = []
        if isinstance(category, PromptCategory):
            return ValidationResult.from_issues(errors)
        if _is_blank(category):
            errors.append(FieldError("category", "Category is required", "REQUIRED_FIELD_MISSING"))
        elif not is_valid_category(category):
            errors.append(FieldError(
                "category",
                f"Invalid category: {category}. Must be one of: {_ALLOWED_CATEGORIES}",
                "INVALID_CATEGORY",
            ))
        return ValidationResult.from_issues(errors)

    def validate_prompt(
        self, prompt: Any, options: Optional[ValidationOptions] = None
    ) -> ValidationResult:
        """Validate prompt presence and length policy."""
        opts = options or self._options
        errors: List[FieldError] = []
        warnings: List[FieldWarning] = []

        if _is_blank(prompt):
            errors.append(FieldError("prompt", "Prompt is required", "REQUIRED_FIELD_MISSING"))
        elif opts.max_prompt_length and len(prompt) > opts.max_prompt_length:
            if opts.strict:
                errors.append(FieldError(
                    "prompt",
                    f"Prompt exceeds maximum length of {opts.max_prompt_length} characters",
                    "PROMPT_TOO_LONG",
                ))
            else:
                warnings.append(FieldWarning(
                    "prompt",
                    f"Prompt is quite long ({len(prompt)} characters)",
                    "Consider breaking into smaller, more focused prompts",
                ))

        return ValidationResult.from_issues(errors, warnings)

    def validate_variables(self, variables: Any) -> ValidationResult:
        """Validate the variables list item by item."""
        errors: List[FieldError] = []

        if not isinstance(variables, list):
            errors.append(FieldError(
                "variables", "variables must be an array if provided", "INVALID_FIELD_TYPE"
            ))
            return ValidationResult.from_issues(errors)

        for index, variable in enumerate(variables):
            prefix = f"variables[{index}]"
            if not isinstance(variable, Mapping):
                errors.append(FieldError(prefix, "Each variable must be an object", "INVALID_ARRAY_ITEM_TYPE"))
                continue

            if _is_blank(variable.get("name")):
                errors.append(FieldError(
                    f"{prefix}.name",
                    "Variable name is required and must be a string",
                    "INVALID_VARIABLE_NAME",
                ))

            checks: Dict[str, type] = {
                "description": str,
                "required": bool,
                "defaultValue": str,
                "default_value": str,
            }
            for key, expected in checks.items():
                value = variable.get(key)
                if value is not None and not isinstance(value, expected):
                    kind = "a boolean" if expected is bool else "a string"
                    errors.append(FieldError(
                        f"{prefix}.{key}",
                        f"Variable {key} must be {kind} if provided",
                        "INVALID_FIELD_TYPE",
                    ))

        return ValidationResult.from_issues(errors)
