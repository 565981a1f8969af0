"""Validator interface and result types."""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol


@dataclass(frozen=True)
class FieldError:
    """Blocking validation problem."""
    field: str
    message: str
    code: str


@dataclass(frozen=True)
class FieldWarning:
    """Non-blocking validation note."""
    field: str
    message: str
    suggestion: Optional[str] = None


@dataclass
class ValidationResult:
    """Outcome of a validation pass."""
    is_valid: bool
    errors: List[FieldError] = field(default_factory=list)
    warnings: List[FieldWarning] = field(default_factory=list)

    @classmethod
    def from_issues(
        cls,
        errors: List[FieldError],
        warnings: Optional[List[FieldWarning]] = None,
    ) -> "ValidationResult":
        return cls(is_valid=not errors, errors=list(errors), warnings=list(warnings or []))

    def merge(self, other: "ValidationResult") -> "ValidationResult":
        """Combine two results; invalid if either is invalid."""
        return ValidationResult.from_issues(
            self.errors + other.errors,
            self.warnings + other.warnings,
        )

    def error_summary(self) -> str:
        return "; ".join(e.message for e in self.errors)


@dataclass(frozen=True)
class ValidationOptions:
    """Validation policy knobs."""
    strict: bool = False
    require_description: bool = False
    require_tags: bool = False
    max_prompt_length: Optional[int] = 10000

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "ValidationOptions":
        """Create ValidationOptions from dictionary (e.g., from YAML)."""
        if not data:
            return cls()

        return cls(
            strict=data.get("strict", False),
            require_description=data.get("require_description", False),
            require_tags=data.get("require_tags", False),
            max_prompt_length=data.get("max_prompt_length", 10000),
        )


class IPromptBlockValidator(Protocol):
    """Interface for validating raw block data before building a PromptBlock.

    Every method is pure and returns problems as data; none of them raise.
    """

    def validate(
        self, data: Any, options: Optional[ValidationOptions] = None
    ) -> ValidationResult:
        """Run the schema and semantic phases over a raw field map."""
        ...

    def validate_schema(self, raw_data: Any) -> ValidationResult:
        """Check field presence and types only."""
        ...

    def validate_name(self, name: Any) -> ValidationResult:
        ...

    def validate_category(self, category: Any) -> ValidationResult:
        ...

    def validate_prompt(
        self, prompt: Any, options: Optional[ValidationOptions] = None
    ) -> ValidationResult:
        ...

    def validate_variables(self, variables: Any) -> ValidationResult:
        ...

    def get_default_options(self) -> ValidationOptions:
        ...


