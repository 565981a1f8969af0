"""Prompt block domain model.

A PromptBlock is an immutable, validated instruction fragment. Instances are
built through ``PromptBlock.create`` from ``PromptBlockData`` (the raw shape
loaded from a YAML file); every construction path re-checks the invariants in
``__post_init__`` so an invalid block can never exist.

Example:
    block = PromptBlock.create(PromptBlockData(
        name="eda-analysis",
        category="analysis",
        prompt="Explore {{dataset}} before modelling.",
        variables=[PromptVariable(name="dataset", default_value="the data")],
        priority=80,
    ))
    block.resolve_prompt({"dataset": "sales.csv"})
"""
import re
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from .category import PromptCategory, is_valid_category
from .exceptions import ValidationError

NAME_PATTERN = re.compile(r"[A-Za-z0-9_-]+")

DEFAULT_PRIORITY = 50
MIN_PRIORITY = 0
MAX_PRIORITY = 100

OUTPUT_TYPES = ("text", "code", "chart", "markdown")


def is_valid_block_name(name: Any) -> bool:
    """Check a block name against the identifier pattern."""
    return isinstance(name, str) and bool(NAME_PATTERN.fullmatch(name))


@dataclass(frozen=True)
class PromptVariable:
    """Template variable declared by a block."""

    name: str
    description: str = ""
    required: bool = False
    default_value: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "PromptVariable":
        """Create from a YAML mapping (accepts defaultValue or default_value)."""
        default = data.get("defaultValue", data.get("default_value"))
        return cls(
            name=data.get("name") or "",
            description=data.get("description") or "",
            required=bool(data.get("required", False)),
            default_value=default,
        )

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "name": self.name,
            "description": self.description,
            "required": self.required,
        }
        if self.default_value is not None:
            data["defaultValue"] = self.default_value
        return data


@dataclass(frozen=True)
class PromptOutput:
    """Expected output hint. Not used during composition."""

    type: str
    description: str = ""
    format: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "PromptOutput":
        return cls(
            type=data.get("type") or "text",
            description=data.get("description") or "",
            format=data.get("format"),
        )

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"type": self.type, "description": self.description}
        if self.format is not None:
            data["format"] = self.format
        return data


@dataclass
class PromptBlockData:
    """Unvalidated block data as loaded from a source file."""

    name: str
    category: str
    prompt: str
    description: str = ""
    tags: List[str] = field(default_factory=list)
    variables: List[PromptVariable] = field(default_factory=list)
    outputs: List[PromptOutput] = field(default_factory=list)
    priority: int = DEFAULT_PRIORITY
    enabled: bool = True

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "PromptBlockData":
        """Convert a raw field map into PromptBlockData.

        The map is expected to have passed schema validation; optional fields
        fall back to their defaults when absent or null.
        """
        variables = [
            v if isinstance(v, PromptVariable) else PromptVariable.from_dict(v)
            for v in (data.get("variables") or [])
        ]
        outputs = [
            o if isinstance(o, PromptOutput) else PromptOutput.from_dict(o)
            for o in (data.get("outputs") or [])
        ]
        priority = data.get("priority")
        enabled = data.get("enabled")
        return cls(
            name=data.get("name") or "",
            category=data.get("category") or "",
            prompt=data.get("prompt") or "",
            description=data.get("description") or "",
            tags=list(data.get("tags") or []),
            variables=variables,
            outputs=outputs,
            priority=DEFAULT_PRIORITY if priority is None else priority,
            enabled=True if enabled is None else enabled,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Serialize back to the YAML field layout."""
        category = self.category.value if isinstance(self.category, PromptCategory) else self.category
        return {
            "name": self.name,
            "description": self.description,
            "category": category,
            "tags": list(self.tags),
            "prompt": self.prompt,
            "variables": [v.to_dict() for v in self.variables],
            "outputs": [o.to_dict() for o in self.outputs],
            "priority": self.priority,
            "enabled": self.enabled,
        }


@dataclass(frozen=True)
class PromptBlock:
    """Immutable prompt block.

    Use ``PromptBlock.create`` to build one from ``PromptBlockData``; direct
    construction is validated the same way but does no normalization.
    """

    name: str
    category: PromptCategory
    prompt: str
    description: str = ""
    tags: Tuple[str, ...] = ()
    variables: Tuple[PromptVariable, ...] = ()
    outputs: Tuple[PromptOutput, ...] = ()
    priority: int = DEFAULT_PRIORITY
    enabled: bool = True

    def __post_init__(self):
        if not isinstance(self.name, str) or not self.name.strip():
            raise ValidationError("REQUIRED_FIELD_MISSING", "Name is required", field="name")
        if not NAME_PATTERN.fullmatch(self.name):
            raise ValidationError(
                "INVALID_NAME_FORMAT",
                "Name must contain only letters, numbers, underscores, and hyphens",
                field="name",
                context={"value": self.name},
            )
        if not isinstance(self.category, PromptCategory):
            raise ValidationError(
                "INVALID_CATEGORY",
                f"Invalid category: {self.category!r}",
                field="category",
            )
        if not isinstance(self.prompt, str) or not self.prompt.strip():
            raise ValidationError("REQUIRED_FIELD_MISSING", "Prompt is required", field="prompt")
        for variable in self.variables:
            if not variable.name or not str(variable.name).strip():
                raise ValidationError(
                    "INVALID_VARIABLE_NAME", "Variable name is required", field="variables"
                )
        if isinstance(self.priority, bool) or not isinstance(self.priority, int):
            raise ValidationError(
                "INVALID_FIELD_TYPE", "Priority must be an integer", field="priority"
            )
        if not MIN_PRIORITY <= self.priority <= MAX_PRIORITY:
            raise ValidationError(
                "INVALID_PRIORITY_RANGE",
                f"Priority must be between {MIN_PRIORITY} and {MAX_PRIORITY}",
                field="priority",
                context={"value": self.priority},
            )

    @classmethod
    def create(cls, data: Union[PromptBlockData, Mapping[str, Any]]) -> "PromptBlock":
        """Build a validated block.

        Args:
            data: PromptBlockData or a raw mapping with the same fields.

        Returns:
            The new PromptBlock.

        Raises:
            ValidationError: If any invariant is violated. ``error.field``
                names the offending field.
        """
        if not isinstance(data, PromptBlockData):
            data = PromptBlockData.from_dict(data)

        name = data.name if isinstance(data.name, str) else ""
        if not name.strip():
            raise ValidationError("REQUIRED_FIELD_MISSING", "Name is required", field="name")
        if not NAME_PATTERN.fullmatch(name):
            raise ValidationError(
                "INVALID_NAME_FORMAT",
                "Name must contain only letters, numbers, underscores, and hyphens",
                field="name",
                context={"value": name},
            )

        prompt = data.prompt.strip() if isinstance(data.prompt, str) else ""
        if not prompt:
            raise ValidationError("REQUIRED_FIELD_MISSING", "Prompt is required", field="prompt")

        raw_category = data.category.value if isinstance(data.category, PromptCategory) else data.category
        if not isinstance(raw_category, str) or not raw_category.strip():
            raise ValidationError("REQUIRED_FIELD_MISSING", "Category is required", field="category")
        if not is_valid_category(raw_category):
            allowed = ", ".join(c.value for c in PromptCategory)
            raise ValidationError(
                "INVALID_CATEGORY",
                f"Invalid category: {raw_category}. Must be one of: {allowed}",
                field="category",
            )

        description = data.description.strip() if isinstance(data.description, str) else ""

        return cls(
            name=name,
            category=PromptCategory(raw_category),
            prompt=prompt,
            description=description,
            tags=tuple(data.tags or ()),
            variables=tuple(data.variables or ()),
            outputs=tuple(data.outputs or ()),
            priority=DEFAULT_PRIORITY if data.priority is None else data.priority,
            enabled=True if data.enabled is None else bool(data.enabled),
        )

    @property
    def id(self) -> str:
        """Unique identifier in the form ``category:name``."""
        return f"{self.category.value}:{self.name}"

    def has_variables(self) -> bool:
        return len(self.variables) > 0

    def is_enabled(self) -> bool:
        return self.enabled

    def has_tag(self, tag: str) -> bool:
        return tag in self.tags

    def get_required_variables(self) -> List[PromptVariable]:
        return [v for v in self.variables if v.required]

    def resolve_prompt(self, variable_values: Optional[Mapping[str, str]] = None) -> str:
        """Substitute ``{{name}}`` placeholders for every declared variable.

        Lookup order per variable: supplied value, declared default, empty
        string. Empty supplied values fall through to the default. Every
        occurrence is replaced. Placeholders for undeclared names are left
        untouched.
        """
        if not self.has_variables():
            return self.prompt

        values = variable_values or {}
        resolved = self.prompt
        for variable in self.variables:
            value = values.get(variable.name) or variable.default_value or ""
            resolved = resolved.replace(f"{{{{{variable.name}}}}}", str(value))
        return resolved

    def to_data(self) -> PromptBlockData:
        """Convert back to PromptBlockData."""
        return PromptBlockData(
            name=self.name,
            category=self.category.value,
            prompt=self.prompt,
            description=self.description,
            tags=list(self.tags),
            variables=list(self.variables),
            outputs=list(self.outputs),
            priority=self.priority,
            enabled=self.enabled,
        )

    def with_enabled(self, enabled: bool) -> "PromptBlock":
        """Copy of this block with a different enabled flag."""
        return replace(self, enabled=enabled)
