"""Prompt block categories.

Only one block per category can be active at a time, so the category is the
partition key for conflict resolution.
"""
from enum import Enum
from typing import Any, List


class PromptCategory(str, Enum):
    """Closed set of block categories."""
    ANALYSIS = "analysis"
    VISUALIZATION = "visualization"
    REPORTING = "reporting"
    METHODOLOGY = "methodology"

    @property
    def display_name(self) -> str:
        return CATEGORY_DISPLAY_NAMES[self]

    @property
    def description(self) -> str:
        return CATEGORY_DESCRIPTIONS[self]


CATEGORY_DISPLAY_NAMES = {
    PromptCategory.ANALYSIS: "Analysis",
    PromptCategory.VISUALIZATION: "Visualization",
    PromptCategory.REPORTING: "Reporting",
    PromptCategory.METHODOLOGY: "Methodology",
}

CATEGORY_DESCRIPTIONS = {
    PromptCategory.ANALYSIS: "Instructions for data analysis and exploration",
    PromptCategory.VISUALIZATION: "Chart creation and visualization guidelines",
    PromptCategory.REPORTING: "Report generation and formatting instructions",
    PromptCategory.METHODOLOGY: "Analysis methodology and best practices",
}


def get_all_categories() -> List[PromptCategory]:
    """Get all categories in declaration order."""
    return list(PromptCategory)


def is_valid_category(value: Any) -> bool:
    """Check if a value names a known category."""
    if isinstance(value, PromptCategory):
        return True
    if not isinstance(value, str):
        return False
    return value in {c.value for c in PromptCategory}


def get_category_display_name(category: PromptCategory) -> str:
    return CATEGORY_DISPLAY_NAMES[PromptCategory(category)]


def get_category_description(category: PromptCategory) -> str:
    return CATEGORY_DESCRIPTIONS[PromptCategory(category)]
