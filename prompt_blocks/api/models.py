"""Pydantic request/response models for the prompt blocks API."""
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from ..core.block import MAX_PRIORITY, MIN_PRIORITY, PromptBlock


class VariableModel(BaseModel):
    name: str
    description: str = ""
    required: bool = False
    default_value: Optional[str] = None


class OutputModel(BaseModel):
    type: str
    description: str = ""
    format: Optional[str] = None


class PromptBlockModel(BaseModel):
    """A prompt block as returned by the API."""
    id: str
    name: str
    category: str
    description: str = ""
    tags: List[str] = Field(default_factory=list)
    prompt: str
    variables: List[VariableModel] = Field(default_factory=list)
    outputs: List[OutputModel] = Field(default_factory=list)
    priority: int
    enabled: bool

    @classmethod
    def from_block(cls, block: PromptBlock) -> "PromptBlockModel":
        return cls(
            id=block.id,
            name=block.name,
            category=block.category.value,
            description=block.description,
            tags=list(block.tags),
            prompt=block.prompt,
            variables=[
                VariableModel(
                    name=v.name,
                    description=v.description,
                    required=v.required,
                    default_value=v.default_value,
                )
                for v in block.variables
            ],
            outputs=[
                OutputModel(type=o.type, description=o.description, format=o.format)
                for o in block.outputs
            ],
            priority=block.priority,
            enabled=block.enabled,
        )


class LoadResultResponse(BaseModel):
    blocks: List[PromptBlockModel]
    loaded_count: int
    error_count: int
    from_cache: bool
    load_time: float


class CategoryModel(BaseModel):
    id: str
    display_name: str
    description: str


class ActiveBlockRequest(BaseModel):
    """One activated block."""
    name: str = Field(..., description="Block name")
    variables: Dict[str, str] = Field(default_factory=dict)
    priority: Optional[int] = Field(
        None,
        ge=MIN_PRIORITY,
        le=MAX_PRIORITY,
        description="Priority override; defaults to the block's own priority",
    )


class EnhanceRequest(BaseModel):
    """Request to enhance a system prompt."""
    system_prompt: str = Field(..., description="Host system prompt")
    active_blocks: List[ActiveBlockRequest] = Field(default_factory=list)


class ConflictModel(BaseModel):
    category: str
    previous_block: str
    selected_block: str
    reason: str


class EnhanceResponse(BaseModel):
    original_prompt: str
    enhanced_prompt: str
    applied_blocks: List[str]
    skipped_blocks: List[str]
    conflict_resolution: List[ConflictModel]
    total_length: int
    added_length: int
    summary: str


class CacheStatsResponse(BaseModel):
    size: int
    keys: List[str]
    version: int
