"""Prompt blocks API endpoints."""
import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Request

from ..core.block import is_valid_block_name
from ..core.category import PromptCategory, get_all_categories, is_valid_category
from ..services.enhance_system_prompt import EnhanceSystemPrompt
from ..services.load_prompt_blocks import LoadPromptBlocks, LoadPromptBlocksResult
from .models import (
    CacheStatsResponse,
    CategoryModel,
    ConflictModel,
    EnhanceRequest,
    EnhanceResponse,
    LoadResultResponse,
    PromptBlockModel,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/prompt-blocks", tags=["prompt-blocks"])


def get_load_use_case(request: Request) -> LoadPromptBlocks:
    """Load use case wired by the application lifespan."""
    return request.app.state.load_prompt_blocks


def get_enhance_use_case(request: Request) -> EnhanceSystemPrompt:
    """Composer wired by the application lifespan."""
    return request.app.state.enhance_system_prompt


def _to_response(result: LoadPromptBlocksResult) -> LoadResultResponse:
    return LoadResultResponse(
        blocks=[PromptBlockModel.from_block(block) for block in result.blocks],
        loaded_count=result.loaded_count,
        error_count=result.error_count,
        from_cache=result.from_cache,
        load_time=result.load_time,
    )


@router.get("", response_model=LoadResultResponse)
async def list_blocks(loader: LoadPromptBlocks = Depends(get_load_use_case)):
    """List all enabled prompt blocks."""
    return _to_response(await loader.execute())


@router.get("/names", response_model=List[str])
async def list_block_names(loader: LoadPromptBlocks = Depends(get_load_use_case)):
    """Names of all block files, for autocomplete."""
    return await loader.get_available_names()


@router.get("/categories", response_model=List[CategoryModel])
async def list_categories():
    return [
        CategoryModel(
            id=category.value,
            display_name=category.display_name,
            description=category.description,
        )
        for category in get_all_categories()
    ]


@router.get("/categories/{category}", response_model=LoadResultResponse)
async def list_blocks_by_category(
    category: str,
    loader: LoadPromptBlocks = Depends(get_load_use_case),
):
    """List enabled blocks of one category."""
    if not is_valid_category(category):
        allowed = ", ".join(c.value for c in get_all_categories())
        raise HTTPException(
            status_code=400,
            detail=f"Invalid category: {category}. Must be one of: {allowed}",
        )
    return _to_response(await loader.execute_by_category(PromptCategory(category)))


@router.get("/cache/stats", response_model=CacheStatsResponse)
async def get_cache_stats(loader: LoadPromptBlocks = Depends(get_load_use_case)):
    return loader.get_cache_stats()


@router.post("/cache/invalidate", response_model=CacheStatsResponse)
async def invalidate_cache(loader: LoadPromptBlocks = Depends(get_load_use_case)):
    """Drop cached blocks so the next request re-reads the files."""
    loader.invalidate_cache()
    return loader.get_cache_stats()


@router.post("/enhance", response_model=EnhanceResponse)
async def enhance_system_prompt(
    body: EnhanceRequest,
    loader: LoadPromptBlocks = Depends(get_load_use_case),
    enhancer: EnhanceSystemPrompt = Depends(get_enhance_use_case),
):
    """
    Enhance a system prompt with the requested blocks.

    Blocks that are missing, invalid or disabled are reported in
    ``skipped_blocks`` and otherwise ignored.
    """
    configs = []
    skipped = []
    for active in body.active_blocks:
        block = await loader.execute_by_name(active.name)
        if block is None:
            skipped.append(active.name)
            continue
        configs.append(enhancer.create_active_prompt(block, active.variables, active.priority))

    if skipped:
        logger.info(f"Skipped unavailable prompt blocks: {skipped}")

    result = enhancer.execute(body.system_prompt, configs)

    return EnhanceResponse(
        original_prompt=result.original_prompt,
        enhanced_prompt=result.enhanced_prompt,
        applied_blocks=[config.block.name for config in result.applied_prompts],
        skipped_blocks=skipped,
        conflict_resolution=[
            ConflictModel(
                category=conflict.category.value,
                previous_block=conflict.previous_block,
                selected_block=conflict.selected_block,
                reason=conflict.reason,
            )
            for conflict in result.conflict_resolution
        ],
        total_length=result.total_length,
        added_length=result.added_length,
        summary=enhancer.generate_prompt_summary(configs),
    )


@router.get("/blocks/{name}", response_model=PromptBlockModel)
async def get_block(name: str, loader: LoadPromptBlocks = Depends(get_load_use_case)):
    """Get one enabled block by name."""
    if not is_valid_block_name(name):
        raise HTTPException(status_code=400, detail=f"Invalid block name: {name}")

    block = await loader.execute_by_name(name)
    if block is None:
        raise HTTPException(status_code=404, detail=f"Prompt block '{name}' not found")
    return PromptBlockModel.from_block(block)
