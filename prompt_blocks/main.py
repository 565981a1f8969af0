"""Prompt Blocks - FastAPI Application Entry Point.

Serves the block catalogue and system prompt enhancement over HTTP:
- Block listing by name and category
- System prompt enhancement with conflict resolution
- Cache inspection and invalidation
- Optional hot reload of block files

Run with:
    python -m prompt_blocks.main
"""
import logging
import os
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from .api.routes import router as prompt_blocks_router
from .core.config import Config
from .core.log_config import setup_logging
from .factory import PromptBlocksFactory

logger = logging.getLogger(__name__)


def create_app(config: Optional[Config] = None) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        config: Configuration; loaded from file and environment if omitted.

    Returns:
        Configured FastAPI app.
    """
    config = config or Config()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan - startup and shutdown."""
        logger.info("Starting Prompt Blocks service...")

        factory = PromptBlocksFactory(config)
        load_use_case = factory.create_load_prompt_blocks()
        app.state.factory = factory
        app.state.load_prompt_blocks = load_use_case
        app.state.enhance_system_prompt = factory.create_enhance_system_prompt()
        logger.info(f"Block sources: {factory.get_configuration_info()}")

        stop_hot_reload = None
        if config.watch.enabled:
            stop_hot_reload = load_use_case.enable_hot_reload()

        logger.info("Prompt Blocks service ready")

        yield

        # Shutdown
        logger.info("Shutting down Prompt Blocks service...")
        if stop_hot_reload is not None:
            stop_hot_reload()
            logger.info("Hot reload stopped")

    app = FastAPI(
        title="Prompt Blocks",
        description="Reusable prompt blocks for system prompt enhancement",
        version="0.1.0",
        lifespan=lifespan,
    )

    @app.get("/health")
    async def health_check():
        return {"status": "healthy", "service": "prompt-blocks"}

    app.include_router(prompt_blocks_router)
    return app


if __name__ == "__main__":
    import uvicorn

    setup_logging()
    uvicorn.run(
        "prompt_blocks.main:create_app",
        factory=True,
        host=os.getenv("PROMPT_BLOCKS_HOST", "0.0.0.0"),
        port=int(os.getenv("PROMPT_BLOCKS_PORT", "8010")),
    )
