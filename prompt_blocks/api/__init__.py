"""HTTP API for prompt blocks."""
from .routes import router

__all__ = ["router"]
