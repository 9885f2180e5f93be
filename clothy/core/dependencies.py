"""
FastAPI dependencies. Injected into route handlers.
"""

from functools import lru_cache

from ..services.tryon import GenerationClient
from ..services.workflow import WorkflowController
from .config import get_settings


def get_generation_client() -> GenerationClient:
    """Gemini try-on client built from the current settings."""
    return GenerationClient.from_settings(get_settings())


@lru_cache
def get_controller() -> WorkflowController:
    """
    The single workflow controller for this process.

    One session per process: uploads and results live here until reset or restart.
    """
    return WorkflowController(client=get_generation_client())
