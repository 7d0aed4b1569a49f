"""API routers for the coach notes service."""

from .health import router as health_router
from .notes import router as notes_router
from .search import router as search_router

__all__ = ["notes_router", "search_router", "health_router"]
