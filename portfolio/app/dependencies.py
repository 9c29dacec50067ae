"""
FastAPI dependencies exposing process-wide collaborators to route handlers.

Collaborators live on app.state (set by create_app or the lifespan) so tests
can hand the application substitutes instead of the managed services.
Session dependencies live in portfolio.app.auth.deps.
"""

from typing import TYPE_CHECKING

from fastapi import HTTPException, Request, status

from .config import Settings

if TYPE_CHECKING:
    from .ai.categorize import ContentCategorizer
    from .content.store import ContentStore
    from .media.store import MediaStore


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_content_store(request: Request) -> "ContentStore":
    store = getattr(request.app.state, "content_store", None)
    if store is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Content store not initialized",
        )
    return store


def get_media_store(request: Request) -> "MediaStore":
    store = getattr(request.app.state, "media_store", None)
    if store is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Media store not initialized",
        )
    return store


def get_categorizer(request: Request) -> "ContentCategorizer":
    return request.app.state.categorizer
