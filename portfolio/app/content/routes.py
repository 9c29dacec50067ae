"""
Content routes: admin write handlers and public read endpoints.

Admin handlers require a verified session and validate form input before
forwarding it to the document store.
"""

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from ..auth.session import SessionClaims
from ..auth.deps import require_session
from ..dependencies import get_content_store
from ..models import (
    CONTENT_COLLECTIONS,
    ActionResult,
    ContentCreated,
    HomePageData,
    OngoingCreate,
    OpinionCreate,
    Profile,
    PublicationCreate,
    utc_now_iso,
)
from ..media.store import MediaStore, discard_image
from .service import get_all_content, get_home_page_data, get_profile
from .store import ContentStore, ContentStoreError

logger = logging.getLogger("portfolio.content.routes")


admin_router = APIRouter(
    prefix="/api/admin",
    tags=["admin"],
    dependencies=[Depends(require_session)],
)

public_router = APIRouter(
    prefix="/api",
    tags=["content"],
)


def _optional_media_store(request: Request) -> Optional[MediaStore]:
    return getattr(request.app.state, "media_store", None)


def _store_failure(message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"success": False, "message": message},
    )


def _add_content(
    store: ContentStore,
    collection: str,
    item: BaseModel,
    claims: SessionClaims,
    label: str,
):
    document: Dict[str, Any] = item.model_dump(mode="json")
    document["author"] = claims.display_name
    document["createdAt"] = utc_now_iso()

    try:
        document_id = store.add(collection, document)
    except ContentStoreError as e:
        logger.error(f"Error uploading {label}: {e}", extra={"collection": collection})
        return _store_failure(f"Failed to upload {label}.")

    logger.info(f"Uploaded {label}", extra={"collection": collection, "document_id": document_id})
    return JSONResponse(
        status_code=status.HTTP_201_CREATED,
        content=ContentCreated(message=f"{label.capitalize()} uploaded successfully!", id=document_id).model_dump(),
    )


# =============================================================================
# Admin: Profile
# =============================================================================

@admin_router.put("/profile", response_model=ActionResult)
def update_profile(
    profile: Profile,
    store: ContentStore = Depends(get_content_store),
):
    data = profile.model_dump(mode="json")
    try:
        store.set_profile(data)
    except ContentStoreError as e:
        logger.error(f"Error updating profile: {e}")
        return _store_failure("Failed to update profile in the database.")

    return ActionResult(success=True, message="Profile updated successfully!")


# =============================================================================
# Admin: Content Items
# =============================================================================

@admin_router.post("/opinions", status_code=status.HTTP_201_CREATED, response_model=ContentCreated)
def upload_opinion(
    opinion: OpinionCreate,
    claims: SessionClaims = Depends(require_session),
    store: ContentStore = Depends(get_content_store),
):
    return _add_content(store, "opinions", opinion, claims, "opinion")


@admin_router.post("/publications", status_code=status.HTTP_201_CREATED, response_model=ContentCreated)
def upload_publication(
    publication: PublicationCreate,
    claims: SessionClaims = Depends(require_session),
    store: ContentStore = Depends(get_content_store),
):
    return _add_content(store, "publications", publication, claims, "publication")


@admin_router.post("/ongoing", status_code=status.HTTP_201_CREATED, response_model=ContentCreated)
def upload_ongoing(
    ongoing: OngoingCreate,
    claims: SessionClaims = Depends(require_session),
    store: ContentStore = Depends(get_content_store),
):
    return _add_content(store, "ongoing", ongoing, claims, "research")


@admin_router.delete("/content/{collection}/{content_id}", response_model=ActionResult)
def delete_content(
    collection: str,
    content_id: str,
    store: ContentStore = Depends(get_content_store),
    media_store: Optional[MediaStore] = Depends(_optional_media_store),
):
    """Delete a content item and, best effort, the image it references."""
    if collection not in CONTENT_COLLECTIONS or not content_id.strip():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid content id or collection",
        )

    try:
        item = store.get(collection, content_id)
        store.delete(collection, content_id)
    except ContentStoreError as e:
        logger.error(f"Error deleting content: {e}", extra={"collection": collection})
        return _store_failure("Failed to delete content from the database.")

    logger.info("Deleted content", extra={"collection": collection, "document_id": content_id})

    if item and media_store is not None:
        discard_image(media_store, item.get("imageUrl"))

    return ActionResult(success=True, message="Content deleted successfully.")


# =============================================================================
# Public Reads
# =============================================================================

def _optional_store(request: Request) -> Optional[ContentStore]:
    return getattr(request.app.state, "content_store", None)


@public_router.get("/profile")
def read_profile(store: Optional[ContentStore] = Depends(_optional_store)):
    return get_profile(store)


@public_router.get("/content")
def read_content(store: Optional[ContentStore] = Depends(_optional_store)):
    return get_all_content(store)


@public_router.get("/home", response_model=HomePageData)
def read_home(store: Optional[ContentStore] = Depends(_optional_store)):
    return get_home_page_data(store)
