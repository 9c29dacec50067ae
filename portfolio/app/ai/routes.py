"""
Categorization route used by the admin content forms.
"""

import logging

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from ..auth.deps import require_session
from ..dependencies import get_categorizer
from ..models import CategorizeRequest, CategorizeResponse
from .categorize import CategorizationError, ContentCategorizer

logger = logging.getLogger("portfolio.ai.routes")


categorize_router = APIRouter(
    prefix="/api/admin",
    tags=["admin"],
    dependencies=[Depends(require_session)],
)


@categorize_router.post("/categorize", response_model=CategorizeResponse)
async def categorize_content(
    request: CategorizeRequest,
    categorizer: ContentCategorizer = Depends(get_categorizer),
):
    try:
        tags = await categorizer.categorize(request.title, request.body)
    except CategorizationError as e:
        logger.error(f"Categorization error: {e}")
        return JSONResponse(
            status_code=status.HTTP_502_BAD_GATEWAY,
            content=CategorizeResponse(
                suggestedTags=[],
                error="Failed to categorize content. Please try again.",
            ).model_dump(),
        )

    return CategorizeResponse(suggestedTags=tags)
