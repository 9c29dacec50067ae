"""
Public feedback form handler.

Submissions are validated and written to the 'feedback' collection of the
document store.
"""

import logging

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from ..content.store import FEEDBACK_COLLECTION, ContentStore, ContentStoreError
from ..dependencies import get_content_store
from ..models import ActionResult, FeedbackRequest, utc_now_iso

logger = logging.getLogger("portfolio.feedback")


feedback_router = APIRouter(
    prefix="/api",
    tags=["feedback"],
)


@feedback_router.post("/feedback", response_model=ActionResult)
def submit_feedback(
    feedback: FeedbackRequest,
    store: ContentStore = Depends(get_content_store),
):
    document = feedback.model_dump(mode="json")
    document["createdAt"] = utc_now_iso()

    try:
        store.add(FEEDBACK_COLLECTION, document)
    except ContentStoreError as e:
        logger.error(f"Error submitting feedback: {e}")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "success": False,
                "message": "Failed to send your message. Please try again later.",
            },
        )

    logger.info("Feedback received")
    return ActionResult(success=True, message="Thank you! Your message has been sent.")
