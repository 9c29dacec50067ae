"""
Read-side helpers for the public pages.

Reads never fail the page: store errors are logged and the fallback profile
or empty lists are served instead.
"""

import copy
import logging
from typing import Any, Dict, List, Optional

from ..models import CONTENT_COLLECTIONS
from .store import ContentStore, ContentStoreError

logger = logging.getLogger("portfolio.content.service")


CONTENT_TYPES = {
    "opinions": "opinion",
    "publications": "publication",
    "ongoing": "ongoing",
}

DEFAULT_PROFILE: Dict[str, Any] = {
    "name": "Diandra Athasyah Subagja",
    "description": (
        "Independent researcher and analyst on technology, government, corporate, "
        "and community topics, from domestic to international."
    ),
    "tools": [
        {"name": "Stata", "imageUrl": "/tool-logos/stata.svg"},
        {"name": "MySQL", "imageUrl": "/tool-logos/mysql.svg"},
        {"name": "Jupyter", "imageUrl": "/tool-logos/jupyter.svg"},
        {"name": "Anaconda", "imageUrl": "/tool-logos/anaconda.svg"},
        {"name": "AWS", "imageUrl": "/tool-logos/aws.svg"},
    ],
    "imageUrl": "https://picsum.photos/seed/profile/400/400",
}


def get_profile(store: Optional[ContentStore]) -> Dict[str, Any]:
    """Stored profile, or the fallback profile when missing or unreadable."""
    if store is None:
        logger.warning("Content store is not available, returning default profile")
        return copy.deepcopy(DEFAULT_PROFILE)

    try:
        profile = store.get_profile()
    except ContentStoreError as e:
        logger.error(f"Error fetching profile, returning default profile: {e}")
        return copy.deepcopy(DEFAULT_PROFILE)

    if not profile:
        logger.warning("Profile not found in database, returning default")
        return copy.deepcopy(DEFAULT_PROFILE)

    profile.setdefault("tools", [])
    return profile


def get_all_content(store: Optional[ContentStore]) -> List[Dict[str, Any]]:
    """Every content item, tagged with its contentType."""
    if store is None:
        logger.warning("Content store is not available, returning empty content list")
        return []

    items = []
    for collection in CONTENT_COLLECTIONS:
        try:
            documents = store.list(collection)
        except ContentStoreError as e:
            logger.error(f"Error fetching {collection}, skipping: {e}")
            continue
        for document in documents:
            document["contentType"] = CONTENT_TYPES[collection]
            items.append(document)
    return items


def get_home_page_data(store: Optional[ContentStore]) -> Dict[str, Any]:
    """
    Everything the home page needs in one call.

    Opinions are sorted by postedOn and ongoing research by startedOn, newest
    first; publications keep store order.
    """
    profile = get_profile(store)
    content = get_all_content(store)

    opinions = sorted(
        (item for item in content if item["contentType"] == "opinion"),
        key=lambda item: str(item.get("postedOn") or ""),
        reverse=True,
    )
    publications = [item for item in content if item["contentType"] == "publication"]
    ongoing = sorted(
        (item for item in content if item["contentType"] == "ongoing"),
        key=lambda item: str(item.get("startedOn") or ""),
        reverse=True,
    )

    return {
        "profile": profile,
        "opinions": opinions,
        "publications": publications,
        "ongoingResearches": ongoing,
    }
