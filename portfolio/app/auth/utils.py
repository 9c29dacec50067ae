"""
Authentication helpers shared by the login exchange and the pages.
"""

from typing import Optional


def extract_bearer_token(authorization: Optional[str]) -> Optional[str]:
    """
    Extract the token from an 'Authorization: Bearer <token>' header value.

    Args:
        authorization: Authorization header value

    Returns:
        The token, or None if the header is missing or malformed
    """
    if not authorization:
        return None

    parts = authorization.split()

    if len(parts) != 2 or parts[0].lower() != "bearer":
        return None

    return parts[1]


def safe_redirect_target(target: Optional[str], default: str) -> str:
    """
    Accept only same-site absolute paths as post-login redirect targets.

    Args:
        target: Candidate path from the query string
        default: Fallback path

    Returns:
        target if it is a local path, default otherwise
    """
    if not target or not target.startswith("/") or target.startswith("//") or "\\" in target:
        return default
    return target
