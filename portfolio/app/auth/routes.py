"""
Authentication routes: session login and logout exchange.

The client signs in with the identity provider directly and posts the
resulting ID token here; the service trades it for a long-lived, HTTP-only
session cookie. No session state is kept locally; the identity provider is
the only source of truth.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Header, Request, status
from fastapi.responses import JSONResponse

from ..models import ErrorResponse, StatusResponse
from .deps import get_identity_provider
from .provider import IdentityProvider, IdentityProviderError
from .session import (
    SESSION_DURATION,
    SessionCredential,
    clear_session_cookie_kwargs,
    read_session_credential,
    session_cookie_kwargs,
)
from .utils import extract_bearer_token

logger = logging.getLogger("portfolio.auth.routes")


# =============================================================================
# Router Setup
# =============================================================================

auth_router = APIRouter(
    prefix="/api/auth",
    tags=["authentication"],
)


# =============================================================================
# Login / Logout
# =============================================================================

@auth_router.post(
    "/{route}",
    responses={
        200: {"model": StatusResponse},
        401: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
)
def auth_exchange(
    route: str,
    request: Request,
    authorization: Optional[str] = Header(None),
    provider: Optional[IdentityProvider] = Depends(get_identity_provider),
):
    """
    Dispatch on the last path segment.

    Routes:
        login:  Authorization: Bearer <id token> -> sets the __session cookie
        logout: clears the __session cookie and revokes the subject upstream
    """
    if provider is None:
        logger.error("Auth request rejected: identity provider not initialized")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "Identity provider not initialized"},
        )

    if route == "login":
        return _login(authorization, provider)
    if route == "logout":
        return _logout(request, provider)

    return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"error": "Not Found"})


def _login(authorization: Optional[str], provider: IdentityProvider) -> JSONResponse:
    id_token = extract_bearer_token(authorization)
    if not id_token:
        return JSONResponse(status_code=status.HTTP_401_UNAUTHORIZED, content={"error": "Unauthorized"})

    try:
        cookie_value = provider.create_session_cookie(id_token, expires_in=SESSION_DURATION)
    except IdentityProviderError as e:
        logger.error(f"Failed to create session: {e}")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "Internal Server Error"},
        )

    response = JSONResponse(content={"status": "success"})
    response.set_cookie(**session_cookie_kwargs(SessionCredential(value=cookie_value)))
    logger.info("Session created")
    return response


def _logout(request: Request, provider: IdentityProvider) -> JSONResponse:
    credential = read_session_credential(request.cookies)

    response = JSONResponse(content={"status": "success"})
    response.delete_cookie(**clear_session_cookie_kwargs())

    if credential is None:
        return response

    # Best effort: the cookie is already cleared on the client
    try:
        decoded = provider.verify_session_cookie(credential.value)
        provider.revoke_refresh_tokens(decoded["sub"])
        logger.info("Session revoked", extra={"user_id": decoded["sub"]})
    except (IdentityProviderError, KeyError) as e:
        logger.warning(f"Failed to revoke refresh tokens, cookie might be expired: {e}")

    return response
