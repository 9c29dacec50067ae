from typing import Optional

from fastapi import Depends, HTTPException, Request, status

from ..config import Settings
from ..dependencies import get_app_settings
from .provider import IdentityProvider
from .session import SessionClaims, SessionVerifier, read_session_credential


def get_identity_provider(request: Request) -> Optional[IdentityProvider]:
    """Identity provider, or None when it failed to initialize."""
    return getattr(request.app.state, "identity_provider", None)


def get_session_verifier(
    provider: Optional[IdentityProvider] = Depends(get_identity_provider),
    settings: Settings = Depends(get_app_settings),
) -> SessionVerifier:
    return SessionVerifier(provider, check_revoked=settings.SESSION_CHECK_REVOKED)


def get_optional_session(
    request: Request,
    verifier: SessionVerifier = Depends(get_session_verifier),
) -> Optional[SessionClaims]:
    """
    Verified session of the current request, or None.

    Reuses the claims the route guard already attached to the request.
    """
    claims = getattr(request.state, "session", None)
    if claims is not None:
        return claims
    return verifier.verify(read_session_credential(request.cookies))


def require_session(
    claims: Optional[SessionClaims] = Depends(get_optional_session),
) -> SessionClaims:
    """
    Dependency guarding admin API handlers.

    Raises:
        HTTPException: 401 when the request carries no valid session
    """
    if claims is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized: no valid session",
        )
    return claims
