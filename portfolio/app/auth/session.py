"""
Session Credential Module
=========================

Reads the session credential from incoming requests and verifies it against
the identity provider.

Any verification failure (malformed, expired, revoked, provider unavailable)
is reported as "no session" (None). Callers only need to know whether a
session exists; the reason is logged and never surfaced.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Mapping, Optional

from .provider import IdentityProvider, IdentityProviderError

logger = logging.getLogger("portfolio.auth.session")


SESSION_COOKIE_NAME = "__session"
SESSION_DURATION = timedelta(days=5)
SESSION_MAX_AGE_SECONDS = int(SESSION_DURATION.total_seconds())


# =============================================================================
# Value Objects
# =============================================================================

@dataclass(frozen=True)
class SessionCredential:
    """Opaque, provider-signed session credential as carried by the cookie."""

    value: str

    def __repr__(self) -> str:
        # Never leak the credential into logs or tracebacks
        return "SessionCredential(<redacted>)"


@dataclass(frozen=True)
class SessionClaims:
    """Decoded identity claims of a verified session."""

    subject: str
    issued_at: datetime
    expires_at: datetime
    email: Optional[str] = None
    name: Optional[str] = None

    @classmethod
    def from_decoded(cls, decoded: Dict[str, Any]) -> "SessionClaims":
        """
        Build claims from a provider's decoded token.

        Raises:
            ValueError: If the subject or timestamps are missing
        """
        subject = decoded.get("sub") or decoded.get("uid")
        if not subject:
            raise ValueError("Decoded session is missing a subject")
        try:
            issued_at = datetime.fromtimestamp(int(decoded["iat"]), tz=timezone.utc)
            expires_at = datetime.fromtimestamp(int(decoded["exp"]), tz=timezone.utc)
        except (KeyError, TypeError) as e:
            raise ValueError(f"Decoded session is missing timestamps: {e}") from e
        return cls(
            subject=str(subject),
            issued_at=issued_at,
            expires_at=expires_at,
            email=decoded.get("email"),
            name=decoded.get("name"),
        )

    @property
    def display_name(self) -> str:
        """Name used as content author."""
        return self.name or self.email or self.subject


# =============================================================================
# Cookie Handling
# =============================================================================

def read_session_credential(cookies: Mapping[str, str]) -> Optional[SessionCredential]:
    """
    Extract the session credential from request cookies.

    Returns:
        SessionCredential, or None when the cookie is absent or empty
    """
    value = cookies.get(SESSION_COOKIE_NAME)
    if not value:
        return None
    return SessionCredential(value=value)


def session_cookie_kwargs(credential: SessionCredential) -> dict:
    """Keyword arguments for Response.set_cookie issuing the session cookie."""
    return {
        "key": SESSION_COOKIE_NAME,
        "value": credential.value,
        "max_age": SESSION_MAX_AGE_SECONDS,
        "httponly": True,
        "secure": True,
        "samesite": "lax",
        "path": "/",
    }


def clear_session_cookie_kwargs() -> dict:
    """Keyword arguments for Response.delete_cookie clearing the session cookie."""
    return {
        "key": SESSION_COOKIE_NAME,
        "httponly": True,
        "secure": True,
        "samesite": "lax",
        "path": "/",
    }


# =============================================================================
# Verification
# =============================================================================

class SessionVerifier:
    """
    Verifies session credentials against the identity provider.

    Args:
        provider: Identity provider, or None when it failed to initialize
        check_revoked: Reject credentials whose subject was explicitly revoked
    """

    def __init__(self, provider: Optional[IdentityProvider], check_revoked: bool = True):
        self._provider = provider
        self._check_revoked = check_revoked

    def verify(self, credential: Optional[SessionCredential]) -> Optional[SessionClaims]:
        """
        Verify a session credential.

        Args:
            credential: Credential read from the request, or None

        Returns:
            SessionClaims for a valid session, None otherwise
        """
        if credential is None:
            return None

        if self._provider is None:
            logger.warning("Session verification skipped: identity provider not initialized")
            return None

        try:
            decoded = self._provider.verify_session_cookie(
                credential.value,
                check_revoked=self._check_revoked,
            )
            claims = SessionClaims.from_decoded(decoded)
        except IdentityProviderError as e:
            logger.info(f"Session credential rejected: {e}")
            return None
        except ValueError as e:
            logger.warning(f"Session credential has unusable claims: {e}")
            return None
        except Exception as e:
            # Provider transport errors are treated as unauthenticated
            logger.error(f"Session verification failed unexpectedly: {e}", exc_info=True)
            return None

        logger.debug("Session verified", extra={"user_id": claims.subject})
        return claims


__all__ = [
    "SESSION_COOKIE_NAME",
    "SESSION_DURATION",
    "SESSION_MAX_AGE_SECONDS",
    "SessionCredential",
    "SessionClaims",
    "SessionVerifier",
    "read_session_credential",
    "session_cookie_kwargs",
    "clear_session_cookie_kwargs",
]
