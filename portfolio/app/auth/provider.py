"""
Identity Provider Module
========================

Wraps the identity provider behind the three primitives the session gate
needs:

- create_session_cookie: exchange an ID token for a long-lived session credential
- verify_session_cookie: decode a session credential, optionally revocation-aware
- revoke_refresh_tokens: invalidate every credential issued to a subject

Two backends are provided:

- FirebaseIdentityProvider: Firebase Authentication via firebase-admin
- LocalIdentityProvider: HS256 JWTs signed with a shared secret, for local
  development and tests

Every failure is raised as IdentityProviderError so callers never depend on
SDK-specific exception types.
"""

import logging
import threading
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional, Protocol

import firebase_admin
import jwt
from firebase_admin import auth as firebase_auth
from firebase_admin import exceptions as firebase_exceptions
from jwt.exceptions import InvalidTokenError

from ..config import Settings
from ..firebase import init_firebase_app

logger = logging.getLogger("portfolio.auth.provider")


# Bounds enforced by Firebase for session cookie lifetimes
MIN_SESSION_DURATION = timedelta(minutes=5)
MAX_SESSION_DURATION = timedelta(days=14)

LOCAL_SESSION_AUDIENCE = "portfolio-session"
LOCAL_IDENTITY_AUDIENCE = "portfolio-identity"


# =============================================================================
# Exceptions
# =============================================================================

class IdentityProviderError(Exception):
    """Raised when the identity provider rejects a request or cannot be reached"""
    pass


# =============================================================================
# Interface
# =============================================================================

class IdentityProvider(Protocol):
    """Primitives the session gate consumes from an identity provider."""

    def create_session_cookie(self, id_token: str, expires_in: timedelta) -> str:
        ...

    def verify_session_cookie(self, session_cookie: str, check_revoked: bool = False) -> Dict[str, Any]:
        ...

    def revoke_refresh_tokens(self, uid: str) -> None:
        ...


# =============================================================================
# Firebase Authentication
# =============================================================================

class FirebaseIdentityProvider:
    """
    Identity provider backed by Firebase Authentication.

    Args:
        app: Initialized firebase_admin.App
    """

    def __init__(self, app: firebase_admin.App):
        self._app = app

    def create_session_cookie(self, id_token: str, expires_in: timedelta) -> str:
        try:
            cookie = firebase_auth.create_session_cookie(id_token, expires_in=expires_in, app=self._app)
        except (firebase_exceptions.FirebaseError, ValueError) as e:
            raise IdentityProviderError(f"Failed to create session cookie: {e}") from e
        # firebase-admin returns bytes on some versions
        if isinstance(cookie, bytes):
            cookie = cookie.decode("utf-8")
        return cookie

    def verify_session_cookie(self, session_cookie: str, check_revoked: bool = False) -> Dict[str, Any]:
        try:
            return firebase_auth.verify_session_cookie(
                session_cookie,
                check_revoked=check_revoked,
                app=self._app,
            )
        except (firebase_exceptions.FirebaseError, ValueError) as e:
            raise IdentityProviderError(f"Session cookie rejected: {e}") from e

    def revoke_refresh_tokens(self, uid: str) -> None:
        try:
            firebase_auth.revoke_refresh_tokens(uid, app=self._app)
        except (firebase_exceptions.FirebaseError, ValueError) as e:
            raise IdentityProviderError(f"Failed to revoke refresh tokens: {e}") from e


# =============================================================================
# Local Provider
# =============================================================================

class LocalIdentityProvider:
    """
    Self-contained identity provider for development and tests.

    Identity tokens and session credentials are HS256 JWTs signed with the
    same secret but distinguished by audience, so one can never be presented
    as the other. Revocation mirrors Firebase semantics: any credential issued
    to a subject before its tokens were revoked fails a revocation-aware
    verification. Each token carries the subject's revocation generation
    ("gen") instead of relying on one-second timestamp resolution.
    """

    def __init__(self, secret: str, issuer: str = "portfolio-local"):
        if not secret:
            raise IdentityProviderError("Local identity provider requires a signing secret")
        self._secret = secret
        self._issuer = issuer
        self._generations: Dict[str, int] = {}
        self._lock = threading.Lock()

    def issue_identity_token(
        self,
        uid: str,
        email: Optional[str] = None,
        name: Optional[str] = None,
        expires_in: timedelta = timedelta(hours=1),
    ) -> str:
        """
        Mint a short-lived identity token, standing in for the client-side
        sign-in that a real provider performs.
        """
        now = datetime.now(timezone.utc)
        payload = {
            "sub": uid,
            "aud": LOCAL_IDENTITY_AUDIENCE,
            "iss": self._issuer,
            "iat": now,
            "auth_time": int(now.timestamp()),
            "exp": now + expires_in,
            "gen": self._generation(uid),
        }
        if email:
            payload["email"] = email
        if name:
            payload["name"] = name
        return jwt.encode(payload, self._secret, algorithm="HS256")

    def create_session_cookie(self, id_token: str, expires_in: timedelta) -> str:
        if not (MIN_SESSION_DURATION <= expires_in <= MAX_SESSION_DURATION):
            raise IdentityProviderError("Session duration must be between 5 minutes and 14 days")

        identity = self._decode(id_token, LOCAL_IDENTITY_AUDIENCE)
        if self._issued_before_revocation(identity):
            raise IdentityProviderError("Identity token has been revoked")

        now = datetime.now(timezone.utc)
        payload = {
            "sub": identity["sub"],
            "aud": LOCAL_SESSION_AUDIENCE,
            "iss": self._issuer,
            "iat": now,
            "exp": now + expires_in,
            "auth_time": identity.get("auth_time", identity["iat"]),
            "gen": self._generation(identity["sub"]),
        }
        for claim in ("email", "name"):
            if identity.get(claim):
                payload[claim] = identity[claim]

        logger.debug("Issued local session credential", extra={"user_id": identity["sub"]})
        return jwt.encode(payload, self._secret, algorithm="HS256")

    def verify_session_cookie(self, session_cookie: str, check_revoked: bool = False) -> Dict[str, Any]:
        claims = self._decode(session_cookie, LOCAL_SESSION_AUDIENCE)
        if check_revoked and self._issued_before_revocation(claims):
            raise IdentityProviderError("Session credential has been revoked")
        claims["uid"] = claims["sub"]
        return claims

    def revoke_refresh_tokens(self, uid: str) -> None:
        if not uid:
            raise IdentityProviderError("Cannot revoke tokens without a subject id")
        with self._lock:
            self._generations[uid] = self._generations.get(uid, 0) + 1
        logger.info("Revoked local credentials", extra={"user_id": uid})

    def _decode(self, token: str, audience: str) -> Dict[str, Any]:
        try:
            return jwt.decode(
                token,
                self._secret,
                algorithms=["HS256"],
                audience=audience,
                issuer=self._issuer,
                options={"require": ["exp", "iat", "sub", "aud", "iss"]},
            )
        except InvalidTokenError as e:
            raise IdentityProviderError(f"Invalid token: {e}") from e

    def _generation(self, uid: str) -> int:
        with self._lock:
            return self._generations.get(uid, 0)

    def _issued_before_revocation(self, claims: Dict[str, Any]) -> bool:
        return int(claims.get("gen", 0)) < self._generation(claims["sub"])


# =============================================================================
# Process-wide Instance
# =============================================================================

_provider: Optional[IdentityProvider] = None
_provider_lock = threading.Lock()


def init_identity_provider(settings: Settings) -> IdentityProvider:
    """
    Create the process-wide identity provider on first call and return it.

    Subsequent calls return the same instance regardless of their settings.

    Raises:
        IdentityProviderError: If the configured backend cannot be initialized
    """
    global _provider

    with _provider_lock:
        if _provider is not None:
            return _provider

        if settings.IDENTITY_PROVIDER == "local":
            _provider = LocalIdentityProvider(
                secret=settings.LOCAL_IDENTITY_SECRET or "",
                issuer=settings.LOCAL_IDENTITY_ISSUER,
            )
        else:
            try:
                app = init_firebase_app(settings)
            except (ValueError, IOError) as e:
                raise IdentityProviderError(f"Firebase Admin SDK failed to initialize: {e}") from e
            _provider = FirebaseIdentityProvider(app)

        logger.info(
            "Identity provider initialized",
            extra={"identity_provider": settings.IDENTITY_PROVIDER},
        )
        return _provider


def reset_identity_provider() -> None:
    """Drop the process-wide provider; only meant for process shutdown and tests."""
    global _provider

    with _provider_lock:
        _provider = None


__all__ = [
    "IdentityProvider",
    "IdentityProviderError",
    "FirebaseIdentityProvider",
    "LocalIdentityProvider",
    "init_identity_provider",
    "reset_identity_provider",
    "MIN_SESSION_DURATION",
    "MAX_SESSION_DURATION",
]
