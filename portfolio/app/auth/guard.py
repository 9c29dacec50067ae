"""
Route guard for the admin area.

Runs before page rendering on every request. Only the protected prefix and
the login page are guarded; every other path passes through without touching
the identity provider.

    protected path, no session  -> redirect to login (original path preserved)
    login path, valid session   -> redirect to the admin home page
    anything else               -> continue
"""

import enum
import logging
from typing import Optional
from urllib.parse import urlencode

from starlette.concurrency import run_in_threadpool
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import RedirectResponse

from .session import SessionClaims, SessionVerifier, read_session_credential

logger = logging.getLogger("portfolio.auth.guard")


class GuardDecision(enum.Enum):
    CONTINUE = "continue"
    REDIRECT_TO_LOGIN = "redirect_to_login"
    REDIRECT_TO_PROTECTED = "redirect_to_protected"


def is_protected_path(path: str, protected_prefix: str) -> bool:
    """Match the prefix on whole path segments: /admin01 and /admin01/..., not /admin01x."""
    return path == protected_prefix or path.startswith(protected_prefix.rstrip("/") + "/")


def is_guarded_path(path: str, protected_prefix: str, login_path: str) -> bool:
    return path == login_path or is_protected_path(path, protected_prefix)


def decide(path: str, has_session: bool, protected_prefix: str, login_path: str) -> GuardDecision:
    """Pure routing decision for a request path."""
    if is_protected_path(path, protected_prefix) and not has_session:
        return GuardDecision.REDIRECT_TO_LOGIN
    if path == login_path and has_session:
        return GuardDecision.REDIRECT_TO_PROTECTED
    return GuardDecision.CONTINUE


def login_redirect_url(login_path: str, original_path: str) -> str:
    return f"{login_path}?{urlencode({'redirect': original_path})}"


class RouteGuardMiddleware(BaseHTTPMiddleware):
    """
    Session gate for the admin pages.

    The identity provider is looked up on app.state per request, so the
    middleware can be installed before the provider is initialized.

    Args:
        app: ASGI application
        protected_prefix: Path prefix of the admin area
        login_path: Path of the login page
        check_revoked: Ask the provider to reject revoked credentials
        home_path: Where signed-in visitors to the login page are sent
            (defaults to protected_prefix)
    """

    def __init__(
        self,
        app,
        protected_prefix: str,
        login_path: str,
        check_revoked: bool = True,
        home_path: Optional[str] = None,
    ):
        super().__init__(app)
        self.protected_prefix = protected_prefix
        self.login_path = login_path
        self.home_path = home_path or protected_prefix
        self.check_revoked = check_revoked

    async def dispatch(self, request: Request, call_next):
        path = request.url.path

        if not is_guarded_path(path, self.protected_prefix, self.login_path):
            return await call_next(request)

        claims = await self._verify(request)
        decision = decide(path, claims is not None, self.protected_prefix, self.login_path)

        if decision is GuardDecision.REDIRECT_TO_LOGIN:
            logger.info("Unauthenticated request to admin area", extra={"path": path})
            return RedirectResponse(url=login_redirect_url(self.login_path, path), status_code=307)

        if decision is GuardDecision.REDIRECT_TO_PROTECTED:
            return RedirectResponse(url=self.home_path, status_code=307)

        request.state.session = claims
        return await call_next(request)

    async def _verify(self, request: Request) -> Optional[SessionClaims]:
        credential = read_session_credential(request.cookies)
        if credential is None:
            return None
        provider = getattr(request.app.state, "identity_provider", None)
        verifier = SessionVerifier(provider, check_revoked=self.check_revoked)
        # Provider SDK calls block on network I/O
        return await run_in_threadpool(verifier.verify, credential)


__all__ = [
    "GuardDecision",
    "RouteGuardMiddleware",
    "decide",
    "is_guarded_path",
    "is_protected_path",
    "login_redirect_url",
]
