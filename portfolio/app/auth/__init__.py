"""
Authentication Package

This package gates the admin area of the site behind a session cookie issued
by a managed identity provider (Firebase Authentication).

Key responsibilities:
- Exchange a short-lived ID token for a 5-day session cookie (login)
- Clear the cookie and revoke the subject's tokens upstream (logout)
- Verify session cookies, collapsing every failure to "no session"
- Redirect page requests between the login page and the admin area

Modules:
- provider: Identity provider interface, Firebase and local backends
- session: Session credential value objects, cookie helpers and verifier
- guard: Route guard middleware for the admin pages
- routes: Login/logout endpoints (/api/auth/login, /api/auth/logout)
- deps: FastAPI dependencies resolving the current session
- utils: Bearer token and redirect target helpers

The authentication flow:
1. Client signs in with the identity provider and obtains an ID token
2. Client posts it to /api/auth/login as a Bearer token
3. Service exchanges it for a session cookie and sets __session
4. The route guard verifies __session on every admin page request
5. /api/auth/logout clears the cookie and revokes the session upstream
"""

from .guard import RouteGuardMiddleware
from .routes import auth_router

__all__ = [
    "auth_router",
    "RouteGuardMiddleware",
]
