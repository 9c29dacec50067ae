"""
FastAPI Application Factory
===========================

Entry point of the portfolio site service: public profile/content reads,
the feedback form, and an admin area gated by a session cookie.

Architecture:
    Browser -> Route guard -> Pages / JSON API -> Firebase (Auth, Firestore, Storage)
                                               -> Gemini (tag suggestions)

Routers:
    - /api/auth/*   : Session login/logout exchange
    - /api/admin/*  : Content writes, uploads, categorization (session required)
    - /api/*        : Public profile/content reads and feedback
    - /login, /admin01[/...] : Guarded pages
    - /health       : Health check endpoint

Environment Variables:
    - IDENTITY_PROVIDER: 'firebase' (default) or 'local'
    - LOCAL_IDENTITY_SECRET: Signing secret for the local provider
    - FIREBASE_PROJECT_ID / FIREBASE_STORAGE_BUCKET / FIREBASE_CREDENTIALS_FILE
    - CONTENT_STORE: 'firestore' (default) or 'memory'
    - PROTECTED_PREFIX / LOGIN_PATH: Guarded paths (default /admin01, /login)
    - GEMINI_API_KEY / GEMINI_MODEL: Content categorization
    - ALLOWED_ORIGINS: Comma-separated CORS origins
    - LOG_LEVEL: Logging level (default: INFO)

Running the Service:
    Development:
        IDENTITY_PROVIDER=local CONTENT_STORE=memory LOCAL_IDENTITY_SECRET=... \\
            uvicorn portfolio.app.main:app --reload --port 8080

    Production:
        uvicorn portfolio.app.main:app --host 0.0.0.0 --port 8080
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import Dict, Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .ai.categorize import ContentCategorizer
from .ai.routes import categorize_router
from .auth import RouteGuardMiddleware, auth_router
from .auth.provider import IdentityProvider, IdentityProviderError, init_identity_provider
from .config import Settings, get_settings, validate_configuration
from .content.routes import admin_router, public_router
from .content.store import ContentStore, FirestoreContentStore, InMemoryContentStore
from .feedback.routes import feedback_router
from .firebase import init_firebase_app
from .media.routes import upload_router
from .media.store import FirebaseMediaStore, InMemoryMediaStore, MediaStore
from .pages import build_pages_router

SERVICE_NAME = "portfolio"
SERVICE_VERSION = "1.0.0"

logger = logging.getLogger("portfolio.main")


def setup_logging(log_level: str = "INFO") -> None:
    """
    Configure structured logging for the application.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """
    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format='{"timestamp": "%(asctime)s", "level": "%(levelname)s", "logger": "%(name)s", "message": "%(message)s", "module": "%(module)s", "function": "%(funcName)s"}',
        handlers=[logging.StreamHandler(sys.stdout)],
    )


def _init_stores(app: FastAPI, settings: Settings) -> None:
    if settings.CONTENT_STORE == "memory":
        if app.state.content_store is None:
            app.state.content_store = InMemoryContentStore()
        if app.state.media_store is None:
            app.state.media_store = InMemoryMediaStore()
        logger.warning("Using in-memory content and media stores")
        return

    try:
        firebase_app = init_firebase_app(settings)
    except (ValueError, IOError) as e:
        logger.error(f"Firebase initialization failed, content backends unavailable: {e}")
        return

    if app.state.content_store is None:
        try:
            app.state.content_store = FirestoreContentStore.from_app(firebase_app)
        except Exception as e:
            logger.error(f"Firestore client failed to initialize: {e}", exc_info=True)

    if app.state.media_store is None:
        try:
            app.state.media_store = FirebaseMediaStore.from_app(firebase_app)
        except Exception as e:
            logger.error(f"Storage bucket failed to initialize: {e}", exc_info=True)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Startup fills in any collaborator create_app was not given. A backend
    that fails to initialize is logged and left unset: public pages keep
    serving, the auth endpoints answer 500 and the guard treats every
    visitor as anonymous.
    """
    settings: Settings = app.state.settings
    setup_logging(settings.LOG_LEVEL)

    report = validate_configuration(settings)
    for warning in report["warnings"]:
        logger.warning(f"Configuration warning: {warning}")
    for error in report["errors"]:
        logger.error(f"Configuration error: {error}")

    if app.state.identity_provider is None:
        try:
            app.state.identity_provider = init_identity_provider(settings)
        except IdentityProviderError as e:
            logger.error(f"Identity provider unavailable: {e}")

    _init_stores(app, settings)

    logger.info(
        "Portfolio service started",
        extra={
            "service": SERVICE_NAME,
            "version": SERVICE_VERSION,
            "identity_provider": settings.IDENTITY_PROVIDER,
            "content_store": settings.CONTENT_STORE,
        },
    )

    yield

    logger.info("Portfolio service shutdown complete")


def create_app(
    settings: Optional[Settings] = None,
    identity_provider: Optional[IdentityProvider] = None,
    content_store: Optional[ContentStore] = None,
    media_store: Optional[MediaStore] = None,
    categorizer: Optional[ContentCategorizer] = None,
) -> FastAPI:
    """
    Application factory function.

    Collaborators passed in are used as-is. The categorizer defaults to one
    built from settings; the remaining backends are created by the lifespan
    on startup.

    Returns:
        FastAPI: Configured application instance
    """
    settings = settings or get_settings()

    app = FastAPI(
        title="Portfolio Service",
        description="Portfolio site API with a session-gated admin area",
        version=SERVICE_VERSION,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    app.state.settings = settings
    app.state.identity_provider = identity_provider
    app.state.content_store = content_store
    app.state.media_store = media_store
    app.state.categorizer = categorizer or ContentCategorizer.from_settings(settings)

    app.add_middleware(
        RouteGuardMiddleware,
        protected_prefix=settings.PROTECTED_PREFIX,
        login_path=settings.LOGIN_PATH,
        check_revoked=settings.SESSION_CHECK_REVOKED,
        home_path=settings.admin_home_path,
    )

    origins = settings.allowed_origins_list
    if origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=origins,
            allow_credentials=True,
            allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
            allow_headers=["*"],
        )

    app.include_router(auth_router)
    app.include_router(admin_router)
    app.include_router(upload_router)
    app.include_router(categorize_router)
    app.include_router(public_router)
    app.include_router(feedback_router)
    app.include_router(build_pages_router(settings.PROTECTED_PREFIX, settings.LOGIN_PATH, settings.admin_home_path))

    @app.get("/health", tags=["System"])
    async def health_check() -> Dict[str, str]:
        return {
            "status": "ok",
            "service": SERVICE_NAME,
            "version": SERVICE_VERSION,
        }

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Log unhandled errors and return a generic 500 body."""
        logger.error(
            f"Unhandled exception: {str(exc)}",
            extra={
                "path": request.url.path,
                "method": request.method,
                "exception_type": type(exc).__name__,
            },
            exc_info=True,
        )

        return JSONResponse(
            status_code=500,
            content={
                "error": "internal_server_error",
                "message": "An unexpected error occurred",
                "detail": str(exc) if settings.LOG_LEVEL == "DEBUG" else None,
            },
        )

    return app


# Create app instance for uvicorn
app = create_app()


if __name__ == "__main__":
    settings = get_settings()

    uvicorn.run(
        "portfolio.app.main:app",
        host=settings.HOST,
        port=settings.PORT,
        log_level=settings.LOG_LEVEL.lower(),
    )
