"""
Configuration module for the portfolio site service.

This module uses Pydantic Settings to load and validate environment variables
for the identity provider, Firebase resources, the admin route guard,
AI categorization and upload limits.

Environment variables are loaded from .env file or system environment.
"""

from functools import lru_cache
from typing import List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Every field has a default so the service can boot for local development;
    production deployments are expected to set the Firebase fields.
    """

    # =========================================================================
    # Identity Provider
    # =========================================================================

    IDENTITY_PROVIDER: str = Field(
        default="firebase",
        description="Identity provider backend: 'firebase' or 'local'",
    )

    LOCAL_IDENTITY_SECRET: Optional[str] = Field(
        None,
        description="Signing secret for the local identity provider (development only)",
        min_length=32,
    )

    LOCAL_IDENTITY_ISSUER: str = Field(
        default="portfolio-local",
        description="Issuer claim used by the local identity provider",
    )

    SESSION_CHECK_REVOKED: bool = Field(
        default=True,
        description="Reject session credentials whose subject has been revoked",
    )

    # =========================================================================
    # Firebase
    # =========================================================================

    FIREBASE_PROJECT_ID: Optional[str] = Field(
        None,
        description="Firebase / Google Cloud project id",
    )

    FIREBASE_STORAGE_BUCKET: Optional[str] = Field(
        None,
        description="Cloud Storage bucket for uploaded images (e.g. my-app.appspot.com)",
    )

    FIREBASE_CREDENTIALS_FILE: Optional[str] = Field(
        None,
        description="Path to a service account JSON file (Application Default Credentials when empty)",
    )

    CONTENT_STORE: str = Field(
        default="firestore",
        description="Content/media backend: 'firestore' or 'memory'",
    )

    # =========================================================================
    # Route Guard
    # =========================================================================

    PROTECTED_PREFIX: str = Field(
        default="/admin01",
        description="Path prefix of the admin area",
    )

    LOGIN_PATH: str = Field(
        default="/login",
        description="Path of the login page",
    )

    # =========================================================================
    # AI Categorization
    # =========================================================================

    GEMINI_API_KEY: Optional[str] = Field(
        None,
        description="API key for the Gemini generateContent endpoint",
    )

    GEMINI_MODEL: str = Field(
        default="gemini-2.5-flash",
        description="Gemini model used for content categorization",
    )

    GEMINI_API_BASE: str = Field(
        default="https://generativelanguage.googleapis.com/v1beta",
        description="Base URL of the Gemini REST API",
    )

    LLM_TIMEOUT_SECONDS: float = Field(
        default=30.0,
        description="HTTP timeout for LLM requests",
        ge=5,
        le=180,
    )

    # =========================================================================
    # Uploads
    # =========================================================================

    MAX_UPLOAD_BYTES: int = Field(
        default=5 * 1024 * 1024,
        description="Maximum accepted image size in bytes",
        ge=1024,
    )

    # =========================================================================
    # Server
    # =========================================================================

    HOST: str = Field(default="0.0.0.0", description="Host to bind the server")

    PORT: int = Field(default=8080, description="Port to bind the server", ge=1, le=65535)

    LOG_LEVEL: str = Field(default="INFO", description="Logging level")

    ALLOWED_ORIGINS: Optional[str] = Field(
        None,
        description="Comma-separated list of allowed CORS origins (leave empty for no CORS)",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # =========================================================================
    # Computed Properties
    # =========================================================================

    @property
    def allowed_origins_list(self) -> List[str]:
        """
        Parse and return ALLOWED_ORIGINS as a list.

        Returns:
            List of allowed origin URLs, or empty list if not configured.
        """
        if not self.ALLOWED_ORIGINS:
            return []

        return [
            origin.strip()
            for origin in self.ALLOWED_ORIGINS.split(",")
            if origin.strip()
        ]

    @property
    def admin_home_path(self) -> str:
        """Default page of the protected area."""
        return self.PROTECTED_PREFIX

    # =========================================================================
    # Validators
    # =========================================================================

    @field_validator("IDENTITY_PROVIDER")
    @classmethod
    def validate_identity_provider(cls, v: str) -> str:
        v = v.strip().lower()
        if v not in ("firebase", "local"):
            raise ValueError(f"IDENTITY_PROVIDER must be 'firebase' or 'local', got: {v}")
        return v

    @field_validator("CONTENT_STORE")
    @classmethod
    def validate_content_store(cls, v: str) -> str:
        v = v.strip().lower()
        if v not in ("firestore", "memory"):
            raise ValueError(f"CONTENT_STORE must be 'firestore' or 'memory', got: {v}")
        return v

    @field_validator("PROTECTED_PREFIX", "LOGIN_PATH")
    @classmethod
    def validate_path(cls, v: str) -> str:
        """
        Normalise a route path: leading slash, no trailing slash.

        Raises:
            ValueError: If the path is empty or the site root
        """
        v = "/" + v.strip().strip("/")
        if v == "/":
            raise ValueError("Guarded paths cannot be the site root")
        return v

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        v = v.strip().upper()
        if v not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unknown LOG_LEVEL: {v}")
        return v


# =============================================================================
# Settings Singleton
# =============================================================================

@lru_cache()
def get_settings() -> Settings:
    """
    Get or create a singleton Settings instance.

    Returns:
        Settings instance with all configuration loaded and validated.

    Raises:
        ValidationError: If environment variables are invalid.
    """
    return Settings()


def validate_configuration(settings: Settings) -> dict:
    """
    Validate critical configuration settings and return a status report.

    Called during application startup; errors are logged, not raised, so that
    public pages keep working when the admin backends are misconfigured.

    Returns:
        Dictionary with validation status, errors and warnings.
    """
    errors = []
    warnings = []

    if settings.IDENTITY_PROVIDER == "local":
        if not settings.LOCAL_IDENTITY_SECRET:
            errors.append("LOCAL_IDENTITY_SECRET is required when IDENTITY_PROVIDER=local")
        warnings.append("Local identity provider is enabled (development only)")

    uses_firebase = settings.IDENTITY_PROVIDER == "firebase" or settings.CONTENT_STORE == "firestore"
    if uses_firebase and not settings.FIREBASE_PROJECT_ID:
        warnings.append("FIREBASE_PROJECT_ID is not set (relying on Application Default Credentials)")

    if settings.CONTENT_STORE == "firestore" and not settings.FIREBASE_STORAGE_BUCKET:
        warnings.append("FIREBASE_STORAGE_BUCKET is not set, image uploads will fail")

    if not settings.GEMINI_API_KEY:
        warnings.append("GEMINI_API_KEY is not set, content categorization is unavailable")

    if not settings.SESSION_CHECK_REVOKED:
        warnings.append("Session revocation checks are disabled")

    return {
        "valid": len(errors) == 0,
        "errors": errors,
        "warnings": warnings,
        "identity_provider": settings.IDENTITY_PROVIDER,
        "content_store": settings.CONTENT_STORE,
    }
