"""
Mealth configuration — all environment variables in one place.

Read from environment at runtime. Never hardcode secrets.
"""

from __future__ import annotations

import os


class Settings:
    """Application settings from environment variables."""

    # Document store
    STORE_BACKEND: str = os.environ.get("STORE_BACKEND", "memory")  # memory | postgres
    DATABASE_URL: str = os.environ.get("DATABASE_URL", "")
    APP_ID: str = os.environ.get("APP_ID", "demo-app")

    # Auth
    JWT_SECRET: str = os.environ.get("JWT_SECRET", "")
    JWT_ALGORITHM: str = "HS256"
    JWT_EXPIRY_HOURS: int = 24 * 30
    SESSION_COOKIE: str = "session"

    # Simulated responders
    CONSULTATION_REPLY_DELAY_SECONDS: float = float(os.environ.get("CONSULTATION_REPLY_DELAY_SECONDS", "2.0"))
    THERAPIST_NAME: str = "Dr. Alex Morgan"

    # Display limits (per consumer, not storage limits)
    DASHBOARD_MOOD_LIMIT: int = 7
    MOOD_TREND_LIMIT: int = 14
    RECENT_LIST_LIMIT: int = 5

    # Application
    ENVIRONMENT: str = os.environ.get("ENVIRONMENT", "development")
    LOG_LEVEL: str = os.environ.get("LOG_LEVEL", "INFO")

    @property
    def NAMESPACE(self) -> str:
        """Root of every collection path."""
        return self.APP_ID


# Singleton instance
settings = Settings()

# Validate required settings (skip in test mode)
_testing = os.environ.get("TESTING", "").lower() == "true"

if settings.STORE_BACKEND not in ("memory", "postgres"):
    raise RuntimeError(f"STORE_BACKEND must be 'memory' or 'postgres', got {settings.STORE_BACKEND!r}")
if settings.STORE_BACKEND == "postgres" and not settings.DATABASE_URL:
    raise RuntimeError("DATABASE_URL environment variable is required when STORE_BACKEND=postgres")

if not _testing and settings.ENVIRONMENT != "development":
    if not settings.JWT_SECRET:
        raise RuntimeError("JWT_SECRET environment variable is required")

if not settings.JWT_SECRET:
    settings.JWT_SECRET = "development-only-secret"
