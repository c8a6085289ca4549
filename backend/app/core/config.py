# backend/app/core/config.py
"""
Application configuration using pydantic-settings.

Security considerations:
- SECRET_KEY must be overridden in production via environment variable
- CORS_ORIGINS parsed from comma-separated env var, never defaults to "*"
- Database URLs normalized for async drivers automatically
- Session cookie is only marked Secure in production (local HTTP dev works)
"""
from functools import lru_cache
from typing import List, Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Strictly typed application settings.

    Priority for loading:
    1. Environment variables (highest priority)
    2. .env file (via pydantic-settings)
    3. Default values (lowest priority, dev-safe only)
    """

    # ─────────────────────────────────────────────────────────────
    # Application metadata
    # ─────────────────────────────────────────────────────────────
    PROJECT_NAME: str = "CosmicLink"
    PROJECT_VERSION: str = "1.0.0"
    API_V1_STR: str = "/api/v1"

    # ─────────────────────────────────────────────────────────────
    # Environment mode
    # ─────────────────────────────────────────────────────────────
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"

    # ─────────────────────────────────────────────────────────────
    # Security: session tokens
    # 7 days, mirrored by the cookie max-age
    # ─────────────────────────────────────────────────────────────
    SECRET_KEY: str = "INSECURE_DEV_KEY_CHANGE_IN_PRODUCTION"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 7
    SESSION_COOKIE_NAME: str = "token"

    # bcrypt work factor (4..31)
    PASSWORD_HASH_ROUNDS: int = 10

    # ─────────────────────────────────────────────────────────────
    # Two-factor authentication
    # TWO_FACTOR_PENDING_MINUTES: lifetime of the token handed out
    # between the password step and the second-factor step.
    # ─────────────────────────────────────────────────────────────
    TOTP_ISSUER: str = "CosmicLink"
    RECOVERY_CODE_COUNT: int = 8
    TWO_FACTOR_PENDING_MINUTES: int = 5

    # ─────────────────────────────────────────────────────────────
    # Premium codes
    # PREMIUM_STACKING: redeeming while still premium extends the
    # current expiry instead of restarting the clock from now.
    # ─────────────────────────────────────────────────────────────
    PREMIUM_CODE_SHELF_DAYS: int = 30
    PREMIUM_STACKING: bool = True

    # ─────────────────────────────────────────────────────────────
    # Bootstrap admin account (POST /admin/bootstrap, init_db.py)
    # No password configured -> bootstrap is refused.
    # ─────────────────────────────────────────────────────────────
    BOOTSTRAP_ADMIN_USERNAME: str = "admin"
    BOOTSTRAP_ADMIN_EMAIL: str = "admin@cosmiclink.com"
    BOOTSTRAP_ADMIN_PASSWORD: Optional[str] = None

    # ─────────────────────────────────────────────────────────────
    # Storage backend
    # "memory" keeps everything in process (dev/tests),
    # "sql" uses DATABASE_URL through SQLAlchemy async.
    # ─────────────────────────────────────────────────────────────
    STORAGE_BACKEND: str = "memory"
    DATABASE_URL: str = "sqlite+aiosqlite:///./cosmiclink.db"

    @field_validator("DATABASE_URL", mode="before")
    @classmethod
    def normalize_database_url(cls, v: Optional[str]) -> str:
        """
        Normalize database URLs for async SQLAlchemy compatibility.

        Conversions:
        - postgres://     → postgresql+asyncpg://  (Heroku/Render style)
        - postgresql://   → postgresql+asyncpg://  (standard PostgreSQL)
        - sqlite:///      → sqlite+aiosqlite:///   (local development)
        """
        if v is None:
            return "sqlite+aiosqlite:///./cosmiclink.db"

        url = v.strip()

        if url.startswith("postgres://"):
            return url.replace("postgres://", "postgresql+asyncpg://", 1)

        if url.startswith("postgresql://") and "+asyncpg" not in url:
            return url.replace("postgresql://", "postgresql+asyncpg://", 1)

        if url.startswith("sqlite:///") and "+aiosqlite" not in url:
            return url.replace("sqlite:///", "sqlite+aiosqlite:///", 1)

        return url

    @field_validator("STORAGE_BACKEND")
    @classmethod
    def check_storage_backend(cls, v: str) -> str:
        backend = v.strip().lower()
        if backend not in ("memory", "sql"):
            raise ValueError("STORAGE_BACKEND must be 'memory' or 'sql'")
        return backend

    # MUST be False in production to prevent SQL query exposure
    DATABASE_ECHO: bool = False

    # ─────────────────────────────────────────────────────────────
    # CORS Configuration
    # Empty string → empty list (NOT "*")
    # ─────────────────────────────────────────────────────────────
    CORS_ORIGINS: str = "http://localhost:5000,http://127.0.0.1:5000,http://localhost:5173"

    @property
    def BACKEND_CORS_ORIGINS(self) -> List[str]:
        """Parse CORS_ORIGINS string into a list of allowed origins."""
        if not self.CORS_ORIGINS or not self.CORS_ORIGINS.strip():
            return []

        return [
            origin.strip()
            for origin in self.CORS_ORIGINS.split(",")
            if origin.strip()
        ]

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.ENVIRONMENT.lower() == "production"

    @property
    def is_sqlite(self) -> bool:
        """Check if using SQLite database (local development)."""
        return "sqlite" in self.DATABASE_URL.lower()

    @property
    def session_cookie_max_age(self) -> int:
        """Cookie lifetime in seconds, aligned with the token TTL."""
        return self.ACCESS_TOKEN_EXPIRE_MINUTES * 60


@lru_cache()
def get_settings() -> Settings:
    """
    Cached settings instance.

    Settings are only loaded once, giving consistent configuration
    across the application.
    """
    return Settings()


settings = get_settings()
