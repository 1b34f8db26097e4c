"""
Application configuration using Pydantic Settings.
"""
from functools import lru_cache
from pydantic_settings import BaseSettings
from pydantic import field_validator


# List of known insecure default secrets that should never be used
INSECURE_DEFAULTS = {
    "your-super-secret-jwt-key-here",
    "your-super-secret-key-change-in-production",
    "secret",
    "changeme",
    "test",
    "dev",
    "development",
    "password",
}


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application
    APP_NAME: str = "Gecko Store API"
    DEBUG: bool = False

    # Database
    DATABASE_URL: str = "sqlite:///./gecko.db"

    # JWT Configuration
    JWT_SECRET_KEY: str = "your-super-secret-key-change-in-production"
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 15

    # Session records outlive the token signature; the row is the revocation point
    SESSION_EXPIRE_DAYS: int = 7

    # Login lockout
    LOGIN_LOCKOUT_THRESHOLD: int = 5
    LOGIN_LOCKOUT_WINDOW_MINUTES: int = 15

    # Accounts
    PASSWORD_MIN_LENGTH: int = 8

    # Subscriptions and payments
    RENEWAL_WINDOW_DAYS: int = 7
    TAX_PERCENT: float = 0
    PAYMENT_CALLBACK_SECRET: str | None = None

    # Token cookie handed to the browser extension
    TOKEN_COOKIE_NAME: str = "token"
    TOKEN_COOKIE_SECURE: bool = False

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = True

    @field_validator("JWT_SECRET_KEY")
    @classmethod
    def validate_jwt_secret(cls, v: str) -> str:
        """
        Validate JWT secret key is secure.

        Requirements:
        - At least 32 characters
        - Not a known insecure default
        """
        if v.lower() in INSECURE_DEFAULTS:
            raise ValueError(
                f"JWT_SECRET_KEY is set to an insecure default value. "
                f"Please set a strong secret key via environment variable. "
                f"Generate one with: python -c 'import secrets; print(secrets.token_urlsafe(32))'"
            )

        if len(v) < 32:
            raise ValueError(
                f"JWT_SECRET_KEY must be at least 32 characters long (got {len(v)}). "
                f"Generate a secure key with: python -c 'import secrets; print(secrets.token_urlsafe(32))'"
            )

        return v

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
