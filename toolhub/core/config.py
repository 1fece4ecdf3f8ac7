from __future__ import annotations

import os
from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # API configuration
    API_V1_STR: str = "/api"
    PROJECT_NAME: str = "ToolHub Marketplace"
    ENVIRONMENT: str = os.getenv("ENVIRONMENT", "development")
    DEBUG: bool = os.getenv("DEBUG", "false").lower() in ("true", "1", "yes")

    # CORS
    CORS_ORIGINS: list[str] = ["*"]

    # Rate limiting
    RATE_LIMIT_PER_MINUTE: int = 120

    # Logging
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    LOG_FORMAT: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    LOG_PATH: Path = Path("logs")
    LOG_BACKUP_COUNT: int = 30  # Keep 30 days of logs

    # MongoDB configuration
    MONGODB_URL: str = os.getenv("MONGODB_URL", "mongodb://localhost:27017")
    MONGODB_DATABASE: str = os.getenv("MONGODB_DATABASE", "toolhub")

    # Identity provider tokens (HS256, shared secret)
    IDENTITY_JWT_SECRET: str = os.getenv(
        "IDENTITY_JWT_SECRET", "development_identity_secret"
    )
    IDENTITY_JWT_ALGORITHM: str = "HS256"
    IDENTITY_JWT_ISSUER: str | None = os.getenv("IDENTITY_JWT_ISSUER") or None
    IDENTITY_JWT_AUDIENCE: str | None = os.getenv("IDENTITY_JWT_AUDIENCE") or None

    # Emails promoted to admin when their profile is first synced
    ADMIN_EMAILS: list[str] = []

    # External API configuration
    EXTERNAL_API_TIMEOUT: int = 30
    MAX_CONCURRENT_REQUESTS: int = 10

    # Resilience configuration
    CB_FAILURE_THRESHOLD: int = int(os.getenv("CB_FAILURE_THRESHOLD", 3))
    CB_RECOVERY_TIMEOUT_SECONDS: int = int(os.getenv("CB_RECOVERY_TIMEOUT_SECONDS", 60))
    CB_HALF_OPEN_PROBE_ATTEMPTS: int = int(os.getenv("CB_HALF_OPEN_PROBE_ATTEMPTS", 1))

    RETRY_MAX_ATTEMPTS: int = int(os.getenv("RETRY_MAX_ATTEMPTS", 3))
    RETRY_INITIAL_BACKOFF_SECONDS: float = float(
        os.getenv("RETRY_INITIAL_BACKOFF_SECONDS", 0.2)
    )
    RETRY_BACKOFF_MULTIPLIER: float = float(os.getenv("RETRY_BACKOFF_MULTIPLIER", 2.0))
    RETRY_JITTER_RATIO: float = float(os.getenv("RETRY_JITTER_RATIO", 0.2))

    # Razorpay payment gateway configuration
    RAZORPAY_KEY_ID: str = os.getenv("RAZORPAY_KEY_ID", "")
    RAZORPAY_KEY_SECRET: str = os.getenv("RAZORPAY_KEY_SECRET", "")
    RAZORPAY_BASE_URL: str = os.getenv(
        "RAZORPAY_BASE_URL", "https://api.razorpay.com/v1"
    )
    RAZORPAY_TIMEOUT_SECONDS: int = int(os.getenv("RAZORPAY_TIMEOUT_SECONDS", 30))
    DEFAULT_CURRENCY: str = os.getenv("DEFAULT_CURRENCY", "INR")

    # Notification retention
    NOTIFICATION_TTL_HOURS: int = int(os.getenv("NOTIFICATION_TTL_HOURS", 24))
    NOTIFICATION_SEEN_RETENTION_HOURS: int = int(
        os.getenv("NOTIFICATION_SEEN_RETENTION_HOURS", 24)
    )
    NOTIFICATION_CLEANUP_ENABLED: bool = os.getenv(
        "NOTIFICATION_CLEANUP_ENABLED", "true"
    ).lower() in ("true", "1", "yes")
    NOTIFICATION_CLEANUP_INTERVAL_MINUTES: int = int(
        os.getenv("NOTIFICATION_CLEANUP_INTERVAL_MINUTES", "30")
    )

    @field_validator("CORS_ORIGINS", "ADMIN_EMAILS", mode="before")
    @classmethod
    def assemble_list(cls, v: str | list[str]) -> list[str]:
        if isinstance(v, str) and not v.startswith("["):
            return [i.strip() for i in v.split(",") if i.strip()]
        elif isinstance(v, list | str):
            return v
        raise ValueError(v)

    class Config:
        case_sensitive = True
        env_file = ".env"
        extra = "ignore"  # Ignore extra fields from .env file


# Create settings instance
settings = Settings()
