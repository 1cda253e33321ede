"""
Configuration management using Pydantic Settings.
All environment variables are loaded and validated here.
"""

from typing import List, Literal, Optional
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ================================
    # Application Configuration
    # ================================
    APP_NAME: str = "ClipSync"
    APP_ENV: Literal["development", "staging", "production", "testing"] = "development"
    DEBUG: bool = True
    PORT: int = 3000

    ALLOWED_ORIGINS: str = "http://localhost:3000"

    @field_validator("ALLOWED_ORIGINS")
    @classmethod
    def parse_origins(cls, v: str) -> List[str]:
        """Parse comma-separated origins into list."""
        return [origin.strip() for origin in v.split(",")]

    # ================================
    # Database Configuration
    # ================================
    DATABASE_URL: str = Field(..., description="PostgreSQL connection string")
    DB_ECHO: bool = False
    DB_POOL_SIZE: int = 10
    DB_MAX_OVERFLOW: int = 5

    # Managed Postgres hosts usually terminate TLS with certificates the
    # client cannot verify, so verification is off unless asked for.
    DB_SSL_ENABLED: bool = True
    DB_SSL_VERIFY: bool = False

    @field_validator("DATABASE_URL")
    @classmethod
    def use_async_driver(cls, v: str) -> str:
        """Accept plain postgres:// URLs (as issued by hosting platforms)."""
        for prefix in ("postgres://", "postgresql://"):
            if v.startswith(prefix):
                return "postgresql+asyncpg://" + v[len(prefix):]
        return v

    # ================================
    # Zoom API
    # ================================
    ZOOM_CLIENT_ID: Optional[str] = None
    ZOOM_CLIENT_SECRET: Optional[str] = None
    ZOOM_ACCOUNT_ID: Optional[str] = None
    ZOOM_GRANT_TYPE: str = "client_credentials"
    ZOOM_TOKEN_URL: str = "https://zoom.us/oauth/token"
    ZOOM_API_BASE_URL: str = "https://api.zoom.us/v2"
    ZOOM_CLIPS_PAGE_SIZE: int = Field(50, ge=1, le=300)
    ZOOM_MAX_PAGES: int = Field(200, ge=1)
    ZOOM_MAX_FETCH_SECONDS: float = Field(120.0, gt=0)
    ZOOM_REQUEST_TIMEOUT: float = 30.0

    # ================================
    # Clip Sync Scheduling
    # ================================
    SYNC_SCHEDULER: Literal["inprocess", "celery", "disabled"] = "inprocess"
    SYNC_INTERVAL_MINUTES: int = Field(5, ge=1, le=60)
    SYNC_ALLOW_OVERLAP: bool = False
    SYNC_RUN_ON_STARTUP: bool = False
    # Upper bound on concurrent cycles, only used when overlap is allowed
    SYNC_MAX_CONCURRENT_CYCLES: int = Field(3, ge=2)
    # Cycle outcomes are kept in sync_runs for this many days
    SYNC_RUN_RETENTION_DAYS: int = Field(30, ge=1)

    # ================================
    # Salesforce OAuth
    # ================================
    SALESFORCE_CLIENT_ID: Optional[str] = None
    SALESFORCE_CLIENT_SECRET: Optional[str] = None
    SALESFORCE_LOGIN_URL: str = "https://login.salesforce.com"
    # When unset the redirect URI is derived from the request host
    SALESFORCE_REDIRECT_URI: Optional[str] = None
    SALESFORCE_SCOPE: str = "api refresh_token"

    # Knowledge articles are not created yet; processed clips get this id
    MOCK_KNOWLEDGE_ARTICLE_ID: str = "mock-article-id"

    # ================================
    # Celery Configuration
    # ================================
    CELERY_BROKER_URL: str = "redis://redis:6379/0"
    CELERY_RESULT_BACKEND: str = "redis://redis:6379/0"
    CELERY_TASK_SERIALIZER: str = "json"
    CELERY_RESULT_SERIALIZER: str = "json"
    # Celery accept content as comma-separated string, we'll parse it
    CELERY_ACCEPT_CONTENT: str = "json"
    CELERY_TIMEZONE: str = "UTC"
    CELERY_ENABLE_UTC: bool = True

    @property
    def celery_accept_content_list(self) -> List[str]:
        """Parse CELERY_ACCEPT_CONTENT into a list."""
        return [item.strip() for item in self.CELERY_ACCEPT_CONTENT.split(",")]

    # ================================
    # Logging Configuration
    # ================================
    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    LOG_FORMAT: Literal["json", "text"] = "json"

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.APP_ENV == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.APP_ENV == "production"

    @property
    def zoom_configured(self) -> bool:
        return bool(self.ZOOM_CLIENT_ID and self.ZOOM_CLIENT_SECRET)

    @property
    def salesforce_configured(self) -> bool:
        return bool(self.SALESFORCE_CLIENT_ID and self.SALESFORCE_CLIENT_SECRET)


# Global settings instance
settings = Settings()
