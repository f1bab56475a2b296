"""
Centralized configuration management with validation.

All environment variables are loaded and validated here.
This ensures consistent configuration across the application.
"""
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field
from typing import Optional
from dotenv import load_dotenv

load_dotenv()


class Settings(BaseSettings):
    """Application settings with validation."""

    # Pydantic v2 configuration
    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore"
    )

    # Database Configuration
    # DATABASE_URL wins when set (e.g. the hosted Postgres connection string, or sqlite for tests)
    DATABASE_URL: Optional[str] = Field(default=None)
    POSTGRES_USER: str = Field(default="postgres")
    POSTGRES_PASSWORD: str = Field(default="postgres")
    POSTGRES_DB: str = Field(default="hridaya")
    POSTGRES_HOST: str = Field(default="postgres")
    POSTGRES_PORT: int = Field(default=5432)

    # Database Pool Configuration
    DB_POOL_SIZE: int = Field(default=10)
    DB_MAX_OVERFLOW: int = Field(default=5)
    DB_POOL_TIMEOUT: int = Field(default=30)
    DB_POOL_RECYCLE: int = Field(default=3600)  # 1 hour

    # Hosted auth provider. We only verify its tokens, we never issue them in production.
    AUTH_JWT_SECRET: str = Field(
        default=...,  # Required - no default
        description="Shared secret used by the auth provider to sign access tokens (HS256)."
    )
    AUTH_JWT_ALGORITHM: str = Field(default="HS256")
    AUTH_JWT_AUDIENCE: Optional[str] = Field(default="authenticated")

    # Anthropic (chat research partner)
    ANTHROPIC_API_KEY: Optional[str] = Field(default=None)
    CHAT_MODEL: str = Field(default="claude-sonnet-4-20250514")
    CHAT_MAX_TOKENS: int = Field(default=1024, ge=1)

    # Chat context caps (older material is dropped past these)
    CHAT_CONTEXT_DAYS: int = Field(default=7, ge=1)
    CHAT_CONTEXT_LOGS: int = Field(default=20, ge=1)
    CHAT_PAST_EXPERIMENTS: int = Field(default=5, ge=0)

    # API Configuration
    API_HOST: str = Field(default="0.0.0.0")
    API_PORT: int = Field(default=8000)

    # Logging Configuration
    LOG_LEVEL: str = Field(default="INFO")
    LOG_FORMAT: str = Field(default="json")  # json or text

    # Environment
    ENVIRONMENT: str = Field(default="development")
    DEBUG: bool = Field(default=False)

    # CORS - comma-separated list of allowed origins for production
    # e.g., "https://hridaya.app,https://www.hridaya.app"
    CORS_ORIGINS: Optional[str] = Field(default=None)


# Global settings instance
settings = Settings()
