"""Application configuration using pydantic-settings.

Environment variables are the sole source of truth (12-factor). No secrets committed.
Add new settings thoughtfully; prefer grouping by domain. Use `get_settings()` for DI.
"""
from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Core
    DATABASE_URL: str = Field(
        "sqlite+aiosqlite:///./mentorhub.db",
        description="Async SQLAlchemy URL (postgresql+asyncpg://... in production)",
    )
    LOG_LEVEL: str = Field("INFO", description="Application log level")
    ENVIRONMENT: str = Field("development", description="development | staging | production")
    APP_URL: str = Field("http://localhost:3000", description="Public origin used in sign-in links")
    AUTH_SECRET: str = Field("dev-auth-secret", description="HMAC key for hashing verification codes")

    # Tencent Meeting REST API (https://cloud.tencent.com/document/product/1095/42413)
    TM_SECRET_ID: str = ""
    TM_SECRET_KEY: str = ""
    TM_ENTERPRISE_ID: str = ""
    TM_APP_ID: str = ""
    TM_USER_ID: str = Field("", description="Host user id meetings are scheduled under")
    TM_API_BASE: str = "https://api.meeting.qq.com"
    TM_MAX_RECORD_PAGES: int = Field(100, ge=1, description="Upper bound on /v1/records pages fetched per listing")

    # E-mail
    POSTMARK_API_KEY: Optional[str] = None
    MAIL_FROM: str = "MentorHub <no-reply@mentorhub.org>"

    # Monitoring
    SENTRY_DSN: Optional[str] = None

    # Flags exposed to clients through /api/config
    HIDE_USER_API_KEY: bool = False
    DISABLE_GPT4: bool = False
    HIDE_BALANCE_QUERY: bool = False

    model_config = SettingsConfigDict(env_file=None, case_sensitive=False, extra="ignore")

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT == "production"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached singleton settings instance.

    Usage: settings = get_settings()
    In FastAPI dependency: `Depends(get_settings)`.
    """
    return Settings()  # pydantic-settings loads from environment automatically


__all__ = ["Settings", "get_settings"]
