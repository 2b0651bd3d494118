from __future__ import annotations

from typing import Literal

from pydantic import AnyUrl, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from arttimeline.app.domain.errors import ConfigurationError

DEFAULT_AUTH_SECRET_KEY = "change-me"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8-sig",
        case_sensitive=False,
        extra="ignore",
    )

    SUPABASE_URL: AnyUrl
    SUPABASE_SERVICE_ROLE_KEY: str
    APP_ENV: str = "local"
    APP_NAME: str = "Art Timeline"
    FRONTEND_CORS_ORIGINS: list[str] = Field(
        default_factory=lambda: ["http://localhost:5173", "http://127.0.0.1:5173"],
    )

    # Met Museum collection API
    MET_API_BASE_URL: str = "https://collectionapi.metmuseum.org/public/collection/v1"
    MET_USER_AGENT: str = "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36"
    MET_SEARCH_TIMEOUT_SECONDS: float = 15.0
    MET_OBJECT_TIMEOUT_SECONDS: float = 10.0

    # Cache
    CACHE_BACKEND: Literal["memory", "supabase"] = "memory"
    CACHE_SEARCH_TTL_SECONDS: int = 86_400
    CACHE_OBJECT_TTL_SECONDS: int = 604_800
    CACHE_PERIOD_TTL_SECONDS: int = 86_400

    # Curation
    CURATION_DEFAULT_LIMIT: int = 4
    CURATION_MAX_LIMIT: int = 24
    CURATION_BATCH_SIZE: int = 8
    CURATION_IDS_PER_QUERY: int = 50
    CURATION_POOL_FACTOR: int = 20
    CURATION_BATCH_PAUSE_SECONDS: float = 0.05

    # Auth (accounts, codes and sessions are configured in Supabase Auth)
    AUTH_SECRET_KEY: str = DEFAULT_AUTH_SECRET_KEY
    PENDING_TTL_MINUTES: int = 15
    OTP_RESEND_COOLDOWN_SECONDS: int = 60


def validate_settings(current: Settings) -> None:
    """
    Check settings that would only fail later at request time.

    Raises:
        ConfigurationError: Listing every problem found
    """
    errors: list[str] = []
    if current.APP_ENV != "local" and current.AUTH_SECRET_KEY == DEFAULT_AUTH_SECRET_KEY:
        errors.append("AUTH_SECRET_KEY must be set outside the local environment")
    if not 1 <= current.CURATION_DEFAULT_LIMIT <= current.CURATION_MAX_LIMIT:
        errors.append("CURATION_DEFAULT_LIMIT must be between 1 and CURATION_MAX_LIMIT")
    if current.PENDING_TTL_MINUTES <= 0:
        errors.append("PENDING_TTL_MINUTES must be positive")
    if errors:
        raise ConfigurationError(errors)


settings = Settings()
