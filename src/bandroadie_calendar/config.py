"""Runtime configuration for the calendar core."""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
import pytz

# Cache TTL in seconds (5 minutes)
DEFAULT_MONTH_CACHE_TTL = 300

DEFAULT_MEMBER_NAME = "Member"


class Settings(BaseSettings):
    """Runtime settings loaded from environment."""

    supabase_url: str = "http://localhost:54321"
    supabase_anon_key: SecretStr = SecretStr("")
    supabase_access_token: SecretStr | None = None
    request_timeout_seconds: float = Field(default=30.0, gt=0)

    month_cache_ttl_seconds: int = Field(default=DEFAULT_MONTH_CACHE_TTL, gt=0)
    fallback_member_name: str = DEFAULT_MEMBER_NAME
    timezone: str = "UTC"
    slow_operation_threshold_seconds: float = 1.0

    model_config = SettingsConfigDict(
        env_prefix="BANDROADIE_",
        env_file=".env",
        extra="ignore",
    )

    @field_validator("timezone")
    @classmethod
    def _validate_timezone(cls, value: str) -> str:
        try:
            pytz.timezone(value)
        except pytz.UnknownTimeZoneError as exc:
            raise ValueError(f"Unknown timezone: {value}") from exc
        return value

    @field_validator("supabase_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")


@lru_cache
def get_settings() -> Settings:
    return Settings()
