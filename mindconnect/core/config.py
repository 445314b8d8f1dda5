from __future__ import annotations

from pathlib import Path
from urllib.parse import urlparse
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import AnyUrl, Field
from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

ENV_FILE = Path(__file__).resolve().parents[2] / ".env"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=(str(ENV_FILE), ".env"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # App
    app_env: str = Field(default="development", alias="APP_ENV")
    frontend_url: AnyUrl = Field(alias="FRONTEND_URL")

    # Supabase
    supabase_url: AnyUrl = Field(alias="SUPABASE_URL")
    supabase_anon_key: str = Field(alias="SUPABASE_ANON_KEY")
    supabase_service_role_key: str = Field(alias="SUPABASE_SERVICE_ROLE_KEY")

    # Gemini (optional: the chatbot falls back to canned replies without it)
    gemini_api_key: str | None = Field(default=None, alias="GEMINI_API_KEY")
    gemini_model: str = Field(default="gemini-2.5-flash", alias="GEMINI_MODEL")
    gemini_timeout_seconds: float = Field(
        default=30.0, alias="GEMINI_TIMEOUT_SECONDS"
    )

    # Admin allow-list, comma separated.
    admin_emails: str = Field(default="", alias="ADMIN_EMAILS")

    # Calendar-day boundary used for mood streaks (IANA name).
    streak_timezone: str = Field(default="UTC", alias="STREAK_TIMEZONE")

    # Observability
    sentry_dsn: str | None = Field(default=None, alias="SENTRY_DSN")
    sentry_traces_sample_rate: float = Field(
        default=0.0, alias="SENTRY_TRACES_SAMPLE_RATE"
    )

    # Limits
    requests_per_minute_limit: int = Field(
        default=240, alias="REQUESTS_PER_MINUTE_LIMIT"
    )
    chat_per_minute_limit: int = Field(default=12, alias="CHAT_PER_MINUTE_LIMIT")

    @model_validator(mode="after")
    def validate_runtime_constraints(self) -> "Settings":
        env = (self.app_env or "").strip().lower()
        is_prod = env in {"production", "prod"}

        frontend_origin = urlparse(str(self.frontend_url))
        frontend_host = (frontend_origin.hostname or "").lower()
        if is_prod and frontend_host in {"localhost", "127.0.0.1"}:
            raise ValueError(
                "Invalid FRONTEND_URL for production: localhost is not allowed. "
                "Set FRONTEND_URL to your public web domain."
            )

        supabase_origin = urlparse(str(self.supabase_url))
        supabase_host = (supabase_origin.hostname or "").lower()
        if is_prod and supabase_host in {"localhost", "127.0.0.1"}:
            raise ValueError(
                "Invalid SUPABASE_URL for production: localhost is not allowed."
            )

        try:
            ZoneInfo(self.streak_timezone)
        except (ZoneInfoNotFoundError, ValueError):
            raise ValueError(
                f"STREAK_TIMEZONE is not a known IANA timezone: {self.streak_timezone}"
            )

        if not (0.0 <= self.sentry_traces_sample_rate <= 1.0):
            raise ValueError("SENTRY_TRACES_SAMPLE_RATE must be 0..1")
        if self.requests_per_minute_limit < 0:
            raise ValueError("REQUESTS_PER_MINUTE_LIMIT must be >= 0")
        if self.chat_per_minute_limit < 0:
            raise ValueError("CHAT_PER_MINUTE_LIMIT must be >= 0")

        return self

    def admin_email_set(self) -> frozenset[str]:
        return frozenset(
            e.strip().lower() for e in self.admin_emails.split(",") if e.strip()
        )

    def streak_tz(self) -> ZoneInfo:
        return ZoneInfo(self.streak_timezone)

    def is_gemini_configured(self) -> bool:
        return bool(self.gemini_api_key and self.gemini_api_key.strip())


settings = Settings()  # type: ignore[call-arg]  # singleton import via env settings
