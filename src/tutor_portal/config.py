"""Application configuration."""

import os

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")

DEFAULT_SOCIAL_PROVIDERS = frozenset({"google", "facebook", "github"})


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    supabase_url: str
    supabase_anon_key: str
    resource_bucket: str = "tutor-resources"
    max_upload_mb: int = 10
    realtime_subscribe_timeout: float = 10.0
    sse_keepalive_seconds: float = 20.0
    oauth_redirect_url: str = "http://localhost:3000/auth/callback"
    social_providers: str | None = None
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )

    @property
    def max_upload_bytes(self) -> int:
        return self.max_upload_mb * 1024 * 1024


def parse_social_providers(raw: str | None) -> frozenset[str]:
    """Parse enabled OAuth providers from env."""
    if raw is None:
        return DEFAULT_SOCIAL_PROVIDERS
    cleaned = raw.strip()
    if cleaned in {"", "*"}:
        return DEFAULT_SOCIAL_PROVIDERS
    providers: set[str] = set()
    for chunk in cleaned.split(","):
        value = chunk.strip().lower()
        if not value:
            continue
        if value.isalnum():
            providers.add(value)
    return frozenset(providers) or DEFAULT_SOCIAL_PROVIDERS
