from __future__ import annotations

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

REPO_ROOT = Path(__file__).resolve().parents[2]
ENV_FILE = REPO_ROOT / ".env"

SERVICE_NAME = "pix-gateway"
APP_VERSION = "0.1.0"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=str(ENV_FILE), env_file_encoding="utf-8", extra="ignore"
    )

    # console logs instead of JSON
    DEBUG: bool = False

    # Instapay credentials. Missing values only fail on the first login attempt.
    INSTAPAY_CLIENT_ID: str | None = None
    INSTAPAY_CLIENT_SECRET: str | None = None
    INSTAPAY_API_BASE: str = "https://api.instapaybr.com"
    INSTAPAY_TIMEOUT_SECONDS: float = 15.0
    INSTAPAY_CONNECT_TIMEOUT_SECONDS: float = 5.0
    # Kept under the provider's (undocumented) token lifetime.
    INSTAPAY_TOKEN_TTL_SECONDS: int = 55 * 60

    # HTTP surface
    PIX_ROUTE_PATH: str = "/"
    PIX_WEBHOOK_PATH: str = "/.netlify/functions/pix-webhook"
    # e.g. "https://pay.example.com"; when unset the inbound Host header is used
    PIX_CALLBACK_BASE_URL: str | None = None

    # Token cache backend. Redis shares the token across instances.
    REDIS_ENABLED: bool = False
    REDIS_URL: str | None = None  # e.g., "redis://localhost:6379/0"
    TOKEN_CACHE_KEY: str = "instapay:token"

    # Observability
    SENTRY_DSN: str | None = None
    SENTRY_ENVIRONMENT: str = "development"
    SENTRY_RELEASE: str | None = None
    SENTRY_TRACES_SAMPLE_RATE: float = 0.2

    @property
    def instapay_base_url(self) -> str:
        return self.INSTAPAY_API_BASE.rstrip("/") or "https://api.instapaybr.com"

    @property
    def credentials_configured(self) -> bool:
        return bool((self.INSTAPAY_CLIENT_ID or "").strip()) and bool(
            (self.INSTAPAY_CLIENT_SECRET or "").strip()
        )

    @property
    def redis_configured(self) -> bool:
        return self.REDIS_ENABLED and bool(self.REDIS_URL)


settings = Settings()
