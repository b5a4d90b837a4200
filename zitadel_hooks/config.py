from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Gateway settings loaded from environment variables.
    Follows 12-factor app configuration principles.

    Optional values are checked by the routes that need them, so a missing
    SIGNING_KEY fails those requests with a 500 instead of failing startup.
    """

    # env_file is only used as fallback, env vars take precedence
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        env_ignore_empty=True,
    )

    LOG_LEVEL: str = "INFO"

    # Shared secret of the ZITADEL target
    SIGNING_KEY: Optional[str] = None

    # Claim appended by POST /claim
    CLAIM_KEY: str = "group"
    CLAIM_VALUE: str = "ADMIN"

    # Splunk HTTP Event Collector
    SPLUNK_URL: Optional[str] = None
    SPLUNK_TOKEN: Optional[str] = None

    # Twilio SMS notification
    TWILIO_ACCOUNT_SID: Optional[str] = None
    TWILIO_AUTH_TOKEN: Optional[str] = None
    TWILIO_FROM_NUMBER: Optional[str] = None
    TWILIO_TO_NUMBER: Optional[str] = None
    SMS_BODY: str = "Webhook received!"

    FORWARD_TIMEOUT_SECONDS: float = 10.0


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.
    Uses lru_cache to avoid reading .env file on every request.
    """
    return Settings()
