"""Application configuration."""

from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration loaded from environment variables."""

    auth_provider: Literal["mock", "cognito"] = "cognito"
    cognito_region: str | None = None
    database_url: str = "sqlite:///./videoscript.db"
    queue_backend: Literal["memory", "sqs"] = "sqs"
    sqs_queue_url: str | None = None
    aws_region: str | None = None
    webhook_secret: str
    api_base_url: str = "http://localhost:8000"
    title_resolver: Literal["http", "static"] = "http"
    title_timeout_seconds: float = 5.0
    allow_anonymous_jobs: bool = True
    notification_feed_limit: int = 5
    stale_processing_after_hours: float | None = None

    model_config = SettingsConfigDict(env_prefix="VIDEOSCRIPT_", extra="ignore")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
