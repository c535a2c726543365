"""Application configuration via pydantic-settings."""

from __future__ import annotations

from functools import lru_cache
from typing import List, Literal, Optional

from pydantic import Field, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "Booking Reconciliation Engine"
    app_version: str = "1.0.0"
    environment: Literal["development", "staging", "production"] = "development"
    debug: bool = False
    api_prefix: str = "/api/v1"
    log_level: str = "INFO"

    # Server
    host: str = "0.0.0.0"
    port: int = 8000
    workers: int = 4

    # Database
    postgres_host: str = "localhost"
    postgres_port: int = 5432
    postgres_user: str = "bookings"
    postgres_password: str = Field(default="bookings_secret")
    postgres_db: str = "bookings"
    db_pool_size: int = 20
    db_max_overflow: int = 10
    database_url_override: Optional[str] = None  # e.g. sqlite+aiosqlite:// for local runs

    @computed_field
    @property
    def database_url(self) -> str:
        """Async PostgreSQL connection URL."""
        if self.database_url_override:
            return self.database_url_override
        return (
            f"postgresql+asyncpg://{self.postgres_user}:{self.postgres_password}"
            f"@{self.postgres_host}:{self.postgres_port}/{self.postgres_db}"
        )

    # PawaPay (mobile money)
    pawapay_api_token: Optional[str] = None
    pawapay_sandbox_token: Optional[str] = None
    pawapay_sandbox: bool = True
    pawapay_sandbox_url: str = "https://api.sandbox.pawapay.cloud"
    pawapay_production_url: str = "https://api.pawapay.cloud"
    pawapay_timeout_seconds: float = 8.0
    pawapay_statement_description: str = "Booking payment"
    pawapay_payout_description: str = "Host payout"
    pawapay_country_code: str = "250"  # Rwanda MSISDN prefix

    # Money
    mobile_money_currency: str = "RWF"
    min_deposit_amount: int = 100  # in mobile_money_currency units

    # Notifications (confirmation hook, e.g. transactional email relay)
    notification_webhook_url: Optional[str] = None
    notification_timeout_seconds: float = 10.0

    # Reconciliation sweep
    stale_deposit_minutes: int = 15

    # CORS
    cors_origins: List[str] = ["http://localhost:3000", "http://localhost:8080"]

    @computed_field
    @property
    def pawapay_base_url(self) -> str:
        """Provider base URL; anything but production is pinned to the sandbox."""
        if self.environment != "production" or self.pawapay_sandbox:
            return self.pawapay_sandbox_url
        return self.pawapay_production_url

    @property
    def pawapay_token(self) -> Optional[str]:
        """Bearer token matching the selected environment."""
        if self.pawapay_base_url == self.pawapay_sandbox_url:
            return self.pawapay_sandbox_token or self.pawapay_api_token
        return self.pawapay_api_token


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
