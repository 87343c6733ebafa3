"""Application configuration using Pydantic settings."""

from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=str(Path(__file__).parent.parent.parent / ".env"),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_env: str = "development"
    debug: bool = False
    log_level: str = "INFO"

    # Server
    host: str = "0.0.0.0"
    port: int = 8000

    # Database
    database_url: str = "sqlite+aiosqlite:///./pocketledger.db"
    db_echo: bool = False

    # JWT (tokens are issued by the auth provider; we only verify them)
    jwt_secret: str = "change-me-in-production"
    jwt_algorithm: str = "HS256"

    # Aggregation provider
    default_provider: str = "TestProvider"
    plaid_client_id: str | None = None
    plaid_secret: str | None = None
    plaid_env: str = "sandbox"
    plaid_client_name: str = "Pocket Ledger"
    plaid_country_codes: list[str] = ["US"]
    provider_timeout_seconds: float = 30.0

    # Encryption of stored access credentials (Fernet key, urlsafe base64)
    encryption_key: str | None = None

    # Money
    default_currency: str = "EGP"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
