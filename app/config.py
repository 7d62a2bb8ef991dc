from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    app_name: str = "ModularCompany"
    app_version: str = "0.1.0"
    debug: bool = False
    environment: Literal["development", "staging", "production"] = "development"
    log_level: str = "INFO"
    database_url: str = "postgresql+asyncpg://modular:modular@db:5432/modular_company"
    database_echo: bool = False
    database_pool_size: int = 5
    database_max_overflow: int = 10
    cors_origins: list[str] = ["http://localhost:3000", "http://localhost:8081"]

    # Token signing. The secret name is shared with the web frontend.
    nextauth_secret: str = "dev-secret-change-me"
    jwt_algorithm: str = "HS256"
    mobile_token_ttl_hours: int = 24
    session_ttl_hours: int = 720
    session_cookie_name: str = "session_token"
    bcrypt_rounds: int = 10

    # Bootstrap of the developer account.
    developer_email: str | None = None
    developer_password: str | None = None
    setup_secret_token: str | None = None


_settings: Settings | None = None


def get_settings() -> Settings:
    """Return cached settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
