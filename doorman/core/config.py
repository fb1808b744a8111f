"""Application configuration."""
from typing import Literal, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Twilio
    twilio_account_sid: str
    twilio_application_sid: str
    twilio_phone_number: str

    # Calls that cannot be scripted are forwarded here
    primary_phone_number: str

    # Runtime
    environment: str = "production"
    log_level: str = "INFO"

    # Database
    database_url: str = "sqlite+aiosqlite:///./doorman.db"

    # Scripts
    script_source: Literal["yaml", "database"] = "yaml"
    scripts_file: Optional[str] = None

    # Static assets (audio for <Play>)
    asset_path: str = "./assets"

    # Admin API
    admin_token: Optional[str] = None

    # Server
    host: str = "0.0.0.0"
    port: int = 8080

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    @property
    def is_development(self) -> bool:
        return self.environment.lower() == "development"


settings = Settings()
