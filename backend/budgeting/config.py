"""
Application configuration using Pydantic settings.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings."""

    # App
    app_name: str = "Budgeting"
    log_level: str = "INFO"

    # Database
    database_url: str = "sqlite:///./data/budgeting.sqlite"
    auto_create_tables: bool = True

    # Ledger
    default_currency: str = "USD"

    # Recurring scheduler
    scheduler_enabled: bool = True
    scheduler_interval_hours: float = 24.0
    scheduler_run_on_startup: bool = False
    scheduler_stop_timeout_seconds: float = 30.0

    # Server
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    frontend_url: str = "http://localhost:5173"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False
    )

    @property
    def scheduler_interval_seconds(self) -> float:
        return self.scheduler_interval_hours * 3600


# Global settings instance
settings = Settings()
