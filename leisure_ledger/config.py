"""Configuration management using Pydantic Settings"""

from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables"""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Database
    database_url: str = "sqlite:///./leisure_ledger.db"

    # Storage keys
    state_key: str = "leisure_ledger.state"
    session_key: str = "leisure_ledger.active_session"

    # Service
    service_name: str = "leisure-ledger"
    host: str = "127.0.0.1"
    port: int = 8000
    log_level: str = "INFO"
    default_language: str = "en"

    # Ticker
    tick_interval_seconds: float = 1.0

    # Alarm
    alarm_webhook_url: Optional[str] = None
    alarm_auto_stop_seconds: float = 300.0
    http_timeout_seconds: float = 2.0


settings = Settings()
