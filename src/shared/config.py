"""Application configuration loaded from environment variables."""

from __future__ import annotations

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    env: str = "local"
    backend_host: str = "0.0.0.0"
    backend_port: int = 8000
    database_url: str = "sqlite+aiosqlite:///./equipment_finder.db"
    log_level: str = "DEBUG"
    log_format: str = "console"
    otel_exporter_endpoint: str = ""
    phoenix_enabled: bool = False
    phoenix_port: int = 6006

    # Generative search provider
    gemini_api_key: str = ""
    gemini_model: str = "gemini-2.5-flash"
    gemini_base_url: str = "https://generativelanguage.googleapis.com/v1beta"
    search_temperature: float = 0.2
    request_timeout: float = 60.0

    # HTTP API
    cors_origins: list[str] = ["*"]

    # Result refinement
    default_currency: str = "USD"
    known_spec_keys: list[str] = ["Capacity", "Installation", "Power Source", "Controls"]
    country_spec_key: str = "Country of Origin"

    model_config = {"env_file": "config/.env.local", "extra": "ignore"}


settings = Settings()
