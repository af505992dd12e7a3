"""Configuration and environment settings for AskUPI."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings for the AskUPI service and client core."""

    groq_api_key: str = ""
    groq_model: str = "llama-3.3-70b-versatile"
    groq_temperature: float = 0.2
    groq_max_completion_tokens: int = 8192
    groq_top_p: float = 0.95
    groq_stream: bool = True
    agent_name: str = "groq"
    max_upload_bytes: int = 1_000_000
    statement_max_pages: int = 50
    api_base_url: str = "http://127.0.0.1:8000"
    request_timeout: float = 120.0
    storage_backend: str = "sql"
    database_url: str = "sqlite:///askupi.db"
    storage_quota_bytes: int = 5 * 1024 * 1024
    s3_endpoint_url: str | None = None
    s3_access_key: str | None = None
    s3_secret_key: str | None = None
    s3_bucket: str = "askupi"
    server_host: str = "127.0.0.1"
    server_port: int = 8000
    log_file: str = "logs/askupi.log"

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")


def get_settings() -> "Settings":
    """Return an instance of the application settings."""
    return Settings()
