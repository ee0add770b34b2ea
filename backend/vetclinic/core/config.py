"""Module: config."""

from pydantic_settings import BaseSettings

# Centralized runtime configuration loaded from environment variables.
class Settings(BaseSettings):
    # Primary SQLAlchemy connection string for the backend database.
    database_url: str
    # Browser origins allowed to call the API with credentials.
    cors_origins: list[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]
    # Root log level applied by main.py at startup.
    log_level: str = "INFO"
    # Optional outbound webhook that receives appointment notifications.
    notification_webhook_url: str | None = None
    notification_timeout_seconds: float = 5.0
    # Entropy for issued bearer tokens.
    token_bytes: int = 32

    # Configure pydantic-settings to also load values from local .env file.
    class Config:
        env_file = ".env"

# Global settings instance imported by app modules at runtime.
settings = Settings()
