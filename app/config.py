"""
Application configuration using Pydantic Settings.
Loads configuration from environment variables with validation.
"""
from typing import List
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # Environment
    environment: str = Field(default="development", description="Environment: development, staging, production")
    debug: bool = Field(default=False, description="Debug mode")

    # Database
    database_url: str = Field(
        default="sqlite+aiosqlite:///./chat.db",
        description="Async database URL (postgresql+asyncpg or sqlite+aiosqlite)"
    )

    # Security
    jwt_secret: str = Field(
        default="dev-only-secret-change-me-0123456789abcdef",
        min_length=32,
        description="JWT secret key (min 32 chars)"
    )
    jwt_algorithm: str = Field(default="HS256", description="JWT algorithm")
    jwt_expiration_hours: int = Field(default=24, description="JWT expiration time in hours")

    # CORS
    allowed_origins: str = Field(
        default="*",
        description="Comma-separated list of allowed CORS origins"
    )

    # WebSocket
    ws_heartbeat_interval: int = Field(default=30, description="WebSocket heartbeat interval in seconds")

    # Messages
    default_page_size: int = Field(default=20, description="Default number of messages per page")
    max_page_size: int = Field(default=100, description="Upper bound for the page size")
    allow_cross_chat_replies: bool = Field(
        default=False,
        description="Allow replying to a message that belongs to another chat"
    )

    # Rate Limiting
    rate_limit_enabled: bool = Field(default=True, description="Enable request rate limiting")
    rate_limit_messages: str = Field(default="30/minute", description="Limit for message creation per client")

    # Logging
    log_level: str = Field(default="INFO", description="Logging level")
    log_format: str = Field(default="text", description="Log format: json or text")

    def get_allowed_origins_list(self) -> List[str] | str:
        """Parse comma-separated CORS origins; a lone '*' stays a wildcard."""
        origins = [origin.strip() for origin in self.allowed_origins.split(",") if origin.strip()]
        if not origins or origins == ["*"]:
            return "*"
        return origins

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.environment.lower() == "development"


# Global settings instance
settings = Settings()
