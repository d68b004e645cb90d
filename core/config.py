"""
Configuration settings for the workflow builder generation service.
"""
from typing import Optional
from pydantic_settings import BaseSettings
from pydantic import Field


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    # Shared state store settings
    redis_url: str = Field(
        default="redis://localhost:6379",
        description="Redis connection URL for the shared generation state"
    )
    state_backend: str = Field(
        default="redis",
        description="State store backend: redis or memory"
    )
    state_key_prefix: str = Field(
        default="workflow_builder",
        description="Prefix for the Redis state hash and change channel"
    )

    # Generation timing
    per_attempt_timeout_seconds: float = Field(
        default=120.0,
        description="Hard timeout for a single provider request"
    )
    extended_attempt_timeout_seconds: float = Field(
        default=300.0,
        description="Per-attempt timeout for providers with known higher latency"
    )
    max_generation_seconds: float = Field(
        default=180.0,
        description="Overall deadline for one generation across all attempts"
    )
    status_interval_seconds: float = Field(
        default=10.0,
        description="Interval between progress status updates while waiting"
    )

    # Retry behaviour for overloaded providers
    max_retries: int = Field(
        default=3,
        description="Maximum number of retries after the first attempt"
    )
    retry_base_delay: float = Field(
        default=2.0,
        description="Delay in seconds before the first retry"
    )
    retry_max_delay: float = Field(
        default=10.0,
        description="Maximum delay in seconds between retries"
    )

    # History and notifications
    history_limit: int = Field(
        default=20,
        description="Number of past generations kept in history"
    )
    success_notification_seconds: float = Field(
        default=3.0,
        description="Auto-dismiss delay for success notifications"
    )
    error_notification_seconds: float = Field(
        default=5.0,
        description="Auto-dismiss delay for error notifications"
    )

    # Application settings
    debug: bool = Field(
        default=False,
        description="Enable debug mode"
    )
    log_level: str = Field(
        default="INFO",
        description="Logging level"
    )
    log_file: Optional[str] = Field(
        default=None,
        description="Optional log file path"
    )

    # API settings
    api_host: str = Field(
        default="0.0.0.0",
        description="API server host"
    )
    api_port: int = Field(
        default=8000,
        description="API server port"
    )

    class Config:
        env_file = ".env"
        case_sensitive = False


# Create global settings instance
settings = Settings()
