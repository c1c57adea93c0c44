"""Application configuration using pydantic-settings."""

from functools import lru_cache

from pydantic import SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Application
    app_name: str = "TimeBack AI"
    app_version: str = "0.1.0"
    debug: bool = False

    # Server
    host: str = "0.0.0.0"
    port: int = 8000

    # Provider A (Cerebras)
    cerebras_api_key: SecretStr | None = None
    cerebras_model: str = "llama-4-scout-17b-16e-instruct"
    cerebras_base_url: str = "https://api.cerebras.ai/v1"

    # Provider B (Claude on AWS Bedrock)
    aws_region: str | None = None
    aws_access_key_id: SecretStr | None = None
    aws_secret_access_key: SecretStr | None = None
    bedrock_model: str = "us.anthropic.claude-3-7-sonnet-20250219-v1:0"

    # Provider C (Groq)
    groq_api_key: SecretStr | None = None
    groq_model: str = "openai/gpt-oss-120b"
    groq_base_url: str = "https://api.groq.com/openai/v1"

    # Fallback chain
    provider_order: list[str] = ["cerebras", "bedrock", "groq"]
    provider_timeout_seconds: float = 30.0  # Per attempt
    provider_retry_delay_ms: int = 1000  # Fixed delay between providers

    # Circuit breaker
    circuit_breaker_fail_max: int = 3
    circuit_breaker_reset_minutes: float = 5.0

    # Response cache
    cache_enabled: bool = True
    cache_max_entries: int = 100
    cache_ttl_minutes: int = 120  # Validated schema responses

    # Rate limiting
    rate_limit_requests: int = 10
    rate_limit_window: str = "minute"

    # Observability
    otel_enabled: bool = False
    otel_endpoint: str | None = None  # e.g. http://localhost:4318
    otel_console_export: bool = False
    otel_sample_rate: float = 1.0
    log_level: str = "INFO"
    log_json: bool = False


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
