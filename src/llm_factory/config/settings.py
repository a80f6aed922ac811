"""Settings configuration"""
from functools import lru_cache
from typing import Optional

from pydantic import AliasChoices, Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Factory settings loaded from the environment and an optional .env file"""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore", case_sensitive=False,
        validate_assignment=True, populate_by_name=True
    )

    # Application
    app_name: str = Field(default="LLM Factory", validation_alias="APP_NAME")
    environment: str = Field(default="development", validation_alias="ENVIRONMENT")

    # API Keys
    openai_api_key: Optional[SecretStr] = Field(default=None, validation_alias="OPENAI_API_KEY")
    gemini_api_key: Optional[SecretStr] = Field(
        default=None, validation_alias=AliasChoices("GEMINI_API_KEY", "GOOGLE_API_KEY")
    )
    anthropic_api_key: Optional[SecretStr] = Field(default=None, validation_alias="ANTHROPIC_API_KEY")

    # Retry / fallback
    default_retries: int = Field(default=3, validation_alias="DEFAULT_RETRIES", ge=1)
    retry_backoff_seconds: float = Field(default=0.0, validation_alias="RETRY_BACKOFF_SECONDS", ge=0)
    retry_backoff_max_seconds: float = Field(
        default=10.0, validation_alias="RETRY_BACKOFF_MAX_SECONDS", ge=0
    )

    # Providers
    request_timeout: float = Field(default=60.0, validation_alias="REQUEST_TIMEOUT", gt=0)
    anthropic_default_max_tokens: int = Field(
        default=8192, validation_alias="ANTHROPIC_DEFAULT_MAX_TOKENS", ge=1
    )

    # Streaming
    stream_buffer_size: int = Field(default=0, validation_alias="STREAM_BUFFER_SIZE", ge=0)

    # Logging / metrics
    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")
    log_format: str = Field(default="console", validation_alias="LOG_FORMAT")
    metrics_enabled: bool = Field(default=True, validation_alias="METRICS_ENABLED")

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, v):
        if isinstance(v, str):
            return v.upper()
        return v

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v):
        if v not in ("json", "console"):
            raise ValueError("log_format must be 'json' or 'console'")
        return v

    # Properties
    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def has_openai_key(self) -> bool:
        return bool(self.openai_api_key)

    @property
    def has_gemini_key(self) -> bool:
        return bool(self.gemini_api_key)

    @property
    def has_anthropic_key(self) -> bool:
        return bool(self.anthropic_api_key)


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()
