"""Application configuration loaded from environment variables.

All configuration is via environment variables (or a local .env file).
No hardcoded credentials. Pipeline feature toggles are collected into
WriterPipelineConfig and handed to the pipeline at construction time.
"""

from dataclasses import dataclass
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = Field(default="Copywriter Backend")
    app_version: str = Field(default="1.0.0")
    debug: bool = Field(default=False)
    environment: str = Field(default="development")

    # Server
    port: int = Field(default=8000, description="Port to bind to")
    host: str = Field(default="0.0.0.0", description="Host to bind to")
    frontend_url: str | None = Field(
        default=None, description="Allowed CORS origin for the web front end"
    )

    # Logging
    log_level: str = Field(default="INFO", description="Log level")
    log_format: str = Field(default="json", description="Log format: json or text")

    # OpenAI generation service
    openai_api_key: str | None = Field(
        default=None,
        description="OpenAI API key for the generation service",
    )
    openai_base_url: str = Field(
        default="https://api.openai.com",
        description="Base URL of the chat completions API",
    )
    openai_model: str = Field(
        default="gpt-4o-mini",
        description="Default generation model",
    )
    openai_temperature: float = Field(
        default=0.7, description="Default sampling temperature"
    )
    openai_timeout: float = Field(
        default=60.0, description="Generation request timeout in seconds"
    )

    # Writer pipeline
    writer_candidate_count: int = Field(
        default=3, ge=1, description="Concurrent generation attempts per request"
    )
    writer_rescue_enabled: bool = Field(
        default=True, description="Allow one extra generation attempt"
    )
    writer_rescue_on_all_disqualified: bool = Field(
        default=False,
        description="Also rescue when every candidate is disqualified",
    )
    density_min_consecutive_match: int = Field(
        default=4, ge=1, description="Minimum contiguous match length for densityA"
    )
    density_allowed_char_ratio: float = Field(
        default=0.6, description="Minimum recognised character ratio for input lines"
    )
    density_symbol_ratio: float = Field(
        default=0.55, description="Maximum symbol ratio for input lines"
    )

    # Writer event sink (Better Stack direct ingest)
    writer_log_enabled: bool = Field(default=True)
    writer_log_mode: str = Field(
        default="console", description="Event delivery: console or direct"
    )
    logtail_endpoint: str = Field(default="https://in.logs.betterstack.com")
    logtail_source_token: str | None = Field(default=None)
    logtail_timeout: float = Field(default=5.0)


@dataclass(frozen=True)
class WriterPipelineConfig:
    """Explicit toggles for one writer pipeline instance."""

    candidate_count: int = 3
    rescue_enabled: bool = True
    rescue_on_all_disqualified: bool = False
    min_consecutive_match: int = 4
    allowed_char_ratio: float = 0.6
    symbol_ratio: float = 0.55

    @classmethod
    def from_settings(cls, settings: Settings) -> "WriterPipelineConfig":
        return cls(
            candidate_count=settings.writer_candidate_count,
            rescue_enabled=settings.writer_rescue_enabled,
            rescue_on_all_disqualified=settings.writer_rescue_on_all_disqualified,
            min_consecutive_match=settings.density_min_consecutive_match,
            allowed_char_ratio=settings.density_allowed_char_ratio,
            symbol_ratio=settings.density_symbol_ratio,
        )


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings."""
    return Settings()
