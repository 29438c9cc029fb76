"""
Configuration management.

Settings are read from environment variables on every call to
``get_settings()`` so that values changed mid-session apply immediately:

- ``LOG_*``: logging level and renderer
- ``LOGTRACE_*``: pipeline defaults (time zone, log format, trace policy)
"""

from __future__ import annotations

from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

LOG_FORMATS = ["auto", "json", "xml", "text"]


class LoggingConfig(BaseSettings):
    """Logging configuration."""

    level: str = Field(default="INFO")
    format: str = Field(default="console", description="json or console")

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v = v.upper()
        if v not in valid_levels:
            raise ValueError(f"Invalid log level. Must be one of {valid_levels}")
        return v

    @field_validator("format")
    @classmethod
    def validate_format(cls, v: str) -> str:
        v = v.lower()
        if v not in ("json", "console"):
            raise ValueError("Invalid log format. Must be 'json' or 'console'")
        return v

    model_config = SettingsConfigDict(env_prefix="LOG_")


class PipelineConfig(BaseSettings):
    """Defaults for log ingestion and trace aggregation."""

    default_time_zone: str = Field(
        default="UTC", description="Zone timestamps are normalized to"
    )
    default_log_format: str = Field(default="auto")
    extract_tracing: bool = Field(default=True)
    # Traces with fewer records are dropped from analysis
    min_trace_records: int = Field(default=2, ge=1)
    max_traces: int = Field(default=10, gt=0)
    sample_logs_per_span: int = Field(default=3, ge=0)
    message_preview_chars: int = Field(default=200, gt=0)

    @field_validator("default_time_zone")
    @classmethod
    def validate_time_zone(cls, v: str) -> str:
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"Unknown time zone: {v}") from e
        return v

    @field_validator("default_log_format")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        v = v.lower()
        if v not in LOG_FORMATS:
            raise ValueError(f"Invalid log format. Must be one of {LOG_FORMATS}")
        return v

    model_config = SettingsConfigDict(env_prefix="LOGTRACE_")


class Settings(BaseSettings):
    """Main application configuration."""

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    pipeline: PipelineConfig = Field(default_factory=PipelineConfig)

    model_config = SettingsConfigDict(env_prefix="LOGTRACE_")


def get_settings() -> Settings:
    """Build settings from the current environment.

    No caching - always reads fresh values.
    """
    return Settings()
