"""
Core Configuration Module
Uses pydantic-settings for environment variable management.
Every variable is read with the SOLARSIM_ prefix (or from .env).
"""
from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="SOLARSIM_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    project_name: str = "Solar Simulator"
    environment: str = Field(default="development", description="development | staging | production")
    debug: bool = Field(default=False)
    app_version: str = Field(default="1.0.0", description="Application version")

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(default="INFO", description="Root log level")
    log_json: bool | None = Field(default=None, description="JSON log lines; defaults to on outside development")

    # HTTP server
    host: str = Field(default="0.0.0.0", description="Bind address")
    port: int = Field(default=3000, description="HTTP port")

    # Datasets
    data_dir: Path = Field(default=Path("data"), description="Directory holding the per-farm CSV files")
    installations_file: Path | None = Field(
        default=None,
        description="Optional JSON file replacing the built-in installation catalog",
    )

    # Replay
    update_interval_ms: int = Field(default=30_000, gt=0, description="Tick interval in milliseconds")
    metrics_refresh_interval_ms: int | None = Field(
        default=None,
        gt=0,
        description="Metrics recompute cadence, defaults to update_interval_ms",
    )
    speed_factor: float = Field(default=120.0, gt=0, description="Reserved, not applied to advancement")
    replay_mode: Literal["sequential", "time-based"] = Field(
        default="sequential",
        description="Reserved, only sequential replay is implemented",
    )
    autostart: bool = Field(default=True, description="Start the replay when the service boots")

    # Prometheus
    prometheus_enabled: bool = Field(default=True, description="Enable HTTP request metrics middleware")

    # CORS
    cors_origins: str = Field(default="", description="Allowed CORS origins as comma-separated string")

    @field_validator("environment")
    @classmethod
    def _normalize_environment(cls, value: str) -> str:
        return value.strip().lower()

    @field_validator("log_level", mode="before")
    @classmethod
    def _normalize_log_level(cls, value: str) -> str:
        return value.strip().upper() if isinstance(value, str) else value

    @model_validator(mode="after")
    def _default_refresh_interval(self) -> "Settings":
        if self.metrics_refresh_interval_ms is None:
            self.metrics_refresh_interval_ms = self.update_interval_ms
        return self

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse CORS origins from the comma-separated setting."""
        if self.cors_origins:
            return [o.strip() for o in self.cors_origins.split(",") if o.strip()]
        return []

    @property
    def json_logs(self) -> bool:
        if self.log_json is not None:
            return self.log_json
        return self.environment != "development"

    @property
    def update_interval(self) -> float:
        """Tick interval in seconds."""
        return self.update_interval_ms / 1000

    @property
    def metrics_refresh_interval(self) -> float:
        """Metrics refresh cadence in seconds."""
        return (self.metrics_refresh_interval_ms or self.update_interval_ms) / 1000


@lru_cache
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
