"""Configuration management for the SQLite engine."""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class PoolConfig(BaseModel):
    """Connection pool configuration.

    The engine relies on a single connection to serialize every caller,
    so ``capacity`` is pinned to 1. Connections are always opened in manual
    transaction mode; there is no autocommit setting.
    """

    capacity: Literal[1] = Field(default=1, description="Number of pooled connections")
    connection_timeout_seconds: float = Field(
        default=30.0, gt=0, description="Max wait for a free connection"
    )
    idle_timeout_seconds: float = Field(
        default=600.0, gt=0, description="Idle time after which a connection is recycled"
    )
    max_lifetime_seconds: float = Field(
        default=1800.0, gt=0, description="Age after which a connection is recycled"
    )
    busy_timeout_seconds: float = Field(
        default=5.0, ge=0, description="SQLite busy handler timeout"
    )
    pool_name: str = Field(default="sqlite-pool", description="Pool name used in logs")


class ObservabilityConfig(BaseModel):
    """Observability configuration."""

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO", description="Log level"
    )
    log_format: Literal["json", "console"] = Field(default="json", description="Log format")
    metrics_port: int = Field(default=8001, ge=1, le=65535, description="Prometheus metrics port")
    otel_endpoint: str | None = Field(
        default=None, description="OpenTelemetry collector endpoint"
    )
    otel_service_name: str = Field(default="sqlite_engine", description="Service name for tracing")


class Config(BaseSettings):
    """Main configuration for the SQLite engine."""

    model_config = SettingsConfigDict(
        env_prefix="SQLITE_ENGINE_",
        env_nested_delimiter="__",
        case_sensitive=False,
    )

    pool: PoolConfig = Field(default_factory=PoolConfig)
    observability: ObservabilityConfig = Field(default_factory=ObservabilityConfig)


@lru_cache
def get_config() -> Config:
    """Get the global configuration instance."""
    return Config()
