"""
Application settings with environment variable support.

Uses Pydantic Settings for type-safe configuration with automatic
environment variable loading and validation.
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from dexarb.config.constants import (
    DEFAULT_LOG_DIR,
    DEFAULT_NODE_NAME,
    DEFAULT_REPORT_INTERVAL,
    DEFAULT_REQUEST_TIMEOUT,
    DEFAULT_SUBSCRIBE_INTERVAL,
)


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings can be overridden via environment variables.
    Later env files take priority over earlier ones.
    """

    model_config = SettingsConfigDict(
        env_file=(".env", ".env.polygon"),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # =========================================================================
    # Node Connection
    # =========================================================================

    node_url: str = Field(
        ...,
        description="WebSocket JSON-RPC endpoint of the blockchain node",
    )

    node_name: str = Field(
        default=DEFAULT_NODE_NAME,
        description="Human readable node label used in logs",
    )

    request_timeout: float = Field(
        default=DEFAULT_REQUEST_TIMEOUT,
        gt=0.0,
        le=120.0,
        description="Timeout for a single JSON-RPC request in seconds",
    )

    # =========================================================================
    # Markets
    # =========================================================================

    markets_file: Path | None = Field(
        default=None,
        description="JSON file with tokens and pools (built-in list if unset)",
    )

    subscribe_interval: float = Field(
        default=DEFAULT_SUBSCRIBE_INTERVAL,
        ge=0.0,
        le=10.0,
        description="Pause between pool subscriptions at startup in seconds",
    )

    # =========================================================================
    # Logging & Telemetry
    # =========================================================================

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Logging verbosity level",
    )

    log_dir: Path | None = Field(
        default=Path(DEFAULT_LOG_DIR),
        description="Directory for timestamped log files (None disables file logging)",
    )

    log_format: Literal["text", "json"] = Field(
        default="text",
        description="Plain text or one JSON object per log line",
    )

    report_interval: float = Field(
        default=DEFAULT_REPORT_INTERVAL,
        ge=1.0,
        description="Seconds between status summaries",
    )

    # =========================================================================
    # Performance Tuning
    # =========================================================================

    use_uvloop: bool = Field(
        default=True,
        description="Use uvloop for improved async performance",
    )

    # =========================================================================
    # Validators
    # =========================================================================

    @field_validator("node_url", mode="after")
    @classmethod
    def validate_node_url(cls, v: str) -> str:
        """Subscriptions need a WebSocket transport."""
        if not v.startswith(("ws://", "wss://")):
            raise ValueError("node_url must be a ws:// or wss:// endpoint")
        return v


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses LRU cache to ensure settings are loaded only once.
    Clear cache with `get_settings.cache_clear()` if needed.
    """
    return Settings()  # type: ignore[call-arg, unused-ignore]
