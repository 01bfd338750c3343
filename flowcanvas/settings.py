"""Application settings using pydantic-settings.

Loads configuration from environment variables with .env file support.
All variables use the ``FLOWCANVAS_`` prefix.
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="FLOWCANVAS_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Environment
    environment: Literal["development", "staging", "production", "testing"] = "development"
    debug: bool = False
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    # Auto-layout defaults (n8n-style canvas)
    layout_direction: Literal["RIGHT", "LEFT", "DOWN", "UP"] = Field(
        default="RIGHT",
        description="Primary flow direction of the layered layout",
    )
    layout_node_spacing: float = Field(
        default=120,
        ge=0,
        description="Gap between sibling nodes inside one layer",
    )
    layout_layer_spacing: float = Field(
        default=200,
        ge=0,
        description="Gap between consecutive layers",
    )
    layout_grid: float = Field(
        default=20,
        gt=0,
        description="Grid size that positions are snapped to",
    )
    layout_tidy_linear: bool = Field(
        default=True,
        description="Force a single row/column when the graph is a simple chain",
    )
    layout_timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        le=300,
        description="Deadline for one auto-layout computation",
    )

    # Graph persistence collaborator
    store_url: str = Field(
        default="http://localhost:8000",
        description="Base URL of the flows API (the /api/v1 prefix is added)",
    )
    store_timeout_seconds: int = Field(default=30, ge=1, le=300)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    Uses lru_cache to ensure settings are loaded once and reused.
    """
    return Settings()
