"""Configuration management for hub-updater.

``Settings`` holds the tunables read from the environment (prefix
``HUB_UPDATER_``). ``DeployConfig`` holds what the operator asked for on the
command line for a single run and is passed explicitly to every step.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="HUB_UPDATER_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Logging
    log_level: str = Field(default="INFO", description="Logging level")
    log_format: Literal["console", "json"] = Field(
        default="console", description="Render logs for a terminal or as JSON lines"
    )

    # Image
    image_tag: str = Field(default="claude-code-hub:local", description="Tag for the local build")
    registry_image: str = Field(
        default="ghcr.io/ding113/claude-code-hub",
        description="Registry image whose references are replaced by the local tag",
    )
    dockerfile: str = Field(
        default="deploy/Dockerfile", description="Dockerfile path relative to the source checkout"
    )
    version_file: str = Field(
        default="VERSION", description="Version marker in the source checkout"
    )
    default_version: str = Field(default="dev", description="Version used when no marker exists")

    # Deployment
    compose_filename: str = Field(
        default="docker-compose.yaml", description="Compose descriptor inside the deploy dir"
    )
    app_service: str = Field(default="app", description="Compose service to health-check")

    # Health check
    health_max_attempts: int = Field(default=12, ge=1, description="Health poll attempts")
    health_interval_seconds: float = Field(
        default=5.0, ge=0, description="Delay between health poll attempts"
    )

    # Subprocess timeouts
    command_timeout_seconds: float = Field(default=300, gt=0)
    build_timeout_seconds: float = Field(default=1800, gt=0)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


@dataclass(frozen=True)
class DeployConfig:
    """What to deploy, where, and how to build it."""

    deploy_dir: Path
    source_dir: Path
    platform: str | None = None
    no_cache: bool = False
    skip_pull: bool = False

    def compose_file(self, settings: Settings) -> Path:
        return self.deploy_dir / settings.compose_filename
