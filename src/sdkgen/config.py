"""Configuration settings for sdkgen.

Layout of the source root:
- Artifacts/: downloaded archives plus the durable query cache
- Bundles/: generated .artifactbundle directories
- logs/: JSONL run logs
"""

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="SDKGEN_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Working directory for artifacts and bundles (default: .sdkgen in current directory)
    source_root: Path = Field(default=Path(".sdkgen"))

    # Container runtime
    docker_executable: str = "docker"

    # Downloads
    download_timeout: float = 60.0
    download_chunk_size: int = 64 * 1024
    swift_download_base_url: str = "https://download.swift.org"

    # Bundle metadata
    bundle_version: str = "0.0.1"

    # Threads available for blocking filesystem work
    worker_threads: int = 4


_settings: Settings | None = None


def get_settings() -> Settings:
    """Get cached settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Reset settings cache (useful for testing)."""
    global _settings
    _settings = None
