"""
Configuration management for the Repository Manager.
"""

from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings."""

    # Application
    app_name: str = Field(default="Repository Manager", env="APP_NAME")
    debug: bool = Field(default=False, env="DEBUG")
    environment: str = Field(default="development", env="ENVIRONMENT")

    # API
    api_host: str = Field(default="0.0.0.0", env="API_HOST")
    api_port: int = Field(default=8005, env="API_PORT")
    api_workers: int = Field(default=1, env="API_WORKERS")

    # Database
    database_url: str = Field(
        default="sqlite:///./repository_manager.db", env="DATABASE_URL"
    )

    # Content store
    base_path: str = Field(default="./data/projects", env="BASE_PATH")
    max_archive_bytes: int = Field(default=5 * 1000 * 1000 * 1000, env="MAX_ARCHIVE_BYTES")
    keep_archives: bool = Field(default=True, env="KEEP_ARCHIVES")

    # External tools
    archiver: str = Field(
        default="unzip",
        env="ARCHIVER",
        description="Archive extraction backend: 'unzip' (command line tool) or 'zipfile' (in-process).",
    )
    vcs: str = Field(default="git", env="VCS")
    git_binary: str = Field(default="git", env="GIT_BINARY")
    unzip_binary: str = Field(default="unzip", env="UNZIP_BINARY")
    tool_timeout_seconds: Optional[int] = Field(default=600, env="TOOL_TIMEOUT_SECONDS")

    # Upstream project source
    project_source_url: str = Field(
        default="http://localhost:8004", env="PROJECT_SOURCE_URL"
    )
    project_source_timeout_seconds: float = Field(
        default=30.0, env="PROJECT_SOURCE_TIMEOUT_SECONDS"
    )
    project_source_retries: int = Field(
        default=2,
        env="PROJECT_SOURCE_RETRIES",
        description="Connection-level retries for upstream calls. Checkout is never retried.",
    )

    # Logging
    log_level: str = Field(default="INFO", env="LOG_LEVEL")
    log_format: str = Field(default="json", env="LOG_FORMAT")

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


# Global settings instance
settings = Settings()


def get_settings() -> Settings:
    """Get application settings."""
    return settings
