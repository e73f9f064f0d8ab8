"""Pydantic Settings model for the GitHub Actions environment.

Credentials, DEBUG and GITHUB_OUTPUT are read by the CLI options that use them.
"""

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Environment variable settings for the application."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # GitHub Actions run context
    GITHUB_EVENT_NAME: str | None = None
    GITHUB_EVENT_PATH: Path | None = None
    GITHUB_SHA: str | None = None
    GITHUB_REF_NAME: str | None = None
    GITHUB_HEAD_REF: str | None = None
    GITHUB_REPOSITORY: str | None = None

    # GitHub API settings
    GITHUB_API_URL: str = "https://api.github.com"
    GITHUB_SERVER_URL: str = "https://github.com"


def get_settings() -> Settings:
    """Read the settings from the environment and `.env` at call time."""
    return Settings()
