"""Models for the GitHub credentials gathered from CLI options and environment variables."""

from enum import Enum
from pathlib import Path

from pydantic import BaseModel


class GitHubAuthenticationType(str, Enum):
    """How the pipeline authenticates to the GitHub API."""

    TOKEN = "token"
    APP = "app"


class GitHubCredentials(BaseModel):
    """Either a workflow token or a GitHub App installation. Nothing is validated until a comment must be posted."""

    token: str | None = None
    app_id: int | None = None
    app_private_key_path: Path | None = None
    app_installation_id: int | None = None
