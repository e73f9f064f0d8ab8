"""GitHub client adapter for the githubkit library."""

from functools import wraps
from pathlib import Path
from typing import Any, Awaitable, Callable, Self, TypeVar

import structlog
from githubkit import Response
from githubkit.exception import RequestFailed
from githubkit.versions.latest.models import IssueComment

from solidity_autoformat.configuration.models import GitHubAuthenticationType
from solidity_autoformat.utils.github import split_repository_in_configuration

from .abc import GitHubClientBase
from .client import GitHubClient, get_github_client

logger = structlog.get_logger(__name__)

F = TypeVar("F", bound=Callable[..., Awaitable[Any]])


def handle_github_422(func: F) -> F:
    """Decorator to handle GitHub 422 Unprocessable Entity errors, logging and raising with details."""

    @wraps(func)
    async def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return await func(*args, **kwargs)
        except RequestFailed as exc:
            if exc.response.status_code == 422:
                try:
                    error_data = exc.response.json()
                except ValueError:
                    error_data = {}
                message = error_data.get("message", "Unprocessable Entity")
                errors = error_data.get("errors", [])
                logger.error(
                    "GitHub 422 Unprocessable Entity",
                    function=func.__name__,
                    message=message,
                    errors=errors,
                    url=getattr(exc.response, "url", None),
                    status_code=422,
                )
                raise ValueError(
                    f"GitHub 422 error in {func.__name__}: {message} | errors: {errors} | url: {getattr(exc.response, 'url', None)}"
                ) from exc
            raise

    return wrapper  # type: ignore


class GitHubKitAdapter(GitHubClientBase):
    """GitHub client adapter for the githubkit library."""

    def __init__(self, client: GitHubClient, owner: str, repo_name: str) -> None:
        """Initialize the GitHub client adapter with an already-initialized client."""
        self.client = client
        self.owner = owner
        self.repo_name = repo_name

    @classmethod
    async def create(
        cls,
        repo: str,
        github_auth_type: GitHubAuthenticationType,
        github_token: str | None = None,
        github_app_id: int | None = None,
        github_app_private_key_path: Path | None = None,
        github_app_installation_id: int | None = None,
        github_api_url: str = "https://api.github.com",
    ) -> Self:
        """Create a new GitHub client adapter.

        Args:
            repo: Repository in 'owner/repo' format
            github_auth_type: Type of authentication (TOKEN or APP)
            github_token: Workflow token or personal access token (required for TOKEN auth)
            github_app_id: GitHub App ID (required for APP auth)
            github_app_private_key_path: Path to private key file (required for APP auth)
            github_app_installation_id: Installation ID (required for APP auth)
            github_api_url: GitHub API URL (defaults to https://api.github.com)

        Returns:
            Configured GitHubKitAdapter instance
        """
        owner, repo_name = await split_repository_in_configuration(repo=repo)
        logger.info(
            "Creating client for GitHub instance and repository",
            github_api_url=github_api_url,
            owner=owner,
            repo_name=repo_name,
        )
        client = await get_github_client(
            github_auth_type=github_auth_type,
            github_token=github_token,
            github_app_id=github_app_id,
            github_app_private_key_path=github_app_private_key_path,
            github_app_installation_id=github_app_installation_id,
            github_api_url=github_api_url,
        )
        return cls(client, owner, repo_name)

    @handle_github_422
    async def create_issue_comment(self, issue_number: int, body: str) -> IssueComment:
        """Create a comment on an issue or pull request."""
        response: Response[IssueComment] = await self.client.rest.issues.async_create_comment(
            owner=self.owner,
            repo=self.repo_name,
            issue_number=issue_number,
            body=body,
        )
        logger.info("Created comment", issue_number=issue_number, comment_id=response.parsed_data.id)
        return response.parsed_data

    async def list_issue_comments(self, issue_number: int, per_page: int = 100) -> list[IssueComment]:
        """List all comments on an issue or pull request, handling pagination."""
        all_comments: list[IssueComment] = []
        page: int = 1
        while True:
            response: Response[list[IssueComment]] = await self.client.rest.issues.async_list_comments(
                owner=self.owner,
                repo=self.repo_name,
                issue_number=issue_number,
                per_page=per_page,
                page=page,
            )
            comments = response.parsed_data
            all_comments.extend(comments)
            if len(comments) < per_page:
                break
            page += 1
        logger.debug("Listed comments", issue_number=issue_number, count=len(all_comments))
        return all_comments

    @handle_github_422
    async def update_issue_comment(self, comment_id: int, body: str) -> IssueComment:
        """Replace the body of an existing comment."""
        response: Response[IssueComment] = await self.client.rest.issues.async_update_comment(
            owner=self.owner,
            repo=self.repo_name,
            comment_id=comment_id,
            body=body,
        )
        logger.info("Updated comment", comment_id=comment_id)
        return response.parsed_data
