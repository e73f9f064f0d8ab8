"""Base ABC for GitHub clients."""

from abc import ABC, abstractmethod
from typing import Any


class GitHubClientBase(ABC):
    """Base ABC for GitHub clients."""

    # Pull request comments (the issues API serves pull requests too)
    @abstractmethod
    async def create_issue_comment(self, issue_number: int, body: str) -> Any:
        """Create a comment on an issue or pull request."""
        pass

    @abstractmethod
    async def list_issue_comments(self, issue_number: int) -> list[Any]:
        """List all comments on an issue or pull request."""
        pass

    @abstractmethod
    async def update_issue_comment(self, comment_id: int, body: str) -> Any:
        """Replace the body of an existing comment."""
        pass
