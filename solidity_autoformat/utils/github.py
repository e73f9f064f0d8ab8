"""Contains utility functions for GitHub interactions."""

from urllib.parse import urlsplit, urlunsplit


async def split_repository_in_configuration(repo: str | None) -> tuple[str, str]:
    """Splits the repository in the configuration into owner and repository."""
    if repo is None:
        raise ValueError("Commenting on pull requests requires a repository (GITHUB_REPOSITORY).")
    repo = repo.strip("/")
    parts = repo.split("/")
    if len(parts) != 2 or not all(parts):
        raise ValueError("Repository must be in the format 'owner/repo' with no leading/trailing slashes or extra parts.")
    owner, repository = parts
    return owner, repository


def build_authenticated_remote_url(server_url: str, repo: str, token: str) -> str:
    """Build an HTTPS remote URL that authenticates pushes with an access token.

    The token is embedded as the password of the `x-access-token` user, which is
    how both workflow tokens and installation tokens authenticate git over HTTPS.
    """
    parts = urlsplit(server_url.rstrip("/"))
    if not parts.scheme or not parts.netloc:
        raise ValueError(f"Invalid GitHub server URL: {server_url!r}")
    netloc = f"x-access-token:{token}@{parts.netloc}"
    path = f"{parts.path}/{repo.strip('/')}.git"
    return urlunsplit((parts.scheme, netloc, path, "", ""))


def redact_remote_url(remote: str) -> str:
    """Strip credentials from a remote URL so it can be logged."""
    parts = urlsplit(remote)
    if not parts.scheme or "@" not in parts.netloc:
        return remote
    host = parts.netloc.rsplit("@", 1)[1]
    return urlunsplit((parts.scheme, f"***@{host}", parts.path, parts.query, parts.fragment))
