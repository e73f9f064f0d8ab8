"""Thin wrapper around the git command line for the working-tree checkout."""

import subprocess
from pathlib import Path

import structlog

from solidity_autoformat.tooling.process import run_command

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)


class GitCommandError(Exception):
    """Raised when a git command exits with a non-zero status."""

    def __init__(self, args: list[str], returncode: int, stderr: str) -> None:
        """Initialize the exception with the failed git arguments and their error output."""
        super().__init__(f"git {' '.join(args)} failed with exit code {returncode}: {stderr.strip()}")
        self.args_list = args
        self.returncode = returncode
        self.stderr = stderr


class GitRepository:
    """Read and write operations against a local git checkout."""

    def __init__(self, path: Path, timeout: float | None = None) -> None:
        """Initialize the repository wrapper for the checkout at `path`."""
        self.path = path
        self.timeout = timeout

    def _git(
        self, *args: str, env: dict[str, str] | None = None, display_args: list[str] | None = None
    ) -> subprocess.CompletedProcess[str]:
        display = ["git", *(display_args if display_args is not None else args)]
        return run_command(["git", *args], cwd=self.path, timeout=self.timeout, env=env, display_command=display)

    def _check(self, *args: str, env: dict[str, str] | None = None, display_args: list[str] | None = None) -> str:
        result = self._git(*args, env=env, display_args=display_args)
        if result.returncode != 0:
            shown = display_args if display_args is not None else list(args)
            logger.error("git command failed", command=" ".join(shown), returncode=result.returncode, stderr=result.stderr.strip())
            raise GitCommandError(shown, result.returncode, result.stderr)
        return result.stdout

    def resolve_commit(self, revision: str) -> str | None:
        """Return the full SHA `revision` points at, or None when it is not a commit."""
        result = self._git("rev-parse", "--verify", "--quiet", f"{revision}^{{commit}}")
        if result.returncode != 0:
            return None
        return result.stdout.strip()

    def head_sha(self) -> str:
        """Return the SHA of the checked out commit."""
        return self._check("rev-parse", "HEAD").strip()

    def diff_names(self, base: str, head: str) -> list[str]:
        """List the paths that differ between two revisions, in git's order."""
        output = self._check("diff", "--name-only", "-z", base, head)
        return [name for name in output.split("\0") if name]

    def status_porcelain(self) -> list[str]:
        """Return the working-tree status, one porcelain line per entry."""
        output = self._check("status", "--porcelain")
        return [line for line in output.splitlines() if line.strip()]

    def add_all(self) -> None:
        """Stage every working-tree change."""
        self._check("add", "--all")

    def commit(self, message: str, author_name: str, author_email: str) -> str:
        """Commit the staged changes as the given identity and return the new SHA."""
        identity = {
            "GIT_AUTHOR_NAME": author_name,
            "GIT_AUTHOR_EMAIL": author_email,
            "GIT_COMMITTER_NAME": author_name,
            "GIT_COMMITTER_EMAIL": author_email,
        }
        self._check("-c", f"user.name={author_name}", "-c", f"user.email={author_email}", "commit", "-m", message, env=identity)
        sha = self.head_sha()
        logger.info("Created commit", sha=sha, author=f"{author_name} <{author_email}>")
        return sha

    def push(self, remote: str, branch: str, display_remote: str | None = None) -> None:
        """Push the checked out commit to `branch` on `remote`."""
        refspec = f"HEAD:refs/heads/{branch}"
        shown_remote = display_remote if display_remote is not None else remote
        self._check("push", remote, refspec, display_args=["push", shown_remote, refspec])
        logger.info("Pushed commit", remote=shown_remote, branch=branch)

    def fetch(self, remote: str, branch: str, display_remote: str | None = None) -> None:
        """Fetch the tip of `branch` from `remote` into FETCH_HEAD."""
        shown_remote = display_remote if display_remote is not None else remote
        self._check("fetch", remote, branch, display_args=["fetch", shown_remote, branch])

    def checkout_fetched(self, branch: str) -> str:
        """Point `branch` at FETCH_HEAD, check it out, and return its SHA."""
        self._check("checkout", "-B", branch, "FETCH_HEAD")
        return self.head_sha()
