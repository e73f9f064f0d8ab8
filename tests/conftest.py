"""Fixtures shared by the unit and integration tests."""

import shutil
import subprocess
from pathlib import Path
from typing import Generator

import pytest
import structlog

from solidity_autoformat.git.repository import GitRepository
from solidity_autoformat.github.abc import GitHubClientBase
from solidity_autoformat.tooling.forge import ForgeError
from solidity_autoformat.tooling.prettier import PrettierError

ISOLATED_ENVIRONMENT_VARIABLES = [
    "GITHUB_EVENT_NAME",
    "GITHUB_EVENT_PATH",
    "GITHUB_SHA",
    "GITHUB_REF_NAME",
    "GITHUB_HEAD_REF",
    "GITHUB_REPOSITORY",
    "GITHUB_OUTPUT",
    "GITHUB_API_URL",
    "GITHUB_SERVER_URL",
    "GITHUB_TOKEN",
    "GITHUB_APP_ID",
    "GITHUB_APP_PRIVATE_KEY_PATH",
    "GITHUB_APP_INSTALLATION_ID",
    "CHANGED_FILES",
    "DEBUG",
    "AUTOFORMAT_REPO_PATH",
    "AUTOFORMAT_TIMEOUT",
    "AUTOFORMAT_REMOTE",
    "AUTOFORMAT_COMMENT_MODE",
    "AUTOFORMAT_POLICY",
    "AUTOFORMAT_PRETTIER_CONFIG",
    "AUTOFORMAT_PRETTIER_COMMAND",
    "AUTOFORMAT_FORGE_COMMAND",
    "AUTOFORMAT_SKIP_INSTALL",
]

DEVELOPER_IDENTITY = ["-c", "user.name=Developer", "-c", "user.email=developer@example.com", "-c", "commit.gpgsign=false"]


@pytest.fixture(autouse=True)
def isolate_from_github_actions(monkeypatch: pytest.MonkeyPatch) -> None:
    """Make sure a CI runner's own GitHub Actions context does not leak into tests."""
    for name in ISOLATED_ENVIRONMENT_VARIABLES:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture(autouse=True)
def reset_structlog() -> Generator[None, None, None]:
    """Undo any structlog configuration a test (or the CLI) applied."""
    yield
    structlog.reset_defaults()


def run_git(cwd: Path, *args: str) -> str:
    """Run a git command for test setup and return its stdout."""
    result = subprocess.run(["git", *DEVELOPER_IDENTITY, *args], cwd=cwd, capture_output=True, text=True, check=True)
    return result.stdout.strip()


class GitWorkspace:
    """A working checkout on `main` with a bare `origin` remote, for exercising real git."""

    def __init__(self, root: Path) -> None:
        """Create the bare remote and a checkout with one initial commit pushed."""
        self.root = root
        self.remote_path = root / "remote.git"
        self.path = root / "work"
        self.remote_path.mkdir()
        self.path.mkdir()
        run_git(self.remote_path, "init", "--bare", "--initial-branch=main")
        run_git(self.path, "init", "--initial-branch=main")
        run_git(self.path, "remote", "add", "origin", str(self.remote_path))
        self.write("README.md", "# Contracts\n")
        self.initial_sha = self.commit("Initial commit")
        run_git(self.path, "push", "-u", "origin", "main")
        self.repository = GitRepository(self.path)

    def write(self, relative_path: str, content: str) -> Path:
        """Write a file in the checkout, creating directories as needed."""
        path = self.path / relative_path
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        return path

    def read(self, relative_path: str) -> str:
        """Read a file from the checkout."""
        return (self.path / relative_path).read_text(encoding="utf-8")

    def delete(self, relative_path: str) -> None:
        """Delete a file from the checkout."""
        (self.path / relative_path).unlink()

    def commit(self, message: str) -> str:
        """Commit every change as the developer and return the new SHA."""
        run_git(self.path, "add", "--all")
        run_git(self.path, "commit", "-m", message)
        return run_git(self.path, "rev-parse", "HEAD")

    def push(self) -> None:
        """Push `main` to the bare remote."""
        run_git(self.path, "push", "origin", "main")

    def git(self, *args: str) -> str:
        """Run an arbitrary git command in the checkout."""
        return run_git(self.path, *args)

    def remote_sha(self, branch: str = "main") -> str:
        """SHA of `branch` on the bare remote."""
        return run_git(self.remote_path, "rev-parse", branch)

    def commit_count(self) -> int:
        """Number of commits reachable from HEAD in the checkout."""
        return int(run_git(self.path, "rev-list", "--count", "HEAD"))

    def push_conflicting_commit(self) -> str:
        """Advance the remote's `main` from a second clone, as a concurrent push would."""
        other = self.root / "other"
        run_git(self.root, "clone", str(self.remote_path), str(other))
        (other / "CONCURRENT.md").write_text("pushed by someone else\n", encoding="utf-8")
        run_git(other, "add", "--all")
        run_git(other, "commit", "-m", "Concurrent change")
        run_git(other, "push", "origin", "main")
        return run_git(other, "rev-parse", "HEAD")


@pytest.fixture
def git_workspace(tmp_path: Path) -> GitWorkspace:
    """A throwaway git checkout with a bare remote."""
    if shutil.which("git") is None:
        pytest.skip("git is not installed")
    return GitWorkspace(tmp_path)


class FakeFormatter:
    """Stands in for Prettier: tabs and trailing whitespace are non-compliant.

    A file containing `SYNTAX ERROR` cannot be rewritten, and a file containing
    `@introduce-bug` is rewritten into something the fake toolchain rejects.
    """

    def __init__(self, root: Path) -> None:
        """Initialize the fake for the checkout at `root`."""
        self.root = root
        self.checked: list[str] = []
        self.written: list[str] = []

    def _normalize(self, content: str) -> str:
        lines = [line.replace("\t", "    ").rstrip() for line in content.splitlines()]
        normalized = "\n".join(lines) + "\n"
        return normalized.replace("@introduce-bug", "BROKEN")

    def check(self, path: str) -> bool:
        """Return True when the file is already normalized."""
        self.checked.append(path)
        content = (self.root / path).read_text(encoding="utf-8")
        return content == self._normalize(content)

    def write(self, path: str) -> None:
        """Normalize the file in place."""
        content = (self.root / path).read_text(encoding="utf-8")
        if "SYNTAX ERROR" in content:
            raise PrettierError(path, "SyntaxError: Unexpected token")
        self.written.append(path)
        (self.root / path).write_text(self._normalize(content), encoding="utf-8")


class FakeToolchain:
    """Stands in for forge: the build fails if any Solidity file contains `BROKEN`."""

    build_command = "forge build"

    def __init__(self, root: Path, fail_install: bool = False) -> None:
        """Initialize the fake for the checkout at `root`."""
        self.root = root
        self.fail_install = fail_install
        self.calls: list[str] = []

    def install(self) -> None:
        """Record the install, failing if configured to."""
        self.calls.append("install")
        if self.fail_install:
            raise ForgeError("install", "could not resolve dependencies")

    def clean(self) -> None:
        """Record the clean."""
        self.calls.append("clean")

    def build(self) -> None:
        """Fail if any Solidity source is broken."""
        self.calls.append("build")
        for path in self.root.rglob("*.sol"):
            if "BROKEN" in path.read_text(encoding="utf-8"):
                raise ForgeError("build", f"Error: Compiler error in {path.name}")


class FakeComment:
    """Minimal stand-in for githubkit's IssueComment."""

    def __init__(self, comment_id: int, body: str) -> None:
        """Initialize the comment."""
        self.id = comment_id
        self.body = body


class FakeGitHub(GitHubClientBase):
    """In-memory pull request comments."""

    def __init__(self, fail: bool = False) -> None:
        """Initialize with no comments. With `fail` every write raises."""
        self.fail = fail
        self.comments: dict[int, list[FakeComment]] = {}
        self.created: list[tuple[int, str]] = []
        self.updated: list[tuple[int, str]] = []
        self._next_id = 1

    async def create_issue_comment(self, issue_number: int, body: str) -> FakeComment:
        """Append a comment to the pull request."""
        if self.fail:
            raise RuntimeError("GitHub API unavailable")
        comment = FakeComment(self._next_id, body)
        self._next_id += 1
        self.comments.setdefault(issue_number, []).append(comment)
        self.created.append((issue_number, body))
        return comment

    async def list_issue_comments(self, issue_number: int) -> list[FakeComment]:
        """List the pull request's comments in creation order."""
        return list(self.comments.get(issue_number, []))

    async def update_issue_comment(self, comment_id: int, body: str) -> FakeComment:
        """Replace a comment's body."""
        if self.fail:
            raise RuntimeError("GitHub API unavailable")
        for comments in self.comments.values():
            for comment in comments:
                if comment.id == comment_id:
                    comment.body = body
                    self.updated.append((comment_id, body))
                    return comment
        raise KeyError(comment_id)


@pytest.fixture
def fake_formatter(git_workspace: GitWorkspace) -> FakeFormatter:
    """A formatter bound to the workspace checkout."""
    return FakeFormatter(git_workspace.path)


@pytest.fixture
def fake_toolchain(git_workspace: GitWorkspace) -> FakeToolchain:
    """A build toolchain bound to the workspace checkout."""
    return FakeToolchain(git_workspace.path)


@pytest.fixture
def fake_github() -> FakeGitHub:
    """An in-memory GitHub comment store."""
    return FakeGitHub()
