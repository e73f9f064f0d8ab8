"""Build verification stage: clean rebuild of the (possibly reformatted) branch tip."""

import structlog

from solidity_autoformat.git.repository import GitCommandError, GitRepository
from solidity_autoformat.github.abc import GitHubClientBase
from solidity_autoformat.pipeline.exceptions import BuildError
from solidity_autoformat.pipeline.models import BuildToolchain, CommentMode
from solidity_autoformat.pipeline.notifier import publish_comment, render_build_failed_comment
from solidity_autoformat.tooling.forge import ForgeError
from solidity_autoformat.tooling.process import CommandInvocationError
from solidity_autoformat.utils.constants import BUILD_FAILED_COMMENT_MARKER, DEFAULT_REMOTE

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)


async def refresh_branch_tip(repository: GitRepository, branch: str, remote: str = DEFAULT_REMOTE, display_remote: str | None = None) -> str:
    """Fetch the branch from the remote and check out its current tip."""
    try:
        repository.fetch(remote, branch, display_remote=display_remote)
        sha = repository.checkout_fetched(branch)
    except (GitCommandError, CommandInvocationError) as exc:
        raise BuildError(f"Failed to check out the tip of {branch}: {exc}") from exc
    logger.info("Checked out branch tip", branch=branch, sha=sha)
    return sha


async def build_from_clean(toolchain: BuildToolchain, install: bool = True) -> None:
    """Install dependencies, wipe previous artifacts, and compile."""
    try:
        if install:
            toolchain.install()
        toolchain.clean()
        toolchain.build()
    except ForgeError as exc:
        raise BuildError(f"Build failed after formatting: {exc}") from exc


async def post_build_failure_comment(
    github: GitHubClientBase | None,
    pull_request_number: int,
    build_command: str,
    comment_mode: CommentMode = CommentMode.APPEND,
) -> bool:
    """Post the advisory build-failure comment. Returns False if it could not be posted.

    The comment is best effort: a failure to post it is logged and does not
    replace the build failure as the stage's error.
    """
    if github is None:
        logger.warning("Cannot post build failure comment without GitHub credentials", pull_request_number=pull_request_number)
        return False
    body = render_build_failed_comment(build_command)
    try:
        await publish_comment(github, pull_request_number, body, BUILD_FAILED_COMMENT_MARKER, comment_mode)
    except Exception as exc:
        logger.error("Failed to post build failure comment", pull_request_number=pull_request_number, error=str(exc))
        return False
    return True


async def run_verify_stage(
    repository: GitRepository,
    toolchain: BuildToolchain,
    branch: str | None = None,
    remote: str = DEFAULT_REMOTE,
    display_remote: str | None = None,
    install: bool = True,
    pull_request_number: int | None = None,
    github: GitHubClientBase | None = None,
    comment_mode: CommentMode = CommentMode.APPEND,
) -> None:
    """Verify that the branch still compiles.

    When `branch` is given its remote tip is fetched and checked out first so
    that a formatting commit pushed earlier in the run is what gets built. On
    failure of any step a pull request receives one advisory comment and
    BuildError is raised. Nothing is rolled back.
    """
    try:
        if branch:
            await refresh_branch_tip(repository, branch, remote=remote, display_remote=display_remote)
        else:
            logger.info("No branch given, verifying the current checkout")
        await build_from_clean(toolchain, install=install)
    except BuildError as exc:
        logger.error("Build verification failed", branch=branch, error=exc.message)
        if pull_request_number is not None:
            await post_build_failure_comment(github, pull_request_number, toolchain.build_command, comment_mode)
        raise
    logger.info("Contracts still compile", branch=branch)
