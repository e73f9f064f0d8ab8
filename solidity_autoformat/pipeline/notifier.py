"""Posts the pipeline's pull request comments."""

import structlog
from pydantic import BaseModel

from solidity_autoformat.github.abc import GitHubClientBase
from solidity_autoformat.pipeline.models import CommentMode
from solidity_autoformat.tooling.prettier import StyleProfile
from solidity_autoformat.utils.constants import BUILD_FAILED_COMMENT_MARKER, FORMATTED_COMMENT_MARKER
from solidity_autoformat.utils.templates import render_packaged_template

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)


class FormattedCommentContext(BaseModel):
    """Values rendered into the formatting summary comment."""

    marker: str = FORMATTED_COMMENT_MARKER
    files: list[str]
    tab_width: int
    print_width: int
    use_tabs: bool = False
    commit_sha: str | None = None


class BuildFailedCommentContext(BaseModel):
    """Values rendered into the build failure advisory comment."""

    marker: str = BUILD_FAILED_COMMENT_MARKER
    build_command: str


async def publish_comment(
    github: GitHubClientBase,
    pull_request_number: int,
    body: str,
    marker: str,
    mode: CommentMode = CommentMode.APPEND,
) -> None:
    """Post `body` on the pull request.

    In UPDATE mode the most recent comment containing `marker` is edited in
    place; a new comment is only created when none exists yet.
    """
    if mode == CommentMode.UPDATE:
        comments = await github.list_issue_comments(pull_request_number)
        existing = [comment for comment in comments if marker in (getattr(comment, "body", None) or "")]
        if existing:
            comment_id = existing[-1].id
            logger.info("Updating existing comment", pull_request_number=pull_request_number, comment_id=comment_id)
            await github.update_issue_comment(comment_id, body)
            return
    logger.info("Creating comment", pull_request_number=pull_request_number, mode=mode.value)
    await github.create_issue_comment(pull_request_number, body)


def render_formatted_comment(files: list[str], profile: StyleProfile, commit_sha: str | None = None) -> str:
    """Render the summary comment listing the formatted files."""
    context = FormattedCommentContext(
        files=files,
        tab_width=profile.tab_width,
        print_width=profile.print_width,
        use_tabs=profile.use_tabs,
        commit_sha=commit_sha,
    )
    return render_packaged_template("formatted_comment.j2", context)


def render_build_failed_comment(build_command: str) -> str:
    """Render the advisory comment posted when the build breaks after formatting."""
    return render_packaged_template("build_failed_comment.j2", BuildFailedCommentContext(build_command=build_command))
