"""Conditional formatting stage: check, rewrite, commit, push and notify."""

from dataclasses import dataclass

import structlog
from structlog.contextvars import bound_contextvars

from solidity_autoformat.git.repository import GitCommandError, GitRepository
from solidity_autoformat.github.abc import GitHubClientBase
from solidity_autoformat.pipeline.exceptions import CommitError, FormatError, NotificationError, PipelineError, PushError
from solidity_autoformat.pipeline.models import (
    ChangedFileSet,
    CommentMode,
    FormatDecision,
    FormatPlan,
    FormatPolicy,
    PipelineOutcome,
    PipelineResult,
    PipelineState,
    SourceFormatter,
)
from solidity_autoformat.pipeline.notifier import publish_comment, render_formatted_comment
from solidity_autoformat.pipeline.state import PipelineRun
from solidity_autoformat.tooling.prettier import PrettierError, StyleProfile
from solidity_autoformat.tooling.process import CommandInvocationError
from solidity_autoformat.utils.constants import (
    BOT_AUTHOR_EMAIL,
    BOT_AUTHOR_NAME,
    COMMIT_MESSAGE,
    DEFAULT_REMOTE,
    FORMATTED_COMMENT_MARKER,
)

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)


@dataclass
class PublishTarget:
    """Where the formatting commit is pushed."""

    branch: str | None
    remote: str = DEFAULT_REMOTE
    display_remote: str | None = None


async def plan_formatting(
    repository: GitRepository,
    changed: ChangedFileSet,
    formatter: SourceFormatter,
    policy: FormatPolicy = FormatPolicy.BATCH,
) -> FormatPlan:
    """Check every changed file and pick the files to rewrite.

    Files that no longer exist in the working tree (deleted by the change) are
    skipped. With the batch policy a single non-compliant file selects every
    checked file; with the per-file policy only the non-compliant ones.
    """
    plan = FormatPlan()
    for path in changed:
        if not (repository.path / path).is_file():
            logger.info("Skipping file missing from working tree", file=path)
            continue
        try:
            compliant = formatter.check(path)
        except CommandInvocationError as exc:
            raise FormatError(f"Could not check formatting of {path}: {exc}", path=path) from exc
        plan.decisions.append(FormatDecision(path=path, needs_formatting=not compliant))

    if not plan.needs_format:
        return plan
    if policy == FormatPolicy.BATCH:
        plan.files_to_format = [decision.path for decision in plan.decisions]
    else:
        plan.files_to_format = [decision.path for decision in plan.decisions if decision.needs_formatting]
    logger.info("Files selected for formatting", policy=policy.value, files=plan.files_to_format)
    return plan


async def apply_formatting(files: list[str], formatter: SourceFormatter) -> None:
    """Rewrite every file in place. The first failure aborts the whole batch."""
    for path in files:
        logger.info("Formatting", file=path)
        try:
            formatter.write(path)
        except (PrettierError, CommandInvocationError) as exc:
            logger.error("Error formatting", file=path, error=str(exc))
            raise FormatError(f"Error formatting {path}: {exc}", path=path) from exc


async def working_tree_changed(repository: GitRepository) -> bool:
    """Return True when the working tree has uncommitted changes."""
    try:
        status = repository.status_porcelain()
    except (GitCommandError, CommandInvocationError) as exc:
        raise CommitError(f"Failed to inspect working-tree status: {exc}") from exc
    if status:
        logger.info("Files were formatted", status=status)
    return bool(status)


async def commit_formatting(repository: GitRepository) -> str:
    """Stage all working-tree changes and commit them as the bot identity."""
    try:
        repository.add_all()
        return repository.commit(COMMIT_MESSAGE, BOT_AUTHOR_NAME, BOT_AUTHOR_EMAIL)
    except (GitCommandError, CommandInvocationError) as exc:
        raise CommitError(f"Failed to commit formatting changes: {exc}") from exc


async def push_formatting(repository: GitRepository, target: PublishTarget) -> None:
    """Push the formatting commit back to the originating branch."""
    if not target.branch:
        raise PushError("No target branch to push the formatting commit to")
    try:
        repository.push(target.remote, target.branch, display_remote=target.display_remote)
    except (GitCommandError, CommandInvocationError) as exc:
        raise PushError(f"Failed to push formatting commit to {target.branch}: {exc}") from exc


async def run_format_stage(
    repository: GitRepository,
    changed: ChangedFileSet,
    formatter: SourceFormatter,
    profile: StyleProfile,
    target: PublishTarget,
    pull_request_number: int | None = None,
    github: GitHubClientBase | None = None,
    policy: FormatPolicy = FormatPolicy.BATCH,
    comment_mode: CommentMode = CommentMode.APPEND,
    run: PipelineRun | None = None,
) -> PipelineResult:
    """Run the formatting stage on a set of changed files.

    Raises a PipelineError subclass (after moving `run` to FAILED) when any
    step fails. Nothing is retried.
    """
    run = run or PipelineRun()
    changed_files = list(changed)
    with bound_contextvars(branch=target.branch, pull_request_number=pull_request_number):
        if not changed:
            run.transition(PipelineState.NO_OP)
            logger.info("No changed files to format")
            return PipelineResult(outcome=PipelineOutcome.NO_CHANGES, states=list(run.history))

        try:
            run.transition(PipelineState.CHECKING_FORMAT)
            plan = await plan_formatting(repository, changed, formatter, policy)
            if not plan.needs_format:
                run.transition(PipelineState.ALREADY_FORMATTED)
                logger.info("All changed files are already formatted", files=changed_files)
                return PipelineResult(outcome=PipelineOutcome.ALREADY_FORMATTED, changed_files=changed_files, states=list(run.history))

            run.transition(PipelineState.FORMATTING)
            await apply_formatting(plan.files_to_format, formatter)

            if not await working_tree_changed(repository):
                run.transition(PipelineState.ALREADY_FORMATTED)
                logger.info("Formatter made no changes to the working tree")
                return PipelineResult(outcome=PipelineOutcome.ALREADY_FORMATTED, changed_files=changed_files, states=list(run.history))

            run.transition(PipelineState.COMMITTING)
            commit_sha = await commit_formatting(repository)

            run.transition(PipelineState.PUSHING)
            await push_formatting(repository, target)

            comment_posted = False
            if pull_request_number is not None:
                run.transition(PipelineState.NOTIFYING)
                if github is None:
                    raise NotificationError("Cannot comment on the pull request without GitHub credentials")
                body = render_formatted_comment(plan.files_to_format, profile, commit_sha)
                try:
                    await publish_comment(github, pull_request_number, body, FORMATTED_COMMENT_MARKER, comment_mode)
                except Exception as exc:
                    raise NotificationError(f"Failed to comment on pull request #{pull_request_number}: {exc}") from exc
                comment_posted = True
            run.transition(PipelineState.DONE)
        except PipelineError:
            run.fail()
            raise

    logger.info("Formatting committed and pushed", commit_sha=commit_sha, files=plan.files_to_format)
    return PipelineResult(
        outcome=PipelineOutcome.FORMATTED,
        changed_files=changed_files,
        formatted_files=plan.files_to_format,
        commit_sha=commit_sha,
        comment_posted=comment_posted,
        states=list(run.history),
    )
