"""Orchestrates the detect, format and verify stages in a single run."""

import time
from typing import Sequence

import structlog

from solidity_autoformat.git.repository import GitRepository
from solidity_autoformat.github.abc import GitHubClientBase
from solidity_autoformat.pipeline.detector import detect_changed_files
from solidity_autoformat.pipeline.exceptions import PipelineError
from solidity_autoformat.pipeline.formatter import PublishTarget, run_format_stage
from solidity_autoformat.pipeline.models import (
    BuildToolchain,
    CommentMode,
    FormatPolicy,
    PipelineOutcome,
    PipelineResult,
    PipelineState,
    RevisionPair,
    SourceFormatter,
)
from solidity_autoformat.pipeline.state import PipelineRun
from solidity_autoformat.pipeline.verifier import run_verify_stage
from solidity_autoformat.tooling.prettier import StyleProfile
from solidity_autoformat.utils.constants import DEFAULT_FILE_SUFFIXES

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)


def failed_result(error: PipelineError, run: PipelineRun, changed_files: list[str] | None = None) -> PipelineResult:
    """Build the Failed(reason) result for a stage error."""
    run.fail()
    return PipelineResult(
        outcome=PipelineOutcome.FAILED,
        reason=error.message,
        exit_code=error.exit_code,
        states=list(run.history),
        changed_files=changed_files or [],
    )


async def run_pipeline(
    repository: GitRepository,
    revisions: RevisionPair,
    formatter: SourceFormatter,
    profile: StyleProfile,
    toolchain: BuildToolchain,
    target: PublishTarget,
    suffixes: Sequence[str] = DEFAULT_FILE_SUFFIXES,
    pull_request_number: int | None = None,
    github: GitHubClientBase | None = None,
    policy: FormatPolicy = FormatPolicy.BATCH,
    comment_mode: CommentMode = CommentMode.APPEND,
    verify: bool = True,
    install_dependencies: bool = True,
) -> PipelineResult:
    """Run Detect, then Format, then Verify.

    Format and Verify only run when Detect found matching files. Verify is
    skipped when Format failed, as a dependent CI job would be. The returned
    result is Failed(reason) with the failing stage's exit code on error. A
    failed build keeps the formatting stage's state history unchanged.
    """
    run = PipelineRun()
    start_time = time.time()

    run.transition(PipelineState.DETECTING)
    try:
        changed = await detect_changed_files(repository, revisions, suffixes)
    except PipelineError as exc:
        logger.error("Change detection failed", error=exc.message)
        return failed_result(exc, run)

    if not changed:
        run.transition(PipelineState.NO_OP)
        logger.info("No matching files changed, skipping formatting and build verification")
        return PipelineResult(outcome=PipelineOutcome.NO_CHANGES, states=list(run.history))

    try:
        result = await run_format_stage(
            repository,
            changed,
            formatter,
            profile,
            target,
            pull_request_number=pull_request_number,
            github=github,
            policy=policy,
            comment_mode=comment_mode,
            run=run,
        )
    except PipelineError as exc:
        logger.error("Formatting stage failed", error=exc.message, exit_code=exc.exit_code)
        return failed_result(exc, run, changed_files=list(changed))
    logger.info("Formatting stage finished", outcome=result.outcome.value, duration=round(time.time() - start_time, 2))

    if not verify:
        logger.info("Build verification disabled")
        return result

    verify_start_time = time.time()
    try:
        await run_verify_stage(
            repository,
            toolchain,
            branch=target.branch,
            remote=target.remote,
            display_remote=target.display_remote,
            install=install_dependencies,
            pull_request_number=pull_request_number,
            github=github,
            comment_mode=comment_mode,
        )
    except PipelineError as exc:
        return result.model_copy(
            update={
                "outcome": PipelineOutcome.FAILED,
                "reason": exc.message,
                "exit_code": exc.exit_code,
                "build_verified": False,
            }
        )
    logger.info(
        "Pipeline finished",
        outcome=result.outcome.value,
        verify_duration=round(time.time() - verify_start_time, 2),
        duration=round(time.time() - start_time, 2),
    )
    return result.model_copy(update={"build_verified": True})
