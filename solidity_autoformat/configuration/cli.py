"""Defines the Command Line Interface (CLI) using Typer."""

import asyncio
import logging
import shlex
import sys
from pathlib import Path

import structlog
import typer
from dotenv import load_dotenv
from typer import Option
from typing_extensions import Annotated

from solidity_autoformat.configuration.env import Settings, get_settings
from solidity_autoformat.configuration.exceptions import GitHubAuthenticationConfigurationUndefinedError, RequiredConfigurationElementError
from solidity_autoformat.configuration.models import GitHubCredentials
from solidity_autoformat.configuration.reconcile import validate_github_authentication_configuration
from solidity_autoformat.events.trigger import TriggerEvent, load_trigger_event
from solidity_autoformat.git.repository import GitRepository
from solidity_autoformat.github.adapter import GitHubKitAdapter
from solidity_autoformat.pipeline.detector import detect_changed_files, write_github_output
from solidity_autoformat.pipeline.driver import run_pipeline
from solidity_autoformat.pipeline.exceptions import PipelineError
from solidity_autoformat.pipeline.formatter import PublishTarget, run_format_stage
from solidity_autoformat.pipeline.models import ChangedFileSet, CommentMode, FormatPolicy, PipelineResult, RevisionPair
from solidity_autoformat.pipeline.verifier import run_verify_stage
from solidity_autoformat.tooling.forge import ForgeToolchain
from solidity_autoformat.tooling.prettier import PrettierFormatter, load_style_profile
from solidity_autoformat.utils.constants import (
    DEFAULT_PRETTIER_CONFIG_PATH,
    DEFAULT_REMOTE,
    EXIT_DETECTION_FAILURE,
    EXIT_FORMAT_FAILURE,
)
from solidity_autoformat.utils.github import build_authenticated_remote_url, redact_remote_url

load_dotenv()

typer_app = typer.Typer(pretty_exceptions_show_locals=False, help="Format changed Solidity files, push the result, and verify the build.")

# Options shared by several commands
BranchOption = Annotated[str | None, Option(help="Branch to push to and verify. Defaults to the PR head branch or the pushed branch.")]
PullRequestOption = Annotated[int | None, Option("--pull-request", help="Pull request number to comment on. Defaults to the triggering PR.")]
RemoteOption = Annotated[str, Option(envvar="AUTOFORMAT_REMOTE", help="Git remote used when no token is configured.")]
CommentModeOption = Annotated[CommentMode, Option(envvar="AUTOFORMAT_COMMENT_MODE", help="Append a new comment per run, or update the previous one.")]
GitHubTokenOption = Annotated[str | None, Option(envvar="GITHUB_TOKEN", help="Workflow token or personal access token.")]
GitHubAppIdOption = Annotated[int | None, Option(envvar="GITHUB_APP_ID", help="GitHub App ID.")]
GitHubAppKeyOption = Annotated[Path | None, Option(envvar="GITHUB_APP_PRIVATE_KEY_PATH", help="Path to GitHub App private key.")]
GitHubAppInstallationOption = Annotated[int | None, Option(envvar="GITHUB_APP_INSTALLATION_ID", help="GitHub App Installation ID.")]
PrettierCommandOption = Annotated[str, Option(envvar="AUTOFORMAT_PRETTIER_COMMAND", help="Command used to invoke Prettier.")]
ForgeCommandOption = Annotated[str, Option(envvar="AUTOFORMAT_FORGE_COMMAND", help="Command used to invoke Foundry's forge.")]
PolicyOption = Annotated[FormatPolicy, Option(envvar="AUTOFORMAT_POLICY", help="Rewrite every changed file, or only non-compliant ones.")]


def configure_logging(debug: bool) -> None:
    """Configure structlog to render key/value events on stderr."""
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(colors=False),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(logging.DEBUG if debug else logging.INFO),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=False,
    )


@typer_app.callback()
def main_callback(
    ctx: typer.Context,
    repo_path: Annotated[Path, Option(envvar="AUTOFORMAT_REPO_PATH", help="Path to the git checkout.")] = Path("."),
    timeout: Annotated[float | None, Option(envvar="AUTOFORMAT_TIMEOUT", help="Seconds before an external command is killed.")] = None,
    debug: Annotated[bool, Option(envvar="DEBUG", help="Enable debug mode.")] = False,
) -> None:
    """Load the run context shared by every command."""
    configure_logging(debug)
    settings = get_settings()
    try:
        event = load_trigger_event(settings)
    except (ValueError, KeyError) as exc:
        typer.echo(f"Error loading the triggering event: {exc}", err=True)
        raise typer.Exit(EXIT_DETECTION_FAILURE) from exc
    ctx.ensure_object(dict)
    ctx.obj["settings"] = settings
    ctx.obj["event"] = event
    ctx.obj["repository"] = GitRepository(repo_path.resolve(), timeout=timeout)
    ctx.obj["timeout"] = timeout


def _fail(error: Exception, exit_code: int) -> typer.Exit:
    typer.echo(f"Error: {error}", err=True)
    return typer.Exit(exit_code)


def _resolve_branch(branch: str | None, event: TriggerEvent | None) -> str | None:
    if branch:
        return branch
    return event.target_branch if event is not None else None


def _resolve_pull_request(pull_request: int | None, event: TriggerEvent | None) -> int | None:
    if pull_request is not None:
        return pull_request
    return event.pull_request_number if event is not None else None


def _resolve_target(settings: Settings, branch: str | None, remote: str, credentials: GitHubCredentials) -> PublishTarget:
    """Push through an authenticated URL when a token and repository are known, else through `remote`."""
    if credentials.token and settings.GITHUB_REPOSITORY:
        url = build_authenticated_remote_url(settings.GITHUB_SERVER_URL, settings.GITHUB_REPOSITORY, credentials.token)
        return PublishTarget(branch=branch, remote=url, display_remote=redact_remote_url(url))
    return PublishTarget(branch=branch, remote=remote)


async def _create_github_adapter(settings: Settings, credentials: GitHubCredentials) -> GitHubKitAdapter:
    if not settings.GITHUB_REPOSITORY:
        raise RequiredConfigurationElementError("GitHub repository", "-", "GITHUB_REPOSITORY")
    github_auth_type = await validate_github_authentication_configuration(
        github_token=credentials.token,
        github_app_id=credentials.app_id,
        github_app_private_key_path=credentials.app_private_key_path,
        github_app_installation_id=credentials.app_installation_id,
    )
    return await GitHubKitAdapter.create(
        repo=settings.GITHUB_REPOSITORY,
        github_auth_type=github_auth_type,
        github_token=credentials.token,
        github_app_id=credentials.app_id,
        github_app_private_key_path=credentials.app_private_key_path,
        github_app_installation_id=credentials.app_installation_id,
        github_api_url=settings.GITHUB_API_URL,
    )


def _github_adapter_or_none(settings: Settings, pull_request_number: int | None, credentials: GitHubCredentials) -> GitHubKitAdapter | None:
    """Create the adapter when there is a pull request to comment on.

    Missing or invalid credentials only matter once a comment has to be posted,
    which the stages report themselves, so here they are a warning.
    """
    if pull_request_number is None:
        return None
    try:
        return asyncio.run(_create_github_adapter(settings, credentials))
    except (GitHubAuthenticationConfigurationUndefinedError, RequiredConfigurationElementError, ValueError, RuntimeError) as exc:
        typer.echo(f"Warning: cannot comment on pull request #{pull_request_number}: {exc}", err=True)
        return None


def _split_files(files: list[str]) -> ChangedFileSet:
    """Accept repeated --files options as well as one space-separated list."""
    paths: list[str] = []
    for entry in files:
        for path in entry.split():
            if path not in paths:
                paths.append(path)
    return ChangedFileSet(tuple(paths))


def _echo_result(result: PipelineResult) -> None:
    typer.echo("")
    typer.echo("=" * 70)
    typer.echo("PIPELINE SUMMARY")
    typer.echo("=" * 70)
    typer.echo(f"Outcome: {result.outcome.value}")
    typer.echo(f"Changed files: {len(result.changed_files)}")
    for path in result.changed_files:
        typer.echo(f"  - {path}")
    if result.formatted_files:
        typer.echo(f"Formatted files: {len(result.formatted_files)}")
    if result.commit_sha:
        typer.echo(f"Commit: {result.commit_sha}")
    if result.comment_posted:
        typer.echo("Pull request comment posted")
    if result.build_verified is not None:
        typer.echo(f"Build verified: {'yes' if result.build_verified else 'no'}")
    if result.reason:
        typer.echo(f"Reason: {result.reason}")
    typer.echo("=" * 70)


@typer_app.command(name="detect-changes")
def detect_changes_cli(
    ctx: typer.Context,
    base: Annotated[str | None, Option(help="Base revision. Defaults to the triggering event's base/before SHA.")] = None,
    head: Annotated[str | None, Option(help="Head revision. Defaults to the triggering event's head SHA.")] = None,
    pattern: Annotated[list[str], Option(help="File suffix to match. May be repeated.")] = [".sol"],
    github_output: Annotated[Path | None, Option(envvar="GITHUB_OUTPUT", help="GitHub Actions output file to write results to.")] = None,
) -> None:
    """List the changed files matching the suffix pattern between two revisions."""
    repository: GitRepository = ctx.obj["repository"]
    event: TriggerEvent | None = ctx.obj["event"]

    if head is None:
        if event is None:
            raise _fail(ValueError("A head revision is required outside of GitHub Actions (--head)"), EXIT_DETECTION_FAILURE)
        try:
            event_revisions = event.revision_pair()
        except ValueError as exc:
            raise _fail(exc, EXIT_DETECTION_FAILURE) from exc
        head = event_revisions.head
        base = base if base is not None else event_revisions.base

    try:
        changed = asyncio.run(detect_changed_files(repository, RevisionPair(base=base, head=head), pattern))
    except PipelineError as exc:
        raise _fail(exc, exc.exit_code) from exc

    if github_output is not None:
        write_github_output(github_output, changed)
    for path in changed:
        typer.echo(path)


@typer_app.command(name="format")
def format_cli(
    ctx: typer.Context,
    files: Annotated[list[str], Option("--files", envvar="CHANGED_FILES", help="Files to format. May be repeated or space separated.")] = [],
    config: Annotated[Path, Option(envvar="AUTOFORMAT_PRETTIER_CONFIG", help="Project-local Prettier configuration.")] = Path(
        DEFAULT_PRETTIER_CONFIG_PATH
    ),
    branch: BranchOption = None,
    pull_request: PullRequestOption = None,
    policy: PolicyOption = FormatPolicy.BATCH,
    comment_mode: CommentModeOption = CommentMode.APPEND,
    remote: RemoteOption = DEFAULT_REMOTE,
    prettier_command: PrettierCommandOption = "npx prettier",
    github_token: GitHubTokenOption = None,
    github_app_id: GitHubAppIdOption = None,
    github_app_private_key_path: GitHubAppKeyOption = None,
    github_app_installation_id: GitHubAppInstallationOption = None,
) -> None:
    """Check, rewrite, commit and push formatting for the given files, then comment on the PR."""
    settings: Settings = ctx.obj["settings"]
    event: TriggerEvent | None = ctx.obj["event"]
    repository: GitRepository = ctx.obj["repository"]
    credentials = GitHubCredentials(
        token=github_token,
        app_id=github_app_id,
        app_private_key_path=github_app_private_key_path,
        app_installation_id=github_app_installation_id,
    )

    changed = _split_files(files)
    pull_request_number = _resolve_pull_request(pull_request, event)
    github = _github_adapter_or_none(settings, pull_request_number, credentials)
    config_path = config if config.is_absolute() else repository.path / config
    try:
        profile = load_style_profile(config_path)
    except ValueError as exc:
        raise _fail(exc, EXIT_FORMAT_FAILURE) from exc
    formatter = PrettierFormatter(repository.path, profile, command=shlex.split(prettier_command), timeout=ctx.obj["timeout"])
    target = _resolve_target(settings, _resolve_branch(branch, event), remote, credentials)

    try:
        result = asyncio.run(
            run_format_stage(
                repository,
                changed,
                formatter,
                profile,
                target,
                pull_request_number=pull_request_number,
                github=github,
                policy=policy,
                comment_mode=comment_mode,
            )
        )
    except PipelineError as exc:
        raise _fail(exc, exc.exit_code) from exc
    _echo_result(result)


@typer_app.command(name="verify-build")
def verify_build_cli(
    ctx: typer.Context,
    branch: BranchOption = None,
    pull_request: PullRequestOption = None,
    skip_install: Annotated[bool, Option(envvar="AUTOFORMAT_SKIP_INSTALL", help="Do not run `forge install` first.")] = False,
    comment_mode: CommentModeOption = CommentMode.APPEND,
    remote: RemoteOption = DEFAULT_REMOTE,
    forge_command: ForgeCommandOption = "forge",
    github_token: GitHubTokenOption = None,
    github_app_id: GitHubAppIdOption = None,
    github_app_private_key_path: GitHubAppKeyOption = None,
    github_app_installation_id: GitHubAppInstallationOption = None,
) -> None:
    """Check out the branch tip and rebuild from clean, commenting on the PR if it fails."""
    settings: Settings = ctx.obj["settings"]
    event: TriggerEvent | None = ctx.obj["event"]
    repository: GitRepository = ctx.obj["repository"]
    credentials = GitHubCredentials(
        token=github_token,
        app_id=github_app_id,
        app_private_key_path=github_app_private_key_path,
        app_installation_id=github_app_installation_id,
    )

    pull_request_number = _resolve_pull_request(pull_request, event)
    toolchain = ForgeToolchain(repository.path, command=shlex.split(forge_command), timeout=ctx.obj["timeout"])
    target = _resolve_target(settings, _resolve_branch(branch, event), remote, credentials)
    github = _github_adapter_or_none(settings, pull_request_number, credentials)

    try:
        asyncio.run(
            run_verify_stage(
                repository,
                toolchain,
                branch=target.branch,
                remote=target.remote,
                display_remote=target.display_remote,
                install=not skip_install,
                pull_request_number=pull_request_number,
                github=github,
                comment_mode=comment_mode,
            )
        )
    except PipelineError as exc:
        raise _fail(exc, exc.exit_code) from exc
    typer.echo("Contracts compile successfully")


@typer_app.command(name="run")
def run_cli(
    ctx: typer.Context,
    base: Annotated[str | None, Option(help="Base revision. Defaults to the triggering event's base/before SHA.")] = None,
    head: Annotated[str | None, Option(help="Head revision. Defaults to the triggering event's head SHA.")] = None,
    pattern: Annotated[list[str], Option(help="File suffix to match. May be repeated.")] = [".sol"],
    config: Annotated[Path, Option(envvar="AUTOFORMAT_PRETTIER_CONFIG", help="Project-local Prettier configuration.")] = Path(
        DEFAULT_PRETTIER_CONFIG_PATH
    ),
    branch: BranchOption = None,
    pull_request: PullRequestOption = None,
    policy: PolicyOption = FormatPolicy.BATCH,
    comment_mode: CommentModeOption = CommentMode.APPEND,
    remote: RemoteOption = DEFAULT_REMOTE,
    verify: Annotated[bool, Option(help="Verify the build after formatting.")] = True,
    skip_install: Annotated[bool, Option(envvar="AUTOFORMAT_SKIP_INSTALL", help="Do not run `forge install` first.")] = False,
    prettier_command: PrettierCommandOption = "npx prettier",
    forge_command: ForgeCommandOption = "forge",
    github_token: GitHubTokenOption = None,
    github_app_id: GitHubAppIdOption = None,
    github_app_private_key_path: GitHubAppKeyOption = None,
    github_app_installation_id: GitHubAppInstallationOption = None,
) -> None:
    """Run change detection, formatting and build verification in one go."""
    settings: Settings = ctx.obj["settings"]
    event: TriggerEvent | None = ctx.obj["event"]
    repository: GitRepository = ctx.obj["repository"]
    credentials = GitHubCredentials(
        token=github_token,
        app_id=github_app_id,
        app_private_key_path=github_app_private_key_path,
        app_installation_id=github_app_installation_id,
    )

    if head is None:
        if event is None:
            raise _fail(ValueError("A head revision is required outside of GitHub Actions (--head)"), EXIT_DETECTION_FAILURE)
        try:
            event_revisions = event.revision_pair()
        except ValueError as exc:
            raise _fail(exc, EXIT_DETECTION_FAILURE) from exc
        head = event_revisions.head
        base = base if base is not None else event_revisions.base

    pull_request_number = _resolve_pull_request(pull_request, event)
    github = _github_adapter_or_none(settings, pull_request_number, credentials)
    config_path = config if config.is_absolute() else repository.path / config
    try:
        profile = load_style_profile(config_path)
    except ValueError as exc:
        raise _fail(exc, EXIT_FORMAT_FAILURE) from exc
    timeout = ctx.obj["timeout"]

    result = asyncio.run(
        run_pipeline(
            repository,
            RevisionPair(base=base, head=head),
            PrettierFormatter(repository.path, profile, command=shlex.split(prettier_command), timeout=timeout),
            profile,
            ForgeToolchain(repository.path, command=shlex.split(forge_command), timeout=timeout),
            _resolve_target(settings, _resolve_branch(branch, event), remote, credentials),
            suffixes=pattern,
            pull_request_number=pull_request_number,
            github=github,
            policy=policy,
            comment_mode=comment_mode,
            verify=verify,
            install_dependencies=not skip_install,
        )
    )
    _echo_result(result)
    if not result.succeeded:
        raise typer.Exit(result.exit_code)


if __name__ == "__main__":
    typer_app()
