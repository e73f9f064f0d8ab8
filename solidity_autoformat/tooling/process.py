"""Runs external commands (git, Prettier, Foundry) as subprocesses."""

import os
import subprocess
from pathlib import Path
from typing import Sequence

import structlog

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)


class CommandInvocationError(Exception):
    """Raised when an external command cannot be started or does not finish."""

    def __init__(self, command: Sequence[str], reason: str) -> None:
        """Initialize the exception with the command and the reason it failed."""
        super().__init__(f"Command '{' '.join(command)}' could not be run: {reason}")
        self.command = list(command)
        self.reason = reason


def run_command(
    command: Sequence[str],
    cwd: Path,
    timeout: float | None = None,
    env: dict[str, str] | None = None,
    display_command: Sequence[str] | None = None,
) -> subprocess.CompletedProcess[str]:
    """Run a command and capture its output without raising on a non-zero exit code.

    Args:
        command: The command and its arguments.
        cwd: Working directory for the command.
        timeout: Seconds after which the command is killed. None waits forever.
        env: Extra environment variables layered over the current environment.
        display_command: Version of the command safe to log, when `command` holds secrets.

    Returns:
        The completed process. Callers inspect `returncode` themselves.

    Raises:
        CommandInvocationError: If the executable is missing or the timeout expires.
    """
    shown = list(display_command if display_command is not None else command)
    process_env = None
    if env:
        process_env = {**os.environ, **env}
    logger.debug("Running command", command=" ".join(shown), cwd=str(cwd), timeout=timeout)
    try:
        result = subprocess.run(
            list(command),
            cwd=cwd,
            capture_output=True,
            text=True,
            timeout=timeout,
            env=process_env,
        )
    except FileNotFoundError as exc:
        logger.error("Executable not found", command=" ".join(shown))
        raise CommandInvocationError(shown, f"executable '{shown[0]}' not found") from exc
    except subprocess.TimeoutExpired as exc:
        logger.error("Command timed out", command=" ".join(shown), timeout=timeout)
        raise CommandInvocationError(shown, f"timed out after {timeout} seconds") from exc
    logger.debug("Command finished", command=" ".join(shown), returncode=result.returncode)
    return result
