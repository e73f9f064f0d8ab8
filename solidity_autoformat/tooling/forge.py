"""Foundry (`forge`) invocation used to verify that the project still compiles."""

from pathlib import Path
from typing import Sequence

import structlog

from solidity_autoformat.tooling.process import CommandInvocationError, run_command
from solidity_autoformat.utils.constants import DEFAULT_FORGE_COMMAND

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)


class ForgeError(Exception):
    """Raised when a forge subcommand fails."""

    def __init__(self, subcommand: str, output: str) -> None:
        """Initialize the exception with the failed subcommand and its output."""
        super().__init__(f"forge {subcommand} failed: {output.strip()}")
        self.subcommand = subcommand
        self.output = output


class ForgeToolchain:
    """Runs forge subcommands in the project checkout."""

    def __init__(self, root: Path, command: Sequence[str] = DEFAULT_FORGE_COMMAND, timeout: float | None = None) -> None:
        """Initialize the toolchain for the checkout at `root`."""
        self.root = root
        self.command = list(command)
        self.timeout = timeout

    @property
    def build_command(self) -> str:
        """Command a developer runs locally to reproduce the build."""
        return " ".join([*self.command, "build"])

    def _run(self, subcommand: str) -> str:
        logger.info("Running forge", subcommand=subcommand)
        try:
            result = run_command([*self.command, subcommand], cwd=self.root, timeout=self.timeout)
        except CommandInvocationError as exc:
            raise ForgeError(subcommand, exc.reason) from exc
        if result.returncode != 0:
            logger.error("forge failed", subcommand=subcommand, returncode=result.returncode)
            raise ForgeError(subcommand, result.stderr or result.stdout)
        return result.stdout

    def install(self) -> None:
        """Install the project's library dependencies."""
        self._run("install")

    def clean(self) -> None:
        """Remove build artifacts and caches."""
        self._run("clean")

    def build(self) -> None:
        """Compile the project."""
        self._run("build")
