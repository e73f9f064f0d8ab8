"""Prettier invocation and style profile resolution for Solidity sources."""

import fnmatch
from pathlib import Path
from typing import Any, Sequence

import structlog
from pydantic import BaseModel

from solidity_autoformat.tooling.process import CommandInvocationError, run_command
from solidity_autoformat.utils.constants import (
    DEFAULT_PRETTIER_COMMAND,
    DEFAULT_PRINT_WIDTH,
    DEFAULT_TAB_WIDTH,
    SOLIDITY_PRETTIER_PLUGIN,
)
from solidity_autoformat.utils.yaml import load_json_or_yaml_file

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)


class StyleProfile(BaseModel):
    """Formatting options Prettier applies to Solidity files."""

    tab_width: int = DEFAULT_TAB_WIDTH
    print_width: int = DEFAULT_PRINT_WIDTH
    use_tabs: bool = False
    config_path: Path | None = None


class PrettierError(Exception):
    """Raised when Prettier fails to rewrite a file."""

    def __init__(self, path: str, output: str) -> None:
        """Initialize the exception with the file and Prettier's error output."""
        super().__init__(f"Prettier failed to format {path}: {output.strip()}")
        self.path = path
        self.output = output


def _override_applies_to_solidity(files: Any) -> bool:
    patterns = [files] if isinstance(files, str) else list(files or [])
    return any(fnmatch.fnmatch("Contract.sol", str(pattern).rsplit("/", 1)[-1]) for pattern in patterns)


def _apply_options(profile: StyleProfile, options: dict[str, Any]) -> StyleProfile:
    updates: dict[str, Any] = {}
    if "tabWidth" in options:
        updates["tab_width"] = int(options["tabWidth"])
    if "printWidth" in options:
        updates["print_width"] = int(options["printWidth"])
    if "useTabs" in options:
        updates["use_tabs"] = bool(options["useTabs"])
    return profile.model_copy(update=updates)


def load_style_profile(config_path: Path | None) -> StyleProfile:
    """Resolve the style profile from a project-local Prettier configuration.

    Top-level options apply first, then any `overrides` entry whose `files`
    pattern matches Solidity sources. A missing file falls back to the built-in
    4-space, 120-column defaults.
    """
    if config_path is None or not config_path.is_file():
        logger.warning("Prettier configuration not found, using default Solidity formatting", config_path=str(config_path))
        return StyleProfile()

    data = load_json_or_yaml_file(config_path)
    profile = _apply_options(StyleProfile(config_path=config_path), data)
    for override in data.get("overrides") or []:
        if isinstance(override, dict) and _override_applies_to_solidity(override.get("files")):
            profile = _apply_options(profile, override.get("options") or {})
    logger.info(
        "Using Prettier configuration",
        config_path=str(config_path),
        tab_width=profile.tab_width,
        print_width=profile.print_width,
        use_tabs=profile.use_tabs,
    )
    return profile


class PrettierFormatter:
    """Checks and rewrites files with Prettier and the Solidity plugin."""

    def __init__(
        self,
        root: Path,
        profile: StyleProfile,
        command: Sequence[str] = DEFAULT_PRETTIER_COMMAND,
        timeout: float | None = None,
    ) -> None:
        """Initialize the formatter for the checkout at `root`."""
        self.root = root
        self.profile = profile
        self.command = list(command)
        self.timeout = timeout

    def build_arguments(self, mode: str, path: str) -> list[str]:
        """Build the Prettier command line for `--check` or `--write` mode."""
        arguments = [*self.command, "--plugin", SOLIDITY_PRETTIER_PLUGIN]
        if self.profile.config_path is not None:
            arguments += ["--config", str(self.profile.config_path)]
        else:
            arguments += ["--tab-width", str(self.profile.tab_width), "--print-width", str(self.profile.print_width)]
            if self.profile.use_tabs:
                arguments.append("--use-tabs")
        arguments += [mode, path]
        return arguments

    def check(self, path: str) -> bool:
        """Return True when `path` already matches the style profile."""
        result = run_command(self.build_arguments("--check", path), cwd=self.root, timeout=self.timeout)
        if result.returncode == 0:
            logger.info("File is already formatted", file=path)
            return True
        if result.returncode != 1:
            logger.warning("Prettier could not check file", file=path, returncode=result.returncode, stderr=result.stderr.strip())
        logger.info("File needs formatting", file=path)
        return False

    def write(self, path: str) -> None:
        """Rewrite `path` in place, raising PrettierError on failure."""
        try:
            result = run_command(self.build_arguments("--write", path), cwd=self.root, timeout=self.timeout)
        except CommandInvocationError as exc:
            raise PrettierError(path, exc.reason) from exc
        if result.returncode != 0:
            raise PrettierError(path, result.stderr or result.stdout)
        logger.info("Successfully formatted", file=path)
