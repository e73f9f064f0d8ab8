"""Pytest configuration for CLI integration tests."""

from typing import Any, Callable

import pytest
from pytest import MonkeyPatch
from typer.testing import CliRunner, Result

from solidity_autoformat.configuration import cli


@pytest.fixture
def runner() -> CliRunner:
    """A Typer CLI runner."""
    return CliRunner()


@pytest.fixture
def invoke(runner: CliRunner, git_workspace: Any) -> Callable[..., Result]:
    """Invoke the CLI against the workspace checkout."""

    def _invoke(*args: str) -> Result:
        result = runner.invoke(cli.typer_app, ["--repo-path", str(git_workspace.path), *args])
        print(f"Command result: {result.exit_code}")
        print(f"Command output: {result.output}")
        return result

    return _invoke


@pytest.fixture
def stub_local_tools(monkeypatch: MonkeyPatch, fake_formatter: Any, fake_toolchain: Any) -> None:
    """Replace Prettier and forge with in-process fakes, leaving GitHub client creation real."""
    monkeypatch.setattr(cli, "PrettierFormatter", lambda *args, **kwargs: fake_formatter)
    monkeypatch.setattr(cli, "ForgeToolchain", lambda *args, **kwargs: fake_toolchain)


@pytest.fixture
def stub_tools(stub_local_tools: None, monkeypatch: MonkeyPatch, fake_github: Any) -> None:
    """Replace Prettier, forge and the GitHub API with in-process fakes."""

    async def create_adapter(*args: Any, **kwargs: Any) -> Any:
        return fake_github

    monkeypatch.setattr(cli, "_create_github_adapter", create_adapter)
