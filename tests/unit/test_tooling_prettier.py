"""Unit tests for the Prettier wrapper and style profile resolution."""

import json
import subprocess
from pathlib import Path
from unittest.mock import MagicMock

import pytest
from pytest import MonkeyPatch

from solidity_autoformat.tooling import prettier
from solidity_autoformat.tooling.prettier import PrettierError, PrettierFormatter, StyleProfile, load_style_profile
from solidity_autoformat.tooling.process import CommandInvocationError
from solidity_autoformat.utils.constants import SOLIDITY_PRETTIER_PLUGIN


def completed(returncode: int, stdout: str = "", stderr: str = "") -> subprocess.CompletedProcess[str]:
    """Build a finished process result."""
    return subprocess.CompletedProcess(args=[], returncode=returncode, stdout=stdout, stderr=stderr)


def test_missing_config_uses_defaults(tmp_path: Path) -> None:
    """Test the built-in 4-space, 120-column fallback."""
    profile = load_style_profile(tmp_path / ".prettierrc")
    assert profile == StyleProfile(tab_width=4, print_width=120, use_tabs=False, config_path=None)


def test_json_config_with_solidity_override(tmp_path: Path) -> None:
    """Test that Solidity overrides take precedence over top-level options."""
    config = tmp_path / ".prettierrc"
    config.write_text(
        json.dumps(
            {
                "tabWidth": 2,
                "printWidth": 80,
                "overrides": [
                    {"files": "*.ts", "options": {"tabWidth": 8}},
                    {"files": "*.sol", "options": {"tabWidth": 4, "printWidth": 120}},
                ],
            }
        ),
        encoding="utf-8",
    )

    profile = load_style_profile(config)

    assert profile.tab_width == 4
    assert profile.print_width == 120
    assert profile.config_path == config


def test_yaml_config(tmp_path: Path) -> None:
    """Test that a YAML .prettierrc is understood."""
    config = tmp_path / ".prettierrc"
    config.write_text("useTabs: true\noverrides:\n  - files: ['contracts/**/*.sol']\n    options:\n      printWidth: 100\n", encoding="utf-8")

    profile = load_style_profile(config)

    assert profile.use_tabs
    assert profile.print_width == 100
    assert profile.tab_width == 4


def test_invalid_config_raises_value_error(tmp_path: Path) -> None:
    """Test that a config that is not a mapping is rejected."""
    config = tmp_path / ".prettierrc"
    config.write_text("- just\n- a list\n", encoding="utf-8")
    with pytest.raises(ValueError, match="must contain a mapping"):
        load_style_profile(config)


def test_build_arguments_with_config(tmp_path: Path) -> None:
    """Test that a project config is passed through to Prettier."""
    formatter = PrettierFormatter(tmp_path, StyleProfile(config_path=tmp_path / ".prettierrc"))
    assert formatter.build_arguments("--check", "src/A.sol") == [
        "npx",
        "prettier",
        "--plugin",
        SOLIDITY_PRETTIER_PLUGIN,
        "--config",
        str(tmp_path / ".prettierrc"),
        "--check",
        "src/A.sol",
    ]


def test_build_arguments_without_config(tmp_path: Path) -> None:
    """Test that the default profile is spelled out as command line options."""
    formatter = PrettierFormatter(tmp_path, StyleProfile(use_tabs=True), command=["prettier"])
    assert formatter.build_arguments("--write", "src/A.sol") == [
        "prettier",
        "--plugin",
        SOLIDITY_PRETTIER_PLUGIN,
        "--tab-width",
        "4",
        "--print-width",
        "120",
        "--use-tabs",
        "--write",
        "src/A.sol",
    ]


@pytest.mark.parametrize("returncode,expected", [(0, True), (1, False), (2, False)])
def test_check_maps_exit_code(tmp_path: Path, monkeypatch: MonkeyPatch, returncode: int, expected: bool) -> None:
    """Test that only a zero exit code counts as compliant."""
    run_command = MagicMock(return_value=completed(returncode, stderr="[warn] src/A.sol"))
    monkeypatch.setattr(prettier, "run_command", run_command)
    formatter = PrettierFormatter(tmp_path, StyleProfile(), timeout=30)

    assert formatter.check("src/A.sol") is expected
    assert run_command.call_args.kwargs["cwd"] == tmp_path
    assert run_command.call_args.kwargs["timeout"] == 30


def test_write_failure_raises_prettier_error(tmp_path: Path, monkeypatch: MonkeyPatch) -> None:
    """Test that a non-zero exit while rewriting raises with Prettier's output."""
    monkeypatch.setattr(prettier, "run_command", MagicMock(return_value=completed(2, stderr="SyntaxError: Unexpected token (3:5)")))
    formatter = PrettierFormatter(tmp_path, StyleProfile())

    with pytest.raises(PrettierError, match="Unexpected token") as exc_info:
        formatter.write("src/A.sol")

    assert exc_info.value.path == "src/A.sol"


def test_write_missing_executable_raises_prettier_error(tmp_path: Path, monkeypatch: MonkeyPatch) -> None:
    """Test that a missing Prettier installation is a formatting failure."""
    error = CommandInvocationError(["npx", "prettier"], "executable 'npx' not found")
    monkeypatch.setattr(prettier, "run_command", MagicMock(side_effect=error))

    with pytest.raises(PrettierError, match="not found"):
        PrettierFormatter(tmp_path, StyleProfile()).write("src/A.sol")


def test_write_success(tmp_path: Path, monkeypatch: MonkeyPatch) -> None:
    """Test that a zero exit while rewriting succeeds silently."""
    monkeypatch.setattr(prettier, "run_command", MagicMock(return_value=completed(0, stdout="src/A.sol 12ms")))
    PrettierFormatter(tmp_path, StyleProfile()).write("src/A.sol")
