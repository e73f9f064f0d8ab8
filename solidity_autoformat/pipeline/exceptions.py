"""Custom exceptions for the pipeline stages.

Every error is fatal to the stage that raised it. The exit code attached to
each class is what the CLI returns to the CI runner.
"""

from solidity_autoformat.utils.constants import (
    EXIT_BUILD_FAILURE,
    EXIT_DETECTION_FAILURE,
    EXIT_FORMAT_FAILURE,
    EXIT_PUSH_FAILURE,
)


class PipelineError(Exception):
    """Base class for errors that abort a pipeline stage."""

    exit_code: int = 1

    def __init__(self, message: str) -> None:
        """Initialize the exception with a human-readable message."""
        super().__init__(message)
        self.message = message


class DetectionError(PipelineError):
    """Raised when the changed files between two revisions cannot be computed."""

    exit_code = EXIT_DETECTION_FAILURE


class FormatError(PipelineError):
    """Raised when the formatter cannot check or rewrite a file."""

    exit_code = EXIT_FORMAT_FAILURE

    def __init__(self, message: str, path: str | None = None) -> None:
        """Initialize the exception with the offending file, if known."""
        super().__init__(message)
        self.path = path


class CommitError(PipelineError):
    """Raised when the formatting changes cannot be committed."""

    exit_code = EXIT_FORMAT_FAILURE


class NotificationError(PipelineError):
    """Raised when the formatting summary cannot be posted to the pull request."""

    exit_code = EXIT_FORMAT_FAILURE


class PushError(PipelineError):
    """Raised when the formatting commit cannot be pushed (auth or conflict)."""

    exit_code = EXIT_PUSH_FAILURE


class BuildError(PipelineError):
    """Raised when the project fails to compile after formatting."""

    exit_code = EXIT_BUILD_FAILURE
