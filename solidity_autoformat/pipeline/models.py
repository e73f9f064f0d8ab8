"""Data models passed between the pipeline stages."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator, Protocol

from pydantic import BaseModel, Field

from solidity_autoformat.utils.constants import EXIT_SUCCESS


class FormatPolicy(str, Enum):
    """Which changed files get rewritten once any of them is non-compliant."""

    BATCH = "batch"
    PER_FILE = "per-file"


class CommentMode(str, Enum):
    """How the formatting summary comment is published on re-runs."""

    APPEND = "append"
    UPDATE = "update"


class PipelineOutcome(str, Enum):
    """Terminal result of a pipeline run."""

    NO_CHANGES = "no_changes"
    ALREADY_FORMATTED = "already_formatted"
    FORMATTED = "formatted"
    FAILED = "failed"


class PipelineState(str, Enum):
    """States a pipeline run moves through."""

    IDLE = "idle"
    DETECTING = "detecting"
    NO_OP = "no_op"
    CHECKING_FORMAT = "checking_format"
    ALREADY_FORMATTED = "already_formatted"
    FORMATTING = "formatting"
    COMMITTING = "committing"
    PUSHING = "pushing"
    NOTIFYING = "notifying"
    DONE = "done"
    FAILED = "failed"


@dataclass(frozen=True)
class RevisionPair:
    """The two revisions whose difference is inspected."""

    base: str | None
    head: str

    @property
    def base_is_placeholder(self) -> bool:
        """True when there is no usable base revision (e.g. first push to a branch)."""
        return not self.base or set(self.base) == {"0"}


@dataclass(frozen=True)
class ChangedFileSet:
    """Ordered changed paths that matched the suffix filter."""

    files: tuple[str, ...] = ()

    def __bool__(self) -> bool:
        """Non-empty sets are the only ones that trigger later stages."""
        return bool(self.files)

    def __len__(self) -> int:
        """Number of matching paths."""
        return len(self.files)

    def __iter__(self) -> Iterator[str]:
        """Iterate the paths in detection order."""
        return iter(self.files)


@dataclass(frozen=True)
class FormatDecision:
    """Whether a single file needs to be rewritten."""

    path: str
    needs_formatting: bool


@dataclass
class FormatPlan:
    """Per-file decisions and the files the policy selected for rewriting."""

    decisions: list[FormatDecision] = field(default_factory=list)
    files_to_format: list[str] = field(default_factory=list)

    @property
    def needs_format(self) -> bool:
        """Aggregate flag: any checked file is non-compliant."""
        return any(decision.needs_formatting for decision in self.decisions)


class PipelineResult(BaseModel):
    """Tagged result of a pipeline run: NoChanges | AlreadyFormatted | Formatted | Failed(reason).

    `states` is the state history of detection and formatting only. Build
    verification runs after that history has reached a terminal state, so a
    broken build shows up as `build_verified=False` with a Failed outcome
    while `states` still ends at DONE.
    """

    outcome: PipelineOutcome
    changed_files: list[str] = Field(default_factory=list)
    formatted_files: list[str] = Field(default_factory=list)
    commit_sha: str | None = None
    comment_posted: bool = False
    build_verified: bool | None = None
    reason: str | None = None
    exit_code: int = EXIT_SUCCESS
    states: list[PipelineState] = Field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        """True unless the run ended in the Failed state."""
        return self.outcome != PipelineOutcome.FAILED


class SourceFormatter(Protocol):
    """External formatter contract used by the formatting stage."""

    def check(self, path: str) -> bool:
        """Return True when the file is already compliant."""
        ...

    def write(self, path: str) -> None:
        """Rewrite the file in place, raising on failure."""
        ...


class BuildToolchain(Protocol):
    """External build toolchain contract used by the verification stage."""

    @property
    def build_command(self) -> str:
        """Command a developer runs locally to reproduce the build."""
        ...

    def install(self) -> None:
        """Install project dependencies."""
        ...

    def clean(self) -> None:
        """Remove build artifacts."""
        ...

    def build(self) -> None:
        """Compile the project, raising on failure."""
        ...
