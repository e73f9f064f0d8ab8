"""Finite-state tracking for a single pipeline run."""

import structlog

from solidity_autoformat.pipeline.models import PipelineState

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

TERMINAL_STATES = frozenset({PipelineState.NO_OP, PipelineState.ALREADY_FORMATTED, PipelineState.DONE, PipelineState.FAILED})

ALLOWED_TRANSITIONS: dict[PipelineState, frozenset[PipelineState]] = {
    PipelineState.IDLE: frozenset({PipelineState.DETECTING, PipelineState.CHECKING_FORMAT, PipelineState.NO_OP}),
    PipelineState.DETECTING: frozenset({PipelineState.NO_OP, PipelineState.CHECKING_FORMAT}),
    PipelineState.CHECKING_FORMAT: frozenset({PipelineState.ALREADY_FORMATTED, PipelineState.FORMATTING}),
    # A rewrite that leaves the working tree clean ends as AlreadyFormatted.
    PipelineState.FORMATTING: frozenset({PipelineState.COMMITTING, PipelineState.ALREADY_FORMATTED}),
    PipelineState.COMMITTING: frozenset({PipelineState.PUSHING}),
    PipelineState.PUSHING: frozenset({PipelineState.NOTIFYING, PipelineState.DONE}),
    PipelineState.NOTIFYING: frozenset({PipelineState.DONE}),
}


class InvalidTransitionError(Exception):
    """Raised when a run attempts a transition the state machine does not allow."""

    def __init__(self, current: PipelineState, desired: PipelineState) -> None:
        """Initialize the exception with the attempted transition."""
        super().__init__(f"Invalid pipeline transition from {current.value} to {desired.value}")
        self.current = current
        self.desired = desired


class PipelineRun:
    """Records the states a run passes through and enforces legal transitions.

    Any non-terminal state may move to FAILED. A stage invoked on its own (for
    example the `format` command fed by an earlier `detect-changes` job) starts
    from IDLE and goes straight to CHECKING_FORMAT.
    """

    def __init__(self) -> None:
        """Start a run in the IDLE state."""
        self.history: list[PipelineState] = [PipelineState.IDLE]

    @property
    def state(self) -> PipelineState:
        """The current state."""
        return self.history[-1]

    @property
    def finished(self) -> bool:
        """True once a terminal state has been reached."""
        return self.state in TERMINAL_STATES

    def transition(self, desired: PipelineState) -> None:
        """Move to `desired`, raising InvalidTransitionError for illegal moves."""
        current = self.state
        if current in TERMINAL_STATES:
            raise InvalidTransitionError(current, desired)
        if desired != PipelineState.FAILED and desired not in ALLOWED_TRANSITIONS.get(current, frozenset()):
            raise InvalidTransitionError(current, desired)
        logger.debug("Pipeline transition", from_state=current.value, to_state=desired.value)
        self.history.append(desired)

    def fail(self) -> None:
        """Move to FAILED unless the run already finished."""
        if not self.finished:
            self.transition(PipelineState.FAILED)
