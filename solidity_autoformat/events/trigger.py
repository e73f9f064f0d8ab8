"""Models the GitHub Actions event that triggered the pipeline."""

import json
from pathlib import Path
from typing import Any

import structlog
from pydantic import BaseModel

from solidity_autoformat.configuration.env import Settings
from solidity_autoformat.pipeline.models import RevisionPair

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

PULL_REQUEST_EVENTS = ("pull_request", "pull_request_target")


class PullRequestContext(BaseModel):
    """The parts of a pull request payload the pipeline needs."""

    number: int
    base_sha: str
    head_sha: str
    head_ref: str


class TriggerEvent(BaseModel):
    """A pull request or push event, reduced to the fields the pipeline uses."""

    event_name: str
    sha: str | None = None
    ref_name: str | None = None
    head_ref: str | None = None
    repository: str | None = None
    before: str | None = None
    after: str | None = None
    pull_request: PullRequestContext | None = None

    @property
    def is_pull_request(self) -> bool:
        """True when the event carries a pull request."""
        return self.pull_request is not None

    @property
    def pull_request_number(self) -> int | None:
        """Number of the originating pull request, if any."""
        return self.pull_request.number if self.pull_request is not None else None

    @property
    def target_branch(self) -> str | None:
        """Branch the formatting commit goes to: the PR head branch or the pushed branch."""
        if self.pull_request is not None:
            return self.pull_request.head_ref
        return self.head_ref or self.ref_name

    def revision_pair(self) -> RevisionPair:
        """The revisions to diff for this event."""
        if self.pull_request is not None:
            return RevisionPair(base=self.pull_request.base_sha, head=self.pull_request.head_sha)
        head = self.sha or self.after
        if not head:
            raise ValueError("Push event has no head revision (GITHUB_SHA or payload 'after')")
        return RevisionPair(base=self.before, head=head)


def load_event_payload(event_path: Path | None) -> dict[str, Any]:
    """Load the JSON webhook payload GitHub Actions writes to GITHUB_EVENT_PATH."""
    if event_path is None or not event_path.is_file():
        logger.debug("No event payload available", event_path=str(event_path))
        return {}
    with open(event_path, encoding="utf-8") as f:
        return json.load(f)


def parse_trigger_event(
    event_name: str,
    payload: dict[str, Any],
    sha: str | None = None,
    ref_name: str | None = None,
    head_ref: str | None = None,
    repository: str | None = None,
) -> TriggerEvent:
    """Build a TriggerEvent from the event name, payload and run context."""
    pull_request: PullRequestContext | None = None
    raw_pull_request = payload.get("pull_request")
    if event_name in PULL_REQUEST_EVENTS and isinstance(raw_pull_request, dict):
        pull_request = PullRequestContext(
            number=raw_pull_request.get("number") or payload["number"],
            base_sha=raw_pull_request["base"]["sha"],
            head_sha=raw_pull_request["head"]["sha"],
            head_ref=raw_pull_request["head"]["ref"],
        )
    if repository is None:
        repository = (payload.get("repository") or {}).get("full_name")
    return TriggerEvent(
        event_name=event_name,
        sha=sha,
        ref_name=ref_name,
        head_ref=head_ref or None,
        repository=repository,
        before=payload.get("before"),
        after=payload.get("after"),
        pull_request=pull_request,
    )


def load_trigger_event(settings: Settings) -> TriggerEvent | None:
    """Build the TriggerEvent for the current GitHub Actions run, if running in one."""
    if not settings.GITHUB_EVENT_NAME:
        return None
    payload = load_event_payload(settings.GITHUB_EVENT_PATH)
    event = parse_trigger_event(
        event_name=settings.GITHUB_EVENT_NAME,
        payload=payload,
        sha=settings.GITHUB_SHA,
        ref_name=settings.GITHUB_REF_NAME,
        head_ref=settings.GITHUB_HEAD_REF,
        repository=settings.GITHUB_REPOSITORY,
    )
    logger.info(
        "Loaded trigger event",
        event_name=event.event_name,
        pull_request_number=event.pull_request_number,
        target_branch=event.target_branch,
    )
    return event
