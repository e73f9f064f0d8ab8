"""Change detection: which files matching the suffix filter changed between two revisions."""

from pathlib import Path
from typing import Sequence

import structlog

from solidity_autoformat.git.repository import GitCommandError, GitRepository
from solidity_autoformat.pipeline.exceptions import DetectionError
from solidity_autoformat.pipeline.models import ChangedFileSet, RevisionPair
from solidity_autoformat.tooling.process import CommandInvocationError
from solidity_autoformat.utils.constants import DEFAULT_FILE_SUFFIXES

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)


def filter_by_suffix(paths: Sequence[str], suffixes: Sequence[str]) -> ChangedFileSet:
    """Keep paths ending in one of `suffixes`, preserving order and dropping duplicates."""
    seen: set[str] = set()
    matching: list[str] = []
    for path in paths:
        if path in seen or not any(path.endswith(suffix) for suffix in suffixes):
            continue
        seen.add(path)
        matching.append(path)
    return ChangedFileSet(tuple(matching))


async def detect_changed_files(
    repository: GitRepository,
    revisions: RevisionPair,
    suffixes: Sequence[str] = DEFAULT_FILE_SUFFIXES,
) -> ChangedFileSet:
    """Compute the changed files between `revisions` that match `suffixes`.

    An absent or all-zero base revision (first push to a branch) fails open and
    yields an empty set. Any other revision that does not resolve to a commit
    raises DetectionError.
    """
    logger.info("Checking for file changes", base=revisions.base, head=revisions.head, suffixes=list(suffixes))

    if revisions.base_is_placeholder:
        logger.warning("Base revision is absent or a placeholder, treating as no changes", base=revisions.base)
        return ChangedFileSet()

    # base_is_placeholder guarantees a base from here on
    base = str(revisions.base)
    try:
        resolved_base = repository.resolve_commit(base)
        resolved_head = repository.resolve_commit(revisions.head)
        if resolved_base is None:
            raise DetectionError(f"Base revision {base} does not resolve to a commit")
        if resolved_head is None:
            raise DetectionError(f"Head revision {revisions.head} does not resolve to a commit")
        if resolved_base == resolved_head:
            logger.info("Base and head are the same commit, nothing changed", sha=resolved_head)
            return ChangedFileSet()
        changed_paths = repository.diff_names(resolved_base, resolved_head)
    except (GitCommandError, CommandInvocationError) as exc:
        raise DetectionError(f"Failed to compute changed files: {exc}") from exc

    changed = filter_by_suffix(changed_paths, suffixes)
    if changed:
        logger.info("Matching files changed", count=len(changed), files=list(changed))
    else:
        logger.info("No matching files changed", total_changed=len(changed_paths))
    return changed


def write_github_output(output_path: Path, changed: ChangedFileSet) -> None:
    """Append the detector's outputs to a GitHub Actions output file."""
    with open(output_path, "a", encoding="utf-8") as f:
        f.write(f"sol-changed={'true' if changed else 'false'}\n")
        f.write(f"changed-files={' '.join(changed.files)}\n")
    logger.debug("Wrote GitHub Actions outputs", output_path=str(output_path), changed=bool(changed))
