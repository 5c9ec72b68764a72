"""Drive a pull request through GitHub's merge API.

GitHub computes mergeability lazily, so a freshly opened or updated pull
request usually reports ``mergeable_state == "unknown"``. The orchestrator
waits and refetches until the state settles, then either merges, asks GitHub
to update a branch that is behind its base, or reports why it cannot merge.

State table
-----------
``dirty``
    Merge conflicts. Raise :class:`MergeConflictError`.
``behind``
    Request a branch update and stop. The resulting push re-triggers the
    workflow, which evaluates the pull request again.
``unknown``
    Sleep ``2 ** attempt`` seconds, refetch and re-evaluate, up to
    :data:`MAX_MERGE_ATTEMPTS` evaluations in total.
anything else
    Merge when ``mergeable`` is true, otherwise raise
    :class:`NotMergeableError`.
"""

from __future__ import annotations

import dataclasses
import logging
import time
import typing as typ

from .errors import (
    BranchUpdateError,
    MergeConflictError,
    MergeFailedError,
    NotMergeableError,
    RetriesExhaustedError,
)

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from .models import MergeResult, PullRequestRef, PullRequestSnapshot

__all__ = [
    "MAX_MERGE_ATTEMPTS",
    "MergeOutcome",
    "PullRequestService",
    "backoff_delay",
    "merge_pull_request",
]

MAX_MERGE_ATTEMPTS = 4

logger = logging.getLogger(__name__)


class PullRequestService(typ.Protocol):
    """Remote operations the orchestrator needs."""

    def get_pull_request(self, ref: PullRequestRef) -> PullRequestSnapshot:
        """Return a fresh snapshot of ``ref``."""
        ...

    def merge(self, ref: PullRequestRef, merge_method: str) -> MergeResult:
        """Merge ``ref`` using ``merge_method``."""
        ...

    def update_branch(self, ref: PullRequestRef) -> int:
        """Request a base-into-head update and return the status code."""
        ...


@dataclasses.dataclass(frozen=True, slots=True)
class MergeOutcome:
    """Terminal result of :func:`merge_pull_request`.

    Attributes
    ----------
    status : str
        ``merged`` or ``branch-updated``.
    attempts : int
        Number of mergeability evaluations performed.
    snapshot : PullRequestSnapshot
        The snapshot the final action was taken on.
    message : str
        The merge message reported by GitHub, empty for branch updates.
    """

    status: str
    attempts: int
    snapshot: PullRequestSnapshot
    message: str = ""


def backoff_delay(attempt: int) -> int:
    """Return the delay in whole seconds before the attempt after ``attempt``."""
    return 2**attempt


def _update_branch(service: PullRequestService, snapshot: PullRequestSnapshot) -> None:
    logger.info("Branch %s is behind its base, updating", snapshot.head_label)
    status = service.update_branch(snapshot.ref)
    if status != 202:
        branch = snapshot.head_label or str(snapshot.ref)
        msg = f"status {status} when updating branch {branch}"
        raise BranchUpdateError(msg, status_code=status)


def _merge(
    service: PullRequestService, snapshot: PullRequestSnapshot, merge_method: str
) -> str:
    result = service.merge(snapshot.ref, merge_method)
    if not result.merged:
        raise MergeFailedError(snapshot, result.message)
    logger.info("%s", result.message)
    return result.message


def merge_pull_request(
    service: PullRequestService,
    snapshot: PullRequestSnapshot,
    merge_method: str,
    *,
    max_attempts: int = MAX_MERGE_ATTEMPTS,
    sleep: cabc.Callable[[float], None] = time.sleep,
) -> MergeOutcome:
    """Merge the pull request described by ``snapshot``.

    Parameters
    ----------
    service
        Remote pull request operations, usually a
        :class:`~merge_gate.github_client.GitHubClient`.
    snapshot
        The latest known snapshot, typically taken from the event payload.
    merge_method
        ``merge``, ``squash`` or ``rebase``; case-insensitive.
    max_attempts
        Maximum number of mergeability evaluations while the state is
        ``unknown``.
    sleep
        Blocking delay function, replaced in tests.

    Returns
    -------
    MergeOutcome
        ``merged`` when GitHub merged the pull request, ``branch-updated``
        when the branch was behind and an update was requested.

    Raises
    ------
    MergeConflictError
        The pull request has conflicts.
    NotMergeableError
        GitHub reports the pull request as not mergeable.
    RetriesExhaustedError
        Mergeability stayed ``unknown`` for ``max_attempts`` evaluations.
    MergeFailedError
        The merge call returned ``merged: false``.
    BranchUpdateError
        GitHub did not accept the branch update.
    ValueError
        If ``max_attempts`` is less than one.
    """
    if max_attempts < 1:
        msg = f"max_attempts must be at least 1, got {max_attempts}"
        raise ValueError(msg)
    method = merge_method.strip().lower()
    for attempt in range(max_attempts):
        state = snapshot.state
        if state == "dirty":
            raise MergeConflictError(snapshot)

        if state == "behind":
            _update_branch(service, snapshot)
            return MergeOutcome(
                status="branch-updated", attempts=attempt + 1, snapshot=snapshot
            )

        if state == "unknown":
            if attempt + 1 == max_attempts:
                break
            delay = backoff_delay(attempt)
            logger.info(
                "Mergeability of %s unknown, retrying in %ss (attempt %s/%s)",
                snapshot.ref,
                delay,
                attempt + 1,
                max_attempts,
            )
            sleep(delay)
            snapshot = service.get_pull_request(snapshot.ref)
            continue

        if not snapshot.mergeable:
            raise NotMergeableError(snapshot)

        message = _merge(service, snapshot, method)
        return MergeOutcome(
            status="merged", attempts=attempt + 1, snapshot=snapshot, message=message
        )

    raise RetriesExhaustedError(snapshot, attempts=max_attempts)
