"""Error types shared across the merge gate package."""

from __future__ import annotations

import typing as typ

if typ.TYPE_CHECKING:
    from .models import PullRequestSnapshot

__all__ = [
    "BranchUpdateError",
    "ConfigurationError",
    "GitHubAPIError",
    "MergeConflictError",
    "MergeFailedError",
    "MergeGateError",
    "NotMergeableError",
    "PayloadError",
    "RetriesExhaustedError",
    "UpgradeParseError",
]


class MergeGateError(RuntimeError):
    """Raised when the merge gate cannot continue."""


class ConfigurationError(MergeGateError):
    """Raised when action inputs or environment values are missing or invalid."""


class PayloadError(MergeGateError):
    """Raised when the GitHub event payload cannot be used."""


class UpgradeParseError(MergeGateError):
    """Raised when a pull request title does not describe a version upgrade."""


class GitHubAPIError(MergeGateError):
    """Raised when the GitHub REST API answers with an unexpected status."""

    def __init__(self, message: str, *, status_code: int) -> None:
        super().__init__(message)
        self.status_code = status_code


class MergeConflictError(MergeGateError):
    """Raised when the pull request has merge conflicts."""

    def __init__(self, snapshot: PullRequestSnapshot) -> None:
        super().__init__(f"{snapshot.ref} has conflicts with its base branch")
        self.snapshot = snapshot


class NotMergeableError(MergeGateError):
    """Raised when GitHub reports the pull request as not mergeable."""

    def __init__(self, snapshot: PullRequestSnapshot) -> None:
        super().__init__(
            f"{snapshot.ref} is not mergeable, state: {snapshot.mergeable_state}"
        )
        self.snapshot = snapshot
        self.state = snapshot.mergeable_state


class RetriesExhaustedError(MergeGateError):
    """Raised when mergeability stays ``unknown`` for every permitted attempt."""

    def __init__(self, snapshot: PullRequestSnapshot, *, attempts: int) -> None:
        super().__init__(
            f"{snapshot.ref} mergeability still {snapshot.mergeable_state}, "
            f"giving up after {attempts} attempts"
        )
        self.snapshot = snapshot
        self.attempts = attempts


class MergeFailedError(MergeGateError):
    """Raised when the merge call succeeds but GitHub did not merge the PR."""

    def __init__(self, snapshot: PullRequestSnapshot, remote_message: str) -> None:
        super().__init__(f"{snapshot.ref} was not merged: {remote_message}")
        self.snapshot = snapshot
        self.remote_message = remote_message


class BranchUpdateError(MergeGateError):
    """Raised when GitHub does not accept a branch update request."""

    def __init__(self, message: str, *, status_code: int) -> None:
        super().__init__(message)
        self.status_code = status_code
