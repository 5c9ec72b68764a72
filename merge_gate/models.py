"""Immutable snapshots exchanged between the GitHub client and the orchestrator."""

from __future__ import annotations

import dataclasses

__all__ = ["MergeResult", "PullRequestRef", "PullRequestSnapshot"]


@dataclasses.dataclass(frozen=True, slots=True)
class PullRequestRef:
    """Identity of a pull request on GitHub."""

    owner: str
    repo: str
    number: int

    def __str__(self) -> str:
        return f"{self.owner}/{self.repo}#{self.number}"


@dataclasses.dataclass(frozen=True, slots=True)
class PullRequestSnapshot:
    """Point-in-time view of a pull request's mergeability.

    Attributes
    ----------
    ref : PullRequestRef
        The pull request identity.
    title : str
        The pull request title.
    mergeable : bool or None
        GitHub's mergeable flag. ``None`` while GitHub is still computing it.
    mergeable_state : str
        GitHub's ``mergeable_state`` string, e.g. ``clean`` or ``behind``.
    head_label : str
        The ``user:branch`` label of the head branch, used in messages.
    """

    ref: PullRequestRef
    title: str
    mergeable: bool | None
    mergeable_state: str
    head_label: str = ""

    @property
    def state(self) -> str:
        """Return the mergeable state normalised to lower case."""
        return self.mergeable_state.strip().lower()


@dataclasses.dataclass(frozen=True, slots=True)
class MergeResult:
    """Response of the merge endpoint."""

    merged: bool
    message: str
    sha: str | None = None
