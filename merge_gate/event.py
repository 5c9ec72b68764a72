"""Load the GitHub event payload and build pull request snapshots from it."""

from __future__ import annotations

import json
import typing as typ
from pathlib import Path

from .errors import PayloadError
from .models import PullRequestRef, PullRequestSnapshot

__all__ = ["load_event", "snapshot_from_event", "snapshot_from_pull_request"]

# Type alias for JSON-compatible values (parsed from json.loads)
JsonValue: typ.TypeAlias = (
    "str | int | float | bool | None | list[JsonValue] | dict[str, JsonValue]"
)


def load_event(event_path: Path) -> dict[str, JsonValue]:
    """Read and decode the event payload stored at ``event_path``."""
    try:
        text = event_path.read_text(encoding="utf-8")
    except OSError as exc:
        msg = f"Error opening event payload {event_path}: {exc}"
        raise PayloadError(msg) from exc
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as exc:
        msg = f"Error parsing event JSON: {exc}"
        raise PayloadError(msg) from exc
    if not isinstance(payload, dict):
        msg = "Event payload is not a JSON object."
        raise PayloadError(msg)
    return payload


def _nested(data: dict[str, JsonValue], *keys: str) -> JsonValue:
    """Walk ``keys`` through nested mappings, returning None on a gap."""
    current: JsonValue = data
    for key in keys:
        if not isinstance(current, dict):
            return None
        current = current.get(key)
    return current


def _parse_number(pr: dict[str, JsonValue]) -> int:
    number = pr.get("number")
    if number is None or isinstance(number, bool):
        msg = "Pull request payload missing number."
        raise PayloadError(msg)
    try:
        return int(typ.cast("int | str", number))
    except (TypeError, ValueError) as exc:
        msg = f"Pull request number {number!r} is not an integer."
        raise PayloadError(msg) from exc


def _parse_mergeable(pr: dict[str, JsonValue]) -> bool | None:
    mergeable = pr.get("mergeable")
    if mergeable is None or isinstance(mergeable, bool):
        return mergeable
    msg = f"Pull request mergeable flag {mergeable!r} is not a boolean."
    raise PayloadError(msg)


def snapshot_from_pull_request(pr: dict[str, JsonValue]) -> PullRequestSnapshot:
    """Build a snapshot from a REST or webhook ``pull_request`` object.

    The repository identity comes from ``base.repo`` so that pull requests
    opened from forks are merged into the base repository.

    Raises
    ------
    PayloadError
        If the title, number or base repository are missing.
    """
    title = pr.get("title")
    if not isinstance(title, str) or not title:
        msg = "No pull request title in payload."
        raise PayloadError(msg)

    owner = _nested(pr, "base", "repo", "owner", "login")
    repo = _nested(pr, "base", "repo", "name")
    if not isinstance(owner, str) or not isinstance(repo, str) or not owner or not repo:
        msg = "Pull request payload missing base repository owner/name."
        raise PayloadError(msg)

    state = pr.get("mergeable_state")
    head_label = _nested(pr, "head", "label")
    return PullRequestSnapshot(
        ref=PullRequestRef(owner=owner, repo=repo, number=_parse_number(pr)),
        title=title,
        mergeable=_parse_mergeable(pr),
        mergeable_state=state if isinstance(state, str) else "unknown",
        head_label=head_label if isinstance(head_label, str) else "",
    )


def snapshot_from_event(event: dict[str, JsonValue]) -> PullRequestSnapshot:
    """Return the seed snapshot from a ``pull_request`` event payload."""
    pr = event.get("pull_request")
    if not isinstance(pr, dict):
        msg = "Event payload does not include pull_request data."
        raise PayloadError(msg)
    return snapshot_from_pull_request(pr)
