"""Pytest configuration for merge gate tests."""

from __future__ import annotations

import collections.abc as cabc
import json
import typing as typ

import pytest

if typ.TYPE_CHECKING:
    from pathlib import Path

PullRequestFactory = cabc.Callable[..., dict[str, object]]

_GATE_ENV_VARS = (
    "GITHUB_API_URL",
    "GITHUB_EVENT_NAME",
    "GITHUB_EVENT_PATH",
    "GITHUB_OUTPUT",
    "INPUT_ALLOWED_UPDATE",
    "INPUT_API_URL",
    "INPUT_DRY_RUN",
    "INPUT_GITHUB_TOKEN",
    "INPUT_MERGE_METHOD",
    "RUNNER_DEBUG",
)


def _pull_request(
    *,
    title: str = "Bump requests from 2.31.0 to 2.31.1",
    number: int = 7,
    mergeable: bool | None = None,
    mergeable_state: str = "unknown",
) -> dict[str, object]:
    """Return a ``pull_request`` object shaped like GitHub's REST payloads."""
    return {
        "number": number,
        "title": title,
        "mergeable": mergeable,
        "mergeable_state": mergeable_state,
        "head": {"label": "acme:dependabot/pip/requests-2.31.1"},
        "base": {"repo": {"name": "example", "owner": {"login": "acme"}}},
    }


@pytest.fixture
def pull_request() -> PullRequestFactory:
    """Return a factory for pull request payloads."""
    return _pull_request


@pytest.fixture
def write_event(tmp_path: Path) -> cabc.Callable[[dict[str, object]], Path]:
    """Return a helper that writes an event payload and returns its path."""

    def _write(payload: dict[str, object]) -> Path:
        event_path = tmp_path / "event.json"
        event_path.write_text(json.dumps(payload), encoding="utf-8")
        return event_path

    return _write


@pytest.fixture(autouse=True)
def clean_gate_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Remove GitHub Actions variables inherited from the outer environment."""
    for name in _GATE_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
