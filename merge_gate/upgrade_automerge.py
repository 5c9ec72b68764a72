"""Merge dependency upgrade pull requests whose severity the policy allows.

This is the entry point of the merge gate action. It reads the
``pull_request`` event, classifies the upgrade described by the pull request
title, and merges the pull request when the upgrade is within the configured
``allowed-update`` ceiling.

Environment Variables
---------------------
GITHUB_EVENT_NAME : str
    Must be ``pull_request``; any other event exits successfully without
    doing anything.
GITHUB_EVENT_PATH : str
    Path to the event payload.
INPUT_GITHUB_TOKEN : str
    Token with ``contents:write`` and ``pull-requests:write`` permissions.
INPUT_ALLOWED_UPDATE : str
    Highest severity to merge: ``none``, ``patch``, ``minor``, ``major`` or
    ``all``.
INPUT_MERGE_METHOD : str
    ``merge``, ``squash`` or ``rebase``.
INPUT_DRY_RUN : bool, optional
    If ``true``, logs the decision without calling the GitHub API.
INPUT_API_URL : str, optional
    REST API base URL. Falls back to ``GITHUB_API_URL``, then
    ``https://api.github.com``.

Side Effects
------------
Outside dry-run mode the pull request is merged, or, when its branch is
behind the base branch, GitHub is asked to update the branch. That update
pushes a new commit, which triggers this workflow again.
"""

from __future__ import annotations

import dataclasses
import logging
import typing as typ

import httpx
from cyclopts import App, Parameter

from .config import (
    PULL_REQUEST_EVENT,
    build_config,
    normalize_input_env,
    require_env,
    require_env_path,
)
from .errors import ConfigurationError, MergeGateError
from .event import load_event, snapshot_from_event
from .github_client import DEFAULT_API_URL, GitHubClient
from .orchestrator import merge_pull_request
from .output import configure_logging, emit, fail
from .upgrade import is_allowed, parse_version_upgrade

if typ.TYPE_CHECKING:
    from .models import PullRequestSnapshot
    from .upgrade import VersionUpgrade

app = App(help="Merge dependency upgrade pull requests allowed by policy.")

logger = logging.getLogger(__name__)

_OUTCOME_REASONS = {
    "merged": "merged",
    "branch-updated": "branch-behind-base",
}


@dataclasses.dataclass(frozen=True, slots=True)
class GateOptions:
    """CLI options for the merge gate."""

    allowed_update: typ.Annotated[
        str,
        Parameter(
            help="Highest upgrade to merge (none, patch, minor, major, all).",
            env_var="INPUT_ALLOWED_UPDATE",
        ),
    ] = ""
    merge_method: typ.Annotated[
        str,
        Parameter(
            help="Merge method to use (merge, squash, rebase).",
            env_var="INPUT_MERGE_METHOD",
        ),
    ] = ""
    dry_run: typ.Annotated[
        bool,
        Parameter(
            help="Emit decision output without API calls.",
            env_var="INPUT_DRY_RUN",
        ),
    ] = False
    api_url: typ.Annotated[
        str,
        Parameter(
            help="GitHub REST API base URL.",
            env_var=("INPUT_API_URL", "GITHUB_API_URL"),
        ),
    ] = DEFAULT_API_URL


DEFAULT_GATE_OPTIONS = GateOptions()


def _emit_decision(
    snapshot: PullRequestSnapshot,
    upgrade: VersionUpgrade,
    *,
    status: str,
    reason: str,
) -> None:
    """Emit structured decision output for the workflow log and step outputs."""
    emit("merge_gate_status", status)
    emit("merge_gate_reason", reason)
    emit("merge_gate_pr", str(snapshot.ref))
    emit("merge_gate_upgrade_type", str(upgrade.upgrade_type))
    emit("merge_gate_upgrade", str(upgrade))


def _run(github_token: str, options: GateOptions) -> None:
    event_name = require_env("GITHUB_EVENT_NAME")
    if event_name != PULL_REQUEST_EVENT:
        logger.info(
            "Event is not `%s` (got `%s`), exiting", PULL_REQUEST_EVENT, event_name
        )
        emit("merge_gate_status", "skipped")
        emit("merge_gate_reason", "event-not-pull-request")
        return

    event = load_event(require_env_path("GITHUB_EVENT_PATH"))
    snapshot = snapshot_from_event(event)
    upgrade = parse_version_upgrade(snapshot.title)
    logger.info("Detected upgrade for %s: %s", snapshot.ref, upgrade)

    config = build_config(
        allowed_update=options.allowed_update,
        merge_method=options.merge_method,
        dry_run=options.dry_run,
        api_url=options.api_url,
    )

    if not is_allowed(config.allowed_upgrade, upgrade.upgrade_type):
        logger.info("%s upgrade not allowed, skipping", upgrade.upgrade_type)
        _emit_decision(
            snapshot,
            upgrade,
            status="skipped",
            reason=f"{upgrade.upgrade_type}-not-allowed",
        )
        return

    if config.dry_run:
        _emit_decision(snapshot, upgrade, status="dry-run", reason="eligible")
        return

    if not github_token.strip():
        msg = "Required input github-token is not set."
        raise ConfigurationError(msg)

    try:
        with GitHubClient(github_token, api_url=config.api_url) as client:
            outcome = merge_pull_request(client, snapshot, config.merge_method)
    except httpx.HTTPError as exc:
        fail(f"GitHub API request for {snapshot.ref} failed: {exc}")
    _emit_decision(
        outcome.snapshot,
        upgrade,
        status=outcome.status,
        reason=_OUTCOME_REASONS[outcome.status],
    )


@app.default
def main(
    *,
    github_token: typ.Annotated[str, Parameter(env_var="INPUT_GITHUB_TOKEN")] = "",
    options: GateOptions = DEFAULT_GATE_OPTIONS,
) -> None:
    """Classify the pull request upgrade and merge it when policy allows.

    Parameters
    ----------
    github_token : str
        GitHub token read from ``INPUT_GITHUB_TOKEN``. It is only required
        once a pull request is about to be merged.
    options : GateOptions
        Policy, merge method, dry-run flag and API URL.

    Raises
    ------
    SystemExit
        Exits with code 1 on configuration, payload, classification, merge
        or GitHub API failures. Error details are written to stderr.
    """
    try:
        _run(github_token, options)
    except MergeGateError as exc:
        fail(str(exc))


def run() -> None:
    """Console script entry point."""
    configure_logging()
    normalize_input_env()
    app()


if __name__ == "__main__":
    run()
