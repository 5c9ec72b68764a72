"""Configuration helpers for the merge gate action.

GitHub Actions exposes ``with:`` inputs as ``INPUT_<NAME>`` environment
variables without rewriting dashes, so ``allowed-update`` arrives as
``INPUT_ALLOWED-UPDATE``. :func:`normalize_input_env` folds those keys into
their underscore form before the CLI reads them.
"""

from __future__ import annotations

import dataclasses
import os
from pathlib import Path

import httpx

from .errors import ConfigurationError
from .upgrade import UpgradeType, parse_allowed_upgrade

__all__ = [
    "PULL_REQUEST_EVENT",
    "GateConfig",
    "build_config",
    "normalize_api_url",
    "normalize_input_env",
    "normalize_merge_method",
    "require_env",
    "require_env_path",
]

PULL_REQUEST_EVENT = "pull_request"
MERGE_METHODS = frozenset({"merge", "rebase", "squash"})


@dataclasses.dataclass(frozen=True, slots=True)
class GateConfig:
    """Validated policy for one merge gate run.

    Attributes
    ----------
    allowed_upgrade : UpgradeType or None
        Highest upgrade severity that may be merged; None allows nothing.
    merge_method : str
        ``merge``, ``squash`` or ``rebase``.
    dry_run : bool
        If True, the decision is reported without calling the GitHub API.
    api_url : str
        Base URL of the GitHub REST API.
    """

    allowed_upgrade: UpgradeType | None
    merge_method: str
    dry_run: bool
    api_url: str


def normalize_input_env(prefix: str = "INPUT_") -> None:
    """Rewrite dashed ``INPUT_`` keys to underscore keys in ``os.environ``.

    Existing underscore keys win over dashed duplicates. Dashed keys are
    removed afterwards.
    """
    updates: dict[str, str] = {}
    removals: list[str] = []
    for key, value in os.environ.items():
        if not key.startswith(prefix) or "-" not in key:
            continue
        normalized = key.replace("-", "_")
        if normalized not in os.environ:
            updates[normalized] = value
        removals.append(key)
    for key, value in updates.items():
        os.environ[key] = value
    for key in removals:
        os.environ.pop(key, None)


def require_env(name: str) -> str:
    """Return the value of ``name`` or raise :class:`ConfigurationError`."""
    value = os.environ.get(name, "")
    if not value:
        msg = f"Required environment variable {name} is not set."
        raise ConfigurationError(msg)
    return value


def require_env_path(name: str) -> Path:
    """Return ``Path`` value for ``name`` or raise :class:`ConfigurationError`."""
    return Path(require_env(name))


def normalize_merge_method(merge_method: str) -> str:
    """Validate a merge method and return it in the REST API's lower-case form."""
    normalized = merge_method.strip().lower()
    if normalized not in MERGE_METHODS:
        allowed = ", ".join(sorted(MERGE_METHODS))
        msg = f"Invalid merge_method '{merge_method}'. Allowed: {allowed}."
        raise ConfigurationError(msg)
    return normalized


def normalize_api_url(api_url: str) -> str:
    """Return ``api_url`` stripped if it is an absolute http or https URL."""
    stripped = api_url.strip()
    try:
        url = httpx.URL(stripped)
    except httpx.InvalidURL as exc:
        msg = f"Invalid api-url '{api_url}': {exc}"
        raise ConfigurationError(msg) from exc
    if url.scheme not in {"http", "https"} or not url.host:
        msg = f"Invalid api-url '{api_url}'. Expected an http or https URL."
        raise ConfigurationError(msg)
    return stripped


def build_config(
    *,
    allowed_update: str,
    merge_method: str,
    dry_run: bool,
    api_url: str,
) -> GateConfig:
    """Validate raw inputs into a :class:`GateConfig`.

    Raises
    ------
    ConfigurationError
        If an input is empty, the policy or merge method is not recognised,
        or the API URL is malformed.
    """
    for name, value in (
        ("allowed-update", allowed_update),
        ("merge-method", merge_method),
        ("api-url", api_url),
    ):
        if not value.strip():
            msg = f"Required input {name} is not set."
            raise ConfigurationError(msg)
    return GateConfig(
        allowed_upgrade=parse_allowed_upgrade(allowed_update),
        merge_method=normalize_merge_method(merge_method),
        dry_run=dry_run,
        api_url=normalize_api_url(api_url),
    )
