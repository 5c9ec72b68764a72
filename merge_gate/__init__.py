"""Merge gate for dependency upgrade pull requests.

The gate classifies the upgrade described by a pull request title, checks it
against an ``allowed-update`` policy and drives the pull request through
GitHub's merge API.
"""

from __future__ import annotations

from .errors import MergeGateError
from .orchestrator import MergeOutcome, merge_pull_request
from .upgrade import UpgradeType, VersionUpgrade, is_allowed, parse_version_upgrade

__all__ = [
    "MergeGateError",
    "MergeOutcome",
    "UpgradeType",
    "VersionUpgrade",
    "is_allowed",
    "merge_pull_request",
    "parse_version_upgrade",
]
