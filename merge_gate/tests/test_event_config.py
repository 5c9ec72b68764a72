"""Tests for event payload loading and configuration helpers."""

from __future__ import annotations

import collections.abc as cabc
import os
import typing as typ

import pytest

from merge_gate import config, event
from merge_gate.errors import ConfigurationError, PayloadError
from merge_gate.upgrade import UpgradeType

if typ.TYPE_CHECKING:
    from pathlib import Path

PullRequestFactory = cabc.Callable[..., dict[str, object]]


class TestLoadEvent:
    """Tests for load_event."""

    def test_reads_payload(
        self,
        write_event: cabc.Callable[[dict[str, object]], Path],
        pull_request: PullRequestFactory,
    ) -> None:
        """Valid JSON objects are returned as dictionaries."""
        path = write_event({"pull_request": pull_request()})
        payload = event.load_event(path)
        assert payload["pull_request"]["number"] == 7

    def test_missing_file(self, tmp_path: Path) -> None:
        """Unreadable payloads raise PayloadError."""
        with pytest.raises(PayloadError, match="Error opening event payload"):
            event.load_event(tmp_path / "missing.json")

    def test_malformed_json(self, tmp_path: Path) -> None:
        """Malformed JSON raises PayloadError."""
        path = tmp_path / "event.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(PayloadError, match="Error parsing event JSON"):
            event.load_event(path)

    def test_non_object_json(self, tmp_path: Path) -> None:
        """Top-level arrays are rejected."""
        path = tmp_path / "event.json"
        path.write_text("[]", encoding="utf-8")
        with pytest.raises(PayloadError, match="not a JSON object"):
            event.load_event(path)


class TestSnapshotFromEvent:
    """Tests for snapshot_from_event."""

    def test_builds_snapshot(self, pull_request: PullRequestFactory) -> None:
        """The base repository identity and mergeability are extracted."""
        snapshot = event.snapshot_from_event(
            {"pull_request": pull_request(mergeable=True, mergeable_state="clean")}
        )
        assert str(snapshot.ref) == "acme/example#7"
        assert snapshot.title == "Bump requests from 2.31.0 to 2.31.1"
        assert snapshot.mergeable is True
        assert snapshot.state == "clean"
        assert snapshot.head_label == "acme:dependabot/pip/requests-2.31.1"

    def test_string_number_parsed(self, pull_request: PullRequestFactory) -> None:
        """String numbers are converted to int."""
        pr = pull_request() | {"number": "12"}
        assert event.snapshot_from_event({"pull_request": pr}).ref.number == 12

    def test_missing_state_defaults_to_unknown(
        self, pull_request: PullRequestFactory
    ) -> None:
        """A payload without mergeable_state is treated as not yet computed."""
        pr = pull_request()
        del pr["mergeable_state"]
        assert event.snapshot_from_event({"pull_request": pr}).state == "unknown"

    @pytest.mark.parametrize(
        ("mutation", "message"),
        [
            ({"title": None}, "No pull request title"),
            ({"title": ""}, "No pull request title"),
            ({"number": None}, "missing number"),
            ({"number": "seven"}, "not an integer"),
            ({"base": {}}, "base repository"),
            ({"mergeable": "yes"}, "not a boolean"),
        ],
    )
    def test_rejects_incomplete_payloads(
        self,
        pull_request: PullRequestFactory,
        mutation: dict[str, object],
        message: str,
    ) -> None:
        """Missing or malformed fields raise PayloadError."""
        pr = pull_request() | mutation
        with pytest.raises(PayloadError, match=message):
            event.snapshot_from_event({"pull_request": pr})

    def test_requires_pull_request(self) -> None:
        """Payloads without pull_request data are rejected."""
        with pytest.raises(PayloadError, match="does not include pull_request"):
            event.snapshot_from_event({"action": "opened"})


class TestNormalizeInputEnv:
    """Tests for normalize_input_env."""

    def test_dashed_keys_normalised(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Dashed input keys are rewritten to underscores and removed."""
        monkeypatch.setenv("INPUT_ALLOWED-UPDATE", "minor")
        monkeypatch.delenv("INPUT_ALLOWED_UPDATE", raising=False)

        config.normalize_input_env()

        assert os.environ.get("INPUT_ALLOWED_UPDATE") == "minor"
        assert "INPUT_ALLOWED-UPDATE" not in os.environ

    def test_underscore_keys_win(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Existing underscore keys are preserved over dashed duplicates."""
        monkeypatch.setenv("INPUT_MERGE_METHOD", "squash")
        monkeypatch.setenv("INPUT_MERGE-METHOD", "rebase")

        config.normalize_input_env()

        assert os.environ.get("INPUT_MERGE_METHOD") == "squash"
        assert "INPUT_MERGE-METHOD" not in os.environ


class TestRequireEnv:
    """Tests for require_env and require_env_path."""

    def test_returns_value(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Set variables are returned."""
        monkeypatch.setenv("GITHUB_EVENT_NAME", "pull_request")
        assert config.require_env("GITHUB_EVENT_NAME") == "pull_request"

    def test_missing_raises(self) -> None:
        """Unset variables raise ConfigurationError naming the variable."""
        with pytest.raises(ConfigurationError, match="GITHUB_EVENT_PATH"):
            config.require_env_path("GITHUB_EVENT_PATH")


class TestBuildConfig:
    """Tests for build_config and normalize_merge_method."""

    @pytest.mark.parametrize(
        ("value", "expected"),
        [("squash", "squash"), ("SQUASH", "squash"), (" Rebase ", "rebase")],
    )
    def test_merge_method_normalised(self, value: str, expected: str) -> None:
        """Merge methods are validated case-insensitively."""
        assert config.normalize_merge_method(value) == expected

    def test_invalid_merge_method(self) -> None:
        """Unknown merge methods are configuration errors."""
        with pytest.raises(ConfigurationError, match="Invalid merge_method"):
            config.normalize_merge_method("fast-forward")

    def test_builds_config(self) -> None:
        """Valid inputs produce a GateConfig."""
        gate_config = config.build_config(
            allowed_update="minor",
            merge_method="Merge",
            dry_run=True,
            api_url=" https://api.github.com ",
        )
        assert gate_config.allowed_upgrade is UpgradeType.MINOR
        assert gate_config.merge_method == "merge"
        assert gate_config.dry_run is True
        assert gate_config.api_url == "https://api.github.com"

    @pytest.mark.parametrize(
        ("overrides", "name"),
        [
            ({"allowed_update": ""}, "allowed-update"),
            ({"merge_method": "  "}, "merge-method"),
            ({"api_url": ""}, "api-url"),
        ],
    )
    def test_empty_inputs_rejected(self, overrides: dict[str, str], name: str) -> None:
        """Empty required inputs name the missing input."""
        inputs = {
            "allowed_update": "patch",
            "merge_method": "squash",
            "api_url": "https://api.github.com",
        } | overrides
        with pytest.raises(ConfigurationError, match=f"Required input {name}"):
            config.build_config(dry_run=False, **inputs)

    @pytest.mark.parametrize(
        "api_url",
        ["api.github.com", "ftp://ghe.example.com", "https://api.github.com:port"],
        ids=["no-scheme", "wrong-scheme", "bad-port"],
    )
    def test_malformed_api_url_rejected(self, api_url: str) -> None:
        """API URLs must be absolute http(s) URLs."""
        with pytest.raises(ConfigurationError, match="Invalid api-url"):
            config.build_config(
                allowed_update="patch",
                merge_method="squash",
                dry_run=False,
                api_url=api_url,
            )
