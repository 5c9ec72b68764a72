"""GitHub REST client for the pull request endpoints the merge gate needs.

Only three calls are made: fetch a pull request, merge it, and ask GitHub to
merge the base branch into its head branch. Nothing is retried here; the
orchestrator owns the retry policy and transport failures surface as
``httpx.HTTPError``.
"""

from __future__ import annotations

import logging
import typing as typ

import httpx

from .errors import GitHubAPIError
from .event import snapshot_from_pull_request
from .models import MergeResult, PullRequestRef, PullRequestSnapshot

if typ.TYPE_CHECKING:
    from types import TracebackType

__all__ = ["DEFAULT_API_URL", "GitHubClient"]

DEFAULT_API_URL = "https://api.github.com"
_API_VERSION = "2022-11-28"
_USER_AGENT = "upgrade-merge-gate"
_ERROR_DETAIL_LIMIT = 1024

logger = logging.getLogger(__name__)


def _extract_error_detail(response: httpx.Response) -> str:
    """Return the GitHub error message, falling back to the raw body."""
    try:
        payload = response.json()
    except ValueError:
        payload = None
    if isinstance(payload, dict) and isinstance(payload.get("message"), str):
        detail = payload["message"]
    else:
        detail = response.text.strip() or response.reason_phrase or ""
    return detail[:_ERROR_DETAIL_LIMIT]


def _raise_for_status(response: httpx.Response, action: str) -> None:
    """Raise :class:`GitHubAPIError` for any non-success status."""
    if response.is_success:
        return
    status = response.status_code
    detail = _extract_error_detail(response)

    if status == httpx.codes.UNAUTHORIZED:
        message = (
            f"GitHub rejected the token while trying to {action} (401 Unauthorized). "
            "Verify that the github-token input is correct and has not expired."
        )
    elif status == httpx.codes.FORBIDDEN:
        message = (
            f"GitHub token lacks permission to {action} (403 Forbidden). "
            "Grant contents:write and pull-requests:write."
        )
    elif status == httpx.codes.NOT_FOUND:
        message = f"GitHub could not {action}: not found (404)."
    else:
        message = f"GitHub API request to {action} failed with status {status}."
    if detail:
        message = f"{message} ({detail})"
    raise GitHubAPIError(message, status_code=status)


def _json_object(response: httpx.Response, action: str) -> dict[str, typ.Any]:
    try:
        payload = response.json()
    except ValueError as exc:
        message = f"GitHub API returned invalid JSON while trying to {action}."
        raise GitHubAPIError(message, status_code=response.status_code) from exc
    if not isinstance(payload, dict):
        message = f"GitHub API returned a non-object payload while trying to {action}."
        raise GitHubAPIError(message, status_code=response.status_code)
    return payload


class GitHubClient:
    """Authenticated client for the pull request REST endpoints.

    Use as a context manager so the underlying connection pool is closed::

        with GitHubClient(token) as client:
            snapshot = client.get_pull_request(ref)
    """

    def __init__(
        self,
        token: str,
        *,
        api_url: str = DEFAULT_API_URL,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        headers = {
            "Authorization": f"Bearer {token}",
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": _API_VERSION,
            "User-Agent": _USER_AGENT,
        }
        self._client = httpx.Client(
            base_url=api_url.rstrip("/"),
            headers=headers,
            timeout=httpx.Timeout(30.0),
            transport=transport,
        )

    def __enter__(self) -> GitHubClient:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        self.close()

    def close(self) -> None:
        """Close the underlying HTTP client."""
        self._client.close()

    @staticmethod
    def _pull_path(ref: PullRequestRef) -> str:
        return f"/repos/{ref.owner}/{ref.repo}/pulls/{ref.number}"

    def get_pull_request(self, ref: PullRequestRef) -> PullRequestSnapshot:
        """Fetch a fresh snapshot of ``ref``."""
        action = f"fetch {ref}"
        response = self._client.get(self._pull_path(ref))
        _raise_for_status(response, action)
        snapshot = snapshot_from_pull_request(_json_object(response, action))
        logger.debug(
            "Fetched %s: mergeable=%s state=%s",
            ref,
            snapshot.mergeable,
            snapshot.mergeable_state,
        )
        return snapshot

    def merge(self, ref: PullRequestRef, merge_method: str) -> MergeResult:
        """Merge ``ref`` with ``merge_method`` (``merge``, ``squash`` or ``rebase``)."""
        action = f"merge {ref}"
        response = self._client.put(
            f"{self._pull_path(ref)}/merge",
            json={"merge_method": merge_method},
        )
        _raise_for_status(response, action)
        payload = _json_object(response, action)
        sha = payload.get("sha")
        return MergeResult(
            merged=bool(payload.get("merged", False)),
            message=str(payload.get("message") or ""),
            sha=sha if isinstance(sha, str) else None,
        )

    def update_branch(self, ref: PullRequestRef) -> int:
        """Ask GitHub to merge the base branch into the head of ``ref``.

        Returns the response status code; GitHub answers ``202 Accepted``
        when the update has been scheduled.
        """
        response = self._client.put(f"{self._pull_path(ref)}/update-branch", json={})
        _raise_for_status(response, f"update the branch of {ref}")
        return response.status_code
