"""
github_client.py

Responsibility: Isolate all direct GitHub REST API interaction.

This module must be the only place that:
- Constructs GitHub REST endpoints
- Sends HTTP requests to api.github.com
- Interprets GitHub API responses / error payloads

The rest of the pipeline only sees the resulting `RevisionInfo`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any

import requests

from emacs_builder.config import MirrorConfig
from emacs_builder.errors import BuilderError

logger = logging.getLogger(__name__)

SHORT_SHA_LENGTH = 7


class ResolutionError(BuilderError):
    pass


@dataclass(frozen=True)
class RevisionInfo:
    identifier: str
    commit_date: date

    @property
    def short_identifier(self) -> str:
        return self.identifier[:SHORT_SHA_LENGTH]


def parse_commit_date(value: str) -> date:
    """
    Parse a GitHub timestamp ("2020-03-01T10:00:00Z") down to its calendar date.
    """
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    return datetime.fromisoformat(text).date()


def parse_commit_listing(payload: Any) -> RevisionInfo:
    """
    Extract the newest commit from a `/repos/{owner}/{repo}/commits` response.
    """
    if not isinstance(payload, list) or not payload:
        raise ResolutionError("Expected a non-empty list of commits from the GitHub API.")

    first = payload[0]
    if not isinstance(first, dict):
        raise ResolutionError("Unexpected commit entry in GitHub API response.")

    sha = first.get("sha")
    if not isinstance(sha, str) or not sha.strip():
        raise ResolutionError("Commit entry has no `sha` field.")

    commit = first.get("commit")
    committer = commit.get("committer") if isinstance(commit, dict) else None
    raw_date = committer.get("date") if isinstance(committer, dict) else None
    if not isinstance(raw_date, str) or not raw_date.strip():
        raise ResolutionError(f"Commit {sha} has no `commit.committer.date` field.")

    try:
        commit_date = parse_commit_date(raw_date)
    except ValueError as e:
        raise ResolutionError(f"Commit {sha} has an unparseable date: {raw_date!r}") from e

    return RevisionInfo(identifier=sha.strip(), commit_date=commit_date)


class GitHubClient:
    def __init__(
        self,
        mirror: MirrorConfig,
        *,
        session: requests.Session | None = None,
        timeout: float = 30,
    ) -> None:
        self._mirror = mirror
        self._api_base = mirror.api_base.rstrip("/")
        self._session = session
        self._timeout = timeout

    def _headers(self) -> dict[str, str]:
        return {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
            "User-Agent": "emacs-builder",
        }

    def _request(self, method: str, path: str, *, params: dict[str, Any] | None = None) -> Any:
        url = f"{self._api_base}{path}"
        http = self._session if self._session is not None else requests
        try:
            r = http.request(method, url, headers=self._headers(), params=params, timeout=self._timeout)
        except requests.RequestException as e:
            raise ResolutionError(f"GitHub API request failed: {method} {path}: {e}") from e
        if r.status_code >= 400:
            try:
                payload = r.json()
            except ValueError:
                payload = {"message": r.text}
            message = payload.get("message", payload) if isinstance(payload, dict) else payload
            raise ResolutionError(f"GitHub API error {r.status_code} {method} {path}: {message}")
        try:
            return r.json()
        except ValueError as e:
            raise ResolutionError(f"GitHub API returned invalid JSON for {method} {path}") from e

    def resolve_ref(self, ref: str | None = None) -> RevisionInfo:
        """
        Resolve a branch, tag or commit-ish to the newest commit reachable from it.
        """
        ref = (ref or "").strip() or self._mirror.default_ref
        logger.info("Resolving %s/%s@%s", self._mirror.owner, self._mirror.repo, ref)
        data = self._request(
            "GET",
            f"/repos/{self._mirror.owner}/{self._mirror.repo}/commits",
            params={"sha": ref, "per_page": 1},
        )
        revision = parse_commit_listing(data)
        logger.info("Resolved %s to %s (%s)", ref, revision.identifier, revision.commit_date.isoformat())
        return revision
