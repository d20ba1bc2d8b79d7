from __future__ import annotations

from datetime import date

import pytest
import requests

from conftest import SHA, FakeResponse, FakeSession, commits_payload
from emacs_builder.config import MirrorConfig
from emacs_builder.github_client import GitHubClient, ResolutionError, RevisionInfo, parse_commit_listing

COMMITS_URL = "https://api.github.com/repos/emacs-mirror/emacs/commits"


def _client(response: FakeResponse | Exception) -> tuple[GitHubClient, FakeSession]:
    session = FakeSession({COMMITS_URL: response})
    return GitHubClient(MirrorConfig(), session=session), session


def test_resolve_ref_returns_sha_and_commit_date() -> None:
    client, session = _client(FakeResponse(json_data=commits_payload()))

    revision = client.resolve_ref("emacs-27")

    assert revision == RevisionInfo(identifier=SHA, commit_date=date(2020, 3, 1))
    assert revision.short_identifier == "abcdef1"
    _method, _url, kwargs = session.calls[0]
    assert kwargs["params"] == {"sha": "emacs-27", "per_page": 1}


def test_resolve_ref_defaults_to_master() -> None:
    client, session = _client(FakeResponse(json_data=commits_payload()))

    client.resolve_ref(None)
    client.resolve_ref("  ")

    assert [kw["params"]["sha"] for _m, _u, kw in session.calls] == ["master", "master"]


def test_commit_date_drops_time_of_day_and_offset() -> None:
    revision = parse_commit_listing(commits_payload(when="2019-12-31T23:59:59-05:00"))
    assert revision.commit_date == date(2019, 12, 31)


@pytest.mark.parametrize(
    "payload",
    [
        [],
        {"message": "oops"},
        [{"commit": {"committer": {"date": "2020-03-01T10:00:00Z"}}}],
        [{"sha": SHA}],
        [{"sha": SHA, "commit": {"committer": {}}}],
        [{"sha": SHA, "commit": {"committer": {"date": "yesterday"}}}],
        ["not-a-commit"],
    ],
)
def test_malformed_listing_raises_resolution_error(payload: object) -> None:
    client, _ = _client(FakeResponse(json_data=payload))
    with pytest.raises(ResolutionError):
        client.resolve_ref("master")


def test_http_error_status_raises_resolution_error() -> None:
    client, _ = _client(FakeResponse(status_code=422, json_data={"message": "No commit found for SHA: nope"}))
    with pytest.raises(ResolutionError, match="No commit found"):
        client.resolve_ref("nope")


def test_invalid_json_raises_resolution_error() -> None:
    client, _ = _client(FakeResponse(text="<html>"))
    with pytest.raises(ResolutionError, match="invalid JSON"):
        client.resolve_ref("master")


def test_network_failure_raises_resolution_error() -> None:
    client, _ = _client(requests.ConnectionError("unreachable"))
    with pytest.raises(ResolutionError, match="unreachable"):
        client.resolve_ref("master")
