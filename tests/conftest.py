from __future__ import annotations

import io
import tarfile
from datetime import date
from pathlib import Path
from typing import Any

import pytest
import requests

from emacs_builder.commands import CommandResult
from emacs_builder.config import MirrorConfig, PathsConfig
from emacs_builder.github_client import RevisionInfo

SHA = "abcdef1234567890abcdef1234567890abcdef12"
TREE_NAME = "emacs-mirror-emacs-abcdef1"
NSTERM_SOURCE = b"""\
static void
ns_get_color (const char *name, NSColor **col)
{
  *col = [NSColor colorWithCalibratedRed: r green: g blue: b alpha: 1.0];
}
"""

_NO_JSON = object()


class FakeResponse:
    def __init__(self, *, status_code: int = 200, json_data: Any = _NO_JSON, content: bytes = b"", text: str = "") -> None:
        self.status_code = status_code
        self._json = json_data
        self.content = content
        self.text = text

    def json(self) -> Any:
        if self._json is _NO_JSON:
            raise ValueError("No JSON object could be decoded")
        return self._json

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Error")

    def iter_content(self, chunk_size: int = 1):
        for i in range(0, len(self.content), chunk_size):
            yield self.content[i : i + chunk_size]

    def __enter__(self) -> FakeResponse:
        return self

    def __exit__(self, *exc: object) -> None:
        return None


class FakeSession:
    """Routes requests by URL; records every call."""

    def __init__(self, routes: dict[str, FakeResponse | Exception] | None = None) -> None:
        self.routes = dict(routes or {})
        self.calls: list[tuple[str, str, dict[str, Any]]] = []
        self.closed = False

    def __enter__(self) -> FakeSession:
        return self

    def __exit__(self, *exc: object) -> None:
        self.closed = True

    def request(self, method: str, url: str, **kwargs: Any) -> FakeResponse:
        self.calls.append((method, url, kwargs))
        route = self.routes.get(url)
        if route is None:
            return FakeResponse(status_code=404, json_data={"message": "Not Found"})
        if isinstance(route, Exception):
            raise route
        return route

    def get(self, url: str, **kwargs: Any) -> FakeResponse:
        return self.request("GET", url, **kwargs)

    def urls(self, method: str = "GET") -> list[str]:
        return [url for m, url, _ in self.calls if m == method]


class FakeRunner:
    """Records commands; `make install` drops a bundle unless told otherwise."""

    def __init__(self, *, produce_bundle: bool = True, returncodes: dict[str, int] | None = None) -> None:
        self.produce_bundle = produce_bundle
        self.returncodes = returncodes or {}
        self.calls: list[tuple[list[str], Path]] = []

    def __call__(self, cmd: list[str], *, cwd: Path) -> CommandResult:
        self.calls.append((list(cmd), Path(cwd)))
        if cmd == ["make", "install"] and self.produce_bundle:
            plist = Path(cwd) / "nextstep" / "Emacs.app" / "Contents" / "Info.plist"
            plist.parent.mkdir(parents=True, exist_ok=True)
            plist.write_text("<plist/>", encoding="utf-8")
        code = self.returncodes.get(cmd[0], 0)
        return CommandResult(args=tuple(cmd), returncode=code, output="")

    @property
    def commands(self) -> list[list[str]]:
        return [cmd for cmd, _ in self.calls]


def make_tarball(top: str, files: dict[str, bytes]) -> bytes:
    buf = io.BytesIO()
    with tarfile.open(fileobj=buf, mode="w:gz") as tar:
        for rel, data in files.items():
            info = tarfile.TarInfo(f"{top}/{rel}")
            info.size = len(data)
            info.mode = 0o755 if rel.endswith(".sh") else 0o644
            tar.addfile(info, io.BytesIO(data))
    return buf.getvalue()


def commits_payload(sha: str = SHA, when: str = "2020-03-01T10:00:00Z") -> list[dict[str, Any]]:
    return [{"sha": sha, "commit": {"committer": {"date": when}}}]


@pytest.fixture
def mirror() -> MirrorConfig:
    return MirrorConfig()


@pytest.fixture
def paths(tmp_path: Path) -> PathsConfig:
    return PathsConfig.from_root(tmp_path / "work")


@pytest.fixture
def revision() -> RevisionInfo:
    return RevisionInfo(identifier=SHA, commit_date=date(2020, 3, 1))


@pytest.fixture
def tarball_bytes() -> bytes:
    return make_tarball(
        TREE_NAME,
        {
            "autogen.sh": b"#!/bin/sh\n",
            "configure.ac": b"AC_INIT\n",
            "src/nsterm.m": NSTERM_SOURCE,
        },
    )
