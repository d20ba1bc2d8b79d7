"""
config.py

Responsibility: immutable configuration built once at startup and passed
explicitly into every stage.

- `PathsConfig`: the on-disk cache layout (tarballs / sources / builds).
- `MirrorConfig`: where the sources come from and what the build produces.
- `BuildOptions`: user-selected compatibility patches.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class PathsConfig:
    """Working directories; created on demand, never cleaned up."""

    root: Path
    tarballs_dir: Path
    sources_dir: Path
    builds_dir: Path

    @classmethod
    def from_root(cls, root: str | Path) -> PathsConfig:
        root_path = Path(root).resolve()
        return cls(
            root=root_path,
            tarballs_dir=root_path / "tarballs",
            sources_dir=root_path / "sources",
            builds_dir=root_path / "builds",
        )


def ensure_dir(path: Path) -> Path:
    path.mkdir(parents=True, exist_ok=True)
    return path


@dataclass(frozen=True)
class MirrorConfig:
    """Remote source location and build toolchain settings."""

    owner: str = "emacs-mirror"
    repo: str = "emacs"
    api_base: str = "https://api.github.com"
    tarball_url_template: str = "https://github.com/{{ owner }}/{{ repo }}/tarball/{{ sha }}"
    default_ref: str = "master"
    app_name: str = "Emacs"
    configure_flags: tuple[str, ...] = ("--with-ns",)

    @property
    def tarball_prefix(self) -> str:
        # GitHub names snapshot directories "<owner>-<repo>-<short sha>".
        return f"{self.owner}-{self.repo}"

    @property
    def bundle_name(self) -> str:
        return f"{self.app_name}.app"


@dataclass(frozen=True)
class BuildOptions:
    enable_srgb_patch: bool = False
    enable_srgb_244_patch: bool = False
