"""
sources.py

Responsibility: get a revision's source tree onto disk.

- `download_tarball`: fetch the GitHub snapshot into the tarball cache
- `extract_tarball`: unpack it into the source cache and patch fresh trees

Both stages are keyed on the full revision sha, never on the ref the user
typed, so every ref that resolves to the same commit shares one cache entry.
"""

from __future__ import annotations

import logging
import shutil
import tarfile
from pathlib import Path
from typing import Callable, Sequence

import requests
from jinja2 import Environment, StrictUndefined, TemplateError

from emacs_builder.config import MirrorConfig, PathsConfig, ensure_dir
from emacs_builder.download import DownloadError, download_file
from emacs_builder.errors import BuilderError
from emacs_builder.github_client import RevisionInfo
from emacs_builder.patches import PatchSpec, apply_patch
from emacs_builder.stage import Exists, StageResult, path_exists, run_stage

logger = logging.getLogger(__name__)

TARBALL_SUFFIX = ".tgz"


class ExtractionError(BuilderError):
    pass


def tarball_url(mirror: MirrorConfig, revision: RevisionInfo) -> str:
    env = Environment(autoescape=False, undefined=StrictUndefined)
    try:
        return env.from_string(mirror.tarball_url_template).render(
            owner=mirror.owner,
            repo=mirror.repo,
            sha=revision.identifier,
            short_sha=revision.short_identifier,
        )
    except TemplateError as e:
        raise DownloadError(f"Invalid tarball URL template: {mirror.tarball_url_template}") from e


def tarball_path(paths: PathsConfig, mirror: MirrorConfig, revision: RevisionInfo) -> Path:
    return paths.tarballs_dir / f"{mirror.tarball_prefix}-{revision.short_identifier}{TARBALL_SUFFIX}"


def source_dir_for(paths: PathsConfig, tarball: Path) -> Path:
    return paths.sources_dir / tarball.stem


def staging_dir_for(target: Path) -> Path:
    return target.with_name(f".{target.name}.tmp")


def download_tarball(
    paths: PathsConfig,
    mirror: MirrorConfig,
    revision: RevisionInfo,
    *,
    session: requests.Session | None = None,
    exists: Exists = path_exists,
) -> StageResult:
    ensure_dir(paths.tarballs_dir)
    target = tarball_path(paths, mirror, revision)

    def _produce() -> None:
        download_file(tarball_url(mirror, revision), target, session=session)

    return run_stage("Download", target, _produce, exists=exists)


def _unpack(tarball: Path, destination: Path) -> None:
    try:
        with tarfile.open(tarball, "r:*") as tar:
            tar.extractall(destination, filter="data")
    except (tarfile.TarError, OSError) as e:
        raise ExtractionError(f"Failed to extract {tarball}: {e}") from e


def extract_tarball(
    paths: PathsConfig,
    tarball: Path,
    patches: Sequence[PatchSpec] = (),
    *,
    exists: Exists = path_exists,
    apply: Callable[[PatchSpec, Path], object] = apply_patch,
) -> StageResult:
    """
    Unpack `tarball` into the source cache.

    Patches are applied only to a tree extracted by this call; an existing tree
    is returned untouched. The tree is unpacked and patched under a hidden
    staging directory and only renamed into place once every patch applied, so
    a failed patch never leaves a tree at the target path.
    """
    ensure_dir(paths.sources_dir)
    target = source_dir_for(paths, tarball)
    staging = staging_dir_for(target)

    def _produce() -> None:
        logger.info("Extracting %s", tarball.name)
        shutil.rmtree(staging, ignore_errors=True)
        staged_tree = staging / target.name
        try:
            _unpack(tarball, staging)
            if not staged_tree.is_dir():
                raise ExtractionError(f"Extracting {tarball} did not produce {target}")
            for spec in patches:
                apply(spec, staged_tree)
            staged_tree.rename(target)
        finally:
            shutil.rmtree(staging, ignore_errors=True)

    return run_stage("Extract", target, _produce, exists=exists)
