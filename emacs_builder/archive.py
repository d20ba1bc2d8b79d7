"""
archive.py

Responsibility: pack a finished bundle into a dated, revision-tagged .tbz.
"""

from __future__ import annotations

import logging
import tarfile
from pathlib import Path

from emacs_builder.config import MirrorConfig, PathsConfig, ensure_dir
from emacs_builder.errors import BuilderError
from emacs_builder.github_client import RevisionInfo
from emacs_builder.stage import Exists, StageResult, path_exists, run_stage

logger = logging.getLogger(__name__)


class ArchiveError(BuilderError):
    pass


def archive_name(mirror: MirrorConfig, revision: RevisionInfo) -> str:
    return f"{mirror.bundle_name}-{revision.commit_date.isoformat()}-({revision.short_identifier}).tbz"


def archive_path(paths: PathsConfig, mirror: MirrorConfig, revision: RevisionInfo) -> Path:
    return paths.builds_dir / archive_name(mirror, revision)


def archive_bundle(
    bundle: Path,
    paths: PathsConfig,
    mirror: MirrorConfig,
    revision: RevisionInfo,
    *,
    exists: Exists = path_exists,
) -> StageResult:
    ensure_dir(paths.builds_dir)
    target = archive_path(paths, mirror, revision)

    def _produce() -> None:
        logger.info("Archiving %s to %s", bundle.name, target.name)
        # Entries are rooted at the bundle's own name, e.g. "Emacs.app/Contents/...".
        try:
            with tarfile.open(target, "w:bz2") as tar:
                tar.add(bundle, arcname=bundle.name)
        except (tarfile.TarError, OSError) as e:
            target.unlink(missing_ok=True)
            raise ArchiveError(f"Failed to archive {bundle}: {e}") from e

    return run_stage("Archive", target, _produce, exists=exists)
