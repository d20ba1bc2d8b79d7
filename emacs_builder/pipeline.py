"""
pipeline.py

Responsibility: run the stages in order for one ref.

    resolve -> download -> extract (+ patch) -> build -> archive

Each stage returns the path it is responsible for, whether it produced it now
or found it already on disk; the first failure aborts the run.
"""

from __future__ import annotations

import functools
import logging
from dataclasses import dataclass

import requests

from emacs_builder.archive import archive_bundle
from emacs_builder.build import build_bundle
from emacs_builder.commands import Runner, run_command
from emacs_builder.config import BuildOptions, MirrorConfig, PathsConfig
from emacs_builder.github_client import GitHubClient, RevisionInfo
from emacs_builder.patches import PatchSpec, apply_patch, build_patch_specs
from emacs_builder.sources import download_tarball, extract_tarball
from emacs_builder.stage import Exists, StageResult, path_exists

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PipelineResult:
    revision: RevisionInfo
    stages: tuple[StageResult, ...]

    @property
    def archive(self) -> StageResult:
        return self.stages[-1]

    @property
    def produced(self) -> list[str]:
        return [s.name for s in self.stages if s.produced]


def run_pipeline(
    ref: str | None,
    options: BuildOptions,
    *,
    paths: PathsConfig,
    mirror: MirrorConfig,
    client: GitHubClient | None = None,
    session: requests.Session | None = None,
    runner: Runner = run_command,
    catalog: list[tuple[str, list[PatchSpec]]] | None = None,
    exists: Exists = path_exists,
) -> PipelineResult:
    """
    Run every stage for `ref`.

    Without an injected `session`, one `requests.Session` is opened for the
    whole run and closed when it ends.
    """
    if session is None:
        with requests.Session() as owned:
            return run_pipeline(
                ref,
                options,
                paths=paths,
                mirror=mirror,
                client=client,
                session=owned,
                runner=runner,
                catalog=catalog,
                exists=exists,
            )

    client = client or GitHubClient(mirror, session=session)
    revision = client.resolve_ref(ref)
    patches = build_patch_specs(options, catalog)

    tarball = download_tarball(paths, mirror, revision, session=session, exists=exists)
    source = extract_tarball(
        paths,
        tarball.path,
        patches,
        exists=exists,
        apply=functools.partial(apply_patch, runner=runner, session=session),
    )
    bundle = build_bundle(source.path, mirror, runner=runner, exists=exists)
    archive = archive_bundle(bundle.path, paths, mirror, revision, exists=exists)

    logger.info("Build available at %s", archive.path)
    return PipelineResult(revision=revision, stages=(tarball, source, bundle, archive))
