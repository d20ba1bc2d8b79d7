"""
build.py

Responsibility: compile a source tree into the NextStep application bundle.

The autoconf/make steps are run in order and their exit statuses recorded;
success is judged only by whether `nextstep/<App>.app` exists afterwards.
"""

from __future__ import annotations

import logging
from pathlib import Path

from emacs_builder.commands import CommandResult, Runner, run_command
from emacs_builder.config import MirrorConfig
from emacs_builder.errors import BuilderError
from emacs_builder.stage import Exists, StageResult, path_exists, run_stage

logger = logging.getLogger(__name__)

# Checked in order; the first one present is used.
BOOTSTRAP_SCRIPTS = ("autogen/copy_autogen", "autogen.sh")


class BuildError(BuilderError):
    pass


def bundle_path(source_dir: Path, mirror: MirrorConfig) -> Path:
    return source_dir / "nextstep" / mirror.bundle_name


def bootstrap_command(source_dir: Path) -> list[str] | None:
    for script in BOOTSTRAP_SCRIPTS:
        if (source_dir / script).exists():
            return [f"./{script}"]
    return None


def build_commands(source_dir: Path, mirror: MirrorConfig) -> list[list[str]]:
    cmds: list[list[str]] = []
    bootstrap = bootstrap_command(source_dir)
    if bootstrap is not None:
        cmds.append(bootstrap)
    cmds.append(["./configure", *mirror.configure_flags])
    cmds.append(["make"])
    cmds.append(["make", "install"])
    return cmds


def build_bundle(
    source_dir: Path,
    mirror: MirrorConfig,
    *,
    runner: Runner = run_command,
    exists: Exists = path_exists,
) -> StageResult:
    target = bundle_path(source_dir, mirror)

    def _produce() -> None:
        logger.info("Building %s in %s", mirror.bundle_name, source_dir)
        results: list[CommandResult] = []
        for cmd in build_commands(source_dir, mirror):
            results.append(runner(cmd, cwd=source_dir))
        if not target.exists():
            steps = "\n".join(f"  {r.describe()}" for r in results)
            raise BuildError(f"Build did not produce {target}\n\nSteps run:\n{steps}")

    return run_stage("Build", target, _produce, exists=exists)
