"""
commands.py

Responsibility: run external programs as structured subprocess calls.

Every call returns a `CommandResult` carrying the exit status and the combined
stdout/stderr. Callers decide whether a non-zero status is fatal
(`check_command`) or only worth recording next to the stage's filesystem
post-condition.
"""

from __future__ import annotations

import logging
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Callable

from emacs_builder.errors import BuilderError

logger = logging.getLogger(__name__)


class CommandError(BuilderError):
    def __init__(self, result: CommandResult) -> None:
        super().__init__(f"Command failed: {result.describe()}\n\n{result.output}")
        self.result = result


@dataclass(frozen=True)
class CommandResult:
    args: tuple[str, ...]
    returncode: int
    output: str

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    def describe(self) -> str:
        return f"{' '.join(self.args)} (exit status {self.returncode})"


Runner = Callable[..., CommandResult]


def run_command(cmd: list[str], *, cwd: Path) -> CommandResult:
    """
    Run `cmd` in `cwd` and wait for it to finish.

    A program that cannot be started at all is reported with exit status 127,
    the same as a shell would.
    """
    logger.info("==> %s", " ".join(cmd))
    try:
        proc = subprocess.run(
            cmd,
            cwd=str(cwd),
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
        )
    except OSError as e:
        return CommandResult(args=tuple(cmd), returncode=127, output=str(e))

    result = CommandResult(args=tuple(cmd), returncode=proc.returncode, output=proc.stdout or "")
    if result.output:
        logger.debug("%s", result.output.rstrip())
    if not result.ok:
        logger.warning("Command exited with status %d: %s", result.returncode, " ".join(cmd))
    return result


def check_command(cmd: list[str], *, cwd: Path, runner: Runner = run_command) -> CommandResult:
    """
    Run a command, raising a CommandError on a non-zero exit status.
    """
    result = runner(cmd, cwd=cwd)
    if not result.ok:
        raise CommandError(result)
    return result
