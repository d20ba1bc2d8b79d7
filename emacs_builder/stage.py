"""
stage.py

Responsibility: the skip-if-exists rule shared by every pipeline stage.

A stage is described by its deterministic output path and a callable that
produces it. The existence predicate is injectable so the decision can be
tested without touching the filesystem.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Callable

logger = logging.getLogger(__name__)

Exists = Callable[[Path], bool]


@dataclass(frozen=True)
class StageResult:
    name: str
    path: Path
    produced: bool


def path_exists(path: Path) -> bool:
    return os.path.exists(path)


def run_stage(name: str, target: Path, produce: Callable[[], object], *, exists: Exists = path_exists) -> StageResult:
    if exists(target):
        logger.info("%s: %s already exists, skipping", name, target)
        return StageResult(name=name, path=target, produced=False)
    produce()
    return StageResult(name=name, path=target, produced=True)
