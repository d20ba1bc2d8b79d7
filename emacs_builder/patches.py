"""
patches.py

Responsibility: modify a freshly extracted source tree.

Two kinds of patch are supported:
- `RemoteDiff`: a unified diff fetched from a URL, stored under
  `<source>/patches/patch-NNN.diff` and applied with `patch -f -p1`
- `LiteralReplace`: an exact (non-regex) substring substitution in one file

Which patches run is decided by `BuildOptions` and the packaged catalog in
`data/patches.yml`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, fields
from importlib import resources
from pathlib import Path
from typing import Any, Union

import requests
import yaml

from emacs_builder.commands import CommandError, Runner, check_command, run_command
from emacs_builder.config import BuildOptions
from emacs_builder.download import download_file
from emacs_builder.errors import BuilderError

logger = logging.getLogger(__name__)

PATCHES_DIRNAME = "patches"
PATCH_FILENAME = "patch-{:03d}.diff"


class PatchError(BuilderError):
    pass


class PatchTargetMissing(PatchError):
    pass


class PatchNoMatch(PatchError):
    pass


class PatchApplyError(PatchError):
    pass


class PatchCatalogError(PatchError):
    pass


@dataclass(frozen=True)
class RemoteDiff:
    url: str


@dataclass(frozen=True)
class LiteralReplace:
    file: str
    search: str
    replacement: str


PatchSpec = Union[RemoteDiff, LiteralReplace]


def replace(content: bytes, search: bytes, replacement: bytes) -> tuple[bytes, int]:
    """
    Replace every occurrence of `search` in `content`.

    Returns the new content and the number of occurrences replaced.
    """
    if not search:
        return content, 0
    count = content.count(search)
    if count == 0:
        return content, 0
    return content.replace(search, replacement), count


def next_patch_path(patches_dir: Path) -> Path:
    n = 1
    while True:
        candidate = patches_dir / PATCH_FILENAME.format(n)
        if not candidate.exists():
            return candidate
        n += 1


def apply_literal_replace(spec: LiteralReplace, source_dir: Path) -> int:
    path = source_dir / spec.file
    if not path.is_file():
        raise PatchTargetMissing(f"Patch target does not exist: {path}")

    content = path.read_bytes()
    new_content, count = replace(content, spec.search.encode("utf-8"), spec.replacement.encode("utf-8"))
    if count == 0:
        raise PatchNoMatch(f"Search text not found in {spec.file}: {spec.search!r}")

    path.write_bytes(new_content)
    logger.info("Patched %s (%d occurrence%s)", spec.file, count, "" if count == 1 else "s")
    return count


def apply_remote_diff(
    spec: RemoteDiff,
    source_dir: Path,
    *,
    runner: Runner = run_command,
    session: requests.Session | None = None,
) -> Path:
    patches_dir = source_dir / PATCHES_DIRNAME
    patches_dir.mkdir(parents=True, exist_ok=True)
    patch_file = next_patch_path(patches_dir)

    download_file(spec.url, patch_file, session=session)

    try:
        check_command(["patch", "-f", "-p1", "-i", str(patch_file)], cwd=source_dir, runner=runner)
    except CommandError as e:
        raise PatchApplyError(f"Failed to apply {spec.url}: {e}") from e
    logger.info("Applied %s as %s", spec.url, patch_file.name)
    return patch_file


def apply_patch(
    spec: PatchSpec,
    source_dir: Path,
    *,
    runner: Runner = run_command,
    session: requests.Session | None = None,
) -> object:
    if isinstance(spec, RemoteDiff):
        return apply_remote_diff(spec, source_dir, runner=runner, session=session)
    if isinstance(spec, LiteralReplace):
        return apply_literal_replace(spec, source_dir)
    raise PatchError(f"Unknown patch type: {spec!r}")


def _parse_patch_entry(raw: Any, option: str) -> PatchSpec:
    if not isinstance(raw, dict):
        raise PatchCatalogError(f"Patch entries for `{option}` must be mappings.")
    if "url" in raw:
        return RemoteDiff(url=str(raw["url"]))
    missing = [k for k in ("file", "search", "replace") if k not in raw]
    if missing:
        raise PatchCatalogError(f"Patch for `{option}` is missing: {', '.join(missing)}")
    return LiteralReplace(file=str(raw["file"]), search=str(raw["search"]), replacement=str(raw["replace"]))


def parse_patch_catalog(text: str) -> list[tuple[str, list[PatchSpec]]]:
    """
    Parse catalog YAML into (option name, patches) pairs, preserving order.
    """
    data = yaml.safe_load(text) or []
    if not isinstance(data, list):
        raise PatchCatalogError("Patch catalog must be a list of entries.")

    known = {f.name for f in fields(BuildOptions)}
    catalog: list[tuple[str, list[PatchSpec]]] = []
    for entry in data:
        if not isinstance(entry, dict):
            raise PatchCatalogError("Patch catalog entries must be mappings.")
        option = str(entry.get("option") or "").strip()
        if option not in known:
            raise PatchCatalogError(f"Unknown build option in patch catalog: {option!r}")
        raw_patches = entry.get("patches") or []
        if not isinstance(raw_patches, list):
            raise PatchCatalogError(f"`patches` for `{option}` must be a list.")
        catalog.append((option, [_parse_patch_entry(p, option) for p in raw_patches]))
    return catalog


def load_patch_catalog() -> list[tuple[str, list[PatchSpec]]]:
    text = resources.files("emacs_builder").joinpath("data/patches.yml").read_text(encoding="utf-8")
    return parse_patch_catalog(text)


def build_patch_specs(
    options: BuildOptions,
    catalog: list[tuple[str, list[PatchSpec]]] | None = None,
) -> list[PatchSpec]:
    if catalog is None:
        catalog = load_patch_catalog()
    specs: list[PatchSpec] = []
    for option, patches in catalog:
        if getattr(options, option):
            specs.extend(patches)
    return specs
