"""
cli.py

Responsibility: CLI entrypoint.

    emacs-builder [REF] [--srgb] [--srgb-244]

Builds the configuration objects once, hands them to `pipeline.run_pipeline`,
and turns any `BuilderError` into a single error message and exit status 1.
"""

from __future__ import annotations

import argparse
import logging
from pathlib import Path

from emacs_builder.config import BuildOptions, MirrorConfig, PathsConfig
from emacs_builder.errors import BuilderError
from emacs_builder.log import configure_logging
from emacs_builder.pipeline import run_pipeline

logger = logging.getLogger(__name__)


def build_cmd(args: argparse.Namespace) -> int:
    mirror = MirrorConfig()
    paths = PathsConfig.from_root(Path.cwd())
    options = BuildOptions(
        enable_srgb_patch=bool(args.srgb),
        enable_srgb_244_patch=bool(args.srgb_244),
    )
    run_pipeline(args.ref or mirror.default_ref, options, paths=paths, mirror=mirror)
    return 0


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="emacs-builder",
        description="Download, patch, build and archive Emacs.app for a given git ref",
    )
    p.add_argument("ref", nargs="?", default=None, help="Branch, tag or commit to build (default: master)")
    p.add_argument("--srgb", action="store_true", help="Apply the sRGB color patch")
    p.add_argument("--srgb-244", dest="srgb_244", action="store_true", help="Apply the Emacs 24.4 sRGB color patch")
    p.set_defaults(func=build_cmd)
    return p


def main(argv: list[str] | None = None) -> int:
    configure_logging()
    parser = _build_parser()
    args = parser.parse_args(argv)
    try:
        return int(args.func(args))
    except BuilderError as e:
        logger.error("ERROR: %s", e)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
