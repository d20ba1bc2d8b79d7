"""
emacs_builder package

Builds a macOS Emacs.app from any ref of the emacs-mirror/emacs GitHub repo.

Key responsibilities are split across modules:
- `github_client.py`: resolve a ref to a commit sha and date via the GitHub REST API
- `sources.py`: download the source tarball and extract it
- `patches.py`: literal-replace and remote-diff patches for fresh source trees
- `build.py`: autogen / configure / make / make install
- `archive.py`: pack Emacs.app into a dated .tbz
- `pipeline.py`: run the stages in order, skipping any whose output exists
- `cli.py`: CLI entrypoint
"""

from __future__ import annotations

__all__ = ["__version__"]

__version__ = "0.1.0"
