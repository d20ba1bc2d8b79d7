"""
download.py

Responsibility: stream a URL to a local file.

The body is written to `<target>.part` and renamed into place once the
transfer completes, so an interrupted download never leaves a file at the
target path.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

import requests

from emacs_builder.errors import BuilderError

logger = logging.getLogger(__name__)

CHUNK_SIZE = 1024 * 64


class DownloadError(BuilderError):
    pass


def download_file(
    url: str,
    target: Path,
    *,
    session: requests.Session | None = None,
    timeout: float = 60,
) -> Path:
    """
    Download `url` to `target`, raising DownloadError if no file ends up there.
    """
    http = session if session is not None else requests
    partial = target.with_name(target.name + ".part")
    target.parent.mkdir(parents=True, exist_ok=True)

    logger.info("Downloading %s", url)
    try:
        with http.get(url, stream=True, timeout=timeout) as r:
            r.raise_for_status()
            with open(partial, "wb") as fh:
                for chunk in r.iter_content(chunk_size=CHUNK_SIZE):
                    if chunk:
                        fh.write(chunk)
        os.replace(partial, target)
    except (requests.RequestException, OSError) as e:
        partial.unlink(missing_ok=True)
        raise DownloadError(f"Failed to download {url}: {e}") from e

    if not target.exists():
        raise DownloadError(f"Download of {url} did not produce {target}")
    return target
