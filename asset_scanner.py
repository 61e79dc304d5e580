"""Asset scanner — flat listing of every file under the static root."""

from __future__ import annotations

import logging
import os
from pathlib import Path

from asset_errors import AssetConfigError, AssetIOError

logger = logging.getLogger(__name__)


def scan_assets(root: str | os.PathLike) -> list[str]:
    """Return every regular file below ``root`` as a sorted list of posix paths.

    Paths are relative to ``root``. Directories and symlinks are never listed.
    """
    root_path = Path(root)
    if not root_path.is_dir():
        raise AssetConfigError(f"Asset root does not exist or is not a directory: {root_path}")
    try:
        os.listdir(root_path)
    except OSError as exc:
        raise AssetConfigError(f"Asset root is not readable: {root_path}") from exc

    def _on_error(exc: OSError) -> None:
        raise AssetIOError(f"Cannot read asset directory: {exc.filename}", exc.filename) from exc

    found: list[str] = []
    for dirpath, _dirnames, filenames in os.walk(root_path, onerror=_on_error):
        for name in filenames:
            full = Path(dirpath) / name
            # Symlinks are served under their own name and never renamed:
            # fingerprinting a link or its target independently breaks the link
            if full.is_symlink() or not full.is_file():
                continue
            found.append(full.relative_to(root_path).as_posix())

    found.sort()
    logger.debug("Scanned %d asset(s) under %s", len(found), root_path)
    return found
