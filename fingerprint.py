"""
Content fingerprinting for static assets.

A fingerprinted name embeds a truncated SHA-256 of the file content between
the stem and the extension: ``app.js`` -> ``app-1a2b3c4d.js``. Files without
an extension get the digest appended directly (``LICENSE-1a2b3c4d``).

Recognizing an already fingerprinted name is a filename heuristic: any stem
ending in ``-`` followed by exactly ``length`` lowercase hex characters is
treated as fingerprinted. An original file legitimately named like that
(``build-deadbeef.js`` with the default length) is left untouched and its
stem is misread as ``build``. Rename such files or change FINGERPRINT_LENGTH.
"""

from __future__ import annotations

import hashlib
import logging
import os
import posixpath
import re
from pathlib import Path

from asset_errors import AssetConfigError, AssetIOError

logger = logging.getLogger(__name__)

DEFAULT_LENGTH = 8


def fingerprint_pattern(length: int = DEFAULT_LENGTH) -> re.Pattern[str]:
    """Regex matching a fingerprinted basename with a ``length``-char digest."""
    return re.compile(
        rf"^(?P<stem>.+)-(?P<digest>[0-9a-f]{{{length}}})(?P<ext>\.[^.]*)?$"
    )


class Fingerprinter:
    """Computes digests and renames files under a single asset root.

    All paths passed in are Asset Paths: posix strings relative to ``root``.
    """

    def __init__(self, root: str | os.PathLike, length: int = DEFAULT_LENGTH) -> None:
        if not 1 <= length <= 64:
            raise ValueError(f"Fingerprint length must be between 1 and 64, got {length}")
        self.root = Path(root).resolve()
        self.length = length
        self._pattern = fingerprint_pattern(length)

    # ── Name classification ───────────────────────────────────

    def is_fingerprinted(self, path: str) -> bool:
        return self._pattern.match(posixpath.basename(path)) is not None

    def remove_fingerprint(self, path: str) -> str:
        """Strip the ``-digest`` token, recovering the original Asset Path."""
        directory, name = posixpath.split(path)
        match = self._pattern.match(name)
        if match is None:
            return path
        original = match.group("stem") + (match.group("ext") or "")
        return posixpath.join(directory, original) if directory else original

    def digest_of(self, path: str) -> str | None:
        """Return the embedded digest of a fingerprinted path, else None."""
        match = self._pattern.match(posixpath.basename(path))
        return match.group("digest") if match else None

    # ── Hashing ───────────────────────────────────────────────

    def _full_path(self, path: str) -> Path:
        full = (self.root / path).resolve()
        if full != self.root and self.root not in full.parents:
            raise AssetConfigError(f"Refusing to touch a path outside the asset root: {path}")
        return full

    def compute_fingerprint(self, path: str) -> str:
        full = self._full_path(path)
        if full.is_dir():
            raise AssetIOError(f"Cannot fingerprint a directory: {path}", path)
        try:
            data = full.read_bytes()
        except OSError as exc:
            raise AssetIOError(f"Cannot read asset {path}: {exc}", path) from exc
        return hashlib.sha256(data).hexdigest()[: self.length]

    def add_fingerprint(self, path: str) -> str:
        """Return the fingerprinted Asset Path for ``path`` (no-op if already fingerprinted)."""
        if self.is_fingerprinted(path):
            return path
        digest = self.compute_fingerprint(path)
        directory, name = posixpath.split(path)
        stem, ext = posixpath.splitext(name)
        new_name = f"{stem}-{digest}{ext}"
        return posixpath.join(directory, new_name) if directory else new_name

    # ── Rename on disk ────────────────────────────────────────

    def apply(self, path: str) -> str:
        """Rename ``path`` on disk to its fingerprinted name and return the new path."""
        if self.is_fingerprinted(path):
            return path
        new_path = self.add_fingerprint(path)
        self._full_path(new_path)
        # Rename the entry itself; a symlink is moved, never its target
        source = self.root / path
        target = self.root / new_path
        try:
            source.replace(target)
        except OSError as exc:
            raise AssetIOError(f"Cannot rename {path} -> {new_path}: {exc}", path) from exc
        logger.debug("Fingerprinted %s -> %s", path, new_path)
        return new_path
