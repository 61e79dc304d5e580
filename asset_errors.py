"""
Asset pipeline errors.

Every error raised while scanning, fingerprinting or building the import map
is fatal for startup: create_app() lets them propagate so the server never
serves pages that reference assets missing from disk.
"""

from __future__ import annotations


class AssetPipelineError(Exception):
    """Base class for all asset pipeline failures."""


class AssetConfigError(AssetPipelineError):
    """Asset root missing, unreadable, or a path escaping the root."""


class AssetIOError(AssetPipelineError):
    """A file could not be read, hashed or renamed."""

    def __init__(self, message: str, path: str | None = None) -> None:
        super().__init__(message)
        self.path = path


class ImportMapSerializationError(AssetPipelineError):
    """The import map contained a value that cannot be serialized."""
