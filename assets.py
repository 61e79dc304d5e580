"""
Asset pipeline — scan, fingerprint, build the import map, expose to templates.

Runs exactly once inside create_app(), before any request is served:

    state = build_asset_state(root, manual_entries=externals)
    app.extensions["assets"] = state

The resulting AssetState is immutable. Templates reach it through the
context processor registered by init_assets():

    {{ asset_url("css/site.css") }}
    {% for tag in import_map_tags() %}{{ tag }}{% endfor %}
    {{ import_map_html() }}

Any failure propagates out of create_app(); there is no partially
fingerprinted mode.
"""

from __future__ import annotations

import json
import logging
import os
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Any

from flask import Flask, current_app
from markupsafe import Markup

import import_map
from asset_errors import AssetConfigError
from asset_scanner import scan_assets
from fingerprint import DEFAULT_LENGTH, Fingerprinter
from import_map import HtmlTag, ImportMapArtifact, join_url

logger = logging.getLogger(__name__)

EXTENSION_KEY = "assets"


@dataclass(frozen=True)
class AssetState:
    """Process-wide, read-only result of the asset pipeline."""

    root: Path
    url_prefix: str
    asset_map: Mapping[str, str]
    import_map: ImportMapArtifact

    def resolve(self, path: str) -> str:
        """Served url for an original Asset Path.

        Unknown paths fall back to the unmodified path under the url prefix.
        """
        path = path.lstrip("/")
        return join_url(self.url_prefix, self.asset_map.get(path, path))

    def import_map_tags(self) -> list[HtmlTag]:
        return import_map.render_nodes(self.import_map)

    def import_map_html(self) -> Markup:
        return import_map.render_html(self.import_map)


def build_asset_state(
    root: str | os.PathLike,
    manual_entries: Mapping[str, str] | Iterable = (),
    *,
    url_prefix: str = "/static",
    fingerprint: bool = True,
    length: int = DEFAULT_LENGTH,
    script_extensions: Iterable[str] = import_map.SCRIPT_EXTENSIONS,
    index_token: str = import_map.INDEX_TOKEN,
    root_module: str = import_map.ROOT_MODULE,
) -> AssetState:
    """Run scan -> fingerprint-and-rename -> import map, strictly in sequence.

    With ``fingerprint=False`` nothing is renamed: files are served under
    their current names, and names left over from an earlier fingerprinting
    run still resolve from their original path.
    """
    root_path = Path(root)
    fingerprinter = Fingerprinter(root_path, length=length)
    paths = scan_assets(root_path)

    asset_map: dict[str, str] = {}
    fresh: set[str] = set()
    renamed = 0
    for path in paths:
        if fingerprint and not fingerprinter.is_fingerprinted(path):
            served = fingerprinter.apply(path)
            renamed += 1
            is_fresh = True
        else:
            served = path
            is_fresh = False

        original = fingerprinter.remove_fingerprint(served)
        previous = asset_map.get(original)
        if previous is not None and previous != served:
            # A file renamed in this run beats a copy left by an earlier run
            if previous in fresh:
                logger.warning("Stale asset copy %s ignored for %s (using %s)", served, original, previous)
                continue
            logger.warning("Stale asset copy %s ignored for %s (using %s)", previous, original, served)
        asset_map[original] = served
        if is_fresh:
            fresh.add(served)

    asset_map = dict(sorted(asset_map.items()))
    artifact = import_map.build(
        asset_map,
        manual_entries,
        url_prefix=url_prefix,
        script_extensions=script_extensions,
        index_token=index_token,
        root_module=root_module,
    )
    logger.info(
        "Asset pipeline: %d asset(s), %d renamed, %d import map module(s)",
        len(asset_map), renamed, len(artifact.entries),
        extra={"asset_root": str(root_path)},
    )
    return AssetState(
        root=root_path,
        url_prefix=url_prefix,
        asset_map=MappingProxyType(asset_map),
        import_map=artifact,
    )


def write_manifest(state: AssetState, path: str | os.PathLike) -> Path:
    """Write the asset map and import map to a JSON manifest (export only)."""
    manifest_path = Path(path)
    if state.root.resolve() in manifest_path.resolve().parents:
        # It would be fingerprinted and served on the next startup
        raise AssetConfigError(f"Asset manifest must live outside the asset root: {manifest_path}")
    manifest_path.parent.mkdir(parents=True, exist_ok=True)
    manifest = {
        "assets": dict(state.asset_map),
        "imports": state.import_map.imports,
        "preloads": list(state.import_map.preloads),
    }
    manifest_path.write_text(json.dumps(manifest, indent=2))
    logger.info("Asset manifest written to %s", manifest_path)
    return manifest_path


# ── Flask integration ─────────────────────────────────────

def init_assets(app: Flask) -> AssetState:
    """Build the asset state from app config. Call once from create_app()."""
    root = Path(app.config["ASSET_ROOT"])
    if not root.is_absolute():
        root = Path(app.root_path) / root

    state = build_asset_state(
        root,
        app.config.get("IMPORT_MAP_EXTERNALS") or (),
        url_prefix=app.config.get("STATIC_URL_PATH", "/static"),
        fingerprint=app.config.get("FINGERPRINT_ASSETS", True),
        length=app.config.get("FINGERPRINT_LENGTH", DEFAULT_LENGTH),
        script_extensions=app.config.get("SCRIPT_EXTENSIONS", import_map.SCRIPT_EXTENSIONS),
        index_token=app.config.get("IMPORT_MAP_INDEX_TOKEN", import_map.INDEX_TOKEN),
        root_module=app.config.get("IMPORT_MAP_ROOT_MODULE", import_map.ROOT_MODULE),
    )
    app.extensions[EXTENSION_KEY] = state

    manifest_path = app.config.get("ASSET_MANIFEST_PATH")
    if manifest_path:
        write_manifest(state, manifest_path)

    @app.context_processor
    def asset_helpers() -> dict[str, Any]:
        return {
            "asset_url": state.resolve,
            "import_map_tags": state.import_map_tags,
            "import_map_html": state.import_map_html,
        }

    return state


def get_assets(app: Flask | None = None) -> AssetState:
    """Return the asset state of ``app`` (default: the current app)."""
    app = app or current_app
    try:
        return app.extensions[EXTENSION_KEY]
    except KeyError:
        raise RuntimeError("Asset pipeline not initialized; call init_assets(app) first.") from None
