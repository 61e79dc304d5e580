"""
Import map builder.

Turns the fingerprinted asset map into:
  - an import map document: {"imports": {module specifier: resolved url}}
  - the ordered list of urls to declare as <link rel="modulepreload">

Manually configured externals (CDN modules) come first and are passed
through verbatim; script assets follow in asset map order.

Module names follow the "index" convention: ``widgets/_index.js`` is
published as ``widgets`` and a root-level ``_index.js`` as the root module
name. Every other script is ``dir/stem``. Only the exact index token is
special: other leading underscores are kept (``_lib/foo.js`` -> ``_lib/foo``).
"""

from __future__ import annotations

import json
import logging
import os
import posixpath
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import NamedTuple

from markupsafe import Markup, escape

from asset_errors import ImportMapSerializationError

logger = logging.getLogger(__name__)

SCRIPT_EXTENSIONS = (".js", ".mjs")
INDEX_TOKEN = "_index"
ROOT_MODULE = "main"


class ImportEntry(NamedTuple):
    module: str
    path: str


@dataclass(frozen=True)
class ImportMapArtifact:
    """Serialized import map plus the preload urls, in the same order."""

    document: str
    preloads: tuple[str, ...]
    entries: tuple[ImportEntry, ...] = field(default=())

    @property
    def imports(self) -> dict[str, str]:
        return {e.module: e.path for e in self.entries}


# ── Module naming ─────────────────────────────────────────

def derive_module_name(
    path: str | os.PathLike,
    root: str | os.PathLike | None = None,
    *,
    index_token: str = INDEX_TOKEN,
    root_module: str = ROOT_MODULE,
) -> str:
    """Logical module specifier for a script Asset Path."""
    if root is not None and os.path.isabs(path):
        path = Path(path).relative_to(root).as_posix()
    path = os.fspath(path)
    directory, name = posixpath.split(path)
    stem = posixpath.splitext(name)[0]
    if stem == index_token:
        return directory or root_module
    return posixpath.join(directory, stem) if directory else stem


def join_url(prefix: str, path: str) -> str:
    return prefix.rstrip("/") + "/" + path.lstrip("/")


# ── Build ─────────────────────────────────────────────────

def _manual(entries: Mapping[str, str] | Iterable) -> list[ImportEntry]:
    if isinstance(entries, Mapping):
        entries = entries.items()
    manual = []
    for entry in entries:
        if isinstance(entry, str):
            raise ImportMapSerializationError(f"Manual import entry must be a (module, path) pair, got {entry!r}")
        try:
            manual.append(ImportEntry(*entry))
        except TypeError as exc:
            raise ImportMapSerializationError(
                f"Manual import entry must be a (module, path) pair, got {entry!r}"
            ) from exc
    return manual


def build(
    asset_map: Mapping[str, str],
    manual_entries: Mapping[str, str] | Iterable = (),
    *,
    url_prefix: str = "/",
    script_extensions: Iterable[str] = SCRIPT_EXTENSIONS,
    index_token: str = INDEX_TOKEN,
    root_module: str = ROOT_MODULE,
) -> ImportMapArtifact:
    """Build the import map artifact from an original -> fingerprinted asset map."""
    extensions = tuple(ext.lower() for ext in script_extensions)

    derived = [
        ImportEntry(
            derive_module_name(original, index_token=index_token, root_module=root_module),
            join_url(url_prefix, served),
        )
        for original, served in asset_map.items()
        if posixpath.splitext(original)[1].lower() in extensions
    ]

    imports: dict[str, str] = {}
    kept: list[ImportEntry] = []
    for entry in _manual(manual_entries) + derived:
        if not isinstance(entry.module, str) or not isinstance(entry.path, str):
            raise ImportMapSerializationError(f"Import map entries must be strings, got {entry!r}")
        if entry.module in imports:
            logger.warning(
                "Duplicate import map module %r: keeping %s, ignoring %s",
                entry.module, imports[entry.module], entry.path,
            )
            continue
        imports[entry.module] = entry.path
        kept.append(entry)

    try:
        document = json.dumps({"imports": imports})
    except (TypeError, ValueError) as exc:
        raise ImportMapSerializationError(f"Cannot serialize import map: {exc}") from exc

    return ImportMapArtifact(
        document=document,
        preloads=tuple(e.path for e in kept),
        entries=tuple(kept),
    )


# ── Rendering ─────────────────────────────────────────────

_JSON_HTML_ESCAPES = {
    "<": "\\u003c",
    ">": "\\u003e",
    "&": "\\u0026",
    "'": "\\u0027",
}


def _script_safe(document: str) -> str:
    for char, replacement in _JSON_HTML_ESCAPES.items():
        document = document.replace(char, replacement)
    return document


@dataclass(frozen=True)
class HtmlTag:
    """A single HTML element; Jinja renders it through ``__html__``."""

    name: str
    attrs: tuple[tuple[str, str], ...] = ()
    text: str = ""
    void: bool = False

    def __html__(self) -> str:
        attrs = "".join(f' {key}="{escape(value)}"' for key, value in self.attrs)
        if self.void:
            return f"<{self.name}{attrs}>"
        return f"<{self.name}{attrs}>{self.text}</{self.name}>"

    def __str__(self) -> str:
        return self.__html__()


def render_nodes(artifact: ImportMapArtifact) -> list[HtmlTag]:
    """Import map script element followed by one modulepreload link per url."""
    nodes = [HtmlTag("script", (("type", "importmap"),), _script_safe(artifact.document))]
    nodes.extend(
        HtmlTag("link", (("rel", "modulepreload"), ("href", path)), void=True)
        for path in artifact.preloads
    )
    return nodes


def render_html(artifact: ImportMapArtifact) -> Markup:
    """Same tags as render_nodes(), as one safe string."""
    return Markup("\n".join(node.__html__() for node in render_nodes(artifact)))
