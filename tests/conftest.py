"""
Test fixtures for Game Tracker.

Provides asset_root (a throwaway static directory), app and client fixtures.
Every app gets its own asset root under tmp_path because startup renames
files in place.
"""

from __future__ import annotations

import pytest

import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent))


EXTERNALS = {"react": "https://cdn.example/react.js"}


@pytest.fixture
def asset_root(tmp_path):
    """Static directory with scripts, a stylesheet and a zero-byte file."""
    root = tmp_path / "static"
    (root / "widgets").mkdir(parents=True)
    (root / "css").mkdir()
    (root / "a.js").write_text("x")
    (root / "widgets" / "_index.js").write_text("export default 1;\n")
    (root / "css" / "site.css").write_text("body { margin: 0; }\n")
    (root / "empty.txt").write_bytes(b"")
    return root


@pytest.fixture
def app(asset_root):
    """Create app over the asset_root fixture with fingerprinting on."""
    from app import create_app

    app = create_app({
        "TESTING": True,
        "SECRET_KEY": "test-secret-key",
        "ASSET_ROOT": str(asset_root),
        "FINGERPRINT_ASSETS": True,
        "IMPORT_MAP_EXTERNALS": dict(EXTERNALS),
    })
    yield app


@pytest.fixture
def client(app):
    return app.test_client()
