"""Integration tests — create_app() runs the pipeline and templates consume it."""

from __future__ import annotations

import hashlib
import json

import pytest


def _digest(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()[:8]


class TestStartup:
    def test_state_stored_on_app(self, app):
        from assets import AssetState, get_assets
        state = get_assets(app)
        assert isinstance(state, AssetState)
        assert state.asset_map["a.js"] == f"a-{_digest(b'x')}.js"

    def test_get_assets_uses_current_app(self, app):
        from assets import get_assets
        with app.app_context():
            assert get_assets() is app.extensions["assets"]

    def test_get_assets_before_init(self):
        from flask import Flask
        from assets import get_assets
        with pytest.raises(RuntimeError):
            get_assets(Flask(__name__))

    def test_missing_asset_root_aborts_startup(self, tmp_path):
        from app import create_app
        from asset_errors import AssetConfigError
        with pytest.raises(AssetConfigError):
            create_app({
                "TESTING": True,
                "SECRET_KEY": "test-secret-key",
                "ASSET_ROOT": str(tmp_path / "missing"),
            })

    def test_restart_does_not_double_fingerprint(self, app, asset_root):
        from app import create_app
        from assets import get_assets
        again = create_app({
            "TESTING": True,
            "SECRET_KEY": "test-secret-key",
            "ASSET_ROOT": str(asset_root),
        })
        assert dict(get_assets(again).asset_map) == dict(get_assets(app).asset_map)

    def test_manifest_written_when_configured(self, asset_root, tmp_path):
        from app import create_app
        manifest = tmp_path / "asset-manifest.json"
        create_app({
            "TESTING": True,
            "SECRET_KEY": "test-secret-key",
            "ASSET_ROOT": str(asset_root),
            "ASSET_MANIFEST_PATH": str(manifest),
        })
        assert json.loads(manifest.read_text())["assets"]["a.js"] == f"a-{_digest(b'x')}.js"


class TestRendering:
    def test_index_has_import_map_and_preloads(self, client):
        resp = client.get("/")
        assert resp.status_code == 200
        html = resp.data.decode()
        assert '<script type="importmap">' in html
        assert '<link rel="modulepreload" href="https://cdn.example/react.js">' in html
        assert f'<link rel="modulepreload" href="/static/a-{_digest(b"x")}.js">' in html
        assert html.index("cdn.example/react.js\">") < html.index(f"a-{_digest(b'x')}.js\">")

    def test_import_map_is_not_html_escaped(self, client):
        html = client.get("/").data.decode()
        start = html.index('<script type="importmap">') + len('<script type="importmap">')
        end = html.index("</script>", start)
        assert json.loads(html[start:end])["imports"]["widgets"].startswith("/static/widgets/_index-")

    def test_asset_url_in_template(self, client, app):
        from assets import get_assets
        css = get_assets(app).asset_map["css/site.css"]
        html = client.get("/").data.decode()
        assert f'href="/static/{css}"' in html

    def test_import_map_html_helper(self, app):
        from flask import render_template_string
        with app.test_request_context("/"):
            html = render_template_string("{{ import_map_html() }}")
        assert html.startswith('<script type="importmap">')
        assert html.count('rel="modulepreload"') == 3

    def test_importmap_json_route(self, client):
        resp = client.get("/importmap.json")
        assert resp.status_code == 200
        assert resp.mimetype == "application/importmap+json"
        assert list(resp.get_json(force=True)["imports"]) == ["react", "a", "widgets"]


class TestStaticFiles:
    def test_fingerprinted_file_served_immutable(self, client, app):
        from assets import get_assets
        served = get_assets(app).asset_map["a.js"]
        resp = client.get(f"/static/{served}")
        assert resp.status_code == 200
        assert resp.data == b"x"
        assert "immutable" in resp.headers["Cache-Control"]

    def test_original_name_is_gone(self, client):
        resp = client.get("/static/a.js")
        assert resp.status_code == 404


class TestHealth:
    def test_health(self, client):
        resp = client.get("/health")
        assert resp.status_code == 200
        assert resp.get_json()["status"] == "ok"

    def test_ready_reports_counts(self, client):
        data = client.get("/ready").get_json()
        assert data == {"status": "ready", "assets": 4, "modules": 3}

    def test_request_id_header(self, client):
        resp = client.get("/health")
        assert len(resp.headers["X-Request-ID"]) == 12

    def test_security_headers(self, client):
        resp = client.get("/health")
        assert resp.headers["X-Content-Type-Options"] == "nosniff"
