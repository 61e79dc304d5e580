"""
Game Tracker — Flask Web Application

Personal game-completion tracker. Static assets are fingerprinted and an
import map is built once at startup, before the first request is served.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

from flask import Flask, Response
from whitenoise import WhiteNoise

from assets import init_assets
from blueprints import register_blueprints


def create_app(test_config: dict[str, Any] | None = None) -> Flask:
    app = Flask(__name__, static_folder=None)

    # Load config
    from config import config_by_name
    if test_config is not None:
        app.config.from_object(config_by_name["testing"])
        app.config.update(test_config)
    else:
        env = os.environ.get("FLASK_ENV", "development")
        cfg = config_by_name.get(env, config_by_name["development"])
        app.config.from_object(cfg)
        if hasattr(cfg, "validate"):
            cfg.validate()

    app.secret_key = app.config["SECRET_KEY"]

    # Structured logging (before the asset pipeline so its output is formatted)
    from logging_config import init_logging
    init_logging(app)

    # Scan, fingerprint and build the import map; any failure aborts startup
    state = init_assets(app)

    # Static files with long cache headers; fingerprinted names never change content
    fingerprinted = _immutable_test(state.root, app.config.get("FINGERPRINT_LENGTH", 8))
    app.wsgi_app = WhiteNoise(
        app.wsgi_app,
        root=str(state.root),
        prefix=state.url_prefix.strip("/") + "/",
        max_age=app.config.get("STATIC_MAX_AGE", 0) if not app.debug else 0,
        immutable_file_test=fingerprinted,
    )

    register_blueprints(app)

    # Security headers
    @app.after_request
    def set_security_headers(response: Response) -> Response:
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "SAMEORIGIN"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        return response

    return app


def _immutable_test(root: Path, length: int):
    from fingerprint import Fingerprinter
    fingerprinter = Fingerprinter(root, length=length)

    def is_immutable(path: str, url: str) -> bool:
        return fingerprinter.is_fingerprinted(url)

    return is_immutable


if __name__ == "__main__":
    create_app().run(debug=True, port=5001)
