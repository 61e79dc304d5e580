"""Core routes — index page, import map document, health checks."""

from __future__ import annotations

import logging
import time

from flask import Blueprint, Response, jsonify, render_template

from assets import get_assets

logger = logging.getLogger(__name__)

bp = Blueprint("core", __name__)

_start_time = time.time()


@bp.route("/")
def index():
    return render_template("index.html")


@bp.route("/importmap.json")
def importmap():
    """The import map document, for tooling that cannot read the inline tag."""
    state = get_assets()
    return Response(state.import_map.document, mimetype="application/importmap+json")


@bp.route("/health")
def health():
    uptime = int(time.time() - _start_time)
    return jsonify({"status": "ok", "uptime_seconds": uptime})


@bp.route("/ready")
def ready():
    state = get_assets()
    return jsonify({
        "status": "ready",
        "assets": len(state.asset_map),
        "modules": len(state.import_map.entries),
    })
