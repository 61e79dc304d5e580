"""
Blueprint registration for Game Tracker.

All blueprints are registered without URL prefixes to keep existing URLs stable.
"""

from __future__ import annotations


def register_blueprints(app):
    from blueprints.core import bp as core_bp

    app.register_blueprint(core_bp)
