"""
Application configuration — environment-aware settings.

All environment variables are documented here. See .env.example for a template.
"""

from __future__ import annotations

import json
import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

BASE_DIR = Path(__file__).parent


def _env_bool(name: str, default: bool) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _env_externals() -> dict[str, str]:
    """IMPORT_MAP_EXTERNALS='{"react": "https://cdn.example/react.js"}'"""
    raw = os.environ.get("IMPORT_MAP_EXTERNALS", "").strip()
    if not raw:
        return {}
    return json.loads(raw)


class BaseConfig:
    # Core Flask
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-key-change-in-production")

    # Logging
    LOG_FORMAT = os.environ.get("LOG_FORMAT", "text")  # "json" or "text"
    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")
    ACCESS_LOG_SKIP = ("/health", "/ready")

    # Static assets
    ASSET_ROOT = os.environ.get("ASSET_ROOT", str(BASE_DIR / "static"))
    STATIC_URL_PATH = os.environ.get("STATIC_URL_PATH", "/static")
    STATIC_MAX_AGE = int(os.environ.get("STATIC_MAX_AGE", "31536000"))  # 1 year
    ASSET_MANIFEST_PATH = os.environ.get("ASSET_MANIFEST_PATH", "")

    # Fingerprinting (renames files under ASSET_ROOT in place)
    FINGERPRINT_ASSETS = _env_bool("FINGERPRINT_ASSETS", True)
    FINGERPRINT_LENGTH = int(os.environ.get("FINGERPRINT_LENGTH", "8"))

    # Import map
    SCRIPT_EXTENSIONS = (".js", ".mjs")
    IMPORT_MAP_INDEX_TOKEN = "_index"
    IMPORT_MAP_ROOT_MODULE = os.environ.get("IMPORT_MAP_ROOT_MODULE", "main")
    IMPORT_MAP_EXTERNALS = _env_externals()


class DevelopmentConfig(BaseConfig):
    DEBUG = True
    LOG_FORMAT = os.environ.get("LOG_FORMAT", "text")
    FINGERPRINT_ASSETS = _env_bool("FINGERPRINT_ASSETS", False)
    STATIC_MAX_AGE = 0


class ProductionConfig(BaseConfig):
    DEBUG = False
    LOG_FORMAT = os.environ.get("LOG_FORMAT", "json")
    SESSION_COOKIE_SECURE = True

    @classmethod
    def validate(cls):
        """Fail fast on missing or insecure configuration in production."""
        errors: list[str] = []

        if cls.SECRET_KEY in ("dev-key-change-in-production", ""):
            errors.append("SECRET_KEY must be set to a secure value in production.")

        if not cls.FINGERPRINT_ASSETS:
            errors.append("FINGERPRINT_ASSETS must be enabled in production (assets are cached for a year).")

        asset_root = Path(cls.ASSET_ROOT)
        if not asset_root.is_absolute():
            asset_root = BASE_DIR / asset_root
        if not asset_root.is_dir():
            errors.append(f"ASSET_ROOT does not exist: {cls.ASSET_ROOT}")

        if errors:
            raise RuntimeError(
                "Production configuration errors:\n" + "\n".join(f"  - {e}" for e in errors)
            )


class TestingConfig(BaseConfig):
    TESTING = True
    FINGERPRINT_ASSETS = True


config_by_name = {
    "development": DevelopmentConfig,
    "production": ProductionConfig,
    "testing": TestingConfig,
}
