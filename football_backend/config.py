"""
Configuration for the football backend.
Every setting has a default; environment variables override.

Environment Variables:
    FOOTBALL_DB_PATH - sqlite database file
    FOOTBALL_SEED_PATH - JSON seed loaded on API startup when present
    JWT_SECRET_KEY / JWT_ALGORITHM / ACCESS_TOKEN_EXPIRE_MINUTES - bearer tokens
    ADMIN_API_KEY - key required to trigger round scoring
    DEFAULT_COMPETITION - competition code used when a request omits it
    LOG_LEVEL - log level applied by the API
"""
from __future__ import annotations

import os
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parent.parent
DATA_DIR = PROJECT_ROOT / "data"

DEFAULT_DB_PATH = Path(os.environ.get("FOOTBALL_DB_PATH", str(DATA_DIR / "app.db")))
DEFAULT_SEED_PATH = Path(os.environ.get("FOOTBALL_SEED_PATH", str(DATA_DIR / "sample_league.json")))

JWT_SECRET_KEY = os.environ.get("JWT_SECRET_KEY", "dev-secret-change-in-production")
JWT_ALGORITHM = os.environ.get("JWT_ALGORITHM", "HS256")
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.environ.get("ACCESS_TOKEN_EXPIRE_MINUTES", str(60 * 24 * 7)))

DEFAULT_COMPETITION = os.environ.get("DEFAULT_COMPETITION", "kpl")
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")


def get_admin_api_key() -> str | None:
    """Admin key, read from the environment on every call. None when unset."""
    return os.environ.get("ADMIN_API_KEY") or None
