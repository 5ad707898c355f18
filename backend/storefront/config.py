# backend/storefront/config.py
from __future__ import annotations
import os


def _env_bool(name: str, default: bool = False) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/storefront.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///storefront.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Public base of the image CDN bucket, e.g. https://cdn.example.com/img
    CDN_PUBLIC_BASE = os.environ.get("CDN_PUBLIC_BASE", "")
    # Rewrite legacy worker URLs (/images/<sha256>/...) onto the CDN
    CDN_REWRITE_LEGACY_WORKER_URLS = _env_bool("CDN_REWRITE_LEGACY_WORKER_URLS")

    SEARCH_DEFAULT_PER_PAGE = 20
    SEARCH_MAX_PER_PAGE = 50
    SUGGEST_DEFAULT_LIMIT = 8
    SUGGEST_MAX_LIMIT = 12

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")
