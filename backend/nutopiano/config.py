# backend/nutopiano/config.py
from __future__ import annotations
import os


def _int_env(name: str, default: int | None = None) -> int | None:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me-before-deploying-nutopiano")

    # SQLite by default; production points DATABASE_URL at PostgreSQL
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL",
        "sqlite:///nutopiano.sqlite3",
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()

    # Password hashing cost
    BCRYPT_ROUNDS = _int_env("BCRYPT_ROUNDS", 12)

    # Access tokens (HS256). Falls back to SECRET_KEY when JWT_SECRET is unset.
    JWT_SECRET = os.environ.get("JWT_SECRET") or SECRET_KEY
    JWT_EXPIRES_IN_SECONDS = _int_env("JWT_EXPIRES_IN_SECONDS", 86400)

    # Storefront: which business the unauthenticated catalog shows.
    # None -> lowest-id business, resolved once per process.
    PUBLIC_BUSINESS_ID = _int_env("PUBLIC_BUSINESS_ID")

    BUSINESS_NAME = os.environ.get("BUSINESS_NAME") or os.environ.get("SITE_NAME") or "Nutopiano"
    SITE_NAME = os.environ.get("SITE_NAME", "Nutopiano")
    SITE_URL = (
        os.environ.get("NEXT_PUBLIC_SITE_URL")
        or os.environ.get("SITE_URL")
        or "http://localhost:3002"
    )
    API_BASE_URL = os.environ.get("API_BASE_URL", "")

    # Password reset mail. Unset SMTP_HOST/USER/PASS -> messages are logged.
    SMTP_HOST = os.environ.get("SMTP_HOST")
    SMTP_PORT = _int_env("SMTP_PORT", 587)
    SMTP_USER = os.environ.get("SMTP_USER")
    SMTP_PASS = os.environ.get("SMTP_PASS")
    SMTP_FROM = os.environ.get("SMTP_FROM")
    SMTP_SECURE = os.environ.get("SMTP_SECURE", "false").lower() == "true"

    UPLOADS_DIR = os.environ.get("UPLOADS_DIR", "").strip() or os.path.join(os.getcwd(), "uploads")

    CORS_ORIGINS = [
        o.strip()
        for o in os.environ.get("CORS_ORIGINS", "http://localhost:3002,http://127.0.0.1:3002").split(",")
        if o.strip()
    ]
