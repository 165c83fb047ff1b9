# backend/stockledger/config.py
from __future__ import annotations
import os


def _env_flag(name: str, default: bool) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # Key-value storage table lives in this database
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///stockledger.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Product SKU uniqueness is opt-in; existing data may carry duplicates
    ENFORCE_UNIQUE_SKU = _env_flag("ENFORCE_UNIQUE_SKU", False)

    # Seed a starter warehouse and product when a user scope is first initialized
    SEED_DEFAULTS_ON_INIT = _env_flag("SEED_DEFAULTS_ON_INIT", True)

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    # Run db.create_all() inside create_app (dev servers and tests)
    CREATE_TABLES_ON_START = _env_flag("CREATE_TABLES_ON_START", False)

    # Browser origins allowed to call the API (comma-separated)
    CORS_ALLOWED_ORIGINS = [
        origin.strip()
        for origin in os.environ.get(
            "CORS_ALLOWED_ORIGINS",
            "http://localhost:5173,http://127.0.0.1:5173",
        ).split(",")
        if origin.strip()
    ]
