# backend/slipsync/config.py
from __future__ import annotations
import os


def _env_bool(name: str, default: bool) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/slipsync.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///slipsync.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Identity provider boundary. When IDENTITY_VERIFIER is None the built-in
    # signed-token verifier (itsdangerous, keyed by SECRET_KEY) is used.
    IDENTITY_VERIFIER = None
    IDENTITY_TOKEN_MAX_AGE_SECONDS = int(os.environ.get("IDENTITY_TOKEN_MAX_AGE_SECONDS", "3600"))

    # Fernet key for device secrets at rest; derived from SECRET_KEY when unset
    DEVICE_SECRET_ENCRYPTION_KEY = os.environ.get("DEVICE_SECRET_ENCRYPTION_KEY")

    # Print devices count as online when their last heartbeat is this recent
    PRINT_DEVICE_ONLINE_WINDOW_SECONDS = int(os.environ.get("PRINT_DEVICE_ONLINE_WINDOW_SECONDS", "10"))
    # Jobs left in "processing" longer than this can be claimed again
    PRINT_JOB_CLAIM_TIMEOUT_SECONDS = int(os.environ.get("PRINT_JOB_CLAIM_TIMEOUT_SECONDS", "180"))

    # Users with no recognised role see every store of their merchant in
    # store listings. Turn off to make listings fail closed.
    UNASSIGNED_ROLE_SEES_ALL_STORES = _env_bool("UNASSIGNED_ROLE_SEES_ALL_STORES", True)

    DEFAULT_CURRENCY = os.environ.get("DEFAULT_CURRENCY", "PKR")

    CORS_ALLOWED_ORIGINS = tuple(
        origin.strip()
        for origin in os.environ.get(
            "CORS_ALLOWED_ORIGINS",
            "http://localhost:5173,http://127.0.0.1:5173,http://localhost:3000",
        ).split(",")
        if origin.strip()
    )
