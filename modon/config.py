# modon/config.py
# Environment-aware configuration for the MODON backend

import hashlib
import os
from pathlib import Path as FsPath
from typing import Literal

# Environment detection
ENV: Literal["dev", "staging", "prod"] = os.environ.get("ENV", "dev")  # type: ignore
IS_DEV = (ENV == "dev")
IS_STAGING = (ENV == "staging")
IS_PROD = (ENV == "prod")

# JWT and session cookie configuration
SECRET_KEY = os.environ.get("SECRET_KEY", "modon-dev-secret-key-change-me-in-production")
ALGORITHM = "HS256"
ACCESS_TOKEN_MINUTES = int(os.environ.get("ACCESS_TOKEN_MINUTES", "15"))
AUTH_COOKIE_NAME = "modon_auth_token"

# Dashboard credentials (single admin account, no user table)
ADMIN_EMAIL = os.environ.get("ADMIN_EMAIL", "admin@modon.com").strip().lower()
ADMIN_PASSWORD_HASH = hashlib.sha256(
    os.environ.get("ADMIN_PASSWORD", "modon-admin").encode()
).hexdigest()

# Storage configuration
# "memory" serves the seeded mock store, "sql" passes through to DATABASE_URL
STORAGE_BACKEND: Literal["memory", "sql"] = os.environ.get("STORAGE_BACKEND", "memory")  # type: ignore
DATABASE_PATH = os.environ.get("DATABASE_PATH", "modon.db")
DATABASE_URL = os.environ.get("DATABASE_URL", "").strip() or (
    f"sqlite:///{FsPath(__file__).resolve().parent / DATABASE_PATH}"
)
IS_POSTGRES = DATABASE_URL.startswith(("postgres://", "postgresql://"))

# i18n (lead submissions record the site locale)
LOCALES = ("en", "ar")
DEFAULT_LOCALE = "en"

# Lead form rate limit, per client IP
LEAD_RATE_LIMIT = int(os.environ.get("LEAD_RATE_LIMIT", "5"))
LEAD_RATE_WINDOW_MINUTES = int(os.environ.get("LEAD_RATE_WINDOW_MINUTES", "60"))

# Search defaults
DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100
DEFAULT_PRICE_RANGE = (0, 10_000_000)

# CORS origins (expand for staging/prod)
CORS_ORIGINS = [
    "http://localhost:3000",  # site dev server
    "http://127.0.0.1:3000",
]

if IS_STAGING:
    staging_origins = os.environ.get("CORS_ORIGINS", "")
    if staging_origins:
        CORS_ORIGINS.extend(staging_origins.split(","))
    else:
        CORS_ORIGINS.append("https://staging.modon.com")

if IS_PROD:
    prod_origins = os.environ.get("CORS_ORIGINS", "")
    if prod_origins:
        CORS_ORIGINS.extend(prod_origins.split(","))
    else:
        CORS_ORIGINS.append("https://www.modon.com")

print(f"[CONFIG] Environment: {ENV}")
print(f"[CONFIG] Storage: {STORAGE_BACKEND}"
      + (f" ({'PostgreSQL' if IS_POSTGRES else 'SQLite'})" if STORAGE_BACKEND == "sql" else ""))
print(f"[CONFIG] Access token: {ACCESS_TOKEN_MINUTES} minutes")
