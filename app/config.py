"""
Application configuration from environment variables.

Load with python-dotenv in main so env vars are available before imports.
Validates critical secrets at module load; missing values raise RuntimeError.
Google OAuth credentials are checked by main.create_app only when the app is
built in google mode.
"""
import os

from sqlalchemy.engine import URL

# --- Required (raise if missing) ---
SESSION_SECRET = os.getenv("SESSION_SECRET")
if not SESSION_SECRET or not SESSION_SECRET.strip():
    raise RuntimeError("Required env var SESSION_SECRET is missing or empty")

SESSION_ALGORITHM = "HS256"

# --- Identity variant ---
AUTH_MODE_LOCAL = "local"
AUTH_MODE_GOOGLE = "google"
AUTH_MODES = (AUTH_MODE_LOCAL, AUTH_MODE_GOOGLE)

AUTH_MODE = os.getenv("AUTH_MODE", AUTH_MODE_LOCAL).strip().lower()
if AUTH_MODE not in AUTH_MODES:
    raise RuntimeError(f"AUTH_MODE must be one of {AUTH_MODES}, got {AUTH_MODE!r}")

GOOGLE_CLIENT_ID = os.getenv("GOOGLE_CLIENT_ID")
GOOGLE_CLIENT_SECRET = os.getenv("GOOGLE_CLIENT_SECRET")
GOOGLE_REDIRECT_URI = os.getenv("GOOGLE_REDIRECT_URI")

# Google endpoints and timeouts (connect, read) in seconds
GOOGLE_AUTH_URL = "https://accounts.google.com/o/oauth2/v2/auth"
GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"
GOOGLE_USERINFO_URL = "https://openidconnect.googleapis.com/v1/userinfo"
GOOGLE_REQUEST_TIMEOUT = (5, 30)


def _int_env(key: str, default: int, minimum: int = 0) -> int:
    try:
        return max(minimum, int(os.getenv(key, str(default))))
    except ValueError:
        return default


# --- Optional with defaults ---
# Active user in local mode when the request carries no active-user cookie
ACTIVE_USER_ID = _int_env("ACTIVE_USER_ID", 1, minimum=1)

PORT = _int_env("PORT", 3000, minimum=1)

# Session cookie: token lifetime and cookie max_age should match
SESSION_COOKIE_NAME = os.getenv("SESSION_COOKIE_NAME", "session")
SESSION_MAX_AGE = _int_env("SESSION_MAX_AGE", 7 * 24 * 3600, minimum=60)

# Local mode stores the active user in its own signed cookie
ACTIVE_USER_COOKIE_NAME = os.getenv("ACTIVE_USER_COOKIE_NAME", "active_user")

# OAuth CSRF: cookie name for state parameter, short-lived
OAUTH_STATE_COOKIE_NAME = os.getenv("OAUTH_STATE_COOKIE_NAME", "oauth_state")
OAUTH_STATE_MAX_AGE = 600  # 10 minutes

# Secure cookie flag (set True in production over HTTPS)
SECURE_COOKIES = os.getenv("SECURE_COOKIES", "false").lower() in ("1", "true", "yes")


def _database_url() -> str:
    url = os.getenv("DATABASE_URL")
    if url:
        return url
    # Postgres from DB_USER, DB_PASSWORD, DB_HOST, DB_PORT, DB_NAME
    db_name = os.getenv("DB_NAME")
    if db_name:
        return URL.create(
            "postgresql+psycopg2",
            username=os.getenv("DB_USER", "postgres"),
            password=os.getenv("DB_PASSWORD") or None,
            host=os.getenv("DB_HOST", "localhost"),
            port=_int_env("DB_PORT", 5432, minimum=1),
            database=db_name,
        ).render_as_string(hide_password=False)
    return "sqlite:///./books.db"


# Database URL (SQLite default; DATABASE_URL or DB_* parts for Postgres)
DATABASE_URL = _database_url()

# Skip create_all at startup (set in production when the schema is managed elsewhere)
SKIP_DB_INIT = os.getenv("SKIP_DB_INIT", "false").lower() in ("1", "true", "yes")

# Environment: development | production (affects .env loading)
ENV = os.getenv("ENV", "development").lower()

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Open Library medium-size cover; size is constrained by the page CSS
COVER_URL_TEMPLATE = "https://covers.openlibrary.org/b/{key}/{value}-M.jpg"
