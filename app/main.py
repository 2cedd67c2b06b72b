"""
Books-studied tracker: server-rendered list of the books each user has studied.

Load .env in development only (production uses env vars directly). Builds the
app for one identity variant (local active-user or Google sign-in), installs
the exception handlers and creates tables unless SKIP_DB_INIT is set.
"""
import logging
import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env only in development, before config reads the environment
if os.getenv("ENV", "development").lower() == "development":
    load_dotenv(Path(__file__).resolve().parent.parent / ".env")

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, PlainTextResponse, RedirectResponse

from config import (
    AUTH_MODE,
    AUTH_MODE_GOOGLE,
    AUTH_MODES,
    GOOGLE_CLIENT_ID,
    GOOGLE_CLIENT_SECRET,
    GOOGLE_REDIRECT_URI,
    LOG_LEVEL,
    PORT,
    SKIP_DB_INIT,
)
from database import Base, engine
import models  # noqa: F401  registers tables on Base.metadata
from auth import LoginRequired, router as auth_router
from books import router as books_router
from users import router as users_router

logger = logging.getLogger(__name__)


def _validation_message(exc: RequestValidationError) -> str:
    parts = []
    for err in exc.errors():
        field = ".".join(str(p) for p in err.get("loc", ()) if p not in ("body", "query"))
        parts.append(f"{field}: {err.get('msg')}" if field else str(err.get("msg")))
    return "Invalid input: " + "; ".join(parts)


def create_app(auth_mode: str | None = None) -> FastAPI:
    """
    Build the application. auth_mode overrides AUTH_MODE; google mode needs
    the Google client id, secret and redirect URI to be configured.
    """
    mode = auth_mode or AUTH_MODE
    if mode not in AUTH_MODES:
        raise RuntimeError(f"auth_mode must be one of {AUTH_MODES}, got {mode!r}")
    if mode == AUTH_MODE_GOOGLE:
        for name, val in [
            ("GOOGLE_CLIENT_ID", GOOGLE_CLIENT_ID),
            ("GOOGLE_CLIENT_SECRET", GOOGLE_CLIENT_SECRET),
            ("GOOGLE_REDIRECT_URI", GOOGLE_REDIRECT_URI),
        ]:
            if not val or not str(val).strip():
                raise RuntimeError(f"Required env var {name} is missing or empty")

    # Create DB tables if not skipping (schema managed elsewhere in production)
    if not SKIP_DB_INIT:
        Base.metadata.create_all(bind=engine)

    app = FastAPI(
        title="Books Studied",
        description="Track books you have studied, with notes and ratings.",
    )
    app.state.auth_mode = mode

    @app.exception_handler(LoginRequired)
    async def login_required_handler(request: Request, exc: LoginRequired):
        return RedirectResponse(url="/login", status_code=303)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        """Malformed form or JSON input is a client error: 400 with a short message."""
        return PlainTextResponse(_validation_message(exc), status_code=400)

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """Catch unhandled exceptions; log and return generic 500. Never leak stack traces."""
        logging.exception("Unhandled exception: %s", exc)
        return JSONResponse(
            status_code=500,
            content={"detail": "Internal server error"},
        )

    @app.get("/health")
    def health():
        return {"status": "ok"}

    if mode == AUTH_MODE_GOOGLE:
        app.include_router(auth_router)
    else:
        app.include_router(users_router)
    app.include_router(books_router)

    logger.info("Books Studied app built in %s mode", mode)
    return app


def run():
    """Console entry point: serve create_app() with uvicorn on PORT."""
    import uvicorn

    logging.basicConfig(
        level=LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    uvicorn.run(create_app(), host="0.0.0.0", port=PORT)


if __name__ == "__main__":
    run()
