"""
Acting-user resolution and Google OAuth 2.0 login, callback, logout.

- get_current_user_id is the per-request principal dependency used by every
  book route. In google mode it reads the session cookie and rehydrates the
  user row; in local mode it reads the active-user cookie and falls back to
  ACTIVE_USER_ID. No principal state lives in the process.
- Login redirects to Google with a CSRF state stored in a short-lived cookie.
- Callback validates state, exchanges code for tokens, fetches the profile,
  provisions the user on first login, sets the session JWT in an HttpOnly
  cookie and redirects home.
- /logout clears the session cookie.
"""
import logging
import secrets
from urllib.parse import urlencode

import requests
from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import RedirectResponse, Response
from jose import JWTError
from sqlalchemy.orm import Session

from config import (
    ACTIVE_USER_COOKIE_NAME,
    ACTIVE_USER_ID,
    AUTH_MODE_GOOGLE,
    GOOGLE_AUTH_URL,
    GOOGLE_CLIENT_ID,
    GOOGLE_CLIENT_SECRET,
    GOOGLE_REDIRECT_URI,
    GOOGLE_REQUEST_TIMEOUT,
    GOOGLE_TOKEN_URL,
    GOOGLE_USERINFO_URL,
    OAUTH_STATE_COOKIE_NAME,
    OAUTH_STATE_MAX_AGE,
    SECURE_COOKIES,
    SESSION_COOKIE_NAME,
    SESSION_MAX_AGE,
)
from database import get_db
from models import User
from security import create_session_token, decode_session_token
from services.user_service import get_or_create_google_user, get_user
from templating import render

logger = logging.getLogger(__name__)

router = APIRouter()


class LoginRequired(Exception):
    """Raised by the principal dependency when google mode has no valid session."""


# Cookie flags: HttpOnly (no JS access), SameSite=Lax (CSRF mitigation), Secure in production is set per-response
def _cookie_kwargs(secure: bool = False) -> dict:
    return {
        "httponly": True,
        "samesite": "lax",
        "secure": secure,
        "path": "/",
    }


def set_principal_cookie(response: Response, cookie_name: str, user_id: int) -> None:
    response.set_cookie(
        cookie_name,
        create_session_token(user_id),
        max_age=SESSION_MAX_AGE,
        **_cookie_kwargs(secure=SECURE_COOKIES),
    )


def get_current_user(request: Request, db: Session = Depends(get_db)) -> User:
    """
    Google mode: read the session JWT from its cookie and load the User.
    Raises LoginRequired if the cookie is missing, the JWT is invalid or
    expired, or the user no longer exists.
    """
    token = request.cookies.get(SESSION_COOKIE_NAME)
    if not token:
        raise LoginRequired()
    try:
        user_id = decode_session_token(token)
    except JWTError:
        raise LoginRequired()
    user = get_user(db, user_id)
    if user is None:
        raise LoginRequired()
    return user


def get_active_user_id(request: Request) -> int:
    """Local mode: the user chosen via /add or /changeUser, else ACTIVE_USER_ID."""
    token = request.cookies.get(ACTIVE_USER_COOKIE_NAME)
    if token:
        try:
            return decode_session_token(token)
        except JWTError:
            logger.warning("Ignoring invalid active-user cookie")
    return ACTIVE_USER_ID


def get_current_user_id(request: Request, db: Session = Depends(get_db)) -> int:
    """
    FastAPI dependency: id of the user this request acts for. Also stores it
    on request.state so every rendered page can show it.
    """
    if request.app.state.auth_mode == AUTH_MODE_GOOGLE:
        user_id = get_current_user(request, db).id
    else:
        user_id = get_active_user_id(request)
    request.state.user_id = user_id
    return user_id


@router.get("/login")
def login_page(request: Request):
    return render(request, "login.html")


@router.get("/auth/google")
def google_login():
    """
    Redirect to Google OAuth consent. Sets a short-lived cookie with a random
    state value and includes the same state in the redirect URL so the callback
    can verify the request was not forged (CSRF protection).
    """
    state = secrets.token_urlsafe(32)
    query = urlencode({
        "client_id": GOOGLE_CLIENT_ID,
        "redirect_uri": GOOGLE_REDIRECT_URI,
        "response_type": "code",
        "scope": "openid email profile",
        "state": state,
    })
    redirect = RedirectResponse(url=f"{GOOGLE_AUTH_URL}?{query}")
    redirect.set_cookie(
        OAUTH_STATE_COOKIE_NAME,
        state,
        max_age=OAUTH_STATE_MAX_AGE,
        **_cookie_kwargs(secure=SECURE_COOKIES),
    )
    return redirect


@router.get("/auth/google/callback")
def google_callback(
    request: Request,
    code: str | None = None,
    state: str | None = None,
    error: str | None = None,
    db: Session = Depends(get_db),
):
    """
    Handle redirect from Google. Validates state cookie (CSRF), exchanges code
    for tokens, fetches the profile, finds or provisions the User, sets the
    session cookie and redirects home.
    """
    if error:
        raise HTTPException(status_code=400, detail=f"OAuth error: {error}")
    if not code or not state:
        raise HTTPException(status_code=400, detail="Missing code or state")

    state_cookie = request.cookies.get(OAUTH_STATE_COOKIE_NAME)
    if not state_cookie or not secrets.compare_digest(state, state_cookie):
        raise HTTPException(status_code=400, detail="Invalid or expired state; please try logging in again")

    token_res = requests.post(
        GOOGLE_TOKEN_URL,
        data={
            "client_id": GOOGLE_CLIENT_ID,
            "client_secret": GOOGLE_CLIENT_SECRET,
            "code": code,
            "grant_type": "authorization_code",
            "redirect_uri": GOOGLE_REDIRECT_URI,
        },
        headers={"Content-Type": "application/x-www-form-urlencoded"},
        timeout=GOOGLE_REQUEST_TIMEOUT,
    )
    token_data = token_res.json()
    if "error" in token_data:
        raise HTTPException(
            status_code=400,
            detail=f"Token exchange failed: {token_data.get('error_description', token_data['error'])}",
        )

    access_token = token_data.get("access_token")
    if not access_token:
        raise HTTPException(
            status_code=400,
            detail="Token exchange did not return access_token",
        )

    userinfo_res = requests.get(
        GOOGLE_USERINFO_URL,
        headers={"Authorization": f"Bearer {access_token}"},
        timeout=GOOGLE_REQUEST_TIMEOUT,
    )
    userinfo_res.raise_for_status()
    userinfo = userinfo_res.json()
    if not userinfo.get("sub"):
        raise HTTPException(status_code=400, detail="Google userinfo missing sub")

    user = get_or_create_google_user(db, userinfo)

    redirect = RedirectResponse(url="/", status_code=303)
    set_principal_cookie(redirect, SESSION_COOKIE_NAME, user.id)
    # Clear state cookie
    redirect.delete_cookie(OAUTH_STATE_COOKIE_NAME, path="/")
    return redirect


@router.get("/logout")
def logout():
    """Clear the session cookie and send the browser back to the login page."""
    redirect = RedirectResponse(url="/login", status_code=303)
    redirect.delete_cookie(SESSION_COOKIE_NAME, path="/")
    return redirect
