"""
JWT creation and verification for session management.

The session cookie (google mode) and the active-user cookie (local mode) both
carry a short JWT whose subject is the user id; nothing else about the user is
stored client-side. Algorithm: HS256; secret must be set in config.
Expiration matches SESSION_MAX_AGE for coherence.
"""
from datetime import datetime, timedelta, UTC

from jose import jwt, JWTError

from config import SESSION_ALGORITHM, SESSION_MAX_AGE, SESSION_SECRET


def create_session_token(user_id: int) -> str:
    """Build a JWT for the given user id; exp = now + SESSION_MAX_AGE."""
    payload = {
        # jose requires a string subject
        "sub": str(user_id),
        "exp": datetime.now(UTC) + timedelta(seconds=SESSION_MAX_AGE),
    }
    return jwt.encode(payload, SESSION_SECRET, algorithm=SESSION_ALGORITHM)


def decode_session_token(token: str) -> int:
    """
    Decode and verify a session JWT and return its user id.
    Raises JWTError if the token is invalid, expired or has a malformed subject.
    """
    payload = jwt.decode(token, SESSION_SECRET, algorithms=[SESSION_ALGORITHM])
    try:
        return int(payload["sub"])
    except (KeyError, TypeError, ValueError):
        raise JWTError("Session token has no valid subject")
