"""
Pytest configuration and fixtures.

Environment variables are set BEFORE any app imports: config validates them
at module load and database builds its engine from DATABASE_URL.
"""
import os

os.environ.setdefault("SESSION_SECRET", "test-session-secret")
os.environ.setdefault("GOOGLE_CLIENT_ID", "test-client-id")
os.environ.setdefault("GOOGLE_CLIENT_SECRET", "test-client-secret")
os.environ.setdefault("GOOGLE_REDIRECT_URI", "http://testserver/auth/google/callback")
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SKIP_DB_INIT"] = "true"
os.environ["ACTIVE_USER_ID"] = "1"
os.environ["ENV"] = "test"

import pytest
from fastapi.testclient import TestClient

from config import SESSION_COOKIE_NAME
from database import Base, SessionLocal, engine
from main import create_app
from models import User
from security import create_session_token


@pytest.fixture
def db():
    """Fresh schema on the shared in-memory database, plus a session to inspect it."""
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    yield session
    session.close()
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def make_user(db):
    def _make_user(name: str, **kwargs) -> User:
        user = User(name=name, **kwargs)
        db.add(user)
        db.commit()
        return user
    return _make_user


@pytest.fixture
def local_client(db):
    with TestClient(create_app(auth_mode="local")) as client:
        yield client


@pytest.fixture
def google_client(db):
    with TestClient(create_app(auth_mode="google")) as client:
        yield client


@pytest.fixture
def login(google_client):
    """Sign the google-mode client in as the given user."""
    def _login(user: User) -> TestClient:
        google_client.cookies.set(SESSION_COOKIE_NAME, create_session_token(user.id))
        return google_client
    return _login


@pytest.fixture
def dune_form() -> dict:
    return {
        "title": "Dune",
        "author": "Herbert",
        "about": "sci-fi",
        "notes": "great",
        "ratings": "5",
        "key": "OL2",
        "value": "456",
    }
