"""
User service: lookups, manual creation (local mode) and Google provisioning.

Business logic separated from HTTP layer. Functions commit their own writes
and roll back on database errors before re-raising.
"""
import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from models import User

logger = logging.getLogger(__name__)


class DuplicateUserName(Exception):
    """Raised when a local user is created with a name that is already taken."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"User name {name!r} is already taken")


def list_users(db: Session) -> list[User]:
    return list(db.scalars(select(User).order_by(User.id)))


def get_user(db: Session, user_id: int) -> User | None:
    return db.get(User, user_id)


def create_local_user(db: Session, name: str) -> User:
    """
    Create a user from a typed-in name. Typed-in names are unique so the
    picker on the home page stays unambiguous; raises DuplicateUserName.
    The uq_users_local_name index catches a concurrent insert of the same name.
    """
    taken = select(User.id).where(User.name == name, User.google_id.is_(None))
    if db.scalar(taken) is not None:
        raise DuplicateUserName(name)
    user = User(name=name)
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise DuplicateUserName(name)
    except SQLAlchemyError:
        db.rollback()
        raise
    logger.info("Created user %s (%r)", user.id, name)
    return user


def get_or_create_google_user(db: Session, profile: dict) -> User:
    """
    Return the user for a Google userinfo profile, provisioning one on first
    login. Users are matched by Google subject id only; the same email under
    another Google identity yields a separate user.
    """
    google_id = profile["sub"]
    user = db.scalar(select(User).where(User.google_id == google_id))
    if user is not None:
        return user
    user = User(
        name=profile.get("name") or profile.get("email") or google_id,
        email=profile.get("email"),
        google_id=google_id,
    )
    db.add(user)
    try:
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise
    logger.info("Provisioned user %s for Google account %s", user.id, google_id)
    return user
