"""
Data models for the books-studied tracker.

"""
from datetime import datetime, UTC

from sqlalchemy import Column, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import relationship

from config import COVER_URL_TEMPLATE
from database import Base


def cover_url(key: str, value: str) -> str:
    """Open Library cover image URL for a catalog identifier type and value."""
    return COVER_URL_TEMPLATE.format(key=key, value=value)


class User(Base):
    """
    A person whose studied books are tracked.

    - name: display name; typed in by hand (local mode) or taken from the
      Google profile on first login.
    - email, google_id: only set for Google accounts. google_id is the Google
      subject id and is how returning users are found. email is not unique:
      there is no account linking between identities.
    """
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=True)
    google_id = Column(String(255), unique=True, nullable=True)

    books = relationship("BookStudied", back_populates="owner")

    # Typed-in names are unique; Google display names may repeat
    __table_args__ = (
        Index(
            "uq_users_local_name",
            "name",
            unique=True,
            sqlite_where=google_id.is_(None),
            postgresql_where=google_id.is_(None),
        ),
    )


class BookStudied(Base):
    """
    One book on a user's list.

    key/value are the Open Library identifier type and id (e.g. "isbn",
    "9780441013593"); url is the cover image derived from them and is
    recomputed whenever they change.
    """
    __tablename__ = "books_studied"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(255), nullable=False)
    author = Column(String(255), nullable=False, default="")
    key = Column(String(64), nullable=False)
    value = Column(String(64), nullable=False)
    curr_date = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(UTC))
    ratings = Column(Integer, nullable=False, default=0)
    about = Column(Text, nullable=False, default="")
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    url = Column(String(512), nullable=False)

    owner = relationship("User", back_populates="books")
    note = relationship("Note", back_populates="book", uselist=False)


class Note(Base):
    """Free-text note; exactly one per book, created together with it."""
    __tablename__ = "notes"

    id = Column(Integer, primary_key=True, index=True)
    notes = Column(Text, nullable=False, default="")
    book_id = Column(Integer, ForeignKey("books_studied.id"), unique=True, nullable=False)

    book = relationship("BookStudied", back_populates="note")
