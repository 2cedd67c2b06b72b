"""
Book service: the books_studied and notes tables.

Every book has exactly one note row. Creating, updating and deleting a book
touch both tables inside a single transaction, so a failure part-way leaves
neither change behind. On SQLAlchemyError the session is rolled back and the
error re-raised for the router to turn into a 500.
"""
import logging
from datetime import datetime, UTC

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from models import BookStudied, Note, cover_url
from schemas import BookForm

logger = logging.getLogger(__name__)


def _books_query():
    return (
        select(BookStudied)
        .options(joinedload(BookStudied.note), joinedload(BookStudied.owner))
        .order_by(BookStudied.curr_date.desc(), BookStudied.id.desc())
    )


def list_books_for_user(db: Session, user_id: int) -> list[BookStudied]:
    """Books owned by user_id with note and owner loaded, newest first."""
    return list(db.scalars(_books_query().where(BookStudied.user_id == user_id)))


def list_all_books(db: Session) -> list[BookStudied]:
    """Every user's books with note and owner loaded, newest first."""
    return list(db.scalars(_books_query()))


def get_book(db: Session, book_id: int) -> BookStudied | None:
    return db.get(BookStudied, book_id)


def get_note_text(db: Session, book_id: int) -> str | None:
    """Note text for a book, or None when the book has no note row."""
    return db.scalar(select(Note.notes).where(Note.book_id == book_id))


def create_book(db: Session, user_id: int, data: BookForm) -> BookStudied:
    """Insert a book for user_id together with its note (even an empty one)."""
    book = BookStudied(
        title=data.title,
        author=data.author,
        key=data.key,
        value=data.value,
        curr_date=datetime.now(UTC),
        ratings=data.ratings,
        about=data.about,
        user_id=user_id,
        url=cover_url(data.key, data.value),
    )
    try:
        db.add(book)
        # flush assigns book.id without ending the transaction
        db.flush()
        db.add(Note(notes=data.notes, book_id=book.id))
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise
    logger.info("User %s added book %s (%r)", user_id, book.id, book.title)
    return book


def update_book(db: Session, book: BookStudied, data: BookForm) -> BookStudied:
    """Overwrite a book's fields and its note text; refreshes curr_date and url."""
    book.title = data.title
    book.author = data.author
    book.about = data.about
    book.ratings = data.ratings
    book.key = data.key
    book.value = data.value
    book.url = cover_url(data.key, data.value)
    book.curr_date = datetime.now(UTC)
    try:
        note = db.scalar(select(Note).where(Note.book_id == book.id))
        if note is None:
            # Rows written before notes were mandatory
            db.add(Note(notes=data.notes, book_id=book.id))
        else:
            note.notes = data.notes
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise
    logger.info("Updated book %s", book.id)
    return book


def delete_book(db: Session, book: BookStudied) -> None:
    """Delete a book's note and then the book itself."""
    book_id = book.id
    try:
        db.execute(delete(Note).where(Note.book_id == book_id))
        db.execute(delete(BookStudied).where(BookStudied.id == book_id))
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise
    logger.info("Deleted book %s", book_id)
