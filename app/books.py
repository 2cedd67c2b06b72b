"""
Books router: home list, add/edit form, notes view, create/update/delete.

Delegates persistence to services.book_service. Every route resolves the
acting user through get_current_user_id, which in google mode redirects
anonymous requests to /login. Mutations in google mode are limited to the
book's owner (403 otherwise). Database failures are logged and reported as
a 500 with a fixed message per route.
"""
import logging

from fastapi import APIRouter, Depends, Form, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import RedirectResponse
from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from auth import get_current_user_id
from config import AUTH_MODE_GOOGLE
from database import get_db
from models import BookStudied
from schemas import BookForm
from services.book_service import (
    create_book,
    delete_book,
    get_book,
    get_note_text,
    list_all_books,
    list_books_for_user,
    update_book,
)
from services.user_service import get_user, list_users
from templating import render

logger = logging.getLogger(__name__)

router = APIRouter()

NO_NOTES_TEXT = "No notes found for this book."


def book_form(
    title: str = Form(""),
    author: str = Form(""),
    about: str = Form(""),
    notes: str = Form(""),
    ratings: str = Form("0"),
    key: str = Form(""),
    value: str = Form(""),
) -> BookForm:
    """Collect the add/edit form fields into a validated BookForm (400 on bad input)."""
    try:
        return BookForm(
            title=title,
            author=author,
            about=about,
            notes=notes,
            ratings=ratings,
            key=key,
            value=value,
        )
    except ValidationError as e:
        raise RequestValidationError(e.errors())


def _book_for_change(request: Request, db: Session, book_id: int, user_id: int) -> BookStudied:
    """Load a book the acting user may edit; 404 if missing, 403 if not the owner (google mode)."""
    book = get_book(db, book_id)
    if book is None:
        raise HTTPException(status_code=404, detail="Book not found.")
    if request.app.state.auth_mode == AUTH_MODE_GOOGLE and book.user_id != user_id:
        logger.warning("User %s denied access to book %s owned by %s", user_id, book.id, book.user_id)
        raise HTTPException(status_code=403, detail="You can only change your own books.")
    return book


def _home():
    return RedirectResponse(url="/", status_code=303)


@router.get("/")
def home(
    request: Request,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """
    Local mode: every user (for the picker) and the active user's books.
    Google mode: every user's books with owner names.
    """
    try:
        if request.app.state.auth_mode == AUTH_MODE_GOOGLE:
            users = []
            books = list_all_books(db)
        else:
            users = list_users(db)
            books = list_books_for_user(db, user_id)
        current_user = get_user(db, user_id)
    except SQLAlchemyError:
        logger.exception("Error loading home page")
        raise HTTPException(
            status_code=500,
            detail="Failed to load content. Check database connection and server logs.",
        )
    return render(request, "index.html", {
        "users": users,
        "books": books,
        "current_user": current_user,
    })


@router.api_route("/addBook", methods=["GET", "POST"])
def add_book_form(request: Request, user_id: int = Depends(get_current_user_id)):
    return render(request, "add_book.html")


@router.post("/newBook")
def new_book(
    user_id: int = Depends(get_current_user_id),
    data: BookForm = Depends(book_form),
    db: Session = Depends(get_db),
):
    try:
        create_book(db, user_id, data)
    except SQLAlchemyError:
        logger.exception("Error adding book for user %s", user_id)
        raise HTTPException(status_code=500, detail="An error occurred while adding the book.")
    return _home()


@router.post("/notes")
def show_notes(
    request: Request,
    book_id: int = Form(...),
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    try:
        notes = get_note_text(db, book_id)
    except SQLAlchemyError:
        logger.exception("Error loading notes for book %s", book_id)
        raise HTTPException(status_code=500, detail="An error occurred while loading the notes.")
    return render(request, "notes.html", {
        "notes": notes if notes is not None else NO_NOTES_TEXT,
    })


@router.post("/edit")
def edit_book(
    request: Request,
    book_id: int = Form(...),
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """Show the add-book form pre-filled with a book and its note."""
    try:
        book = _book_for_change(request, db, book_id, user_id)
        notes = get_note_text(db, book.id) or ""
    except SQLAlchemyError:
        logger.exception("Error fetching book %s for edit", book_id)
        raise HTTPException(
            status_code=500,
            detail="An error occurred while preparing to edit the book.",
        )
    return render(request, "add_book.html", {"edit": book, "edit_notes": notes})


@router.post("/updateBook")
def update_book_route(
    request: Request,
    bookId: int = Form(...),
    user_id: int = Depends(get_current_user_id),
    data: BookForm = Depends(book_form),
    db: Session = Depends(get_db),
):
    try:
        book = _book_for_change(request, db, bookId, user_id)
        update_book(db, book, data)
    except SQLAlchemyError:
        logger.exception("Error updating book %s", bookId)
        raise HTTPException(status_code=500, detail="An error occurred while updating the book.")
    return _home()


@router.post("/delete")
def delete_book_route(
    request: Request,
    book_id: int = Form(...),
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    try:
        book = _book_for_change(request, db, book_id, user_id)
        delete_book(db, book)
    except SQLAlchemyError:
        logger.exception("Error deleting book %s", book_id)
        raise HTTPException(status_code=500, detail="An error occurred while deleting the book.")
    return _home()
