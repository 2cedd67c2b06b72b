"""Route tests for the local (active-user) variant."""
from fastapi.testclient import TestClient
from sqlalchemy import select

from config import ACTIVE_USER_COOKIE_NAME
from models import BookStudied, Note
import books
from main import create_app


def _book_id(db, title: str) -> int:
    db.expire_all()
    return db.scalar(select(BookStudied.id).where(BookStudied.title == title))


class TestHome:
    def test_lists_users_and_active_users_books(self, local_client, make_user, dune_form):
        make_user("alice")
        make_user("bob")
        local_client.post("/newBook", data=dune_form)

        response = local_client.get("/")

        assert response.status_code == 200
        assert "alice" in response.text
        assert "bob" in response.text
        assert "Dune" in response.text

    def test_health(self, local_client):
        assert local_client.get("/health").json() == {"status": "ok"}

    def test_unexpected_error_is_generic_500(self, db, make_user, monkeypatch):
        def boom(*args, **kwargs):
            raise RuntimeError("template store unavailable")

        make_user("alice")
        monkeypatch.setattr(books, "list_books_for_user", boom)

        with TestClient(create_app(auth_mode="local"), raise_server_exceptions=False) as client:
            response = client.get("/")

        assert response.status_code == 500
        assert response.json() == {"detail": "Internal server error"}
        assert "template store" not in response.text


class TestNewBook:
    def test_end_to_end_dune(self, local_client, db, make_user, dune_form):
        user = make_user("alice")

        response = local_client.post("/newBook", data=dune_form, follow_redirects=False)
        assert response.status_code == 303
        assert response.headers["location"] == "/"

        page = local_client.get("/")
        assert "Dune" in page.text
        assert "great" in page.text
        book = db.scalar(select(BookStudied).where(BookStudied.title == "Dune"))
        assert book.user_id == user.id
        assert book.url == "https://covers.openlibrary.org/b/OL2/456-M.jpg"

    def test_empty_note_still_creates_note_row(self, local_client, db, make_user, dune_form):
        make_user("alice")
        dune_form["notes"] = ""

        local_client.post("/newBook", data=dune_form)

        book_id = _book_id(db, "Dune")
        assert db.scalar(select(Note.notes).where(Note.book_id == book_id)) == ""

    def test_missing_title_is_400(self, local_client, make_user, dune_form):
        make_user("alice")
        dune_form["title"] = "   "

        response = local_client.post("/newBook", data=dune_form)

        assert response.status_code == 400

    def test_non_numeric_rating_is_400(self, local_client, make_user, dune_form):
        make_user("alice")
        dune_form["ratings"] = "five"

        assert local_client.post("/newBook", data=dune_form).status_code == 400

    def test_active_user_without_row_is_500(self, local_client, db, dune_form):
        response = local_client.post("/newBook", data=dune_form)

        assert response.status_code == 500
        assert response.json()["detail"] == "An error occurred while adding the book."
        assert _book_id(db, "Dune") is None

    def test_database_failure_is_500(self, local_client, make_user, dune_form, monkeypatch):
        from sqlalchemy.exc import OperationalError

        def boom(*args, **kwargs):
            raise OperationalError("INSERT", {}, Exception("connection lost"))

        make_user("alice")
        monkeypatch.setattr(books, "create_book", boom)

        assert local_client.post("/newBook", data=dune_form).status_code == 500


class TestActiveUser:
    def test_add_user_becomes_active(self, local_client, db, make_user, dune_form):
        make_user("alice")

        response = local_client.post("/add", data={"newUser": "bob"})
        assert response.status_code == 200
        assert 'action="/newBook"' in response.text
        assert ACTIVE_USER_COOKIE_NAME in local_client.cookies

        local_client.post("/newBook", data=dune_form)
        book = db.scalar(select(BookStudied).where(BookStudied.title == "Dune"))
        assert book.owner.name == "bob"

    def test_duplicate_name_is_409(self, local_client, make_user):
        make_user("alice")

        response = local_client.post("/add", data={"newUser": "alice"})

        assert response.status_code == 409
        assert ACTIVE_USER_COOKIE_NAME not in local_client.cookies

    def test_blank_name_is_400(self, local_client, db):
        assert local_client.post("/add", data={"newUser": "  "}).status_code == 400

    def test_change_user_switches_books_shown(self, local_client, make_user, dune_form):
        make_user("alice")
        bob = make_user("bob")
        local_client.post("/newBook", data=dune_form)

        response = local_client.post("/changeUser", json={"userId": bob.id})

        assert response.status_code == 204
        assert "Dune" not in local_client.get("/").text

    def test_change_user_non_numeric_is_400_and_keeps_active_user(self, local_client, make_user, dune_form):
        make_user("alice")
        local_client.post("/newBook", data=dune_form)

        response = local_client.post("/changeUser", json={"userId": "abc"})

        assert response.status_code == 400
        assert ACTIVE_USER_COOKIE_NAME not in local_client.cookies
        assert "Dune" in local_client.get("/").text

    def test_change_user_form_body_is_400(self, local_client, make_user):
        make_user("alice")
        bob = make_user("bob")

        response = local_client.post("/changeUser", data={"userId": str(bob.id)})

        assert response.status_code == 400
        assert ACTIVE_USER_COOKIE_NAME not in local_client.cookies

    def test_change_user_unknown_id_is_404(self, local_client, make_user):
        make_user("alice")

        response = local_client.post("/changeUser", json={"userId": 99})

        assert response.status_code == 404
        assert ACTIVE_USER_COOKIE_NAME not in local_client.cookies


class TestNotesEditUpdateDelete:
    def test_notes_view_is_stable(self, local_client, db, make_user, dune_form):
        make_user("alice")
        local_client.post("/newBook", data=dune_form)
        book_id = _book_id(db, "Dune")

        first = local_client.post("/notes", data={"book_id": book_id})
        second = local_client.post("/notes", data={"book_id": book_id})

        assert first.status_code == 200
        assert "great" in first.text
        assert first.text == second.text

    def test_notes_for_unknown_book(self, local_client, db):
        response = local_client.post("/notes", data={"book_id": 12345})

        assert response.status_code == 200
        assert "No notes found for this book." in response.text

    def test_edit_prefills_form(self, local_client, db, make_user, dune_form):
        make_user("alice")
        local_client.post("/newBook", data=dune_form)
        book_id = _book_id(db, "Dune")

        response = local_client.post("/edit", data={"book_id": book_id})

        assert response.status_code == 200
        assert 'action="/updateBook"' in response.text
        assert 'value="Dune"' in response.text
        assert "great" in response.text

    def test_edit_missing_book_is_404(self, local_client, db):
        assert local_client.post("/edit", data={"book_id": 777}).status_code == 404

    def test_edit_malformed_id_is_400(self, local_client, db):
        assert local_client.post("/edit", data={"book_id": "x1"}).status_code == 400

    def test_update_book(self, local_client, db, make_user, dune_form):
        make_user("alice")
        local_client.post("/newBook", data=dune_form)
        book_id = _book_id(db, "Dune")
        dune_form.update({"bookId": book_id, "title": "Dune Messiah", "notes": "even better"})

        response = local_client.post("/updateBook", data=dune_form, follow_redirects=False)

        assert response.status_code == 303
        db.expire_all()
        book = db.get(BookStudied, book_id)
        assert book.title == "Dune Messiah"
        assert db.scalar(select(Note.notes).where(Note.book_id == book_id)) == "even better"

    def test_edit_then_update_keeps_catalog_key(self, local_client, db, make_user, dune_form):
        make_user("alice")
        local_client.post("/newBook", data=dune_form)
        book_id = _book_id(db, "Dune")

        page = local_client.post("/edit", data={"book_id": book_id}).text
        assert 'name="key" value="OL2"' in page
        assert 'name="value" value="456"' in page

        dune_form.update({"bookId": book_id, "notes": "reread"})
        local_client.post("/updateBook", data=dune_form)

        db.expire_all()
        book = db.get(BookStudied, book_id)
        assert book.key == "OL2"
        assert book.url == "https://covers.openlibrary.org/b/OL2/456-M.jpg"

    def test_update_missing_book_is_404(self, local_client, make_user, dune_form):
        make_user("alice")
        dune_form["bookId"] = 404

        assert local_client.post("/updateBook", data=dune_form).status_code == 404

    def test_delete_book(self, local_client, db, make_user, dune_form):
        make_user("alice")
        local_client.post("/newBook", data=dune_form)
        book_id = _book_id(db, "Dune")

        response = local_client.post("/delete", data={"book_id": book_id}, follow_redirects=False)

        assert response.status_code == 303
        db.expire_all()
        assert db.get(BookStudied, book_id) is None
        assert db.scalar(select(Note).where(Note.book_id == book_id)) is None
        assert "No notes found for this book." in local_client.post("/notes", data={"book_id": book_id}).text

    def test_add_book_form_get_and_post(self, local_client, db):
        assert 'action="/newBook"' in local_client.get("/addBook").text
        assert local_client.post("/addBook").status_code == 200

    def test_google_routes_not_mounted(self, local_client, db):
        assert local_client.get("/login").status_code == 404
