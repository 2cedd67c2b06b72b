"""
Users router (local mode): add a user by name, switch the active user.

The active user is kept in a signed cookie per browser rather than in the
process, so two people using the app at once do not switch each other.
"""
import logging

from fastapi import APIRouter, Depends, Form, HTTPException, Request, Response
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from auth import set_principal_cookie
from config import ACTIVE_USER_COOKIE_NAME
from database import get_db
from schemas import ChangeUserBody, NewUserForm
from services.user_service import DuplicateUserName, create_local_user, get_user
from templating import render

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/add")
def add_user(
    request: Request,
    newUser: str = Form(""),
    db: Session = Depends(get_db),
):
    """
    Create a user from the submitted name and make it the active user, then
    show the add-book form. A taken name is reported as 409.
    """
    try:
        form = NewUserForm(name=newUser)
    except ValidationError as e:
        raise RequestValidationError(e.errors())

    try:
        user = create_local_user(db, form.name)
    except DuplicateUserName as e:
        raise HTTPException(status_code=409, detail=f"{str(e)}; enter a unique name")
    except SQLAlchemyError:
        logger.exception("Error adding user %r", form.name)
        raise HTTPException(status_code=500, detail="An error occurred while adding the user.")

    request.state.user_id = user.id
    response = render(request, "add_book.html")
    set_principal_cookie(response, ACTIVE_USER_COOKIE_NAME, user.id)
    return response


@router.post("/changeUser", status_code=204)
def change_user(body: ChangeUserBody, db: Session = Depends(get_db)):
    """
    Switch the active user to an existing user id. The page reloads itself
    afterwards, so the response has no body.
    """
    try:
        user = get_user(db, body.user_id)
    except SQLAlchemyError:
        logger.exception("Error looking up user %s", body.user_id)
        raise HTTPException(status_code=500, detail="An error occurred while changing user.")
    if user is None:
        raise HTTPException(status_code=404, detail="User not found.")

    response = Response(status_code=204)
    set_principal_cookie(response, ACTIVE_USER_COOKIE_NAME, user.id)
    logger.info("Active user switched to %s", user.id)
    return response
