"""
Request models for the form and JSON bodies the routers accept.

Values are stripped and constrained here so services only ever see typed,
validated input.
"""
from pydantic import BaseModel, ConfigDict, Field


class BookForm(BaseModel):
    """Fields submitted by the add/edit book form."""
    model_config = ConfigDict(str_strip_whitespace=True)

    title: str = Field(..., min_length=1, max_length=255)
    author: str = Field("", max_length=255)
    about: str = ""
    notes: str = ""
    ratings: int = Field(0, ge=0, le=10)
    # Open Library identifier type (isbn, olid, ...) and its value
    key: str = Field(..., min_length=1, max_length=64)
    value: str = Field(..., min_length=1, max_length=64)


class NewUserForm(BaseModel):
    """Body of POST /add."""
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=1, max_length=255)


class ChangeUserBody(BaseModel):
    """JSON body of POST /changeUser; the page script sends {"userId": ...}."""
    model_config = ConfigDict(populate_by_name=True)

    user_id: int = Field(..., alias="userId", ge=1)
