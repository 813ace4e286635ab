from __future__ import annotations

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

# Service destinations behind the router
SERVICE_BOOKS = "ms-books"
SERVICE_USERS = "ms-users"
SERVICE_LOANS = "ms-loans"

BookCommandName = Literal["list", "create", "delete"]
UserCommandName = Literal["list", "create", "delete"]
LoanCommandName = Literal["list_active_books_user", "list_loan_history_by_isbn", "loan", "return"]


class LibraryModel(BaseModel):
    """camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    def to_wire(self) -> bytes:
        return self.model_dump_json(by_alias=True, exclude_none=True).encode("utf-8")


class Book(LibraryModel):
    isbn: str = ""
    title: Optional[str] = None
    author: Optional[str] = None
    price: Optional[str] = None
    publication_date: Optional[datetime] = None


class User(LibraryModel):
    id: Optional[int] = None
    username: Optional[str] = None
    password: Optional[str] = None
    email: Optional[str] = None


class Loan(LibraryModel):
    id: Optional[int] = None
    isbn: str = ""
    user_id: Optional[int] = None
    loan_timestamp: Optional[datetime] = None
    active: bool = True


class LoanHistory(LibraryModel):
    history: list[Loan] = Field(default_factory=list)


class BookCommand(LibraryModel):
    command: BookCommandName
    book: Optional[Book] = None


class UserCommand(LibraryModel):
    command: UserCommandName
    user: Optional[User] = None
    parameter: Optional[str] = None


class LoanCommand(LibraryModel):
    command: LoanCommandName
    loan: Optional[Loan] = None
    parameter: Optional[str] = None
