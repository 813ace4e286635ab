"""End-to-end smoke run across the books, users and loans services."""

from __future__ import annotations

import logging
import time
from datetime import datetime, timezone
from typing import TypeVar, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

from rasputin.contracts.v1 import (
    SERVICE_BOOKS,
    SERVICE_LOANS,
    SERVICE_USERS,
    Book,
    BookCommand,
    Loan,
    LoanCommand,
    LoanHistory,
    User,
    UserCommand,
)
from rasputin.domain.bridge import RequestReplyBridge
from rasputin.domain.errors import BridgeError

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)
Command = Union[BookCommand, UserCommand, LoanCommand]


class IntegrationFailure(Exception):
    """A step of the smoke run returned data that contradicts the run."""


class ServiceCall(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    service_name: str
    method_name: str
    duration_ms: int


class IntegrationReport(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    service_calls: list[ServiceCall] = Field(default_factory=list)
    duration_ms: int = 0
    status_code: int = 200
    error_message: str = ""


class IntegrationRun:
    """Drive one smoke run, timing every service call."""

    def __init__(self, bridge: RequestReplyBridge) -> None:
        self._bridge = bridge
        self.report = IntegrationReport()

    async def _call(self, service: str, command: Command, reply_model: type[ModelT]) -> ModelT:
        started = time.monotonic()
        result = await self._bridge.request(service, command.to_wire())
        body = result.unwrap()
        self.report.service_calls.append(
            ServiceCall(
                service_name=service,
                method_name=command.command,
                duration_ms=int((time.monotonic() - started) * 1000),
            )
        )
        try:
            return reply_model.model_validate_json(body)
        except ValidationError as exc:
            raise IntegrationFailure(f"{service} {command.command}: unexpected reply: {exc}") from exc

    async def create_book(self, book: Book) -> Book:
        return await self._call(SERVICE_BOOKS, BookCommand(command="create", book=book), Book)

    async def delete_book(self, book: Book) -> Book:
        return await self._call(SERVICE_BOOKS, BookCommand(command="delete", book=book), Book)

    async def create_user(self, user: User) -> User:
        return await self._call(SERVICE_USERS, UserCommand(command="create", user=user), User)

    async def delete_user(self, user: User) -> User:
        return await self._call(SERVICE_USERS, UserCommand(command="delete", user=user), User)

    async def create_loan(self, loan: Loan) -> Loan:
        return await self._call(SERVICE_LOANS, LoanCommand(command="loan", loan=loan), Loan)

    async def loan_history(self, isbn: str) -> LoanHistory:
        cmd = LoanCommand(command="list_loan_history_by_isbn", parameter=isbn)
        return await self._call(SERVICE_LOANS, cmd, LoanHistory)

    @staticmethod
    def check_user_has_book(history: LoanHistory, user: User) -> None:
        if not history.history or history.history[0].user_id != user.id:
            raise IntegrationFailure("User does not have book")

    async def run(self) -> IntegrationReport:
        now = datetime.now(timezone.utc)
        started = time.monotonic()
        try:
            logger.info("integration.books")
            book1 = await self.create_book(
                Book(isbn="9783161484100", title="Test Book 1", author="Test Author 1", price="10.0", publication_date=now)
            )
            book2 = await self.create_book(
                Book(isbn="9783161484101", title="Test Book 2", author="Test Author 2", price="20.0", publication_date=now)
            )
            logger.info("integration.users")
            user1 = await self.create_user(User(username="testuser1", password="testpassword1", email="test1@mail.net"))
            user2 = await self.create_user(User(username="testuser2", password="testpassword2", email="tst2@mail.net"))
            logger.info("integration.loans")
            await self.create_loan(Loan(isbn=book1.isbn, user_id=user1.id, loan_timestamp=now, active=True))
            await self.create_loan(Loan(isbn=book2.isbn, user_id=user2.id, loan_timestamp=now, active=True))

            self.check_user_has_book(await self.loan_history(book1.isbn), user1)
            self.check_user_has_book(await self.loan_history(book2.isbn), user2)

            logger.info("integration.cleanup")
            await self.delete_book(book1)
            await self.delete_book(book2)
            await self.delete_user(user1)
            await self.delete_user(user2)
        except (BridgeError, IntegrationFailure) as exc:
            logger.error("integration.failed", extra={"error": str(exc)}, exc_info=True)
            self.report.status_code = 500
            self.report.error_message = str(exc)
        else:
            self.report.status_code = 200
            self.report.error_message = ""
        self.report.duration_ms = int((time.monotonic() - started) * 1000)
        return self.report


async def run_full_integration(bridge: RequestReplyBridge) -> IntegrationReport:
    return await IntegrationRun(bridge).run()


__all__ = ["IntegrationReport", "IntegrationRun", "ServiceCall", "run_full_integration"]
