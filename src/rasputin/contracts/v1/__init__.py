from .latency import LatencySample
from .library import (
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

__all__ = [
    "SERVICE_BOOKS",
    "SERVICE_LOANS",
    "SERVICE_USERS",
    "Book",
    "BookCommand",
    "LatencySample",
    "Loan",
    "LoanCommand",
    "LoanHistory",
    "User",
    "UserCommand",
]
