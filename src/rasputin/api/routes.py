"""HTTP endpoints for books, users and loans.

Each handler only shapes a command body and hands it to the bridge; the
reply body from the service is returned to the client unchanged.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response, status

from rasputin.api.integration import IntegrationReport, run_full_integration
from rasputin.contracts.v1 import (
    SERVICE_BOOKS,
    SERVICE_LOANS,
    SERVICE_USERS,
    Book,
    BookCommand,
    Loan,
    LoanCommand,
    User,
    UserCommand,
)
from rasputin.domain.bridge import RequestReplyBridge
from rasputin.domain.result import BridgeResult, ChannelFailure, Malformed, Ok, Timeout

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["library"])


def get_bridge(request: Request) -> RequestReplyBridge:
    bridge = getattr(request.app.state, "bridge", None)
    if bridge is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Gateway not initialized",
        )
    return bridge


def reply_response(result: BridgeResult, destination: str) -> Response:
    """Map a bridge outcome onto an HTTP response."""
    if isinstance(result, Ok):
        return Response(content=result.body, media_type="application/json")
    if isinstance(result, Timeout):
        raise HTTPException(
            status_code=status.HTTP_504_GATEWAY_TIMEOUT,
            detail=f"No reply from {destination} within {result.deadline:g}s",
        )
    if isinstance(result, Malformed):
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=f"Malformed reply from {destination}: {result.error}",
        )
    if isinstance(result, ChannelFailure):
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"Broker unavailable: {result.error}",
        )
    raise TypeError(f"unexpected bridge result {result!r}")


async def _forward(bridge: RequestReplyBridge, destination: str, body: bytes) -> Response:
    result = await bridge.request(destination, body)
    return reply_response(result, destination)


# --- Books ---


@router.get("/books")
async def list_books(
    isbns: str = Query(..., description="Comma separated ISBN list"),
    bridge: RequestReplyBridge = Depends(get_bridge),
) -> Response:
    cmd = BookCommand(command="list", book=Book(isbn=isbns))
    return await _forward(bridge, SERVICE_BOOKS, cmd.to_wire())


@router.post("/books")
async def create_book(book: Book, bridge: RequestReplyBridge = Depends(get_bridge)) -> Response:
    cmd = BookCommand(command="create", book=book)
    return await _forward(bridge, SERVICE_BOOKS, cmd.to_wire())


# --- Users ---


@router.get("/users")
async def list_users(
    ids: str = Query(..., description="Comma separated user id list"),
    bridge: RequestReplyBridge = Depends(get_bridge),
) -> Response:
    cmd = UserCommand(command="list", parameter=ids)
    return await _forward(bridge, SERVICE_USERS, cmd.to_wire())


@router.post("/users")
async def create_user(user: User, bridge: RequestReplyBridge = Depends(get_bridge)) -> Response:
    cmd = UserCommand(command="create", user=user)
    return await _forward(bridge, SERVICE_USERS, cmd.to_wire())


# --- Loans ---


@router.get("/loans")
async def list_loans(
    isbn: Optional[str] = Query(None, description="Loan history for one ISBN"),
    ids: Optional[str] = Query(None, description="Active loans for these user ids"),
    bridge: RequestReplyBridge = Depends(get_bridge),
) -> Response:
    if isbn is not None:
        cmd = LoanCommand(command="list_loan_history_by_isbn", parameter=isbn)
    elif ids is not None:
        cmd = LoanCommand(command="list_active_books_user", parameter=ids)
    else:
        logger.warning("Loans query without isbn or ids")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid request")
    return await _forward(bridge, SERVICE_LOANS, cmd.to_wire())


@router.post("/loans")
async def create_loan(loan: Loan, bridge: RequestReplyBridge = Depends(get_bridge)) -> Response:
    update = {"active": True}
    if loan.loan_timestamp is None:
        update["loan_timestamp"] = datetime.now(timezone.utc)
    cmd = LoanCommand(command="loan", loan=loan.model_copy(update=update))
    return await _forward(bridge, SERVICE_LOANS, cmd.to_wire())


@router.put("/loans")
async def return_loan(loan: Loan, bridge: RequestReplyBridge = Depends(get_bridge)) -> Response:
    cmd = LoanCommand(command="return", loan=loan.model_copy(update={"active": False}))
    return await _forward(bridge, SERVICE_LOANS, cmd.to_wire())


# --- Integration smoke test ---


@router.get("/integration", response_model=IntegrationReport, response_model_by_alias=True)
async def integration(
    test: str = Query(""),
    bridge: RequestReplyBridge = Depends(get_bridge),
) -> Response:
    if test != "Full":
        logger.warning("Unknown integration test requested: %s", test)
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid request")
    report = await run_full_integration(bridge)
    return Response(
        content=report.model_dump_json(by_alias=True),
        media_type="application/json",
        status_code=report.status_code,
    )
