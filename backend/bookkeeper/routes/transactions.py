"""
Book Keeper Backend - Transaction (Loan) Routes
================================================

What:  /api/transaction: the borrow/return ticket workflow.

Endpoints and capability:
    POST /ticket/issue                members only, borrowerId must be the caller
    PUT  /ticket/approve              admin
    PUT  /ticket/complete             members only, borrowerId must be the caller and the ticket's borrower
    GET  /tickets/pending/{userId}    members only, userId must be the caller
    GET  /tickets/active/{adminId}    admin

Routes stay thin: authorize, call LoanService, wrap the result.
"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from bookkeeper.database import get_db_session
from bookkeeper.models.user import User
from bookkeeper.routes.deps import enforce, get_current_user, require
from bookkeeper.schemas.common import ErrorResponse
from bookkeeper.schemas.ticket import (
    ApproveRequest,
    CompleteRequest,
    IssueRequest,
    PendingTicketsResponse,
    TicketDetailResponse,
    TicketEnvelope,
    TicketResponse,
)
from bookkeeper.services.access_policy import admin_only, self_excluding_admin
from bookkeeper.services.loan_service import loan_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/transaction", tags=["Transactions"])

_AUTH = {401: {"description": "Missing/invalid credential or access denied", "model": ErrorResponse}}
_WORKFLOW_ERRORS = {
    **_AUTH,
    400: {"description": "Ticket already completed or book unavailable", "model": ErrorResponse},
    404: {"description": "Ticket or book not found", "model": ErrorResponse},
}


@router.post(
    "/ticket/issue",
    status_code=201,
    response_model=TicketEnvelope,
    responses={**_AUTH, 400: {"description": "Invalid request", "model": ErrorResponse}},
    summary="Request to borrow a book",
)
async def issue_ticket(
    body: IssueRequest,
    actor: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> TicketEnvelope:
    await enforce(self_excluding_admin, db, actor, target_id=body.borrower_id)
    ticket = await loan_service.issue(db, body.book_id, body.borrower_id)
    return TicketEnvelope(
        message="Ticket raised for issuing book",
        ticket=TicketResponse.model_validate(ticket),
    )


@router.put(
    "/ticket/approve",
    response_model=TicketEnvelope,
    responses=_WORKFLOW_ERRORS,
    summary="Approve a ticket (admin)",
)
async def approve_ticket(
    body: ApproveRequest,
    actor: User = Depends(require(admin_only)),
    db: AsyncSession = Depends(get_db_session),
) -> TicketEnvelope:
    ticket = await loan_service.approve(db, body.ticket_id, body.admin_id or actor.id)
    return TicketEnvelope(
        message="Ticket approved by admin, book has been issued.",
        ticket=TicketResponse.model_validate(ticket),
    )


@router.put(
    "/ticket/complete",
    response_model=TicketEnvelope,
    responses=_WORKFLOW_ERRORS,
    summary="Return a book and close its ticket",
)
async def complete_ticket(
    body: CompleteRequest,
    actor: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> TicketEnvelope:
    await enforce(self_excluding_admin, db, actor, target_id=body.borrower_id)
    ticket = await loan_service.complete(
        db,
        body.ticket_id,
        borrower_id=body.borrower_id,
        admin_id=body.admin_id,
    )
    return TicketEnvelope(
        message="Ticket completed, book has been returned",
        ticket=TicketResponse.model_validate(ticket),
    )


@router.get(
    "/tickets/pending/{userId}",
    response_model=PendingTicketsResponse,
    responses=_AUTH,
    summary="Pending tickets of the calling member",
)
async def pending_tickets(
    userId: str,
    actor: User = Depends(require(self_excluding_admin, target_param="userId")),
    db: AsyncSession = Depends(get_db_session),
) -> PendingTicketsResponse:
    tickets = await loan_service.list_pending_for_user(db, userId)
    return PendingTicketsResponse(
        pending_tickets=[TicketDetailResponse.model_validate(t) for t in tickets]
    )


@router.get(
    "/tickets/active/{adminId}",
    response_model=PendingTicketsResponse,
    responses=_AUTH,
    summary="Tickets awaiting approval (admin)",
    description="Lists every pending ticket. Approved, unreturned tickets are not included.",
)
async def active_tickets(
    adminId: str,
    actor: User = Depends(require(admin_only)),
    db: AsyncSession = Depends(get_db_session),
) -> PendingTicketsResponse:
    tickets = await loan_service.list_active_for_admin(db)
    logger.debug("Admin %s listed %d pending tickets", adminId, len(tickets))
    return PendingTicketsResponse(
        pending_tickets=[TicketDetailResponse.model_validate(t) for t in tickets]
    )
