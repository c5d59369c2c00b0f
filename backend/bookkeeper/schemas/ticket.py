"""
Book Keeper Backend - Transaction Ticket Schemas
=================================================

Contracts for /api/transaction.

Two ticket shapes:
    - TicketResponse: references as plain ids (returned by issue/approve/complete)
    - TicketDetailResponse: `bookId` and `approvedBy` resolved into the
      book and admin objects (returned by the pending/active lists)
"""

from datetime import datetime
from typing import List, Optional

from pydantic import AliasChoices, Field

from bookkeeper.schemas.book import BookResponse
from bookkeeper.schemas.common import CamelModel
from bookkeeper.schemas.user import UserResponse


class IssueRequest(CamelModel):
    book_id: str = Field(min_length=1)
    borrower_id: str = Field(min_length=1)


class ApproveRequest(CamelModel):
    ticket_id: str = Field(min_length=1)
    # Defaults to the acting admin when omitted
    admin_id: Optional[str] = None


class CompleteRequest(CamelModel):
    ticket_id: str = Field(min_length=1)
    borrower_id: str = Field(min_length=1)
    admin_id: Optional[str] = None


class TicketResponse(CamelModel):
    id: str
    book_id: str
    borrower_id: str
    transaction_type: str
    issue_date: Optional[datetime] = None
    due_date: Optional[datetime] = None
    return_date: Optional[datetime] = None
    status: str
    approved_by: Optional[str] = None


class TicketDetailResponse(CamelModel):
    id: str
    book: Optional[BookResponse] = Field(
        default=None,
        validation_alias=AliasChoices("book", "bookId"),
        serialization_alias="bookId",
    )
    borrower_id: str
    transaction_type: str
    issue_date: Optional[datetime] = None
    due_date: Optional[datetime] = None
    return_date: Optional[datetime] = None
    status: str
    approver: Optional[UserResponse] = Field(
        default=None,
        validation_alias=AliasChoices("approver", "approvedBy"),
        serialization_alias="approvedBy",
    )


class TicketEnvelope(CamelModel):
    message: str
    ticket: TicketResponse


class PendingTicketsResponse(CamelModel):
    pending_tickets: List[TicketDetailResponse]
