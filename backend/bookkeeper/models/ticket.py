"""
Book Keeper Backend - Transaction Ticket Model
===============================================

What:  ORM model for `transaction_tickets`: one loan from request to return.
Who:   LoanService is the only writer.

Lifecycle:
    pending ──approve──▶ approved ──complete──▶ completed (terminal)
       └──────────────complete─────────────────────▲

    - created `pending` by the borrower (issue)
    - `approved` by an admin; the book becomes unavailable
    - `completed` on return; the book becomes available, return_date stamped

References:
    book_id / borrower_id / approved_by are plain string columns without
    database foreign keys: a ticket may be issued for a book id that does
    not exist yet (the existence check happens at approval), and tickets
    outlive the records they point at. Relationships are declared view-only
    so lists can resolve them in one round trip.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, Index, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from bookkeeper.database import Base
from bookkeeper.models.book import Book
from bookkeeper.models.common import IdMixin, utcnow
from bookkeeper.models.user import User

STATUS_PENDING = "pending"
STATUS_APPROVED = "approved"
STATUS_COMPLETED = "completed"
STATUSES = (STATUS_PENDING, STATUS_APPROVED, STATUS_COMPLETED)

TYPE_ISSUE = "issue"
TYPE_RETURN = "return"
TRANSACTION_TYPES = (TYPE_ISSUE, TYPE_RETURN)


class TransactionTicket(IdMixin, Base):
    __tablename__ = "transaction_tickets"

    book_id: Mapped[str] = mapped_column(String(36), nullable=False)
    borrower_id: Mapped[str] = mapped_column(String(36), nullable=False)
    transaction_type: Mapped[str] = mapped_column(String(20), nullable=False)

    issue_date: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True, default=utcnow
    )
    due_date: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    return_date: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=STATUS_PENDING,
    )
    approved_by: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)

    book: Mapped[Optional[Book]] = relationship(
        primaryjoin="foreign(TransactionTicket.book_id) == Book.id",
        lazy="selectin",
        viewonly=True,
    )
    borrower: Mapped[Optional[User]] = relationship(
        primaryjoin="foreign(TransactionTicket.borrower_id) == User.id",
        lazy="selectin",
        viewonly=True,
    )
    approver: Mapped[Optional[User]] = relationship(
        primaryjoin="foreign(TransactionTicket.approved_by) == User.id",
        lazy="selectin",
        viewonly=True,
    )

    # Both list queries filter on status; pending-for-user also on borrower
    __table_args__ = (
        Index("idx_tickets_status_borrower", "status", "borrower_id"),
        Index("idx_tickets_book_status", "book_id", "status"),
    )

    @property
    def is_completed(self) -> bool:
        return self.status == STATUS_COMPLETED

    def __repr__(self) -> str:
        return (
            f"<TransactionTicket(id={self.id}, book_id={self.book_id}, "
            f"status='{self.status}')>"
        )
