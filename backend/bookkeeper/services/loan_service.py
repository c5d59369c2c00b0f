"""
Book Keeper Backend - Loan Service (Ticket Workflow)
=====================================================

What:  The borrow/return workflow over transaction tickets and book
       availability.
Who:   /api/transaction routes, after the access policy has run.

State Machine:
    ┌─────────┐  approve   ┌──────────┐  complete   ┌───────────┐
    │ pending │──────────▶│ approved │───────────▶│ completed │
    └─────────┘            └──────────┘             └───────────┘
         │                                               ▲
         └────────────────────complete───────────────────┘

    - completed is terminal: approve/complete on it raise AlreadyCompletedError
    - complete does not require approved first (a pending request can be
      closed directly); only the ticket's own borrower may complete it
    - approving an already-approved ticket again is accepted

Book availability:
    is_available is False exactly while some approved ticket holds the book.

    approve  → refused if ANOTHER approved ticket holds the book, otherwise
               book.is_available = False
    complete → book.is_available = True, unless another approved ticket
               still holds the book (e.g. completing a stale pending request)

    The ticket write and the availability write go through the same
    AsyncSession and are committed together by get_db_session, so a failure
    in either leaves neither applied.

    Approval claims the book with a single conditional
    UPDATE books ... WHERE NOT EXISTS (other approved ticket), so the check
    and the write cannot interleave with another approval's check.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import List, Optional

from sqlalchemy import exists, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from bookkeeper.config import settings
from bookkeeper.exceptions import (
    AlreadyCompletedError,
    BookUnavailableError,
    DatabaseError,
    ForbiddenError,
    NotFoundError,
)
from bookkeeper.models.book import Book
from bookkeeper.models.ticket import (
    STATUS_APPROVED,
    STATUS_COMPLETED,
    STATUS_PENDING,
    TYPE_ISSUE,
    TransactionTicket,
)

logger = logging.getLogger(__name__)


class LoanService:
    """
    Ticket workflow operations.

    Holds only the loan period; every method receives the request's session.
    """

    def __init__(self, loan_period_days: int = 7):
        self.loan_period = timedelta(days=loan_period_days)

    # ── Transitions ───────────────────────────────────────────────────────

    async def issue(
        self, db: AsyncSession, book_id: str, borrower_id: str
    ) -> TransactionTicket:
        """
        Open a loan request.

        Neither the book's existence nor its availability is checked here;
        a book may collect several pending tickets. Both are enforced at
        approval.
        """
        now = datetime.now(timezone.utc)
        ticket = TransactionTicket(
            book_id=book_id,
            borrower_id=borrower_id,
            transaction_type=TYPE_ISSUE,
            issue_date=now,
            due_date=now + self.loan_period,
            status=STATUS_PENDING,
        )
        db.add(ticket)
        await self._flush(db, "Could not raise the ticket. Please try again.")
        logger.info(
            "Ticket %s issued: book=%s borrower=%s due=%s",
            ticket.id, book_id, borrower_id, ticket.due_date.isoformat(),
        )
        return ticket

    async def approve(
        self, db: AsyncSession, ticket_id: str, admin_id: str
    ) -> TransactionTicket:
        """
        Approve a ticket and mark its book as lent out.

        Raises:
            NotFoundError:         ticket or referenced book does not exist
            AlreadyCompletedError: ticket is completed
            BookUnavailableError:  the book is held by another approved ticket
        """
        ticket = await self.get_ticket(db, ticket_id)
        if ticket.is_completed:
            raise AlreadyCompletedError(ticket_id)

        book = await self._load_book(db, ticket.book_id)
        await self._claim_book(db, book, ticket)

        ticket.status = STATUS_APPROVED
        ticket.approved_by = admin_id
        book.is_available = False
        await self._flush(db, "Could not approve the ticket. Please try again.")

        logger.info(
            "Ticket %s approved by %s; book %s is now unavailable",
            ticket.id, admin_id, book.id,
        )
        return ticket

    async def complete(
        self,
        db: AsyncSession,
        ticket_id: str,
        borrower_id: str,
        admin_id: Optional[str] = None,
    ) -> TransactionTicket:
        """
        Close a ticket (book returned) and release the book.

        The book becomes available again unless another approved ticket
        still holds it. A ticket whose book has since been deleted is still
        closed; there is no availability to restore.

        Raises:
            NotFoundError:         ticket does not exist
            ForbiddenError:        `borrower_id` is not the ticket's borrower
            AlreadyCompletedError: ticket is already completed
        """
        ticket = await self.get_ticket(db, ticket_id)
        if ticket.borrower_id != borrower_id:
            logger.warning(
                "Completion of ticket %s refused: caller %s is not borrower %s",
                ticket.id, borrower_id, ticket.borrower_id,
            )
            raise ForbiddenError(
                "Access denied! You can only access your own data.",
                context={"ticket_id": ticket.id},
            )
        if ticket.is_completed:
            raise AlreadyCompletedError(ticket_id)

        previous = ticket.status
        ticket.status = STATUS_COMPLETED
        ticket.return_date = datetime.now(timezone.utc)

        book = await self._find_book(db, ticket.book_id)
        if book is None:
            logger.warning("Ticket %s closed for deleted book %s", ticket.id, ticket.book_id)
        elif await self._held_by_other_ticket(db, book.id, ticket.id):
            logger.info("Book %s stays unavailable: another approved ticket holds it", book.id)
        else:
            book.is_available = True
        await self._flush(db, "Could not complete the ticket. Please try again.")

        logger.info(
            "Ticket %s completed (was %s) by borrower=%s admin=%s",
            ticket.id, previous, borrower_id, admin_id,
        )
        return ticket

    # ── Queries ───────────────────────────────────────────────────────────

    async def get_ticket(self, db: AsyncSession, ticket_id: str) -> TransactionTicket:
        try:
            ticket = await db.get(TransactionTicket, ticket_id)
        except SQLAlchemyError as e:
            logger.error("Database error fetching ticket %s: %s", ticket_id, e, exc_info=True)
            raise DatabaseError(context={"ticket_id": ticket_id})
        if ticket is None:
            raise NotFoundError(resource="Ticket", resource_id=ticket_id, message="Ticket not found")
        return ticket

    async def list_pending_for_user(
        self, db: AsyncSession, borrower_id: str
    ) -> List[TransactionTicket]:
        """Pending tickets of one borrower, book and approver resolved."""
        return await self._list(
            db,
            TransactionTicket.borrower_id == borrower_id,
            TransactionTicket.status == STATUS_PENDING,
        )

    async def list_active_for_admin(self, db: AsyncSession) -> List[TransactionTicket]:
        """
        Tickets awaiting an admin decision.

        "Active" here means pending only; approved-but-unreturned tickets are
        not included.
        """
        return await self._list(db, TransactionTicket.status == STATUS_PENDING)

    # ── Internals ─────────────────────────────────────────────────────────

    async def _list(self, db: AsyncSession, *criteria) -> List[TransactionTicket]:
        query = (
            select(TransactionTicket)
            .where(*criteria)
            .order_by(TransactionTicket.issue_date)
            # refresh relationships of tickets already in the identity map
            .execution_options(populate_existing=True)
        )
        try:
            result = await db.execute(query)
            return list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.error("Database error listing tickets: %s", e, exc_info=True)
            raise DatabaseError(message="Could not retrieve tickets. Please try again.")

    async def _find_book(self, db: AsyncSession, book_id: str) -> Optional[Book]:
        try:
            return await db.get(Book, book_id)
        except SQLAlchemyError as e:
            logger.error("Database error fetching book %s: %s", book_id, e, exc_info=True)
            raise DatabaseError(context={"book_id": book_id})

    async def _load_book(self, db: AsyncSession, book_id: str) -> Book:
        book = await self._find_book(db, book_id)
        if book is None:
            raise NotFoundError(resource="Book", resource_id=book_id, message="Book not found")
        return book

    @staticmethod
    def _other_approved(book_id: str, ticket_id: str):
        return exists().where(
            TransactionTicket.book_id == book_id,
            TransactionTicket.status == STATUS_APPROVED,
            TransactionTicket.id != ticket_id,
        )

    async def _held_by_other_ticket(self, db: AsyncSession, book_id: str, ticket_id: str) -> bool:
        try:
            result = await db.execute(select(self._other_approved(book_id, ticket_id)))
        except SQLAlchemyError as e:
            logger.error("Database error checking loans of book %s: %s", book_id, e, exc_info=True)
            raise DatabaseError(context={"book_id": book_id})
        return bool(result.scalar())

    async def _claim_book(self, db: AsyncSession, book: Book, ticket: TransactionTicket) -> None:
        """
        Mark the book lent out for `ticket`, or fail if another approved
        ticket holds it. The stored flag alone is not trusted: an admin may
        have edited it by hand.
        """
        try:
            result = await db.execute(
                update(Book)
                .where(Book.id == book.id, ~self._other_approved(book.id, ticket.id))
                .values(is_available=False)
                .execution_options(synchronize_session=False)
            )
        except SQLAlchemyError as e:
            logger.error("Database error claiming book %s: %s", book.id, e, exc_info=True)
            raise DatabaseError(context={"book_id": book.id})
        if result.rowcount == 0:
            logger.warning("Approval refused: book %s is already issued", book.id)
            raise BookUnavailableError(book.id)

    async def _flush(self, db: AsyncSession, message: str) -> None:
        try:
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Database error in loan workflow: %s", e, exc_info=True)
            raise DatabaseError(message=message)


loan_service = LoanService(loan_period_days=settings.loan_period_days)
