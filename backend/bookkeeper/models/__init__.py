# Importing every model registers it on Base.metadata (Alembic, create_all)
from bookkeeper.models.user import User, ROLE_ADMIN, ROLE_USER
from bookkeeper.models.book import Book, BookCategory
from bookkeeper.models.ticket import TransactionTicket

__all__ = [
    "User",
    "ROLE_ADMIN",
    "ROLE_USER",
    "Book",
    "BookCategory",
    "TransactionTicket",
]
