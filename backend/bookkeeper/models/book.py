"""
Book Keeper Backend - Catalog Models
=====================================

What:  ORM models for `book_categories` and `books`.
Who:   CatalogService for catalog CRUD; LoanService flips `is_available`.

Availability flag:
    `is_available` is stored, not computed. It is True when no approved,
    unreturned ticket exists for the book. LoanService is the only writer
    of this column during the workflow.

Category reference:
    A book points at zero or one category. Deleting a category clears the
    reference on its books (ON DELETE SET NULL, also done explicitly by
    CatalogService for engines without foreign-key enforcement).
"""

from typing import Optional

from sqlalchemy import Boolean, ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from bookkeeper.database import Base
from bookkeeper.models.common import IdMixin, TimestampMixin


class BookCategory(IdMixin, TimestampMixin, Base):
    __tablename__ = "book_categories"

    category: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)

    def __repr__(self) -> str:
        return f"<BookCategory(id={self.id}, category='{self.category}')>"


class Book(IdMixin, TimestampMixin, Base):
    __tablename__ = "books"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    author: Mapped[str] = mapped_column(String(255), nullable=False)
    image: Mapped[str] = mapped_column(String(1024), nullable=False, default="")
    language: Mapped[str] = mapped_column(String(100), nullable=False, default="")
    publisher: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    is_available: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    category_id: Mapped[Optional[str]] = mapped_column(
        String(36),
        ForeignKey("book_categories.id", ondelete="SET NULL"),
        nullable=True,
    )
    # lazy="selectin": listings always return the category joined
    category: Mapped[Optional[BookCategory]] = relationship(lazy="selectin")

    __table_args__ = (
        Index("idx_books_category_id", "category_id"),
    )

    def __repr__(self) -> str:
        return (
            f"<Book(id={self.id}, name='{self.name}', "
            f"is_available={self.is_available})>"
        )
