"""
Book Keeper Backend - Catalog Service
======================================

What:  Create / list / get / update / delete for books and book categories,
       plus the by-category filter.
Who:   /api/book and /api/book/category routes.

Ordering:
    Listings are newest first (created_at DESC). Books come back with their
    category resolved (selectin-loaded relationship).

Filter contract:
    filter_by_category() raises NotFoundError when no book matches, rather
    than returning an empty list. Clients of this API depend on the 404.
"""

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import desc, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from bookkeeper.exceptions import DatabaseError, DuplicateKeyError, NotFoundError
from bookkeeper.models.book import Book, BookCategory

logger = logging.getLogger(__name__)

BOOK_FIELDS = ("name", "author", "image", "language", "publisher", "is_available", "category_id")


class CatalogService:

    # ══════════════════════════════════════════════════════════════════════
    # Books
    # ══════════════════════════════════════════════════════════════════════

    async def create_book(self, db: AsyncSession, fields: Dict[str, Any]) -> Book:
        """
        Add a book to the catalog.

        Raises:
            NotFoundError: `category_id` given but no such category exists
        """
        data = {k: v for k, v in fields.items() if k in BOOK_FIELDS}
        if data.get("category_id"):
            await self.get_category(db, data["category_id"])

        book = Book(**data)
        db.add(book)
        await self._flush(db, "Could not save the book. Please try again.")
        await db.refresh(book, attribute_names=["category"])
        logger.info("Book added: %s (%s)", book.id, book.name)
        return book

    async def list_books(self, db: AsyncSession) -> List[Book]:
        try:
            result = await db.execute(select(Book).order_by(desc(Book.created_at)))
            return list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.error("Database error listing books: %s", e, exc_info=True)
            raise DatabaseError(message="Could not retrieve books. Please try again.")

    async def get_book(self, db: AsyncSession, book_id: str) -> Book:
        try:
            book = await db.get(Book, book_id)
        except SQLAlchemyError as e:
            logger.error("Database error fetching book %s: %s", book_id, e, exc_info=True)
            raise DatabaseError(context={"book_id": book_id})
        if book is None:
            raise NotFoundError(resource="Book", resource_id=book_id)
        return book

    async def update_book(
        self, db: AsyncSession, book_id: str, fields: Dict[str, Any]
    ) -> Book:
        """Apply the known book fields present in `fields`; others are ignored."""
        book = await self.get_book(db, book_id)
        changes = {k: v for k, v in fields.items() if k in BOOK_FIELDS}

        if changes.get("category_id"):
            await self.get_category(db, changes["category_id"])

        for field, value in changes.items():
            setattr(book, field, value)

        await self._flush(db, "Could not update the book. Please try again.")
        if "category_id" in changes:
            await db.refresh(book, attribute_names=["category"])
        logger.info("Book %s updated fields: %s", book_id, sorted(changes))
        return book

    async def delete_book(self, db: AsyncSession, book_id: str) -> None:
        book = await self.get_book(db, book_id)
        await db.delete(book)
        await self._flush(db, "Could not delete the book. Please try again.")
        logger.info("Book %s deleted", book_id)

    async def filter_by_category(self, db: AsyncSession, category_id: str) -> List[Book]:
        """
        Books whose category is `category_id`.

        Raises:
            NotFoundError: no book references the category (including an
                           unknown category id)
        """
        try:
            result = await db.execute(
                select(Book)
                .where(Book.category_id == category_id)
                .order_by(desc(Book.created_at))
            )
            books = list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.error("Database error filtering books by category: %s", e, exc_info=True)
            raise DatabaseError(context={"category_id": category_id})

        if not books:
            raise NotFoundError(
                resource="Book category",
                resource_id=category_id,
                message="Category not found or no books found for the category",
            )
        return books

    # ══════════════════════════════════════════════════════════════════════
    # Categories
    # ══════════════════════════════════════════════════════════════════════

    async def create_category(self, db: AsyncSession, name: str) -> BookCategory:
        await self._ensure_category_name_free(db, name)
        category = BookCategory(category=name)
        db.add(category)
        await self._flush_category(db, name)
        logger.info("Book category added: %s (%s)", category.id, name)
        return category

    async def list_categories(self, db: AsyncSession) -> List[BookCategory]:
        try:
            result = await db.execute(
                select(BookCategory).order_by(desc(BookCategory.created_at))
            )
            return list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.error("Database error listing categories: %s", e, exc_info=True)
            raise DatabaseError(message="Could not retrieve categories. Please try again.")

    async def get_category(self, db: AsyncSession, category_id: str) -> BookCategory:
        try:
            category = await db.get(BookCategory, category_id)
        except SQLAlchemyError as e:
            logger.error("Database error fetching category %s: %s", category_id, e, exc_info=True)
            raise DatabaseError(context={"category_id": category_id})
        if category is None:
            raise NotFoundError(
                resource="Book category",
                resource_id=category_id,
                message="Book category not found",
            )
        return category

    async def update_category(
        self, db: AsyncSession, category_id: str, name: Optional[str]
    ) -> BookCategory:
        category = await self.get_category(db, category_id)
        if name is not None and name != category.category:
            await self._ensure_category_name_free(db, name)
            category.category = name
            await self._flush_category(db, name)
            logger.info("Book category %s renamed to %s", category_id, name)
        return category

    async def delete_category(self, db: AsyncSession, category_id: str) -> None:
        """
        Delete a category. Books that referenced it keep existing with no
        category.
        """
        category = await self.get_category(db, category_id)
        try:
            await db.execute(
                update(Book)
                .where(Book.category_id == category_id)
                .values(category_id=None)
                .execution_options(synchronize_session="fetch")
            )
            await db.delete(category)
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Database error deleting category %s: %s", category_id, e, exc_info=True)
            raise DatabaseError(context={"category_id": category_id})
        logger.info("Book category %s deleted", category_id)

    # ── Internals ─────────────────────────────────────────────────────────

    async def _ensure_category_name_free(self, db: AsyncSession, name: str) -> None:
        result = await db.execute(select(BookCategory).where(BookCategory.category == name))
        if result.scalar_one_or_none() is not None:
            raise DuplicateKeyError(resource="book category", field="category", value=name)

    async def _flush_category(self, db: AsyncSession, name: str) -> None:
        try:
            await db.flush()
        except IntegrityError:
            await db.rollback()
            raise DuplicateKeyError(resource="book category", field="category", value=name)
        except SQLAlchemyError as e:
            logger.error("Database error saving category: %s", e, exc_info=True)
            raise DatabaseError(message="Could not save the book category. Please try again.")

    async def _flush(self, db: AsyncSession, message: str) -> None:
        try:
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Database error: %s", e, exc_info=True)
            raise DatabaseError(message=message)


catalog_service = CatalogService()
