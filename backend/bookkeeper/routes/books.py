"""
Book Keeper Backend - Book Routes
==================================

What:  /api/book: catalog reads are public, writes are admin-only.
"""

import logging
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from bookkeeper.database import get_db_session
from bookkeeper.models.user import User
from bookkeeper.routes.deps import require
from bookkeeper.schemas.book import BookCreate, BookEnvelope, BookResponse, BookUpdate
from bookkeeper.schemas.common import ErrorResponse, MessageResponse
from bookkeeper.services.access_policy import admin_only
from bookkeeper.services.catalog_service import catalog_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/book", tags=["Books"])

_NOT_FOUND = {404: {"description": "Book not found", "model": ErrorResponse}}
_ADMIN = {401: {"description": "Admin credential required", "model": ErrorResponse}}


@router.post(
    "/add",
    status_code=201,
    response_model=BookEnvelope,
    responses={**_ADMIN, 404: {"description": "Category not found", "model": ErrorResponse}},
    summary="Add a book",
)
async def add_book(
    body: BookCreate,
    actor: User = Depends(require(admin_only)),
    db: AsyncSession = Depends(get_db_session),
) -> BookEnvelope:
    book = await catalog_service.create_book(db, body.model_dump())
    return BookEnvelope(message="Book added successfully", data=BookResponse.model_validate(book))


@router.get(
    "/getAll",
    response_model=List[BookResponse],
    summary="List books, newest first, with categories resolved",
)
async def get_all_books(db: AsyncSession = Depends(get_db_session)) -> List[BookResponse]:
    books = await catalog_service.list_books(db)
    return [BookResponse.model_validate(b) for b in books]


@router.get(
    "/get/{id}",
    response_model=BookResponse,
    responses=_NOT_FOUND,
    summary="Get one book",
)
async def get_book(id: str, db: AsyncSession = Depends(get_db_session)) -> BookResponse:
    return BookResponse.model_validate(await catalog_service.get_book(db, id))


@router.put(
    "/edit/{id}",
    response_model=BookEnvelope,
    responses={**_ADMIN, **_NOT_FOUND},
    summary="Update book fields",
)
async def edit_book(
    id: str,
    body: BookUpdate,
    actor: User = Depends(require(admin_only)),
    db: AsyncSession = Depends(get_db_session),
) -> BookEnvelope:
    book = await catalog_service.update_book(db, id, body.model_dump(exclude_unset=True))
    return BookEnvelope(
        message="Book data has been updated",
        data=BookResponse.model_validate(book),
    )


@router.delete(
    "/delete/{id}",
    response_model=MessageResponse,
    responses={**_ADMIN, **_NOT_FOUND},
    summary="Delete a book",
)
async def delete_book(
    id: str,
    actor: User = Depends(require(admin_only)),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    await catalog_service.delete_book(db, id)
    return MessageResponse(message="Book has been deleted")


@router.get(
    "/filterByCategory/{category_id}",
    response_model=List[BookResponse],
    responses={404: {"description": "No books in this category", "model": ErrorResponse}},
    summary="Books in a category",
    description="Returns 404 (not an empty list) when the category has no books.",
)
async def filter_by_category(
    category_id: str,
    db: AsyncSession = Depends(get_db_session),
) -> List[BookResponse]:
    books = await catalog_service.filter_by_category(db, category_id)
    return [BookResponse.model_validate(b) for b in books]
