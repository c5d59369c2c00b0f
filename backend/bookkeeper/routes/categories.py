"""
Book Keeper Backend - Book Category Routes
===========================================

What:  /api/book/category: public listing, admin-only writes.
"""

from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from bookkeeper.database import get_db_session
from bookkeeper.models.user import User
from bookkeeper.routes.deps import require
from bookkeeper.schemas.book import (
    CategoryCreate,
    CategoryEnvelope,
    CategoryResponse,
    CategoryUpdate,
)
from bookkeeper.schemas.common import ErrorResponse, MessageResponse
from bookkeeper.services.access_policy import admin_only
from bookkeeper.services.catalog_service import catalog_service

router = APIRouter(prefix="/api/book/category", tags=["Book Categories"])

_NOT_FOUND = {404: {"description": "Book category not found", "model": ErrorResponse}}
_ADMIN = {401: {"description": "Admin credential required", "model": ErrorResponse}}


@router.post(
    "/add",
    status_code=201,
    response_model=CategoryEnvelope,
    responses={**_ADMIN, 400: {"description": "Category already exists", "model": ErrorResponse}},
    summary="Add a book category",
)
async def add_category(
    body: CategoryCreate,
    actor: User = Depends(require(admin_only)),
    db: AsyncSession = Depends(get_db_session),
) -> CategoryEnvelope:
    category = await catalog_service.create_category(db, body.category)
    return CategoryEnvelope(
        message="Book category added successfully",
        data=CategoryResponse.model_validate(category),
    )


@router.get(
    "/getAll",
    response_model=List[CategoryResponse],
    summary="List book categories, newest first",
)
async def get_all_categories(
    db: AsyncSession = Depends(get_db_session),
) -> List[CategoryResponse]:
    categories = await catalog_service.list_categories(db)
    return [CategoryResponse.model_validate(c) for c in categories]


@router.put(
    "/edit/{id}",
    response_model=CategoryEnvelope,
    responses={**_ADMIN, **_NOT_FOUND},
    summary="Rename a book category",
)
async def edit_category(
    id: str,
    body: CategoryUpdate,
    actor: User = Depends(require(admin_only)),
    db: AsyncSession = Depends(get_db_session),
) -> CategoryEnvelope:
    category = await catalog_service.update_category(db, id, body.category)
    return CategoryEnvelope(
        message="Book category has been updated",
        data=CategoryResponse.model_validate(category),
    )


@router.delete(
    "/delete/{id}",
    response_model=MessageResponse,
    responses={**_ADMIN, **_NOT_FOUND},
    summary="Delete a book category",
    description="Books in the category are kept and left without a category.",
)
async def delete_category(
    id: str,
    actor: User = Depends(require(admin_only)),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    await catalog_service.delete_category(db, id)
    return MessageResponse(message="Book category has been deleted")
