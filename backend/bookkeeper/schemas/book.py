"""
Book Keeper Backend - Catalog Schemas
======================================

Contracts for /api/book and /api/book/category.

`category` on input is the category id (clients send
`{"category": "<id>"}`); on output it is the resolved category object.
"""

from datetime import datetime
from typing import Optional

from pydantic import AliasChoices, Field

from bookkeeper.schemas.common import CamelModel

_CATEGORY_REF = AliasChoices("category", "categoryId", "category_id")


class CategoryCreate(CamelModel):
    category: str = Field(min_length=1, max_length=255)


class CategoryUpdate(CamelModel):
    category: Optional[str] = Field(default=None, min_length=1, max_length=255)


class CategoryResponse(CamelModel):
    id: str
    category: str
    created_at: datetime
    updated_at: datetime


class CategoryEnvelope(CamelModel):
    message: str
    data: CategoryResponse


class BookCreate(CamelModel):
    name: str = Field(min_length=1, max_length=255)
    author: str = Field(min_length=1, max_length=255)
    image: str = ""
    language: str = ""
    publisher: str = ""
    is_available: bool = True
    category_id: Optional[str] = Field(default=None, validation_alias=_CATEGORY_REF)


class BookUpdate(CamelModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    author: Optional[str] = Field(default=None, min_length=1, max_length=255)
    image: Optional[str] = None
    language: Optional[str] = None
    publisher: Optional[str] = None
    is_available: Optional[bool] = None
    category_id: Optional[str] = Field(default=None, validation_alias=_CATEGORY_REF)


class BookResponse(CamelModel):
    id: str
    name: str
    author: str
    image: str = ""
    language: str = ""
    publisher: str = ""
    is_available: bool
    category: Optional[CategoryResponse] = None
    created_at: datetime
    updated_at: datetime


class BookEnvelope(CamelModel):
    message: str
    data: BookResponse
