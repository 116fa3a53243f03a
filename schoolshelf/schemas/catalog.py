"""Category and book schemas."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from schoolshelf.schemas.common import Pagination


class CategoryCreateRequest(BaseModel):
    name: str = Field(min_length=1, max_length=120)
    slug: str = Field(min_length=1, max_length=60)
    icon: str | None = Field(default=None, max_length=60)
    color: str | None = Field(default=None, max_length=20)


class CategoryUpdateRequest(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=120)
    icon: str | None = Field(default=None, max_length=60)
    color: str | None = Field(default=None, max_length=20)


class CategoryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    tenant_id: str
    slug: str
    name: str
    icon: str | None = None
    color: str | None = None


class BookCreateRequest(BaseModel):
    title: str = Field(min_length=1, max_length=1000)
    author: str = Field(min_length=1, max_length=1000)
    isbn: str | None = Field(default=None, max_length=20)
    description: str | None = Field(default=None, max_length=1000)
    quantity: int = Field(default=1, ge=1, le=9999)
    category_id: str | None = None
    cover_image: str | None = Field(default=None, max_length=500)


class BookUpdateRequest(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=1000)
    author: str | None = Field(default=None, min_length=1, max_length=1000)
    isbn: str | None = Field(default=None, max_length=20)
    description: str | None = Field(default=None, max_length=1000)
    quantity: int | None = Field(default=None, ge=1, le=9999)
    category_id: str | None = None
    cover_image: str | None = Field(default=None, max_length=500)


class BookResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    tenant_id: str
    title: str
    author: str
    isbn: str | None = None
    description: str | None = None
    cover_image: str | None = None
    quantity: int
    available: int
    category: CategoryResponse | None = None
    created_at: datetime | None = None


class BookSearchResponse(BaseModel):
    books: list[BookResponse]
    pagination: Pagination


class ImportResultResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    success: int
    failed: int
    errors: list[str] = []
