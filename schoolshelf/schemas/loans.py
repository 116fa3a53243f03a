"""Loan and favorite schemas."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict

from schoolshelf.core.enums import LoanStatus
from schoolshelf.schemas.catalog import BookResponse


class LoanResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    tenant_id: str
    member_id: str
    book_id: str
    status: LoanStatus
    borrowed_at: datetime
    due_at: datetime
    returned_at: datetime | None = None
    renew_count: int
    fine_amount: float
    fine_paid: bool
    book: BookResponse | None = None


class FinesResponse(BaseModel):
    loans: list[LoanResponse]
    total_fine: float


class ReadingStats(BaseModel):
    total_loans: int
    completed_loans: int
    active_loans: int
    overdue_count: int
    total_fines: float
    unpaid_fines: float


class TopCategory(BaseModel):
    name: str
    color: str | None = None
    count: int


class ReadingHistoryResponse(BaseModel):
    stats: ReadingStats
    top_categories: list[TopCategory]
    loans: list[LoanResponse]


class MemberStats(BaseModel):
    total_loans: int
    active_loans: int
    overdue_loans: int
    returned_loans: int
    total_fines: float
    unpaid_fines: float


class FavoriteResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    book_id: str
    created_at: datetime | None = None
    book: BookResponse | None = None


class FavoriteStatusResponse(BaseModel):
    book_id: str
    is_favorite: bool


class UploadResponse(BaseModel):
    url: str
    filename: str
