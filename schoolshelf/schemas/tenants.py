"""School request/response schemas."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class TenantCreateRequest(BaseModel):
    name: str = Field(min_length=2, max_length=255)
    slug: str = Field(min_length=2, max_length=50)
    address: str | None = Field(default=None, max_length=500)
    phone: str | None = Field(default=None, max_length=30)
    email: str | None = Field(default=None, max_length=255)
    logo: str | None = Field(default=None, max_length=500)


class TenantUpdateRequest(BaseModel):
    name: str | None = Field(default=None, min_length=2, max_length=255)
    slug: str | None = Field(default=None, min_length=2, max_length=50)
    address: str | None = Field(default=None, max_length=500)
    phone: str | None = Field(default=None, max_length=30)
    email: str | None = Field(default=None, max_length=255)
    logo: str | None = Field(default=None, max_length=500)
    is_active: bool | None = None


class TenantPublicResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    slug: str
    logo: str | None = None
    address: str | None = None


class TenantResponse(TenantPublicResponse):
    phone: str | None = None
    email: str | None = None
    is_active: bool
    created_at: datetime | None = None


class TenantCounts(BaseModel):
    members: int = 0
    books: int = 0
    categories: int = 0
    loans: int = 0


class TenantWithCountsResponse(TenantResponse):
    counts: TenantCounts


class AssignAdminRequest(BaseModel):
    email: str = Field(min_length=3, max_length=255)
    is_main_admin: bool = True


class TenantStatsResponse(BaseModel):
    total_books: int
    total_book_quantity: int
    total_members: int
    total_admins: int
    active_loans: int
    overdue_loans: int
    total_categories: int


class TenantSettingsResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    loan_days: int
    max_loans: int
    max_renewals: int
    fine_per_day: float
    max_fine: float


class TenantSettingsUpdateRequest(BaseModel):
    loan_days: int | None = Field(default=None, ge=1, le=365)
    max_loans: int | None = Field(default=None, ge=1, le=100)
    max_renewals: int | None = Field(default=None, ge=0, le=20)
    fine_per_day: float | None = Field(default=None, ge=0)
    max_fine: float | None = Field(default=None, ge=0)
