"""Membership request/response schemas."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from schoolshelf.core.enums import MembershipStatus, Role
from schoolshelf.schemas.loans import LoanResponse, MemberStats
from schoolshelf.schemas.tenants import TenantPublicResponse


class RegisterRequest(BaseModel):
    name: str = Field(min_length=2, max_length=100)
    email: str = Field(min_length=3, max_length=255)
    school_slug: str = Field(min_length=2, max_length=50)
    class_name: str = Field(min_length=1, max_length=10)
    section: str = Field(min_length=1, max_length=10)
    student_number: str = Field(min_length=1, max_length=20)


class SelectSchoolRequest(BaseModel):
    school_id: str = Field(min_length=1, max_length=36)
    class_name: str = Field(min_length=1, max_length=10)
    section: str = Field(min_length=1, max_length=10)
    student_number: str = Field(min_length=1, max_length=20)


class ProfileUpdateRequest(BaseModel):
    name: str | None = Field(default=None, min_length=2, max_length=100)
    class_name: str | None = Field(default=None, max_length=10)
    section: str | None = Field(default=None, max_length=10)


class MembershipResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    email: str
    name: str
    role: Role
    status: MembershipStatus
    is_main_admin: bool = False
    class_name: str | None = None
    section: str | None = None
    student_number: str | None = None
    tenant_id: str | None = None
    created_at: datetime | None = None


class ProfileResponse(MembershipResponse):
    tenant: TenantPublicResponse | None = None


class MemberDetailResponse(BaseModel):
    user: MembershipResponse
    stats: MemberStats
    active_loans: list[LoanResponse]
    loan_history: list[LoanResponse]
