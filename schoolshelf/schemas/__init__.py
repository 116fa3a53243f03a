"""Pydantic schema package for API contracts."""

from schoolshelf.schemas.catalog import (
    BookCreateRequest,
    BookResponse,
    BookSearchResponse,
    BookUpdateRequest,
    CategoryCreateRequest,
    CategoryResponse,
    CategoryUpdateRequest,
    ImportResultResponse,
)
from schoolshelf.schemas.common import APIEnvelope, BulkIdsRequest, BulkResultResponse, ErrorEnvelope, Pagination
from schoolshelf.schemas.loans import (
    FavoriteResponse,
    FavoriteStatusResponse,
    FinesResponse,
    LoanResponse,
    ReadingHistoryResponse,
    UploadResponse,
)
from schoolshelf.schemas.memberships import (
    MemberDetailResponse,
    MembershipResponse,
    ProfileResponse,
    ProfileUpdateRequest,
    RegisterRequest,
    SelectSchoolRequest,
)
from schoolshelf.schemas.tenants import (
    AssignAdminRequest,
    TenantCreateRequest,
    TenantPublicResponse,
    TenantResponse,
    TenantSettingsResponse,
    TenantSettingsUpdateRequest,
    TenantStatsResponse,
    TenantUpdateRequest,
    TenantWithCountsResponse,
)

__all__ = [
    "APIEnvelope",
    "AssignAdminRequest",
    "BookCreateRequest",
    "BookResponse",
    "BookSearchResponse",
    "BookUpdateRequest",
    "BulkIdsRequest",
    "BulkResultResponse",
    "CategoryCreateRequest",
    "CategoryResponse",
    "CategoryUpdateRequest",
    "ErrorEnvelope",
    "FavoriteResponse",
    "FavoriteStatusResponse",
    "FinesResponse",
    "ImportResultResponse",
    "LoanResponse",
    "MemberDetailResponse",
    "MembershipResponse",
    "Pagination",
    "ProfileResponse",
    "ProfileUpdateRequest",
    "ReadingHistoryResponse",
    "RegisterRequest",
    "SelectSchoolRequest",
    "TenantCreateRequest",
    "TenantPublicResponse",
    "TenantResponse",
    "TenantSettingsResponse",
    "TenantSettingsUpdateRequest",
    "TenantStatsResponse",
    "TenantUpdateRequest",
    "TenantWithCountsResponse",
    "UploadResponse",
]
