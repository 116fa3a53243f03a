"""School directory endpoints (developer) and per-school loan settings (admin)."""

from __future__ import annotations

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from schoolshelf.core.dependencies import Caller, get_db_session, require_caller, require_scope
from schoolshelf.core.enums import AccessArea, AuditAction
from schoolshelf.core.logging import audit
from schoolshelf.schemas import (
    APIEnvelope,
    AssignAdminRequest,
    MembershipResponse,
    TenantCreateRequest,
    TenantPublicResponse,
    TenantResponse,
    TenantSettingsResponse,
    TenantSettingsUpdateRequest,
    TenantStatsResponse,
    TenantUpdateRequest,
    TenantWithCountsResponse,
)
from schoolshelf.schemas.tenants import TenantCounts
from schoolshelf.services.tenant_service import TenantService

router = APIRouter(tags=["schools"])


def _with_counts(tenant, counts: dict[str, int]) -> TenantWithCountsResponse:
    return TenantWithCountsResponse(
        **TenantResponse.model_validate(tenant).model_dump(),
        counts=TenantCounts(**counts),
    )


@router.get("/schools/public", response_model=list[TenantPublicResponse])
def list_public_schools(db: Session = Depends(get_db_session)) -> list:
    return TenantService(db).list_public()


@router.get("/schools/settings", response_model=TenantSettingsResponse)
def get_school_settings(
    caller: Caller = Depends(require_scope(AccessArea.LIBRARY)),
    db: Session = Depends(get_db_session),
) -> TenantSettingsResponse:
    settings = TenantService(db).get_settings(caller.tenant_scope.require_tenant())
    return TenantSettingsResponse.model_validate(settings)


@router.put("/schools/settings", response_model=TenantSettingsResponse)
def update_school_settings(
    payload: TenantSettingsUpdateRequest,
    caller: Caller = Depends(require_scope(AccessArea.ADMIN)),
    db: Session = Depends(get_db_session),
) -> TenantSettingsResponse:
    tenant_id = caller.tenant_scope.require_tenant()
    settings = TenantService(db).update_settings(tenant_id, payload.model_dump(exclude_none=True))
    audit(AuditAction.SCHOOL_UPDATE.value, caller.log_context(), settings=True)
    return TenantSettingsResponse.model_validate(settings)


@router.get("/schools", response_model=list[TenantWithCountsResponse])
def list_schools(
    caller: Caller = Depends(require_caller(AccessArea.DEVELOPER)),
    db: Session = Depends(get_db_session),
) -> list[TenantWithCountsResponse]:
    return [_with_counts(tenant, counts) for tenant, counts in TenantService(db).list_all()]


@router.post("/schools", response_model=TenantResponse, status_code=status.HTTP_201_CREATED)
def create_school(
    payload: TenantCreateRequest,
    caller: Caller = Depends(require_caller(AccessArea.DEVELOPER)),
    db: Session = Depends(get_db_session),
) -> TenantResponse:
    tenant = TenantService(db).create(payload.model_dump())
    audit(AuditAction.SCHOOL_CREATE.value, caller.log_context(), school_id=tenant.id, slug=tenant.slug)
    return TenantResponse.model_validate(tenant)


@router.get("/schools/{school_id}", response_model=TenantWithCountsResponse)
def get_school(
    school_id: str,
    caller: Caller = Depends(require_caller(AccessArea.DEVELOPER)),
    db: Session = Depends(get_db_session),
) -> TenantWithCountsResponse:
    service = TenantService(db)
    return _with_counts(service.get(school_id), service.counts(school_id))


@router.put("/schools/{school_id}", response_model=TenantResponse)
def update_school(
    school_id: str,
    payload: TenantUpdateRequest,
    caller: Caller = Depends(require_caller(AccessArea.DEVELOPER)),
    db: Session = Depends(get_db_session),
) -> TenantResponse:
    tenant = TenantService(db).update(school_id, payload.model_dump(exclude_none=True))
    audit(AuditAction.SCHOOL_UPDATE.value, caller.log_context(), school_id=school_id)
    return TenantResponse.model_validate(tenant)


@router.delete("/schools/{school_id}", response_model=APIEnvelope)
def delete_school(
    school_id: str,
    caller: Caller = Depends(require_caller(AccessArea.DEVELOPER)),
    db: Session = Depends(get_db_session),
) -> APIEnvelope:
    TenantService(db).remove(school_id)
    audit(AuditAction.SCHOOL_DELETE.value, caller.log_context(), school_id=school_id)
    return APIEnvelope(message="School deleted.")


@router.post("/schools/{school_id}/deactivate", response_model=TenantResponse)
def deactivate_school(
    school_id: str,
    caller: Caller = Depends(require_caller(AccessArea.DEVELOPER)),
    db: Session = Depends(get_db_session),
) -> TenantResponse:
    tenant = TenantService(db).deactivate(school_id)
    audit(AuditAction.SCHOOL_UPDATE.value, caller.log_context(), school_id=school_id, is_active=False)
    return TenantResponse.model_validate(tenant)


@router.post("/schools/{school_id}/assign-admin", response_model=MembershipResponse)
def assign_admin(
    school_id: str,
    payload: AssignAdminRequest,
    caller: Caller = Depends(require_caller(AccessArea.DEVELOPER)),
    db: Session = Depends(get_db_session),
) -> MembershipResponse:
    membership = TenantService(db).assign_admin(school_id, payload.email, is_main_admin=payload.is_main_admin)
    audit(
        AuditAction.ADMIN_ASSIGN.value,
        caller.log_context(),
        school_id=school_id,
        target_id=membership.id,
        is_main_admin=payload.is_main_admin,
    )
    return MembershipResponse.model_validate(membership)


@router.get("/schools/{school_id}/admins", response_model=list[MembershipResponse])
def list_admins(
    school_id: str,
    caller: Caller = Depends(require_caller(AccessArea.DEVELOPER)),
    db: Session = Depends(get_db_session),
) -> list:
    return TenantService(db).list_admins(school_id)


@router.get("/schools/{school_id}/stats", response_model=TenantStatsResponse)
def school_stats(
    school_id: str,
    caller: Caller = Depends(require_caller(AccessArea.DEVELOPER)),
    db: Session = Depends(get_db_session),
) -> TenantStatsResponse:
    return TenantStatsResponse(**TenantService(db).stats(school_id))
