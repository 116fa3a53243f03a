"""Membership endpoints: profile, registration and admin approval."""

from __future__ import annotations

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from schoolshelf.auth.identity import VerifiedIdentity
from schoolshelf.core.dependencies import Caller, get_caller, get_db_session, get_identity, require_caller, require_scope
from schoolshelf.core.enums import AccessArea, AuditAction
from schoolshelf.core.exceptions import NotFoundError
from schoolshelf.core.logging import LogContext, audit
from schoolshelf.schemas import (
    BulkIdsRequest,
    BulkResultResponse,
    MemberDetailResponse,
    MembershipResponse,
    ProfileResponse,
    ProfileUpdateRequest,
    RegisterRequest,
    SelectSchoolRequest,
)
from schoolshelf.services.membership_service import MembershipService, StudentInfo

router = APIRouter(tags=["users"])


@router.get("/users/me", response_model=ProfileResponse)
def get_me(caller: Caller = Depends(get_caller)) -> ProfileResponse:
    if caller.membership is None:
        raise NotFoundError("User not found. Please register first.")
    return ProfileResponse.model_validate(caller.membership)


@router.put("/users/me", response_model=ProfileResponse)
def update_me(
    payload: ProfileUpdateRequest,
    caller: Caller = Depends(require_caller(AccessArea.PROFILE)),
    db: Session = Depends(get_db_session),
) -> ProfileResponse:
    membership = MembershipService(db).update_profile(
        caller.identity.uid,
        name=payload.name,
        class_name=payload.class_name,
        section=payload.section,
    )
    audit(AuditAction.USER_UPDATE.value, caller.log_context())
    return ProfileResponse.model_validate(membership)


@router.post("/users/register", response_model=ProfileResponse, status_code=status.HTTP_201_CREATED)
def register(
    payload: RegisterRequest,
    identity: VerifiedIdentity = Depends(get_identity),
    db: Session = Depends(get_db_session),
) -> ProfileResponse:
    info = StudentInfo(
        name=payload.name,
        email=payload.email,
        class_name=payload.class_name,
        section=payload.section,
        student_number=payload.student_number,
    )
    membership = MembershipService(db).register(identity, payload.school_slug, info)
    audit(
        AuditAction.USER_REGISTER.value,
        LogContext(
            tenant_id=membership.tenant_id,
            membership_id=membership.id,
            identity_ref=identity.uid,
            actor_email=identity.email,
        ),
        school_slug=payload.school_slug,
    )
    return ProfileResponse.model_validate(membership)


@router.post("/users/select-school", response_model=ProfileResponse)
def select_school(
    payload: SelectSchoolRequest,
    caller: Caller = Depends(require_caller(AccessArea.ONBOARDING)),
    db: Session = Depends(get_db_session),
) -> ProfileResponse:
    info = StudentInfo(
        name=caller.member.name,
        email=caller.member.email,
        class_name=payload.class_name,
        section=payload.section,
        student_number=payload.student_number,
    )
    membership = MembershipService(db).select_tenant(caller.identity.uid, payload.school_id, info)
    audit(AuditAction.SCHOOL_SELECT.value, caller.log_context(), school_id=payload.school_id)
    return ProfileResponse.model_validate(membership)


@router.get("/users/pending", response_model=list[MembershipResponse])
def list_pending(
    caller: Caller = Depends(require_scope(AccessArea.ADMIN)),
    db: Session = Depends(get_db_session),
) -> list:
    return MembershipService(db).list_pending(caller.tenant_scope)


@router.post("/users/bulk-approve", response_model=BulkResultResponse)
def bulk_approve(
    payload: BulkIdsRequest,
    caller: Caller = Depends(require_scope(AccessArea.ADMIN)),
    db: Session = Depends(get_db_session),
) -> BulkResultResponse:
    result = MembershipService(db).bulk_approve(caller.tenant_scope, payload.user_ids)
    audit(AuditAction.MEMBER_APPROVE.value, caller.log_context(), bulk=True, success_count=result.success)
    return BulkResultResponse.model_validate(result)


@router.post("/users/bulk-reject", response_model=BulkResultResponse)
def bulk_reject(
    payload: BulkIdsRequest,
    caller: Caller = Depends(require_scope(AccessArea.ADMIN)),
    db: Session = Depends(get_db_session),
) -> BulkResultResponse:
    result = MembershipService(db).bulk_reject(caller.tenant_scope, payload.user_ids)
    audit(AuditAction.MEMBER_REJECT.value, caller.log_context(), bulk=True, success_count=result.success)
    return BulkResultResponse.model_validate(result)


@router.post("/users/{user_id}/approve", response_model=MembershipResponse)
def approve(
    user_id: str,
    caller: Caller = Depends(require_scope(AccessArea.ADMIN)),
    db: Session = Depends(get_db_session),
) -> MembershipResponse:
    membership = MembershipService(db).approve(caller.tenant_scope, user_id)
    audit(AuditAction.MEMBER_APPROVE.value, caller.log_context(), target_id=user_id)
    return MembershipResponse.model_validate(membership)


@router.post("/users/{user_id}/reject", response_model=MembershipResponse)
def reject(
    user_id: str,
    caller: Caller = Depends(require_scope(AccessArea.ADMIN)),
    db: Session = Depends(get_db_session),
) -> MembershipResponse:
    membership = MembershipService(db).reject(caller.tenant_scope, user_id)
    audit(AuditAction.MEMBER_REJECT.value, caller.log_context(), target_id=user_id)
    return MembershipResponse.model_validate(membership)


@router.get("/users/{user_id}/detail", response_model=MemberDetailResponse)
def member_detail(
    user_id: str,
    caller: Caller = Depends(require_scope(AccessArea.ADMIN)),
    db: Session = Depends(get_db_session),
) -> dict:
    return MembershipService(db).member_detail(caller.tenant_scope, user_id)
