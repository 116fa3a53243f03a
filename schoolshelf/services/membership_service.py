"""Membership record store and the approval workflow."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy import func

from schoolshelf.auth.identity import VerifiedIdentity
from schoolshelf.auth.tenant_context import TenantScope, enforce_tenant_match
from schoolshelf.core.enums import LoanStatus, MembershipStatus, Role
from schoolshelf.core.exceptions import (
    AuthorizationError,
    ConflictError,
    NotFoundError,
    SchoolShelfError,
    ValidationError,
)
from schoolshelf.core.state_machine import MEMBERSHIP_TRANSITIONS
from schoolshelf.models import Loan, Membership, Tenant
from schoolshelf.models.base import utcnow
from schoolshelf.services.base_service import BaseService
from schoolshelf.utils.validators import is_student_number, strip_tags

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StudentInfo:
    name: str
    email: str
    class_name: str
    section: str
    student_number: str


@dataclass
class BulkResult:
    success: int = 0
    failed: int = 0
    errors: list[str] = field(default_factory=list)

    def fail(self, message: str) -> None:
        self.failed += 1
        self.errors.append(message)


class MembershipService(BaseService):
    """Registration, profile and admin approval of memberships."""

    def find_by_identity(self, identity_ref: str) -> Membership | None:
        return self.db.query(Membership).filter(Membership.identity_ref == identity_ref).first()

    def get_profile(self, identity_ref: str) -> Membership:
        membership = self.find_by_identity(identity_ref)
        if membership is None:
            raise NotFoundError("User not found. Please register first.")
        return membership

    def _clean_student_info(self, info: StudentInfo) -> StudentInfo:
        student_number = info.student_number.strip()
        if not is_student_number(student_number):
            raise ValidationError("Student number must contain digits only.")
        name = strip_tags(info.name, max_len=100)
        if len(name) < 2:
            raise ValidationError("Name must be at least 2 characters.")
        class_name = strip_tags(info.class_name, max_len=10)
        section = strip_tags(info.section, max_len=10).upper()
        if not class_name or not section:
            raise ValidationError("Class and section are required.")
        return StudentInfo(
            name=name,
            email=info.email.strip().lower(),
            class_name=class_name,
            section=section,
            student_number=student_number,
        )

    def _ensure_student_number_free(self, tenant_id: str, student_number: str) -> None:
        taken = (
            self.db.query(Membership.id)
            .filter(
                Membership.tenant_id == tenant_id,
                Membership.student_number == student_number,
                Membership.status != MembershipStatus.REJECTED,
            )
            .first()
        )
        if taken is not None:
            raise ConflictError("This student number is already registered.")

    def _ensure_active_tenant(self, tenant: Tenant | None) -> Tenant:
        if tenant is None:
            raise NotFoundError("School not found.")
        if not tenant.is_active:
            raise ValidationError("This school is not active.")
        return tenant

    def register(self, identity: VerifiedIdentity, tenant_slug: str, info: StudentInfo) -> Membership:
        """Create a PENDING membership for a first-time identity."""
        existing = self.find_by_identity(identity.uid)
        if existing is not None:
            if existing.status is MembershipStatus.REJECTED:
                raise AuthorizationError("This account was rejected and cannot register again.")
            raise ConflictError("This account is already registered.")

        tenant = self._ensure_active_tenant(
            self.db.query(Tenant).filter(Tenant.slug == tenant_slug.strip().lower()).first()
        )
        info = self._clean_student_info(info)
        if identity.email and identity.email != info.email:
            raise ValidationError("Email does not match the signed-in account.")
        if self.db.query(Membership.id).filter(Membership.email == info.email).first() is not None:
            raise ConflictError("This email address is already registered.")
        self._ensure_student_number_free(tenant.id, info.student_number)

        membership = Membership(
            identity_ref=identity.uid,
            email=info.email,
            name=info.name,
            tenant_id=tenant.id,
            role=Role.MEMBER,
            status=MembershipStatus.PENDING,
            class_name=info.class_name,
            section=info.section,
            student_number=info.student_number,
        )
        self.db.add(membership)
        self.commit()
        self.db.refresh(membership)
        return membership

    def select_tenant(self, identity_ref: str, tenant_id: str, info: StudentInfo) -> Membership:
        """Attach a tenant-less member to a school during onboarding."""
        membership = self.get_profile(identity_ref)
        if membership.tenant_id is not None:
            raise ConflictError("You are already registered with a school.")
        if membership.role is not Role.MEMBER:
            raise ValidationError("Only members can select a school.")

        tenant = self._ensure_active_tenant(self.db.get(Tenant, tenant_id))
        info = self._clean_student_info(info)
        self._ensure_student_number_free(tenant.id, info.student_number)

        membership.tenant_id = tenant.id
        membership.class_name = info.class_name
        membership.section = info.section
        membership.student_number = info.student_number
        membership.status = MembershipStatus.PENDING
        self.commit()
        self.db.refresh(membership)
        return membership

    def update_profile(
        self,
        identity_ref: str,
        name: str | None = None,
        class_name: str | None = None,
        section: str | None = None,
    ) -> Membership:
        membership = self.get_profile(identity_ref)
        changed = False
        if name is not None and strip_tags(name, max_len=100):
            membership.name = strip_tags(name, max_len=100)
            changed = True
        if class_name is not None:
            membership.class_name = strip_tags(class_name, max_len=10) or None
            changed = True
        if section is not None:
            membership.section = strip_tags(section, max_len=10).upper() or None
            changed = True
        if changed:
            self.commit()
            self.db.refresh(membership)
        return membership

    def list_pending(self, scope: TenantScope) -> list[Membership]:
        query = self.db.query(Membership).filter(
            Membership.status == MembershipStatus.PENDING,
            Membership.role == Role.MEMBER,
        )
        return scope.apply(query, Membership).order_by(Membership.created_at.desc()).all()

    def _get_in_scope(self, scope: TenantScope, membership_id: str) -> Membership:
        membership = self.db.get(Membership, membership_id)
        if membership is None:
            raise NotFoundError("User not found.")
        enforce_tenant_match(membership.tenant_id, scope)
        return membership

    def _transition(self, scope: TenantScope, membership_id: str, target: MembershipStatus) -> Membership:
        membership = self._get_in_scope(scope, membership_id)
        if membership.role is not Role.MEMBER:
            raise ValidationError("Only member accounts go through approval.")
        if membership.status is target:
            raise ConflictError(f"This user is already {target.value.lower()}.")
        MEMBERSHIP_TRANSITIONS.assert_transition(membership.status.value, target.value)
        membership.status = target
        self.commit()
        self.db.refresh(membership)
        logger.info(
            "membership.status_changed",
            extra={
                "event": "membership.status_changed",
                "membership_id": membership.id,
                "tenant_id": membership.tenant_id,
            },
        )
        return membership

    def approve(self, scope: TenantScope, membership_id: str) -> Membership:
        return self._transition(scope, membership_id, MembershipStatus.APPROVED)

    def reject(self, scope: TenantScope, membership_id: str) -> Membership:
        """Reject a pending membership; the record is kept to block re-registration."""
        return self._transition(scope, membership_id, MembershipStatus.REJECTED)

    def _bulk(self, scope: TenantScope, membership_ids: list[str], target: MembershipStatus) -> BulkResult:
        if not membership_ids:
            raise ValidationError("At least one user id is required.")
        result = BulkResult()
        for membership_id in membership_ids:
            try:
                self._transition(scope, membership_id, target)
            except SchoolShelfError as exc:
                result.fail(f"{membership_id}: {exc.message}")
            else:
                result.success += 1
        return result

    def bulk_approve(self, scope: TenantScope, membership_ids: list[str]) -> BulkResult:
        return self._bulk(scope, membership_ids, MembershipStatus.APPROVED)

    def bulk_reject(self, scope: TenantScope, membership_ids: list[str]) -> BulkResult:
        return self._bulk(scope, membership_ids, MembershipStatus.REJECTED)

    def member_detail(self, scope: TenantScope, membership_id: str) -> dict[str, Any]:
        membership = self._get_in_scope(scope, membership_id)
        loans = (
            self.db.query(Loan)
            .filter(Loan.member_id == membership.id)
            .order_by(Loan.borrowed_at.desc())
            .all()
        )
        now = utcnow()
        active = [loan for loan in loans if loan.status is LoanStatus.ACTIVE]
        unpaid = (
            self.db.query(func.coalesce(func.sum(Loan.fine_amount), 0.0))
            .filter(Loan.member_id == membership.id, Loan.fine_paid.is_(False), Loan.fine_amount > 0)
            .scalar()
        )
        return {
            "user": membership,
            "stats": {
                "total_loans": len(loans),
                "active_loans": len(active),
                "overdue_loans": sum(1 for loan in active if loan.due_at < now),
                "returned_loans": sum(1 for loan in loans if loan.status is LoanStatus.RETURNED),
                "total_fines": float(sum(loan.fine_amount for loan in loans)),
                "unpaid_fines": float(unpaid or 0.0),
            },
            "active_loans": active,
            "loan_history": loans[:50],
        }
